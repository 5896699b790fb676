"""Session transports."""

from .base import DoctorResult, ProgressSink, SessionTransport
from .opencode import OpenCodeTransport

__all__ = [
    "DoctorResult",
    "OpenCodeTransport",
    "ProgressSink",
    "SessionTransport",
]
