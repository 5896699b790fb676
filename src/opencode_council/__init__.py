"""opencode-council package."""

from .council import Council, run_deliberation
from .engine.deliberation import Deliberation
from .errors import (
    ConfigurationError,
    CouncilError,
    EmptyResponse,
    InvalidModelReference,
    SessionCreationFailed,
    TranscriptAccessError,
)
from .protocol.types import CouncilConfig, Member, ModelReference, parse_model_ref
from .transports.base import DoctorResult, ProgressSink, SessionTransport
from .transports.opencode import OpenCodeTransport

__version__ = "0.3.0"

__all__ = [
    "__version__",
    "ConfigurationError",
    "Council",
    "CouncilConfig",
    "CouncilError",
    "Deliberation",
    "DoctorResult",
    "EmptyResponse",
    "InvalidModelReference",
    "Member",
    "ModelReference",
    "OpenCodeTransport",
    "ProgressSink",
    "SessionCreationFailed",
    "SessionTransport",
    "TranscriptAccessError",
    "parse_model_ref",
    "run_deliberation",
]
