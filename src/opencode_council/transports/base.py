"""Base session transport definitions for opencode-council.

A transport hosts conversation sessions on some agent server: it creates a
session, sends a text prompt (optionally pinned to a model and a system
prompt) and returns the whole response text, and deletes the session.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from opencode_council.protocol.types import ModelReference

ProgressSink = Callable[[str], Awaitable[None]]
"""Best-effort receiver for rendered progress blocks."""


class DoctorResult(BaseModel):
    """Health check result for a transport."""

    model_config = ConfigDict(extra="allow", frozen=True)

    ok: bool = Field(..., description="Whether the server is reachable.")
    message: str | None = Field(default=None, description="Optional status message.")
    latency_ms: float | None = Field(
        default=None, description="Measured latency in milliseconds for the health check."
    )
    details: Mapping[str, Any] | None = Field(
        default=None, description="Additional diagnostic details."
    )


class SessionTransport(ABC):
    """Abstract base class for session transports.

    Implementations should:
    - set :attr:`name` to a stable identifier (e.g. "opencode")
    - raise :class:`opencode_council.errors.EmptyResponse` from
      :meth:`prompt_session` when the extracted text is empty
    - treat :meth:`delete_session` as best effort; callers discard its errors
    """

    name: ClassVar[str]

    @abstractmethod
    async def create_session(self, parent_id: str | None, title: str) -> str:
        """Create a session and return its identifier."""

    @abstractmethod
    async def prompt_session(
        self,
        session_id: str,
        text: str,
        model: ModelReference | None = None,
        system: str | None = None,
    ) -> str:
        """Send *text* to the session and return the response text."""

    @abstractmethod
    async def delete_session(self, session_id: str) -> None:
        """Delete a session."""

    async def doctor(self) -> DoctorResult:
        """Perform a health check. Transports without one report OK."""
        return DoctorResult(ok=True, message="No health check available.")

    async def aclose(self) -> None:
        """Release transport resources."""
