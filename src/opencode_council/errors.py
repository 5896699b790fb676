"""Exception hierarchy for opencode-council.

Hard failures propagate to the caller and terminate the whole deliberation.
Undecodable speaker decisions and votes are not errors; see
:mod:`opencode_council.engine.decisions`.
"""

from __future__ import annotations


class CouncilError(Exception):
    """Base class for all council failures."""


class ConfigurationError(CouncilError, ValueError):
    """Council configuration is missing, unreadable or invalid."""


class InvalidModelReference(CouncilError, ValueError):
    """A model identifier is not of the form ``provider/model``."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f'Invalid model format: "{identifier}". Expected "provider/model".')


class SessionCreationFailed(CouncilError):
    """The scratch session hosting a deliberation could not be created."""


class EmptyResponse(CouncilError):
    """A required member or speaker invocation returned no usable text."""

    def __init__(self, role: str, detail: str | None = None) -> None:
        self.role = role
        message = f"{role} returned an empty response."
        if detail:
            message = f"{message} {detail}"
        super().__init__(message)


class TranscriptAccessError(CouncilError, ValueError):
    """A transcript path resolves outside the transcript directory."""


__all__ = [
    "CouncilError",
    "ConfigurationError",
    "EmptyResponse",
    "InvalidModelReference",
    "SessionCreationFailed",
    "TranscriptAccessError",
]
