"""
Protocol types for opencode-council.

Defines the Pydantic models shared by the engine, the renderers and the
configuration loader: council configuration, model references, members,
transcript entries and votes.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from opencode_council.errors import InvalidModelReference

MIN_MEMBERS = 3
MAX_MEMBERS = 10
DEFAULT_MAX_TURNS = 6


class DeliberationPhase(str, Enum):
    """Lifecycle states of one deliberation."""

    STARTING = "starting"
    INITIAL_ROUND = "initial_round"
    DISCUSSING = "discussing"
    VOTING = "voting"
    SYNTHESIZING = "synthesizing"
    COMPLETE = "complete"
    ERRORED = "errored"


class TranscriptPhase(str, Enum):
    """Phase tag carried by every transcript entry."""

    INITIAL = "initial"
    SPEAKER_DECISION = "speaker_decision"
    CLARIFICATION = "clarification"
    VOTE = "vote"
    SYNTHESIS = "synthesis"


class DiscussionConfig(BaseModel):
    """Bounds for the speaker-directed discussion loop."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    max_turns: int = Field(
        default=DEFAULT_MAX_TURNS,
        ge=1,
        le=12,
        alias="maxTurns",
        description="Maximum number of speaker decisions per deliberation.",
    )


class CouncilConfig(BaseModel):
    """Validated council configuration."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    members: list[str] = Field(
        ...,
        description=(
            "Ordered council member model identifiers. "
            "Example: ['anthropic/claude-sonnet-4', 'openai/gpt-4o', 'google/gemini-2.5-pro']"
        ),
    )
    speaker: str = Field(..., description="Model identifier of the speaker.")
    server_url: str | None = Field(
        default=None,
        alias="serverUrl",
        description="Base URL of the OpenCode server hosting the sessions.",
    )
    discussion: DiscussionConfig = Field(default_factory=DiscussionConfig)
    timeout: int | None = Field(
        default=None,
        ge=10,
        le=900,
        description="Per-invocation timeout in seconds. None leaves timeouts to the transport.",
    )

    @field_validator("members")
    @classmethod
    def _check_member_count(cls, value: list[str]) -> list[str]:
        if len(value) < MIN_MEMBERS:
            raise ValueError(f"Council requires at least {MIN_MEMBERS} members.")
        if len(value) > MAX_MEMBERS:
            raise ValueError(f"Council supports up to {MAX_MEMBERS} members.")
        return value

    @field_validator("speaker")
    @classmethod
    def _check_speaker(cls, value: str) -> str:
        if not value:
            raise ValueError("Speaker model is required.")
        return value

    @field_validator("server_url")
    @classmethod
    def _check_server_url(cls, value: str | None) -> str | None:
        if value is not None and not value:
            raise ValueError("serverUrl cannot be empty.")
        return value

    @property
    def max_turns(self) -> int:
        return self.discussion.max_turns


class ModelReference(BaseModel):
    """A resolved ``provider/model`` pair."""

    model_config = ConfigDict(frozen=True)

    provider_id: str = Field(..., min_length=1)
    model_id: str = Field(..., min_length=1)

    def __str__(self) -> str:
        return f"{self.provider_id}/{self.model_id}"


def parse_model_ref(identifier: str) -> ModelReference:
    """Parse ``provider/model`` into a :class:`ModelReference`.

    The string is split on its first ``/`` only, so model identifiers that
    contain ``/`` themselves (``openrouter/meta/llama-3``) survive intact.

    Raises:
        InvalidModelReference: If either segment is empty.
    """
    provider_id, _, model_id = identifier.partition("/")
    if not provider_id or not model_id:
        raise InvalidModelReference(identifier)
    return ModelReference(provider_id=provider_id, model_id=model_id)


class Member(BaseModel):
    """One council seat."""

    model_config = ConfigDict(frozen=True)

    seat: int = Field(..., ge=1, le=MAX_MEMBERS)
    display_name: str
    model_ref: ModelReference

    @property
    def label(self) -> str:
        """Display name with the model identifier, for transcripts."""
        return f"{self.display_name} ({self.model_ref})"


class TranscriptEntry(BaseModel):
    """A single append-only transcript record."""

    model_config = ConfigDict(frozen=True)

    phase: TranscriptPhase
    speaker: str
    content: str


class Vote(BaseModel):
    """A member's ballot after clamping to a valid seat."""

    model_config = ConfigDict(frozen=True)

    voter_seat: int = Field(..., ge=1)
    chosen_seat: int = Field(..., ge=1)
    reason: str = ""


__all__ = [
    "CouncilConfig",
    "DEFAULT_MAX_TURNS",
    "DeliberationPhase",
    "DiscussionConfig",
    "MAX_MEMBERS",
    "MIN_MEMBERS",
    "Member",
    "ModelReference",
    "TranscriptEntry",
    "TranscriptPhase",
    "Vote",
    "parse_model_ref",
]
