"""Mutable deliberation state, as read by the progress renderer."""

from __future__ import annotations

from dataclasses import dataclass, field

from opencode_council.protocol.types import DeliberationPhase


@dataclass(frozen=True)
class InitialResponse:
    display_name: str
    content: str


@dataclass(frozen=True)
class VoteLine:
    voter_label: str
    choice_label: str
    reason: str = ""


@dataclass(frozen=True)
class Winner:
    display_name: str
    vote_count: int
    total_votes: int


@dataclass
class DeliberationState:
    """Progress of one deliberation.

    ``initial_responses`` and ``votes`` are indexed by ``seat - 1``. Concurrent
    fan-out tasks each write only their own slot.
    """

    request: str
    seat_names: list[str]
    phase: DeliberationPhase = DeliberationPhase.STARTING
    initial_responses: list[InitialResponse | None] = field(default_factory=list)
    discussion_log: list[str] = field(default_factory=list)
    votes: list[VoteLine | None] = field(default_factory=list)
    winner: Winner | None = None
    pending_user_question: str | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        size = len(self.seat_names)
        if not self.initial_responses:
            self.initial_responses = [None] * size
        if not self.votes:
            self.votes = [None] * size

    @property
    def council_size(self) -> int:
        return len(self.seat_names)

    @property
    def needs_user_input(self) -> bool:
        return self.pending_user_question is not None


__all__ = ["DeliberationState", "InitialResponse", "VoteLine", "Winner"]
