"""Council member registry."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from opencode_council.protocol.types import (
    CouncilConfig,
    Member,
    ModelReference,
    parse_model_ref,
)

SPEAKER_NAME = "Speaker"


@dataclass(frozen=True)
class CouncilMembers:
    """Fixed seating for one deliberation: members 1..N plus the speaker."""

    members: tuple[Member, ...]
    speaker: ModelReference

    def __len__(self) -> int:
        return len(self.members)

    def __iter__(self) -> Iterator[Member]:
        return iter(self.members)

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def speaker_label(self) -> str:
        return f"{SPEAKER_NAME} ({self.speaker})"

    def by_seat(self, seat: int) -> Member:
        """Return the member at *seat* (1-based)."""
        if not 1 <= seat <= len(self.members):
            raise KeyError(f"No council member at seat {seat}.")
        return self.members[seat - 1]

    def resolve_seat(self, seat: int | None, default: int = 1) -> int:
        """Return *seat* if it names a member, otherwise *default*."""
        if seat is None or not 1 <= seat <= len(self.members):
            return default
        return seat


def build_members(config: CouncilConfig) -> CouncilMembers:
    """Resolve the configured identifiers into seated members and a speaker.

    Raises:
        InvalidModelReference: If any identifier is malformed.
    """
    return CouncilMembers(
        members=seat_members(config.members),
        speaker=parse_model_ref(config.speaker),
    )


def seat_members(identifiers: Sequence[str]) -> tuple[Member, ...]:
    """Assign seats 1..N to *identifiers* in order."""
    return tuple(
        Member(seat=seat, display_name=f"Member {seat}", model_ref=parse_model_ref(identifier))
        for seat, identifier in enumerate(identifiers, start=1)
    )


__all__ = ["CouncilMembers", "SPEAKER_NAME", "build_members", "seat_members"]
