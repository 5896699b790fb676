"""Vote tallying with deterministic tie-breaking."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from opencode_council.protocol.types import Vote


@dataclass(frozen=True)
class TallyResult:
    """Outcome of a council vote."""

    winner_seat: int
    winner_votes: int
    total_votes: int
    counts: dict[int, int] = field(default_factory=dict)
    tied_seats: tuple[int, ...] = ()

    @property
    def tie_broken(self) -> bool:
        return len(self.tied_seats) > 1


def tally_votes(votes: Iterable[Vote], council_size: int) -> TallyResult:
    """Count votes per seat and pick the winner.

    The seat with the most votes wins; among tied seats the lowest seat number
    wins. Votes for seats outside ``[1, council_size]`` are ignored; the
    decision parser has already clamped them, so this only guards direct
    callers. With no countable votes seat 1 wins with zero votes.
    """
    if council_size < 1:
        raise ValueError("council_size must be at least 1.")

    counts: Counter[int] = Counter()
    for vote in votes:
        if 1 <= vote.chosen_seat <= council_size:
            counts[vote.chosen_seat] += 1

    total = sum(counts.values())
    if not counts:
        return TallyResult(winner_seat=1, winner_votes=0, total_votes=0)

    top = max(counts.values())
    tied = tuple(sorted(seat for seat, count in counts.items() if count == top))
    return TallyResult(
        winner_seat=tied[0],
        winner_votes=top,
        total_votes=total,
        counts=dict(sorted(counts.items())),
        tied_seats=tied,
    )


__all__ = ["TallyResult", "tally_votes"]
