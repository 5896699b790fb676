"""Archival transcript and final output formatting."""

from __future__ import annotations

from collections.abc import Sequence

from opencode_council.protocol.state import VoteLine, Winner
from opencode_council.protocol.types import (
    DeliberationPhase,
    TranscriptEntry,
    TranscriptPhase,
)
from opencode_council.rendering.progress import phase_banner

PHASE_HEADINGS: dict[TranscriptPhase, str] = {
    TranscriptPhase.INITIAL: "Initial responses",
    TranscriptPhase.SPEAKER_DECISION: "Speaker decisions",
    TranscriptPhase.CLARIFICATION: "Clarifications",
    TranscriptPhase.VOTE: "Votes",
    TranscriptPhase.SYNTHESIS: "Synthesis",
}


def format_transcript(entries: Sequence[TranscriptEntry]) -> str:
    """Render every entry, untruncated, grouped by phase and then by speaker.

    Phases appear in protocol order; speakers within a phase appear in the
    order they first spoke, and each speaker's entries keep their order.
    """
    sections: list[str] = []
    for phase in TranscriptPhase:
        grouped: dict[str, list[str]] = {}
        for entry in entries:
            if entry.phase is phase:
                grouped.setdefault(entry.speaker, []).append(entry.content.strip())
        if not grouped:
            continue
        lines = [f"### {PHASE_HEADINGS[phase]}"]
        for speaker, contents in grouped.items():
            lines += ["", f"#### {speaker}"]
            for content in contents:
                lines += ["", content]
        sections.append("\n".join(lines))
    return "\n\n".join(sections)


def format_vote_summary(votes: Sequence[VoteLine | None]) -> str:
    lines = []
    for vote in votes:
        if vote is None:
            continue
        line = f"- {vote.voter_label} → {vote.choice_label}"
        if vote.reason:
            line = f"{line}: {vote.reason}"
        lines.append(line)
    return "\n".join(lines)


def format_final_output(
    *,
    request: str,
    winner: Winner,
    winner_label: str,
    synthesis: str,
    votes: Sequence[VoteLine | None],
    entries: Sequence[TranscriptEntry],
    pending_user_question: str | None = None,
) -> str:
    """Render the document returned to the caller of a deliberation."""

    parts = [phase_banner(DeliberationPhase.COMPLETE), f"**Request:** {request.strip()}"]

    if pending_user_question is not None:
        question = pending_user_question or "The speaker asked for more information."
        parts.append(
            f"> **Needs more input:** {question}\n"
            "> Answer this and run the council again for a more complete result."
        )

    parts.append(
        "### Winning solution\n\n"
        f"**{winner_label}** with {winner.vote_count}/{winner.total_votes} votes\n\n"
        f"{synthesis.strip()}"
    )
    parts.append(f"### Vote summary\n\n{format_vote_summary(votes)}")
    parts.append(
        "<details>\n<summary>Full transcript</summary>\n\n"
        f"{format_transcript(entries)}\n\n"
        "</details>"
    )
    return "\n\n".join(parts) + "\n"


__all__ = ["PHASE_HEADINGS", "format_final_output", "format_transcript", "format_vote_summary"]
