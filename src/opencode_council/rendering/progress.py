"""Re-renderable progress block for an in-flight deliberation."""

from __future__ import annotations

from opencode_council.protocol.state import DeliberationState
from opencode_council.protocol.types import DeliberationPhase

DEFAULT_PREVIEW_CHARS = 280
ELLIPSIS = "…"

PHASE_TITLES: dict[DeliberationPhase, str] = {
    DeliberationPhase.STARTING: "Starting",
    DeliberationPhase.INITIAL_ROUND: "Initial responses",
    DeliberationPhase.DISCUSSING: "Discussion",
    DeliberationPhase.VOTING: "Voting",
    DeliberationPhase.SYNTHESIZING: "Synthesis",
    DeliberationPhase.COMPLETE: "Complete",
    DeliberationPhase.ERRORED: "Errored",
}


def phase_banner(phase: DeliberationPhase) -> str:
    return f"## Council · {PHASE_TITLES[phase]}"


def truncate(text: str, limit: int = DEFAULT_PREVIEW_CHARS) -> str:
    """Flatten *text* to one line and elide it past *limit* characters.

    Elided text ends with a marker naming how many characters were dropped.
    """
    flat = " ".join(text.split())
    if len(flat) <= limit:
        return flat
    dropped = len(flat) - limit
    return f"{flat[:limit].rstrip()}{ELLIPSIS} [+{dropped} chars]"


def render_progress(state: DeliberationState, preview_chars: int = DEFAULT_PREVIEW_CHARS) -> str:
    """Render the current state as Markdown. Pure; safe to call repeatedly."""

    lines = [phase_banner(state.phase), "", f"**Request:** {truncate(state.request, preview_chars)}"]

    lines += ["", "### Responses"]
    for name, response in zip(state.seat_names, state.initial_responses, strict=True):
        if response is None:
            lines.append(f"- **{name}**: _waiting_")
        else:
            lines.append(f"- **{response.display_name}**: {truncate(response.content, preview_chars)}")

    if state.discussion_log:
        lines += ["", "### Discussion"]
        lines += [f"- {truncate(line, preview_chars)}" for line in state.discussion_log]

    if state.pending_user_question is not None:
        lines += ["", f"> **Needs more input:** {state.pending_user_question}"]

    if any(vote is not None for vote in state.votes):
        lines += ["", "### Votes"]
        for vote in state.votes:
            if vote is not None:
                lines.append(f"- {vote.voter_label} → {vote.choice_label}")

    if state.winner is not None:
        lines += [
            "",
            f"**Winner:** {state.winner.display_name} "
            f"({state.winner.vote_count}/{state.winner.total_votes} votes)",
        ]

    if state.error:
        lines += ["", f"**Error:** {state.error}"]

    return "\n".join(lines)


__all__ = ["DEFAULT_PREVIEW_CHARS", "PHASE_TITLES", "phase_banner", "render_progress", "truncate"]
