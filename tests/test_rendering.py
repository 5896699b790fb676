"""Tests for progress and transcript rendering."""

from opencode_council.protocol.state import DeliberationState, InitialResponse, VoteLine, Winner
from opencode_council.protocol.types import DeliberationPhase, TranscriptEntry, TranscriptPhase
from opencode_council.rendering import (
    format_final_output,
    format_transcript,
    format_vote_summary,
    render_progress,
    truncate,
)
from opencode_council.rendering.progress import ELLIPSIS, phase_banner

SEATS = ["Member 1", "Member 2", "Member 3"]


class TestTruncate:
    """Tests for truncate."""

    def test_short_text_untouched(self):
        assert truncate("short answer", limit=50) == "short answer"

    def test_whitespace_flattened(self):
        assert truncate("line one\n\n  line two", limit=50) == "line one line two"

    def test_long_text_marked(self):
        result = truncate("x" * 300, limit=280)
        assert result.startswith("x" * 280)
        assert result.endswith(f"{ELLIPSIS} [+20 chars]")

    def test_exact_limit(self):
        assert truncate("abcde", limit=5) == "abcde"


class TestRenderProgress:
    """Tests for render_progress."""

    def test_starting_state(self):
        state = DeliberationState(request="Pick a queue", seat_names=SEATS)
        text = render_progress(state)

        assert text.startswith("## Council · Starting")
        assert "**Request:** Pick a queue" in text
        assert text.count("_waiting_") == 3
        assert "### Discussion" not in text
        assert "### Votes" not in text
        assert "**Winner:**" not in text

    def test_partial_responses(self):
        state = DeliberationState(request="Pick a queue", seat_names=SEATS)
        state.phase = DeliberationPhase.INITIAL_ROUND
        state.initial_responses[1] = InitialResponse(display_name="Member 2", content="Use SQS")
        text = render_progress(state)

        assert "## Council · Initial responses" in text
        assert "- **Member 2**: Use SQS" in text
        assert text.count("_waiting_") == 2

    def test_long_response_truncated(self):
        state = DeliberationState(request="r", seat_names=SEATS)
        state.initial_responses[0] = InitialResponse(display_name="Member 1", content="y" * 500)
        text = render_progress(state, preview_chars=100)
        assert "[+400 chars]" in text
        assert "y" * 101 not in text

    def test_full_state(self):
        state = DeliberationState(request="Pick a queue", seat_names=SEATS)
        state.phase = DeliberationPhase.SYNTHESIZING
        state.discussion_log.append("Turn 1: the speaker ended the discussion.")
        state.pending_user_question = "What volume?"
        state.votes[0] = VoteLine(voter_label="Member 1", choice_label="Member 2", reason="r")
        state.winner = Winner(display_name="Member 2", vote_count=1, total_votes=1)
        text = render_progress(state)

        assert "### Discussion" in text
        assert "- Turn 1: the speaker ended the discussion." in text
        assert "> **Needs more input:** What volume?" in text
        assert "- Member 1 → Member 2" in text
        assert "**Winner:** Member 2 (1/1 votes)" in text

    def test_error(self):
        state = DeliberationState(request="r", seat_names=SEATS)
        state.phase = DeliberationPhase.ERRORED
        state.error = "Member 2 returned an empty response."
        text = render_progress(state)
        assert text.startswith(phase_banner(DeliberationPhase.ERRORED))
        assert "**Error:** Member 2 returned an empty response." in text

    def test_is_pure(self):
        state = DeliberationState(request="r", seat_names=SEATS)
        assert render_progress(state) == render_progress(state)


class TestFormatTranscript:
    """Tests for format_transcript."""

    def test_grouped_by_phase_then_speaker(self):
        entries = [
            TranscriptEntry(phase=TranscriptPhase.INITIAL, speaker="Member 2", content="B"),
            TranscriptEntry(phase=TranscriptPhase.SPEAKER_DECISION, speaker="Speaker", content="S1"),
            TranscriptEntry(phase=TranscriptPhase.INITIAL, speaker="Member 1", content="A"),
            TranscriptEntry(phase=TranscriptPhase.CLARIFICATION, speaker="Member 2", content="C1"),
            TranscriptEntry(phase=TranscriptPhase.SPEAKER_DECISION, speaker="Speaker", content="S2"),
        ]
        text = format_transcript(entries)

        assert text.index("### Initial responses") < text.index("### Speaker decisions")
        assert text.index("### Speaker decisions") < text.index("### Clarifications")
        assert text.index("#### Member 2") < text.index("#### Member 1")
        assert text.index("S1") < text.index("S2")
        assert text.count("#### Speaker") == 1
        assert "### Votes" not in text

    def test_untruncated(self):
        long = "z" * 5000
        text = format_transcript(
            [TranscriptEntry(phase=TranscriptPhase.SYNTHESIS, speaker="Speaker", content=long)]
        )
        assert long in text

    def test_empty(self):
        assert format_transcript([]) == ""


class TestFinalOutput:
    """Tests for the final deliberation output."""

    def _render(self, pending=None):
        votes = [
            VoteLine(voter_label="Member 1", choice_label="Member 2", reason="clear"),
            VoteLine(voter_label="Member 2", choice_label="Member 2"),
            None,
        ]
        return format_final_output(
            request="Pick a queue",
            winner=Winner(display_name="Member 2", vote_count=2, total_votes=2),
            winner_label="Member 2 (openai/gpt-4o)",
            synthesis="Use SQS with a DLQ.",
            votes=votes,
            entries=[
                TranscriptEntry(phase=TranscriptPhase.INITIAL, speaker="Member 1", content="A"),
            ],
            pending_user_question=pending,
        )

    def test_sections_in_order(self):
        text = self._render()
        order = [
            "## Council · Complete",
            "**Request:** Pick a queue",
            "### Winning solution",
            "**Member 2 (openai/gpt-4o)** with 2/2 votes",
            "Use SQS with a DLQ.",
            "### Vote summary",
            "<summary>Full transcript</summary>",
            "</details>",
        ]
        positions = [text.index(marker) for marker in order]
        assert positions == sorted(positions)
        assert "Needs more input" not in text

    def test_vote_summary_lines(self):
        text = self._render()
        assert "- Member 1 → Member 2: clear" in text
        assert "- Member 2 → Member 2\n" in text

    def test_pending_question_callout(self):
        text = self._render(pending="Which region?")
        assert "> **Needs more input:** Which region?" in text
        assert text.index("Needs more input") < text.index("### Winning solution")

    def test_format_vote_summary_skips_missing(self):
        assert format_vote_summary([None, None]) == ""
