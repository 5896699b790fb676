"""Progress and transcript rendering."""

from opencode_council.rendering.progress import render_progress, truncate
from opencode_council.rendering.transcript import (
    format_final_output,
    format_transcript,
    format_vote_summary,
)

__all__ = [
    "format_final_output",
    "format_transcript",
    "format_vote_summary",
    "render_progress",
    "truncate",
]
