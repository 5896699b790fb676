"""
Transcript storage for opencode-council.

Markdown files on disk, one per deliberation.
"""

from opencode_council.storage.transcripts import (
    TRANSCRIPT_DIRNAME,
    TranscriptFile,
    TranscriptStore,
)

__all__ = [
    "TRANSCRIPT_DIRNAME",
    "TranscriptFile",
    "TranscriptStore",
]
