"""Protocol types for opencode-council."""

from opencode_council.protocol.types import (
    CouncilConfig,
    DeliberationPhase,
    DiscussionConfig,
    Member,
    ModelReference,
    TranscriptEntry,
    TranscriptPhase,
    Vote,
    parse_model_ref,
)

__all__ = [
    "CouncilConfig",
    "DeliberationPhase",
    "DiscussionConfig",
    "Member",
    "ModelReference",
    "TranscriptEntry",
    "TranscriptPhase",
    "Vote",
    "parse_model_ref",
]
