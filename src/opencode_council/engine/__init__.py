"""
Council Engine - deliberation logic for the speaker-led council.

The engine coordinates:
1. Parallel initial responses from every member
2. A bounded, speaker-directed clarification discussion
3. Parallel voting and a deterministic tally
4. Speaker synthesis of the winning response
"""

from opencode_council.engine.active import ActiveDeliberation, DeliberationRegistry
from opencode_council.engine.decisions import (
    AskMember,
    AskUser,
    EndDiscussion,
    SpeakerDecision,
    Unparseable,
    extract_json_object,
    parse_speaker_decision,
    parse_vote,
)
from opencode_council.engine.deliberation import Deliberation
from opencode_council.engine.members import CouncilMembers, build_members
from opencode_council.engine.session import scratch_session
from opencode_council.engine.tally import TallyResult, tally_votes

__all__ = [
    # Deliberation
    "Deliberation",
    "ActiveDeliberation",
    "DeliberationRegistry",
    # Members
    "CouncilMembers",
    "build_members",
    # Decisions
    "AskMember",
    "AskUser",
    "EndDiscussion",
    "SpeakerDecision",
    "Unparseable",
    "extract_json_object",
    "parse_speaker_decision",
    "parse_vote",
    # Tally
    "TallyResult",
    "tally_votes",
    # Session
    "scratch_session",
]
