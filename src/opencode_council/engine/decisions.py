"""Decision extraction from free-form agent text.

Agents are asked to reply with a JSON object, but frequently wrap it in prose
or Markdown. :func:`extract_json_object` scrapes the object out and returns
``None`` when nothing decodes. The typed parsers on top validate the object
against the JSON schemas in :mod:`opencode_council.schemas` and fall back to
well-defined defaults instead of raising.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from jsonschema import Draft7Validator

from opencode_council.protocol.types import Vote
from opencode_council.schemas import load_schema

logger = logging.getLogger(__name__)

DEFAULT_SEAT = 1

_ROOT = "__root__"

_ACTION_ALIASES = {
    "askmember": "ask_member",
    "askuser": "ask_user",
}


@dataclass(frozen=True)
class AskMember:
    """Speaker wants a clarification from one member."""

    target: int | None
    question: str | None


@dataclass(frozen=True)
class AskUser:
    """Speaker needs input from the user; the discussion stops."""

    question: str | None


@dataclass(frozen=True)
class EndDiscussion:
    """Speaker considers the discussion complete."""


@dataclass(frozen=True)
class Unparseable:
    """No valid decision could be decoded; treated as the end of discussion."""

    raw: str


SpeakerDecision = AskMember | AskUser | EndDiscussion | Unparseable


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Extract a JSON object embedded in *text*.

    Attempts, in order: the whole (unfenced) text, the slice from the first
    ``{`` to the last ``}``, and each balanced-brace candidate from left to
    right. Returns ``None`` if no attempt decodes to an object.
    """
    if not text:
        return None
    cleaned = _strip_code_fence(text.strip())

    parsed = _loads_object(cleaned)
    if parsed is not None:
        return parsed

    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        return None

    parsed = _loads_object(cleaned[start : end + 1])
    if parsed is not None:
        return parsed

    for candidate in _balanced_objects(cleaned, start):
        parsed = _loads_object(candidate)
        if parsed is not None:
            return parsed
    return None


def parse_speaker_decision(text: str) -> SpeakerDecision:
    """Decode a speaker reply into a :data:`SpeakerDecision`."""

    payload = extract_json_object(text)
    if payload is None:
        return Unparseable(raw=text)

    payload = dict(payload)
    action = payload.get("action")
    if isinstance(action, str):
        normalized = action.strip().lower().replace("-", "_").replace(" ", "_")
        payload["action"] = _ACTION_ALIASES.get(normalized, normalized)
    if "target" in payload:
        payload["target"] = coerce_seat(payload["target"])

    invalid = _invalid_fields("speaker_decision", payload)
    if _ROOT in invalid or "action" in invalid:
        logger.debug("Speaker decision failed validation: %s", sorted(invalid))
        return Unparseable(raw=text)

    question = None if "question" in invalid else payload.get("question")
    if payload["action"] == "ask_member":
        target = None if "target" in invalid else payload.get("target")
        return AskMember(target=target, question=question)
    if payload["action"] == "ask_user":
        return AskUser(question=question)
    return EndDiscussion()


def parse_vote(text: str, voter_seat: int, council_size: int) -> Vote:
    """Decode a member's ballot.

    A vote that is missing, non-numeric or outside ``[1, council_size]`` counts
    for seat 1. A missing or non-string reason becomes an empty string.
    """

    payload = extract_json_object(text)
    if payload is None:
        logger.debug("Vote from seat %d had no decodable JSON; defaulting to seat %d",
                     voter_seat, DEFAULT_SEAT)
        return Vote(voter_seat=voter_seat, chosen_seat=DEFAULT_SEAT, reason="")

    payload = dict(payload)
    if "vote" in payload:
        payload["vote"] = coerce_seat(payload["vote"])

    schema = load_schema("vote")
    schema["properties"]["vote"]["maximum"] = max(council_size, DEFAULT_SEAT)
    invalid = _invalid_fields_for(schema, payload)

    if _ROOT in invalid or "vote" in invalid:
        chosen = DEFAULT_SEAT
    else:
        chosen = payload["vote"]
    reason = "" if _ROOT in invalid or "reason" in invalid else payload.get("reason", "")
    return Vote(voter_seat=voter_seat, chosen_seat=chosen, reason=reason.strip())


def coerce_seat(value: Any) -> Any:
    """Turn integral numbers and digit strings into ``int``; leave anything else alone."""

    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdecimal():
        return int(value.strip())
    return value


def _invalid_fields(schema_name: str, payload: dict[str, Any]) -> set[str]:
    return _invalid_fields_for(load_schema(schema_name), payload)


def _invalid_fields_for(schema: dict[str, Any], payload: dict[str, Any]) -> set[str]:
    """Return top-level property names (or ``__root__``) that fail *schema*."""

    validator = Draft7Validator(schema)
    invalid: set[str] = set()
    for err in validator.iter_errors(payload):
        if err.path:
            invalid.add(str(err.path[0]))
        elif err.validator == "required":
            # "'vote' is a required property" has an empty path
            missing = [name for name in err.validator_value if name not in payload]
            invalid.update(missing or [_ROOT])
        else:
            invalid.add(_ROOT)
    return invalid


def _strip_code_fence(text: str) -> str:
    if not text.startswith("```"):
        return text
    end_fence = text.rfind("```")
    inner = text[3:end_fence].strip() if end_fence > 3 else text.strip("`")
    if inner.startswith("json"):
        inner = inner[4:].strip()
    return inner


def _loads_object(candidate: str) -> dict[str, Any] | None:
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def _balanced_objects(text: str, start: int) -> Iterator[str]:
    """Yield each balanced ``{...}`` span, honouring JSON string escapes."""

    while start != -1:
        depth = 0
        in_string = False
        escape_next = False
        for i in range(start, len(text)):
            char = text[i]
            if escape_next:
                escape_next = False
                continue
            if char == "\\":
                escape_next = True
                continue
            if char == '"':
                in_string = not in_string
                continue
            if in_string:
                continue
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    yield text[start : i + 1]
                    break
        start = text.find("{", start + 1)


__all__ = [
    "AskMember",
    "AskUser",
    "DEFAULT_SEAT",
    "EndDiscussion",
    "SpeakerDecision",
    "Unparseable",
    "coerce_seat",
    "extract_json_object",
    "parse_speaker_decision",
    "parse_vote",
]
