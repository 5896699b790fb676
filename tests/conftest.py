"""Pytest configuration and shared fixtures for opencode-council tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import ClassVar

import pytest

from opencode_council.protocol.types import CouncilConfig, ModelReference
from opencode_council.transports.base import SessionTransport

MEMBERS = ["anthropic/claude-sonnet-4", "openai/gpt-4o", "google/gemini-2.5-pro"]
SPEAKER = "anthropic/claude-opus-4"

DEFAULT_REPLIES: dict[str, str] = {
    "initial": "Initial answer",
    "discussion": '{"action": "end"}',
    "clarification": "Clarified answer",
    "vote": '{"vote": 1, "reason": "ok"}',
    "synthesis": "Final synthesized answer",
}


def classify_prompt(text: str) -> str:
    """Map an engine prompt to the phase that produced it."""
    if "Discussion turn" in text:
        return "discussion"
    if "Speaker's question" in text:
        return "clarification"
    if "Vote for the council member" in text:
        return "vote"
    if "Write the final, actionable answer" in text:
        return "synthesis"
    return "initial"


@dataclass
class PromptCall:
    session_id: str
    kind: str
    text: str
    model: ModelReference | None
    system: str | None


Reply = str | list[str] | Callable[[PromptCall], str]


class FakeTransport(SessionTransport):
    """Scripted session transport for testing.

    Replies are looked up by prompt kind (initial, discussion, clarification,
    vote, synthesis). A list is consumed one item per call, repeating the last
    item; a callable receives the :class:`PromptCall`. A reply that is an
    exception instance is raised instead of returned.
    """

    name: ClassVar[str] = "fake"

    def __init__(
        self,
        replies: dict[str, Reply] | None = None,
        session_id: str | None = "ses_test",
        fail_create: bool = False,
        fail_delete: bool = False,
        latency: float = 0.0,
    ) -> None:
        self._replies: dict[str, Reply] = {**DEFAULT_REPLIES, **(replies or {})}
        self._session_id = session_id
        self._fail_create = fail_create
        self._fail_delete = fail_delete
        self._latency = latency
        self._counters: dict[str, int] = {}
        self.calls: list[PromptCall] = []
        self.created: list[tuple[str | None, str]] = []
        self.deleted: list[str] = []

    async def create_session(self, parent_id: str | None, title: str) -> str:
        self.created.append((parent_id, title))
        if self._fail_create:
            raise RuntimeError("create failed")
        return self._session_id or ""

    async def prompt_session(
        self,
        session_id: str,
        text: str,
        model: ModelReference | None = None,
        system: str | None = None,
    ) -> str:
        kind = classify_prompt(text)
        call = PromptCall(session_id=session_id, kind=kind, text=text, model=model, system=system)
        self.calls.append(call)
        if self._latency:
            await asyncio.sleep(self._latency)

        reply = self._replies[kind]
        if callable(reply):
            result = reply(call)
        elif isinstance(reply, list):
            index = self._counters.get(kind, 0)
            self._counters[kind] = index + 1
            result = reply[min(index, len(reply) - 1)]
        else:
            result = reply
        if isinstance(result, BaseException):
            raise result
        return result

    async def delete_session(self, session_id: str) -> None:
        self.deleted.append(session_id)
        if self._fail_delete:
            raise RuntimeError("delete failed")

    def calls_of(self, kind: str) -> list[PromptCall]:
        return [call for call in self.calls if call.kind == kind]


class ProgressRecorder:
    """Collects progress blocks pushed by the engine."""

    def __init__(self, fail: bool = False) -> None:
        self.updates: list[str] = []
        self._fail = fail

    async def __call__(self, text: str) -> None:
        self.updates.append(text)
        if self._fail:
            raise RuntimeError("progress sink down")


@pytest.fixture
def council_config() -> CouncilConfig:
    """Three members, a distinct speaker, one discussion turn."""
    return CouncilConfig(members=list(MEMBERS), speaker=SPEAKER, discussion={"max_turns": 1})


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def progress_recorder() -> ProgressRecorder:
    return ProgressRecorder()


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    """Write a project council.json and isolate HOME."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("OPENCODE_COUNCIL_CONFIG", raising=False)

    project = tmp_path / "project"
    path = project / ".opencode" / "council.json"
    path.parent.mkdir(parents=True)
    path.write_text(
        '{"members": ["anthropic/claude-sonnet-4", "openai/gpt-4o", "google/gemini-2.5-pro"], '
        '"speaker": "anthropic/claude-opus-4", "discussion": {"maxTurns": 3}}'
    )
    return path
