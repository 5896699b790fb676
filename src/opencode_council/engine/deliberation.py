"""Council deliberation engine.

This module implements the speaker-led, four-phase council flow:

1) Initial round: every member answers the request independently, in parallel
2) Discussion: the speaker reads the transcript and either asks one member a
   clarifying question, asks the user for input, or ends the discussion;
   bounded by ``discussion.max_turns``
3) Voting: every member votes, in parallel, for the strongest initial response
4) Synthesis: the speaker turns the winning response into the final answer

All invocations run inside one scratch session which is deleted on every exit
path. Any empty or failed required invocation aborts the whole deliberation;
there are no retries. Progress is pushed to an optional best-effort sink after
every state change.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Iterable, Sequence
from typing import TypeVar

from opencode_council.engine.decisions import (
    AskMember,
    AskUser,
    EndDiscussion,
    parse_speaker_decision,
    parse_vote,
)
from opencode_council.engine.members import CouncilMembers, build_members
from opencode_council.engine.session import DEFAULT_SESSION_TITLE, scratch_session
from opencode_council.engine.tally import TallyResult, tally_votes
from opencode_council.errors import EmptyResponse
from opencode_council.protocol.state import (
    DeliberationState,
    InitialResponse,
    VoteLine,
    Winner,
)
from opencode_council.protocol.types import (
    CouncilConfig,
    DeliberationPhase,
    Member,
    ModelReference,
    TranscriptEntry,
    TranscriptPhase,
    Vote,
)
from opencode_council.rendering.progress import render_progress
from opencode_council.rendering.transcript import format_final_output
from opencode_council.transports.base import ProgressSink, SessionTransport

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CLARIFICATION = "Please clarify and strengthen the key points of your initial response."

MEMBER_SYSTEM_PROMPT = (
    "You are a member of a council of independent AI models. Answer with your own "
    "analysis. Be concrete and actionable."
)

SPEAKER_SYSTEM_PROMPT = (
    "You are the speaker of a council of AI models. You steer the discussion and "
    "write the final answer. When asked for a decision, reply with a single JSON object."
)

_TRANSCRIPT_TAGS: dict[TranscriptPhase, str] = {
    TranscriptPhase.INITIAL: "Initial response",
    TranscriptPhase.SPEAKER_DECISION: "Speaker decision",
    TranscriptPhase.CLARIFICATION: "Clarification",
    TranscriptPhase.VOTE: "Vote",
    TranscriptPhase.SYNTHESIS: "Synthesis",
}


class Deliberation:
    """Runs one council deliberation against a session transport.

    An instance is single use: it owns the transcript and progress state for
    exactly one call to :meth:`run`.
    """

    def __init__(
        self,
        config: CouncilConfig,
        transport: SessionTransport,
        progress: ProgressSink | None = None,
        parent_session_id: str | None = None,
        title: str = DEFAULT_SESSION_TITLE,
    ) -> None:
        """Initialize the deliberation.

        Raises:
            InvalidModelReference: If a member or speaker identifier is malformed.
        """
        self._config = config
        self._transport = transport
        self._progress = progress
        self._parent_session_id = parent_session_id
        self._title = title
        self._council = build_members(config)
        self._entries: list[TranscriptEntry] = []
        self._state = DeliberationState(
            request="",
            seat_names=[member.display_name for member in self._council],
        )
        self._progress_lock = asyncio.Lock()
        self._started = False
        self._turns_taken = 0

    @property
    def council(self) -> CouncilMembers:
        return self._council

    @property
    def state(self) -> DeliberationState:
        return self._state

    @property
    def entries(self) -> tuple[TranscriptEntry, ...]:
        return tuple(self._entries)

    @property
    def turns_taken(self) -> int:
        """Number of speaker decisions requested during the discussion."""
        return self._turns_taken

    async def run(self, request: str) -> str:
        """Run all phases for *request* and return the final Markdown output."""

        if self._started:
            raise RuntimeError("A Deliberation can only be run once.")
        self._started = True
        self._state.request = request

        try:
            async with scratch_session(
                self._transport, self._parent_session_id, self._title
            ) as session_id:
                await self._run_initial_round(session_id)
                await self._run_discussion(session_id)
                votes = await self._run_voting(session_id)
                tally = tally_votes(votes, self._council.size)
                synthesis = await self._run_synthesis(session_id, tally)
        except Exception as exc:
            self._state.phase = DeliberationPhase.ERRORED
            self._state.error = str(exc) or type(exc).__name__
            logger.exception("Council deliberation failed.")
            await self._emit_progress()
            raise

        await self._set_phase(DeliberationPhase.COMPLETE)
        winner_member = self._council.by_seat(tally.winner_seat)
        return format_final_output(
            request=request,
            winner=self._winner_of(tally),
            winner_label=winner_member.label,
            synthesis=synthesis,
            votes=self._state.votes,
            entries=self._entries,
            pending_user_question=self._state.pending_user_question,
        )

    async def _run_initial_round(self, session_id: str) -> None:
        """Collect one independent response per member, in parallel."""

        await self._set_phase(DeliberationPhase.INITIAL_ROUND)
        await self._gather_all(
            self._initial_response(session_id, member) for member in self._council
        )

    async def _initial_response(self, session_id: str, member: Member) -> str:
        text = await self._prompt(
            session_id,
            member.label,
            self._format_initial_prompt(member),
            model=member.model_ref,
            system=MEMBER_SYSTEM_PROMPT,
        )
        self._entries.append(
            TranscriptEntry(phase=TranscriptPhase.INITIAL, speaker=member.label, content=text)
        )
        self._state.initial_responses[member.seat - 1] = InitialResponse(
            display_name=member.display_name, content=text
        )
        await self._emit_progress()
        return text

    async def _run_discussion(self, session_id: str) -> None:
        """Let the speaker steer up to ``max_turns`` clarification turns."""

        await self._set_phase(DeliberationPhase.DISCUSSING)
        speaker_label = self._council.speaker_label
        max_turns = self._config.max_turns

        for turn in range(1, max_turns + 1):
            self._turns_taken = turn
            reply = await self._prompt(
                session_id,
                speaker_label,
                self._format_discussion_prompt(turn, max_turns),
                model=self._council.speaker,
                system=SPEAKER_SYSTEM_PROMPT,
            )
            self._entries.append(
                TranscriptEntry(
                    phase=TranscriptPhase.SPEAKER_DECISION, speaker=speaker_label, content=reply
                )
            )
            decision = parse_speaker_decision(reply)

            if isinstance(decision, AskMember):
                await self._ask_member(session_id, turn, decision)
                continue

            if isinstance(decision, AskUser):
                self._state.pending_user_question = decision.question or ""
                await self._log_discussion(
                    f"Turn {turn}: the speaker needs input from the user: "
                    f"{decision.question or '(no question given)'}"
                )
            elif isinstance(decision, EndDiscussion):
                await self._log_discussion(f"Turn {turn}: the speaker ended the discussion.")
            else:
                await self._log_discussion(
                    f"Turn {turn}: no decision from the speaker; discussion closed."
                )
            break

        logger.info("Discussion finished after %d turn(s)", self._turns_taken)

    async def _ask_member(self, session_id: str, turn: int, decision: AskMember) -> None:
        member = self._council.by_seat(self._council.resolve_seat(decision.target))
        question = decision.question or DEFAULT_CLARIFICATION
        await self._log_discussion(f"Turn {turn}: the speaker asks {member.display_name}: {question}")
        answer = await self._prompt(
            session_id,
            member.label,
            self._format_clarification_prompt(member, question),
            model=member.model_ref,
            system=MEMBER_SYSTEM_PROMPT,
        )
        self._entries.append(
            TranscriptEntry(phase=TranscriptPhase.CLARIFICATION, speaker=member.label, content=answer)
        )
        await self._log_discussion(f"{member.display_name}: {answer}")

    async def _run_voting(self, session_id: str) -> list[Vote]:
        """Collect one vote per member, in parallel, over the same transcript."""

        await self._set_phase(DeliberationPhase.VOTING)
        transcript = self._format_transcript_block(self._entries)
        return await self._gather_all(
            self._cast_vote(session_id, member, transcript) for member in self._council
        )

    async def _cast_vote(self, session_id: str, member: Member, transcript: str) -> Vote:
        reply = await self._prompt(
            session_id,
            member.label,
            self._format_vote_prompt(member, transcript),
            model=member.model_ref,
            system=MEMBER_SYSTEM_PROMPT,
        )
        vote = parse_vote(reply, voter_seat=member.seat, council_size=self._council.size)
        self._entries.append(
            TranscriptEntry(phase=TranscriptPhase.VOTE, speaker=member.label, content=reply)
        )
        choice = self._council.by_seat(vote.chosen_seat)
        self._state.votes[member.seat - 1] = VoteLine(
            voter_label=member.display_name,
            choice_label=choice.display_name,
            reason=vote.reason,
        )
        await self._emit_progress()
        return vote

    def _winner_of(self, tally: TallyResult) -> Winner:
        return Winner(
            display_name=self._council.by_seat(tally.winner_seat).display_name,
            vote_count=tally.winner_votes,
            total_votes=tally.total_votes,
        )

    async def _run_synthesis(self, session_id: str, tally: TallyResult) -> str:
        """Ask the speaker to turn the winning response into the final answer."""

        winner = self._council.by_seat(tally.winner_seat)
        self._state.winner = self._winner_of(tally)
        if tally.tie_broken:
            logger.info("Vote tie between seats %s; seat %d wins", tally.tied_seats, winner.seat)
        await self._set_phase(DeliberationPhase.SYNTHESIZING)

        speaker_label = self._council.speaker_label
        synthesis = await self._prompt(
            session_id,
            speaker_label,
            self._format_synthesis_prompt(winner, tally),
            model=self._council.speaker,
            system=SPEAKER_SYSTEM_PROMPT,
        )
        self._entries.append(
            TranscriptEntry(phase=TranscriptPhase.SYNTHESIS, speaker=speaker_label, content=synthesis)
        )
        return synthesis

    async def _prompt(
        self,
        session_id: str,
        role: str,
        text: str,
        model: ModelReference,
        system: str,
    ) -> str:
        """Invoke the transport, applying the configured timeout.

        Raises:
            EmptyResponse: If the reply has no text.
        """
        call = self._transport.prompt_session(session_id, text, model=model, system=system)
        if self._config.timeout is not None:
            reply = await asyncio.wait_for(call, timeout=self._config.timeout)
        else:
            reply = await call
        if not reply or not reply.strip():
            raise EmptyResponse(role)
        return reply.strip()

    async def _gather_all(self, coros: Iterable[Awaitable[T]]) -> list[T]:
        """Run *coros* concurrently; the first failure cancels the rest and propagates."""

        tasks = [asyncio.ensure_future(coro) for coro in coros]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _set_phase(self, phase: DeliberationPhase) -> None:
        self._state.phase = phase
        logger.info("Council phase: %s", phase.value)
        await self._emit_progress()

    async def _log_discussion(self, line: str) -> None:
        self._state.discussion_log.append(line)
        await self._emit_progress()

    async def _emit_progress(self) -> None:
        """Render and push the current state; failures are discarded."""

        if self._progress is None:
            return
        async with self._progress_lock:
            text = render_progress(self._state)
            try:
                await self._progress(text)
            except Exception as exc:
                logger.debug("Failed to send progress update: %s", exc)

    def _format_transcript_block(self, entries: Sequence[TranscriptEntry]) -> str:
        """Format the transcript for inclusion in a prompt."""

        return "\n\n".join(
            f"[{_TRANSCRIPT_TAGS[entry.phase]}] {entry.speaker}:\n{entry.content}"
            for entry in entries
        )

    def _format_roster(self) -> str:
        return "\n".join(f"- Seat {m.seat}: {m.label}" for m in self._council)

    def _format_initial_prompt(self, member: Member) -> str:
        return (
            f"You are {member.display_name} on a council of {self._council.size} models.\n"
            "Analyze the request below independently. You cannot see the other members' "
            "answers. Propose your best solution with clear reasoning.\n\n"
            f"Request:\n{self._state.request}\n"
        )

    def _format_discussion_prompt(self, turn: int, max_turns: int) -> str:
        return (
            f"Request:\n{self._state.request}\n\n"
            f"Council members:\n{self._format_roster()}\n\n"
            f"Transcript so far:\n{self._format_transcript_block(self._entries)}\n\n"
            f"Discussion turn {turn} of {max_turns}. Decide the next step and reply with "
            "ONLY one JSON object:\n"
            '- {"action": "ask_member", "target": <seat number>, "question": "<question>"} '
            "to ask one member for clarification\n"
            '- {"action": "ask_user", "question": "<question>"} if the request cannot be '
            "answered without more information from the user\n"
            '- {"action": "end"} if the council is ready to vote'
        )

    def _format_clarification_prompt(self, member: Member, question: str) -> str:
        return (
            f"You are {member.display_name}. The speaker has a question for you about your "
            "answer to the request below.\n\n"
            f"Request:\n{self._state.request}\n\n"
            f"Transcript so far:\n{self._format_transcript_block(self._entries)}\n\n"
            f"Speaker's question:\n{question}\n"
        )

    def _format_vote_prompt(self, member: Member, transcript: str) -> str:
        return (
            f"You are {member.display_name}. Vote for the council member whose initial "
            "response, taking the discussion into account, best answers the request. "
            "You may vote for yourself.\n\n"
            f"Request:\n{self._state.request}\n\n"
            f"Council members:\n{self._format_roster()}\n\n"
            f"Transcript:\n{transcript}\n\n"
            "Reply with ONLY one JSON object: "
            f'{{"vote": <seat number 1-{self._council.size}>, "reason": "<one sentence>"}}'
        )

    def _format_synthesis_prompt(self, winner: Member, tally: TallyResult) -> str:
        vote_lines = "\n".join(
            f"- {line.voter_label} voted for {line.choice_label}"
            + (f": {line.reason}" if line.reason else "")
            for line in self._state.votes
            if line is not None
        )
        pending = ""
        if self._state.pending_user_question is not None:
            pending = (
                "\nThe discussion stopped because the user must answer: "
                f"{self._state.pending_user_question or '(unspecified)'}\n"
                "Call out what is missing in your answer.\n"
            )
        return (
            f"Request:\n{self._state.request}\n\n"
            f"Transcript:\n{self._format_transcript_block(self._entries)}\n\n"
            f"The council chose {winner.label} with {tally.winner_votes} of "
            f"{tally.total_votes} votes.\n"
            f"Votes:\n{vote_lines}\n{pending}\n"
            "Write the final, actionable answer to the request, building on the winning "
            "response and folding in any valid points raised by the other members."
        )


__all__ = [
    "DEFAULT_CLARIFICATION",
    "Deliberation",
    "MEMBER_SYSTEM_PROMPT",
    "SPEAKER_SYSTEM_PROMPT",
]
