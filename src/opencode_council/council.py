"""
Council - Main facade class for opencode-council.

Provides a simple interface for running speaker-led council deliberations.
"""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from pathlib import Path

from opencode_council.config.loader import load_council_config
from opencode_council.engine.active import ActiveDeliberation, DeliberationRegistry
from opencode_council.engine.deliberation import Deliberation
from opencode_council.engine.members import CouncilMembers, build_members
from opencode_council.protocol.types import CouncilConfig
from opencode_council.rendering.progress import render_progress
from opencode_council.transports.base import DoctorResult, ProgressSink, SessionTransport
from opencode_council.transports.opencode import OpenCodeTransport

logger = logging.getLogger(__name__)


class Council:
    """Speaker-led multi-model council.

    Example:
        ```python
        council = Council(config=CouncilConfig(
            members=["anthropic/claude-sonnet-4", "openai/gpt-4o", "google/gemini-2.5-pro"],
            speaker="anthropic/claude-opus-4",
        ))
        output = await council.run("Should we shard the orders table?")
        print(output)
        ```
    """

    def __init__(
        self,
        config: CouncilConfig | None = None,
        transport: SessionTransport | None = None,
        project_dir: Path | str | None = None,
    ) -> None:
        """Initialize the Council.

        Args:
            config: Council configuration. Loaded from disk when omitted.
            transport: Session transport. Defaults to an OpenCode server transport
                at ``config.server_url``.
            project_dir: Project directory searched when loading the configuration.
        """
        self.config = config or load_council_config(project_dir)
        self._transport = transport or OpenCodeTransport(base_url=self.config.server_url)
        self._registry = DeliberationRegistry()
        self._finished: dict[str, ActiveDeliberation] = {}

    @property
    def members(self) -> CouncilMembers:
        """Resolved council seating."""
        return build_members(self.config)

    @property
    def registry(self) -> DeliberationRegistry:
        return self._registry

    async def run(
        self,
        request: str,
        progress: ProgressSink | None = None,
        parent_session_id: str | None = None,
    ) -> str:
        """Run a deliberation to completion and return the final output."""
        deliberation_id = self.spawn(request, progress=progress, parent_session_id=parent_session_id)
        return await self.result(deliberation_id)

    def spawn(
        self,
        request: str,
        progress: ProgressSink | None = None,
        parent_session_id: str | None = None,
    ) -> str:
        """Start a deliberation in the background and return its id.

        Must be called from a running event loop. When the run ends the entry
        leaves :meth:`active` and its outcome is held for :meth:`result`.
        """
        deliberation = Deliberation(
            self.config,
            self._transport,
            progress=progress,
            parent_session_id=parent_session_id,
        )
        entry = self._registry.create(request, deliberation)
        entry.task = asyncio.get_running_loop().create_task(deliberation.run(request))
        entry.task.add_done_callback(partial(self._on_finished, entry.deliberation_id))
        return entry.deliberation_id

    def _on_finished(self, deliberation_id: str, task: asyncio.Task[str]) -> None:
        entry = self._registry.remove(deliberation_id)
        if entry is None:
            return
        if not task.cancelled() and task.exception() is not None:
            logger.debug("Council %s failed: %s", deliberation_id, task.exception())
        self._finished[deliberation_id] = entry

    def _lookup(self, deliberation_id: str) -> ActiveDeliberation:
        entry = self._finished.get(deliberation_id)
        if entry is not None:
            return entry
        return self._registry.get(deliberation_id)

    def status(self, deliberation_id: str) -> str:
        """Render the progress of a running or uncollected deliberation.

        Raises:
            KeyError: If the id is unknown or already collected.
        """
        return render_progress(self._lookup(deliberation_id).deliberation.state)

    async def result(self, deliberation_id: str) -> str:
        """Wait for a deliberation and return its output; the entry is dropped."""
        entry = self._lookup(deliberation_id)
        if entry.task is None:
            raise KeyError(f"Council {deliberation_id} was never started.")
        try:
            return await entry.task
        finally:
            self._registry.remove(deliberation_id)
            self._finished.pop(deliberation_id, None)

    def active(self) -> list[str]:
        """Ids of deliberations still running."""
        return self._registry.list_ids()

    def finished(self) -> list[str]:
        """Ids of deliberations that ended but were not collected by :meth:`result`."""
        return sorted(self._finished)

    async def doctor(self) -> DoctorResult:
        """Check that the session server is reachable."""
        return await self._transport.doctor()

    async def aclose(self) -> None:
        await self._transport.aclose()


async def run_deliberation(
    config: CouncilConfig,
    user_request: str,
    transport: SessionTransport | None = None,
    progress: ProgressSink | None = None,
    parent_session_id: str | None = None,
) -> str:
    """Run a single deliberation and return the final Markdown output.

    Raises:
        InvalidModelReference: If an identifier in *config* is malformed.
        SessionCreationFailed: If the scratch session cannot be created.
        EmptyResponse: If any required invocation returns no text.
    """
    owns_transport = transport is None
    council = Council(config=config, transport=transport)
    try:
        return await council.run(
            user_request, progress=progress, parent_session_id=parent_session_id
        )
    finally:
        if owns_transport:
            await council.aclose()
