"""Scratch session lifecycle for a deliberation."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from opencode_council.errors import SessionCreationFailed
from opencode_council.transports.base import SessionTransport

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TITLE = "Council deliberation"


@asynccontextmanager
async def scratch_session(
    transport: SessionTransport,
    parent_id: str | None = None,
    title: str = DEFAULT_SESSION_TITLE,
) -> AsyncIterator[str]:
    """Create one session for a whole deliberation and always delete it.

    Raises:
        SessionCreationFailed: If the transport fails or returns no id.
    """
    try:
        session_id = await transport.create_session(parent_id, title)
    except Exception as exc:
        raise SessionCreationFailed(f"Failed to create council session: {exc}") from exc
    if not session_id:
        raise SessionCreationFailed("Failed to create council session: no session id returned.")

    try:
        yield session_id
    finally:
        try:
            await transport.delete_session(session_id)
        except Exception as exc:
            logger.debug("Failed to delete council session %s: %s", session_id, exc)


__all__ = ["DEFAULT_SESSION_TITLE", "scratch_session"]
