"""Registry of in-flight deliberations.

Owned by a :class:`opencode_council.council.Council`; there is no process-wide
instance. Entries exist only while a deliberation is running; the council
moves them out when the task finishes.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass

from opencode_council.engine.deliberation import Deliberation


@dataclass
class ActiveDeliberation:
    """An in-flight deliberation and what it was asked."""

    deliberation_id: str
    request: str
    deliberation: Deliberation
    task: asyncio.Task[str] | None = None

    @property
    def done(self) -> bool:
        return self.task is not None and self.task.done()


class DeliberationRegistry:
    """Explicit create/lookup/remove store keyed by deliberation id."""

    def __init__(self) -> None:
        self._active: dict[str, ActiveDeliberation] = {}

    def __len__(self) -> int:
        return len(self._active)

    def __contains__(self, deliberation_id: object) -> bool:
        return deliberation_id in self._active

    def create(self, request: str, deliberation: Deliberation) -> ActiveDeliberation:
        """Register *deliberation* under a new id."""
        deliberation_id = f"council-{uuid.uuid4().hex[:12]}"
        entry = ActiveDeliberation(
            deliberation_id=deliberation_id,
            request=request,
            deliberation=deliberation,
        )
        self._active[deliberation_id] = entry
        return entry

    def get(self, deliberation_id: str) -> ActiveDeliberation:
        """Return the entry for *deliberation_id*.

        Raises:
            KeyError: If no such deliberation is active.
        """
        try:
            return self._active[deliberation_id]
        except KeyError:
            active = ", ".join(self.list_ids()) or "none"
            raise KeyError(
                f"No active council with id: {deliberation_id}. Active councils: {active}"
            ) from None

    def remove(self, deliberation_id: str) -> ActiveDeliberation | None:
        """Drop *deliberation_id*; returns the removed entry, if any."""
        return self._active.pop(deliberation_id, None)

    def list_ids(self) -> list[str]:
        return sorted(self._active)


__all__ = ["ActiveDeliberation", "DeliberationRegistry"]
