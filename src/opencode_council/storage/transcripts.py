"""
Transcript storage for opencode-council.

Final deliberation outputs are written as Markdown files, one per run, under
``<project>/.opencode/council-transcripts`` or, when that cannot be created,
``~/.config/opencode/council-transcripts``.

SECURITY NOTE: Path traversal protection via directory containment checks.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from opencode_council.errors import TranscriptAccessError

logger = logging.getLogger(__name__)

TRANSCRIPT_DIRNAME = "council-transcripts"

_UNSAFE_ID_CHARS = re.compile(r"[^A-Za-z0-9_-]")


@dataclass(frozen=True)
class TranscriptFile:
    """A stored transcript."""

    filename: str
    file_path: Path
    updated_at: float


class TranscriptStore:
    """Filesystem store for deliberation transcripts."""

    def __init__(self, project_dir: Path | str | None = None) -> None:
        self.project_dir = Path(project_dir) if project_dir else None
        self._directory: Path | None = None

    @staticmethod
    def home_directory() -> Path:
        return Path.home() / ".config" / "opencode" / TRANSCRIPT_DIRNAME

    def candidate_directories(self) -> list[Path]:
        candidates = []
        if self.project_dir is not None and str(self.project_dir).strip():
            candidates.append(self.project_dir / ".opencode" / TRANSCRIPT_DIRNAME)
        candidates.append(self.home_directory())
        return candidates

    @property
    def directory(self) -> Path:
        """The first candidate directory that can be created."""
        if self._directory is None:
            self._directory = self._resolve_directory()
        return self._directory

    def _resolve_directory(self) -> Path:
        for candidate in self.candidate_directories():
            try:
                candidate.mkdir(parents=True, exist_ok=True)
                return candidate
            except OSError as exc:
                logger.debug("Cannot use transcript directory %s: %s", candidate, exc)
        return self.home_directory()

    def _ensure_path_containment(self, path: Path) -> Path:
        """Ensure path stays within the transcript directory (prevent traversal)."""
        resolved = path.resolve()
        try:
            resolved.relative_to(self.directory.resolve())
        except ValueError:
            raise TranscriptAccessError(
                "Transcript file must be inside the council transcripts directory."
            ) from None
        return resolved

    def save(self, session_id: str, content: str) -> TranscriptFile:
        """Write *content* to a new timestamped transcript file."""
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
        safe_id = _UNSAFE_ID_CHARS.sub("-", session_id) or "council"
        filename = f"council-{timestamp}-{safe_id}.md"
        file_path = self._ensure_path_containment(self.directory / filename)
        file_path.write_text(content, encoding="utf-8")
        logger.debug("Saved council transcript to %s", file_path)
        return TranscriptFile(
            filename=filename, file_path=file_path, updated_at=file_path.stat().st_mtime
        )

    def list_transcripts(self) -> list[TranscriptFile]:
        """Stored transcripts, newest first."""
        files = []
        try:
            entries = list(self.directory.iterdir())
        except OSError:
            return []
        for entry in entries:
            try:
                if entry.is_file():
                    files.append(
                        TranscriptFile(
                            filename=entry.name, file_path=entry, updated_at=entry.stat().st_mtime
                        )
                    )
            except OSError:
                continue
        return sorted(files, key=lambda f: f.updated_at, reverse=True)

    def read(self, name: str) -> tuple[Path, str]:
        """Read a transcript by file name or absolute path.

        Relative names are reduced to their base name inside the transcript
        directory; absolute paths must already be inside it.

        Raises:
            TranscriptAccessError: If the path escapes the transcript directory.
            FileNotFoundError: If the transcript does not exist.
        """
        candidate = Path(name)
        if not candidate.is_absolute():
            candidate = self.directory / candidate.name
        resolved = self._ensure_path_containment(candidate)
        return resolved, resolved.read_text(encoding="utf-8")


__all__ = ["TRANSCRIPT_DIRNAME", "TranscriptFile", "TranscriptStore"]
