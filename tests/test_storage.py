"""Tests for transcript storage."""

import os

import pytest

from opencode_council.errors import TranscriptAccessError
from opencode_council.storage import TRANSCRIPT_DIRNAME, TranscriptStore


class TestTranscriptStore:
    """Tests for TranscriptStore."""

    def test_project_directory(self, tmp_path):
        store = TranscriptStore(tmp_path)
        assert store.directory == tmp_path / ".opencode" / TRANSCRIPT_DIRNAME
        assert store.directory.is_dir()

    def test_home_directory_without_project(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        store = TranscriptStore()
        assert store.directory == tmp_path / ".config" / "opencode" / TRANSCRIPT_DIRNAME

    def test_save(self, tmp_path):
        store = TranscriptStore(tmp_path)
        saved = store.save("council-abc123", "# Result\n")

        assert saved.filename.startswith("council-")
        assert saved.filename.endswith("-council-abc123.md")
        assert saved.file_path.read_text() == "# Result\n"

    def test_save_sanitizes_id(self, tmp_path):
        store = TranscriptStore(tmp_path)
        saved = store.save("../../etc/passwd", "x")
        assert "/" not in saved.filename
        assert saved.file_path.parent == store.directory.resolve()

    def test_list_newest_first(self, tmp_path):
        store = TranscriptStore(tmp_path)
        old = store.save("one", "first")
        new = store.save("two", "second")
        os.utime(old.file_path, (1_000_000, 1_000_000))

        files = store.list_transcripts()
        assert [f.filename for f in files] == [new.filename, old.filename]

    def test_list_empty(self, tmp_path):
        assert TranscriptStore(tmp_path).list_transcripts() == []

    def test_read_by_name(self, tmp_path):
        store = TranscriptStore(tmp_path)
        saved = store.save("abc", "content here")
        path, content = store.read(saved.filename)
        assert path == saved.file_path
        assert content == "content here"

    def test_read_relative_traversal_reduced_to_name(self, tmp_path):
        store = TranscriptStore(tmp_path)
        saved = store.save("abc", "content")
        _, content = store.read(f"../../{saved.filename}")
        assert content == "content"

    def test_read_absolute_outside_rejected(self, tmp_path):
        outside = tmp_path / "secret.md"
        outside.write_text("secret")
        store = TranscriptStore(tmp_path)
        with pytest.raises(TranscriptAccessError):
            store.read(str(outside))

    def test_read_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            TranscriptStore(tmp_path).read("council-missing.md")
