"""Tests for bundled JSON schemas."""

import pytest
from jsonschema import Draft7Validator

from opencode_council.schemas import list_schemas, load_schema


class TestSchemas:
    """Tests for schema loading."""

    def test_list(self):
        assert list_schemas() == ["speaker_decision", "vote"]

    @pytest.mark.parametrize("name", ["speaker_decision", "vote"])
    def test_schemas_are_valid(self, name):
        Draft7Validator.check_schema(load_schema(name))

    def test_returns_copy(self):
        schema = load_schema("vote")
        schema["properties"]["vote"]["maximum"] = 3
        assert "maximum" not in load_schema("vote")["properties"]["vote"]

    @pytest.mark.parametrize("name", ["../etc/passwd", "Vote", "", "vote.json"])
    def test_invalid_names(self, name):
        with pytest.raises(ValueError):
            load_schema(name)

    def test_missing(self):
        with pytest.raises(FileNotFoundError):
            load_schema("nonexistent")
