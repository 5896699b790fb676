"""
JSON schemas for structured agent replies.

Speaker decisions and member votes are validated against these schemas after
they are scraped out of free-form model text.
"""

import json
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

SCHEMAS_DIR = Path(__file__).parent

# Strict allowlist pattern: lowercase alphanumeric, hyphens, underscores only
_VALID_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_-]*$")


def _validate_schema_name(name: str) -> None:
    """Validate schema name against strict allowlist to prevent path traversal."""
    if not name:
        raise ValueError("Schema name cannot be empty")
    if not _VALID_NAME_PATTERN.match(name):
        raise ValueError(
            f"Invalid schema name '{name}': must match pattern "
            f"'^[a-z0-9][a-z0-9_-]*$' (lowercase alphanumeric, hyphens, underscores)"
        )


@lru_cache(maxsize=None)
def _load_cached(name: str) -> str:
    schema_path = SCHEMAS_DIR / f"{name}.json"
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema not found: {name}")
    return schema_path.read_text(encoding="utf-8")


def load_schema(name: str) -> dict[str, Any]:
    """Load a schema by name.

    Args:
        name: Schema name (must match ^[a-z0-9][a-z0-9_-]*$)

    Returns:
        Parsed JSON schema dict. Callers may modify the returned copy.

    Raises:
        ValueError: If name is invalid
        FileNotFoundError: If schema file doesn't exist
    """
    _validate_schema_name(name)
    loaded = json.loads(_load_cached(name))
    if not isinstance(loaded, dict):
        raise ValueError(f"Schema '{name}' must be a JSON object")
    return loaded


def list_schemas() -> list[str]:
    """List available schema names."""
    return sorted(p.stem for p in SCHEMAS_DIR.glob("*.json"))


__all__ = ["load_schema", "list_schemas", "SCHEMAS_DIR"]
