"""
Council configuration loading.

The configuration file is looked up in order:

    1. The path in the OPENCODE_COUNCIL_CONFIG environment variable
    2. <project>/.opencode/council.json
    3. ~/.config/opencode/council.json

Example council.json:

    {
      "members": ["anthropic/claude-sonnet-4", "openai/gpt-4o", "google/gemini-2.5-pro"],
      "speaker": "anthropic/claude-opus-4",
      "discussion": {"maxTurns": 6}
    }

The file is parsed as JSON; when that fails it is read with ``yaml.safe_load``,
so the same file may be written in YAML.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from opencode_council.errors import ConfigurationError
from opencode_council.protocol.types import CouncilConfig

logger = logging.getLogger(__name__)

ENV_CONFIG_PATH = "OPENCODE_COUNCIL_CONFIG"
DEFAULT_CONFIG_BASENAME = "council.json"

DEFAULT_CONFIG_TEMPLATE = """\
{
  "members": [
    "anthropic/claude-sonnet-4-20250514",
    "openai/gpt-4o",
    "google/gemini-2.5-pro"
  ],
  "speaker": "anthropic/claude-sonnet-4-20250514",
  "discussion": {
    "maxTurns": 6
  }
}
"""


def project_config_path(project_dir: Path | str) -> Path:
    """Return the project-local configuration path."""
    return Path(project_dir) / ".opencode" / DEFAULT_CONFIG_BASENAME


def home_config_path() -> Path:
    """Return the per-user configuration path. Computed at runtime for test compatibility."""
    return Path.home() / ".config" / "opencode" / DEFAULT_CONFIG_BASENAME


def candidate_paths(project_dir: Path | str | None = None) -> list[Path]:
    """List configuration paths in lookup order."""
    candidates: list[Path] = []
    env_path = os.environ.get(ENV_CONFIG_PATH)
    if env_path:
        candidates.append(Path(env_path))
    if project_dir is not None:
        candidates.append(project_config_path(project_dir))
    candidates.append(home_config_path())
    return candidates


def find_config_file(project_dir: Path | str | None = None) -> Path | None:
    """Return the first existing configuration file, if any."""
    for candidate in candidate_paths(project_dir):
        if candidate.is_file():
            return candidate
    return None


def parse_council_config(data: Any, source: str = "<memory>") -> CouncilConfig:
    """Validate raw configuration data.

    Raises:
        ConfigurationError: If the data does not describe a valid council.
    """
    if not isinstance(data, dict):
        raise ConfigurationError(f"Council configuration at {source} must be an object.")
    try:
        return CouncilConfig.model_validate(data)
    except ValidationError as exc:
        issues = " ".join(_format_issue(err) for err in exc.errors())
        raise ConfigurationError(f"Council configuration invalid: {issues}") from exc


def load_council_config(project_dir: Path | str | None = None) -> CouncilConfig:
    """Locate, read and validate the council configuration.

    Args:
        project_dir: Project directory whose ``.opencode`` folder is searched.

    Raises:
        ConfigurationError: If no configuration exists or it is invalid.
    """
    config_path = find_config_file(project_dir)
    if config_path is None:
        location = project_config_path(project_dir).parent if project_dir else "<project>/.opencode"
        raise ConfigurationError(
            f"Council configuration not found. Create {DEFAULT_CONFIG_BASENAME} in {location} "
            f"or ~/.config/opencode/ (or set {ENV_CONFIG_PATH})."
        )

    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Council configuration at {config_path} is unreadable.") from exc

    raw = _load_document(text, config_path)

    config = parse_council_config(raw, source=str(config_path))
    logger.debug("Loaded council configuration from %s", config_path)
    return config


def parse_models_string(models_str: str) -> list[str]:
    """Parse a comma-separated string of model identifiers.

    Args:
        models_str: Comma-separated model identifiers.

    Returns:
        List of identifiers, trimmed and filtered.
    """
    return [m.strip() for m in models_str.split(",") if m.strip()]


def _load_document(text: str, config_path: Path) -> Any:
    """Decode *text* as JSON, falling back to YAML.

    Tab-indented JSON is not valid YAML.
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(
            f"Council configuration at {config_path} is not valid JSON."
        ) from exc


def _format_issue(error: Any) -> str:
    message = str(error.get("msg", ""))
    if message.startswith("Value error, "):
        message = message[len("Value error, ") :]
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {message}" if location else message
