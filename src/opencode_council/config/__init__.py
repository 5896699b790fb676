"""Configuration module for opencode-council."""

from opencode_council.config.loader import (
    DEFAULT_CONFIG_BASENAME,
    ENV_CONFIG_PATH,
    find_config_file,
    load_council_config,
    parse_council_config,
    parse_models_string,
)

__all__ = [
    "DEFAULT_CONFIG_BASENAME",
    "ENV_CONFIG_PATH",
    "find_config_file",
    "load_council_config",
    "parse_council_config",
    "parse_models_string",
]
