"""
Secret-safe logging for opencode-council.

Implements a redaction filter so credentials that leak into exception
messages (HTTP errors echo headers and URLs) never reach log handlers.
"""

from __future__ import annotations

import logging
import re

REDACTED = "[REDACTED]"

_SECRET_PATTERNS = (
    re.compile(r"(?i)(bearer\s+)[A-Za-z0-9._~+/=-]{8,}"),
    re.compile(r"(?i)((?:api[_-]?key|token|secret|password)[\"']?\s*[:=]\s*[\"']?)[^\s\"',&]+"),
    re.compile(r"\bsk-[A-Za-z0-9_-]{16,}"),
)


def redact(text: str) -> str:
    """Mask credential-shaped substrings in *text*."""
    for pattern in _SECRET_PATTERNS:
        if pattern.groups:
            text = pattern.sub(lambda m: m.group(1) + REDACTED, text)
        else:
            text = pattern.sub(REDACTED, text)
    return text


class RedactingFilter(logging.Filter):
    """Logging filter that redacts the fully formatted message."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def configure_logging(verbose: bool = False) -> None:
    """Install a redacting stderr handler on the package logger."""
    package_logger = logging.getLogger("opencode_council")
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    for handler in package_logger.handlers:
        if getattr(handler, "_council_handler", False):
            return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    handler.addFilter(RedactingFilter())
    handler._council_handler = True  # type: ignore[attr-defined]
    package_logger.addHandler(handler)


__all__ = ["REDACTED", "RedactingFilter", "configure_logging", "redact"]
