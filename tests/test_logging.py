"""Tests for secret redaction in logs."""

import logging

from opencode_council.logging import REDACTED, RedactingFilter, configure_logging, redact


class TestRedact:
    """Tests for redact."""

    def test_bearer_token(self):
        text = redact("Authorization: Bearer abcdef1234567890")
        assert "abcdef1234567890" not in text
        assert f"Bearer {REDACTED}" in text

    def test_api_key_parameter(self):
        text = redact("GET https://api.example.com/v1?api_key=supersecret&x=1")
        assert "supersecret" not in text
        assert "&x=1" in text

    def test_sk_key(self):
        assert "sk-" + "a" * 24 not in redact("key sk-" + "a" * 24 + " used")

    def test_plain_text_untouched(self):
        assert redact("Council phase: voting") == "Council phase: voting"


class TestRedactingFilter:
    """Tests for RedactingFilter."""

    def test_filter_rewrites_record(self):
        record = logging.LogRecord(
            "opencode_council.test", logging.ERROR, __file__, 1,
            "request failed: %s", ("token=abc123secret",), None,
        )
        assert RedactingFilter().filter(record)
        assert "abc123secret" not in record.getMessage()

    def test_filter_keeps_clean_record(self):
        record = logging.LogRecord(
            "opencode_council.test", logging.INFO, __file__, 1, "turn %d", (2,), None
        )
        RedactingFilter().filter(record)
        assert record.args == (2,)
        assert record.getMessage() == "turn 2"


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_idempotent(self):
        package_logger = logging.getLogger("opencode_council")
        before = list(package_logger.handlers)
        try:
            configure_logging(verbose=True)
            configure_logging(verbose=False)
            added = [h for h in package_logger.handlers if h not in before]
            assert len(added) <= 1
            assert package_logger.level == logging.WARNING
        finally:
            for handler in package_logger.handlers:
                if handler not in before:
                    package_logger.removeHandler(handler)
