"""Tests for the scratch session lifecycle."""

import pytest
from conftest import FakeTransport

from opencode_council.engine.session import DEFAULT_SESSION_TITLE, scratch_session
from opencode_council.errors import SessionCreationFailed


class TestScratchSession:
    """Tests for scratch_session."""

    @pytest.mark.asyncio
    async def test_create_and_delete(self):
        transport = FakeTransport(session_id="ses_1")
        async with scratch_session(transport, "ses_parent") as session_id:
            assert session_id == "ses_1"
            assert transport.deleted == []
        assert transport.created == [("ses_parent", DEFAULT_SESSION_TITLE)]
        assert transport.deleted == ["ses_1"]

    @pytest.mark.asyncio
    async def test_deleted_once_on_error(self):
        transport = FakeTransport(session_id="ses_1")
        with pytest.raises(ValueError):
            async with scratch_session(transport):
                raise ValueError("boom")
        assert transport.deleted == ["ses_1"]

    @pytest.mark.asyncio
    async def test_create_failure(self):
        transport = FakeTransport(fail_create=True)
        with pytest.raises(SessionCreationFailed, match="create failed"):
            async with scratch_session(transport):
                pytest.fail("body must not run")
        assert transport.deleted == []

    @pytest.mark.asyncio
    async def test_empty_session_id(self):
        transport = FakeTransport(session_id=None)
        with pytest.raises(SessionCreationFailed, match="no session id"):
            async with scratch_session(transport):
                pytest.fail("body must not run")

    @pytest.mark.asyncio
    async def test_delete_failure_swallowed(self):
        transport = FakeTransport(session_id="ses_1", fail_delete=True)
        async with scratch_session(transport, title="Custom") as session_id:
            assert session_id == "ses_1"
        assert transport.created == [(None, "Custom")]
        assert transport.deleted == ["ses_1"]

    @pytest.mark.asyncio
    async def test_delete_failure_does_not_mask_body_error(self):
        transport = FakeTransport(fail_delete=True)
        with pytest.raises(KeyError):
            async with scratch_session(transport):
                raise KeyError("original")
