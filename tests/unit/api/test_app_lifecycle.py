"""Tests for the session reaper and application shutdown."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from starlette.datastructures import State

from src.relying_party.api.http.app import _reap_sessions, app, shutdown
from src.relying_party.core.errors import StoreUnavailable


class TestReapSessions:
    @pytest.mark.asyncio
    async def test_keeps_running_after_failures(self):
        """Cleanup errors are logged and the next round still runs."""
        session_service = MagicMock()
        session_service.purge_expired = AsyncMock(
            side_effect=[
                RuntimeError("unexpected"),
                StoreUnavailable("Redis scan failed"),
                3,
                asyncio.CancelledError(),
            ]
        )

        with pytest.raises(asyncio.CancelledError):
            await _reap_sessions(session_service, 0)

        assert session_service.purge_expired.await_count == 4


class TestShutdown:
    @pytest.mark.asyncio
    async def test_shutdown_after_failed_startup(self):
        """Shutdown tolerates a startup that never installed its state."""
        with patch.object(app, "state", State()), patch(
            "src.relying_party.api.http.app._reset_storage"
        ) as mock_reset:
            await shutdown()

        mock_reset.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_shutdown_purges_and_cancels_reaper(self):
        state = State()
        state.reaper = asyncio.create_task(asyncio.sleep(60))
        state.app_dependencies = MagicMock()
        state.app_dependencies.session_service.purge_expired = AsyncMock(return_value=0)

        with patch.object(app, "state", state), patch(
            "src.relying_party.api.http.app._reset_storage"
        ):
            await shutdown()

        assert state.reaper.cancelled()
        state.app_dependencies.session_service.purge_expired.assert_awaited_once_with()
