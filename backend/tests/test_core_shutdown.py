"""
Tests for app/core/shutdown.py - graceful shutdown and request tracking.
"""
import json

import pytest
from unittest.mock import AsyncMock, MagicMock


class TestGracefulShutdownManager:

    @pytest.mark.asyncio
    async def test_runs_sync_and_async_callbacks_once(self):
        from app.core.shutdown import GracefulShutdownManager

        manager = GracefulShutdownManager(timeout=1)
        sync_callback = MagicMock()
        async_callback = AsyncMock()
        manager.add_shutdown_callback(sync_callback)
        manager.add_shutdown_callback(async_callback)

        await manager.shutdown()
        await manager.shutdown()

        assert manager.shutdown_requested is True
        sync_callback.assert_called_once()
        async_callback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failing_callback_does_not_stop_others(self):
        from app.core.shutdown import GracefulShutdownManager

        manager = GracefulShutdownManager(timeout=1)
        after = MagicMock()
        manager.add_shutdown_callback(MagicMock(side_effect=RuntimeError("boom")))
        manager.add_shutdown_callback(after)

        await manager.shutdown()

        after.assert_called_once()

    @pytest.mark.asyncio
    async def test_request_counting(self):
        from app.core.shutdown import GracefulShutdownManager

        manager = GracefulShutdownManager()
        await manager.increment_requests()
        await manager.increment_requests()
        await manager.decrement_requests()

        assert manager.pending_requests == 1


class TestRequestTrackingMiddleware:

    @pytest.mark.asyncio
    async def test_rejects_requests_during_shutdown(self):
        from app.core.shutdown import GracefulShutdownManager, RequestTrackingMiddleware

        inner = AsyncMock()
        middleware = RequestTrackingMiddleware(inner)
        middleware.shutdown_manager = GracefulShutdownManager(timeout=1)
        await middleware.shutdown_manager.shutdown()
        send = AsyncMock()

        await middleware({"type": "http"}, AsyncMock(), send)

        inner.assert_not_awaited()
        start, body = (call.args[0] for call in send.await_args_list)
        assert start["status"] == 503
        error = json.loads(body["body"])["error"]
        assert error["code"] == "SERVICE_UNAVAILABLE"
        assert error["details"] == {"retry_after": 5}

    @pytest.mark.asyncio
    async def test_tracks_in_flight_requests(self):
        from app.core.shutdown import GracefulShutdownManager, RequestTrackingMiddleware

        manager = GracefulShutdownManager()
        seen = []

        async def inner(scope, receive, send):
            seen.append(manager.pending_requests)

        middleware = RequestTrackingMiddleware(inner)
        middleware.shutdown_manager = manager

        await middleware({"type": "http"}, AsyncMock(), AsyncMock())

        assert seen == [1]
        assert manager.pending_requests == 0
