"""
Tests for app/core/logging_config.py - structured logging and request IDs.
"""
import json
import logging
import sys

import pytest
from unittest.mock import AsyncMock


def _record(msg="hello", **extra):
    record = logging.LogRecord("bizabode.test", logging.INFO, __file__, 10, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:

    def test_json_formatter(self):
        from app.core.logging_config import JSONFormatter

        data = json.loads(JSONFormatter("svc").format(_record(request_id="abc", lead_id=3)))

        assert data["message"] == "hello"
        assert data["service"] == "svc"
        assert data["request_id"] == "abc"
        assert data["extra"] == {"lead_id": 3}
        assert data["timestamp"].endswith("Z")

    def test_json_formatter_with_exception(self):
        from app.core.logging_config import JSONFormatter

        try:
            raise ValueError("bad")
        except ValueError:
            record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())

        data = json.loads(JSONFormatter().format(record))

        assert data["exception"]["type"] == "ValueError"
        assert data["exception"]["message"] == "bad"

    def test_colored_formatter_includes_request_id(self):
        from app.core.logging_config import ColoredFormatter

        line = ColoredFormatter().format(_record(request_id="abc"))

        assert "[abc]" in line
        assert "hello" in line

    def test_context_filter_uses_current_request(self):
        from app.core.logging_config import RequestContextFilter, request_id_var

        token = request_id_var.set("ctx-1")
        try:
            record = _record()
            RequestContextFilter().filter(record)
        finally:
            request_id_var.reset(token)

        assert record.request_id == "ctx-1"


class TestResolveRequestId:

    def test_reuses_valid_header(self):
        from app.core.logging_config import resolve_request_id

        assert resolve_request_id([(b"X-Request-ID", b"abc-123")]) == "abc-123"

    @pytest.mark.parametrize("value", [b"", b"has spaces", b"x" * 65, b"<script>"])
    def test_replaces_invalid_header(self, value):
        from app.core.logging_config import resolve_request_id

        request_id = resolve_request_id([(b"x-request-id", value)])

        assert request_id != value.decode()
        assert len(request_id) == 12

    def test_generates_when_missing(self):
        from app.core.logging_config import resolve_request_id

        assert resolve_request_id(None) != resolve_request_id(None)


class TestRequestLoggingMiddleware:

    @pytest.mark.asyncio
    async def test_sets_state_and_header(self, caplog):
        from app.core.logging_config import RequestLoggingMiddleware, request_id_var

        async def inner(scope, receive, send):
            assert request_id_var.get() == "r-1"
            await send({"type": "http.response.start", "status": 404, "headers": []})

        send = AsyncMock()
        scope = {"type": "http", "method": "GET", "path": "/x", "headers": [(b"x-request-id", b"r-1")]}

        with caplog.at_level(logging.INFO, logger="bizabode.http"):
            await RequestLoggingMiddleware(inner)(scope, AsyncMock(), send)

        assert scope["state"]["request_id"] == "r-1"
        start = send.await_args.args[0]
        assert (b"x-request-id", b"r-1") in start["headers"]
        assert request_id_var.get() is None
        record = next(r for r in caplog.records if r.name == "bizabode.http")
        assert record.levelno == logging.WARNING
        assert record.status == 404

    @pytest.mark.asyncio
    async def test_health_is_not_logged(self, caplog):
        from app.core.logging_config import RequestLoggingMiddleware

        async def inner(scope, receive, send):
            await send({"type": "http.response.start", "status": 200, "headers": []})

        with caplog.at_level(logging.INFO, logger="bizabode.http"):
            await RequestLoggingMiddleware(inner)({"type": "http", "path": "/health"}, AsyncMock(), AsyncMock())

        assert not [r for r in caplog.records if r.name == "bizabode.http"]
