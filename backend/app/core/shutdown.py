"""
Application lifespan: startup checks and graceful shutdown.

On SIGTERM/SIGINT new requests get a 503 envelope while in-flight ones are
given ``SHUTDOWN_TIMEOUT_SECONDS`` to finish; then cleanup callbacks (the
database engine among them) run in registration order.
"""

import asyncio
import json
import logging
import signal
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Awaitable, Callable, Optional, Union

from app.core.config import settings
from app.core.errors import ErrorType, build_error_response

logger = logging.getLogger("bizabode.shutdown")

RETRY_AFTER_SECONDS = 5
_POLL_INTERVAL = 0.5

ShutdownCallback = Callable[[], Union[None, Awaitable[None]]]


def _shutdown_body() -> bytes:
    return json.dumps(
        build_error_response(
            ErrorType.EXTERNAL_SERVICE,
            "Service is shutting down",
            code="SERVICE_UNAVAILABLE",
            details={"retry_after": RETRY_AFTER_SECONDS},
        )
    ).encode()


class GracefulShutdownManager:
    """Counts in-flight requests and drains them before running cleanup callbacks."""

    def __init__(self, timeout: float = 30):
        self.timeout = timeout
        self._shutdown_requested = False
        self._callbacks: list[ShutdownCallback] = []
        self._in_flight = 0

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown_requested

    @property
    def pending_requests(self) -> int:
        return self._in_flight

    # The counter is only touched from the event loop thread
    async def increment_requests(self) -> None:
        self._in_flight += 1

    async def decrement_requests(self) -> None:
        self._in_flight = max(0, self._in_flight - 1)

    def add_shutdown_callback(self, callback: ShutdownCallback) -> None:
        self._callbacks.append(callback)

    async def _drain(self) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout
        while self._in_flight > 0:
            if loop.time() >= deadline:
                logger.warning(f"Shutdown timeout reached with {self._in_flight} requests still running")
                return
            await asyncio.sleep(_POLL_INTERVAL)

    async def shutdown(self) -> None:
        """Stop accepting requests, wait for in-flight ones, then run callbacks. Idempotent."""
        if self._shutdown_requested:
            return
        self._shutdown_requested = True
        logger.info(f"Graceful shutdown initiated ({self._in_flight} requests in flight)")

        await self._drain()

        for callback in self._callbacks:
            try:
                result = callback()
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.error(f"Shutdown callback {getattr(callback, '__name__', callback)} failed: {e}")

        logger.info("Graceful shutdown complete")


_shutdown_manager: Optional[GracefulShutdownManager] = None


def get_shutdown_manager() -> GracefulShutdownManager:
    global _shutdown_manager
    if _shutdown_manager is None:
        _shutdown_manager = GracefulShutdownManager(timeout=settings.SHUTDOWN_TIMEOUT_SECONDS)
    return _shutdown_manager


def setup_signal_handlers(loop: asyncio.AbstractEventLoop, manager: GracefulShutdownManager) -> None:
    """Route SIGTERM (containers) and SIGINT (Ctrl+C) to the shutdown manager."""
    for sig in (signal.SIGTERM, signal.SIGINT):
        def handler(sig=sig):
            logger.info(f"Received signal {sig.name}")
            loop.create_task(manager.shutdown())

        try:
            loop.add_signal_handler(sig, handler)
        except NotImplementedError:
            # Windows event loops
            signal.signal(sig, lambda signum, frame, handler=handler: handler())


def ensure_upload_dir() -> Path:
    path = Path(settings.UPLOAD_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return path


@asynccontextmanager
async def lifespan_manager(app):
    """FastAPI lifespan: prepare storage on startup, drain and dispose the engine on shutdown."""
    from app.db.session import engine

    manager = get_shutdown_manager()
    try:
        setup_signal_handlers(asyncio.get_running_loop(), manager)
    except RuntimeError as e:
        logger.warning(f"Could not set up signal handlers: {e}")

    upload_dir = ensure_upload_dir()
    logger.info(f"Bizabode starting (environment={settings.ENVIRONMENT}, uploads={upload_dir})")

    async def dispose_engine():
        await engine.dispose()
        logger.info("Database connections closed")

    manager.add_shutdown_callback(dispose_engine)

    try:
        yield
    finally:
        await manager.shutdown()


class RequestTrackingMiddleware:
    """
    ASGI middleware that counts in-flight HTTP requests and answers 503 once
    shutdown has begun.
    """

    def __init__(self, app):
        self.app = app
        self.shutdown_manager = get_shutdown_manager()

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        if self.shutdown_manager.shutdown_requested:
            await send({
                "type": "http.response.start",
                "status": 503,
                "headers": [
                    (b"content-type", b"application/json"),
                    (b"connection", b"close"),
                    (b"retry-after", str(RETRY_AFTER_SECONDS).encode()),
                ],
            })
            await send({"type": "http.response.body", "body": _shutdown_body()})
            return

        await self.shutdown_manager.increment_requests()
        try:
            await self.app(scope, receive, send)
        finally:
            await self.shutdown_manager.decrement_requests()
