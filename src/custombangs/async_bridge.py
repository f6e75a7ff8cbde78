"""Background event loop for catalog loading.

The bang catalog is fetched asynchronously at startup while request
interception keeps running on other threads. This module keeps one asyncio
event loop alive in a daemon thread so synchronous code (the CLI, the proxy
workers) can hand it coroutines without blocking.

Usage:
    bridge = get_async_bridge()
    future = bridge.submit(catalog.initialize(primary, fallback, store))
    ...
    future.result(timeout=30)  # only where the caller really wants to wait
"""

import asyncio
import atexit
import logging
import threading
from concurrent.futures import Future
from typing import Any, Coroutine

logger = logging.getLogger(__name__)


class AsyncBridge:
    """Persistent asyncio loop running in a dedicated thread."""

    def __init__(self):
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._started = threading.Event()
        self._lock = threading.Lock()

    def _run_loop(self):
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)
        self._started.set()

        try:
            self._loop.run_forever()
        finally:
            pending = asyncio.all_tasks(self._loop)
            for task in pending:
                task.cancel()
            if pending:
                self._loop.run_until_complete(
                    asyncio.gather(*pending, return_exceptions=True)
                )
            self._loop.close()
            self._loop = None

    def start(self) -> None:
        """Start the loop thread; no-op if it is already running."""
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return

            self._started.clear()
            self._thread = threading.Thread(
                target=self._run_loop,
                name="custombangs-loop",
                daemon=True,
            )
            self._thread.start()

            self._started.wait(timeout=5.0)
            if not self._started.is_set():
                raise RuntimeError("Failed to start async bridge event loop")

    def stop(self) -> None:
        """Stop the loop and join its thread. Safe to call repeatedly."""
        with self._lock:
            if self._loop is not None:
                self._loop.call_soon_threadsafe(self._loop.stop)

            if self._thread is not None:
                self._thread.join(timeout=5.0)
                self._thread = None

            self._started.clear()

    def submit(self, coro: Coroutine[Any, Any, Any]) -> Future:
        """Schedule ``coro`` on the loop and return its Future.

        Raises:
            RuntimeError: If the bridge is not started
        """
        if self._loop is None:
            raise RuntimeError("AsyncBridge not started. Call start() first.")

        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        future.add_done_callback(_log_failure)
        return future

    @property
    def is_running(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and self._loop is not None
            and self._loop.is_running()
        )


def _log_failure(future: Future) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.error("Background task failed: %s", exc, exc_info=exc)


_bridge_instance: AsyncBridge | None = None
_bridge_lock = threading.Lock()


def get_async_bridge() -> AsyncBridge:
    """Return the started singleton bridge, creating it on first use."""
    global _bridge_instance

    with _bridge_lock:
        if _bridge_instance is None:
            _bridge_instance = AsyncBridge()
            _bridge_instance.start()
            atexit.register(_cleanup_bridge)
        elif not _bridge_instance.is_running:
            _bridge_instance.start()

        return _bridge_instance


def _cleanup_bridge():
    global _bridge_instance
    if _bridge_instance is not None:
        try:
            _bridge_instance.stop()
        except RuntimeError as e:
            logger.debug("Async bridge did not stop cleanly: %s", e)
        _bridge_instance = None


def reset_async_bridge():
    """Stop and forget the singleton (for testing)."""
    with _bridge_lock:
        _cleanup_bridge()
