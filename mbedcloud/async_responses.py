"""
AsyncResponseCorrelator — matches async responses to the callers waiting on them.

This is a pure asyncio primitive with no network dependencies. Each pending
entry is keyed by the async response id the cloud returned when the operation
was started, and is removed the moment its response is resolved, so a
callback fires at most once.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable

from .exceptions import AsyncResponseTimeoutError, RemoteOperationError
from .models import AsyncResponse

_LOGGER = logging.getLogger(__name__)

# (error, value): exactly one of the two is meaningful
CompletionCallback = Callable[[Exception | None, Any], None]


class AsyncResponseCorrelator:
    """
    Pending async operations keyed by async response id.

    With ttl=None entries wait indefinitely for their response. With a ttl,
    purge_expired() fails entries older than ttl seconds with
    AsyncResponseTimeoutError.
    """

    def __init__(self, ttl: float | None = None, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl
        self._clock = clock
        # async_id → (callback, registration time)
        self._pending: dict[str, tuple[CompletionCallback, float]] = {}

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def ttl(self) -> float | None:
        return self._ttl

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def is_pending(self, async_id: str) -> bool:
        return async_id in self._pending

    def register(self, async_id: str, callback: CompletionCallback) -> None:
        """
        Wait for the async response with async_id.

        Ids are unique per operation; registering an id twice replaces the
        first callback, which will then never be called.
        """
        self.purge_expired()
        if async_id in self._pending:
            _LOGGER.warning("Async id %s registered twice; the earlier caller is dropped", async_id)
        self._pending[async_id] = (callback, self._clock())
        _LOGGER.debug("Waiting for async response %s (%d pending)", async_id, len(self._pending))

    def create_future(self, async_id: str) -> asyncio.Future:
        """Register async_id and return a future settled by its async response."""
        fut: asyncio.Future = asyncio.get_running_loop().create_future()

        def _complete(error: Exception | None, value: Any) -> None:
            if fut.done():
                return
            if error is not None:
                fut.set_exception(error)
            else:
                fut.set_result(value)

        def _cancelled(done: asyncio.Future) -> None:
            # Caller gave up (e.g. asyncio.wait_for timed out); stop waiting for the id
            if done.cancelled() and self._pending.get(async_id, (None,))[0] is _complete:
                del self._pending[async_id]

        self.register(async_id, _complete)
        fut.add_done_callback(_cancelled)
        return fut

    def resolve(self, response: AsyncResponse) -> bool:
        """
        Complete the caller waiting on response.async_id.

        Returns False, without side effects, when nobody is waiting for it.
        """
        entry = self._pending.pop(response.async_id, None)
        if entry is None:
            _LOGGER.debug("Dropping async response %s with no pending caller", response.async_id)
            return False

        callback, _registered = entry
        if response.is_error:
            error = RemoteOperationError(response.async_id, response.status, response.error)
            self._invoke(response.async_id, callback, error, None)
        else:
            self._invoke(response.async_id, callback, None, response.decode())
        return True

    def discard(self, async_id: str) -> bool:
        """Forget a pending id without calling its callback."""
        return self._pending.pop(async_id, None) is not None

    def purge_expired(self) -> int:
        """Fail and remove entries older than the ttl. Returns how many were removed."""
        if self._ttl is None or not self._pending:
            return 0
        now = self._clock()
        expired = [
            async_id
            for async_id, (_callback, registered) in self._pending.items()
            if now - registered >= self._ttl
        ]
        for async_id in expired:
            callback, _registered = self._pending.pop(async_id)
            _LOGGER.debug("Async response %s expired after %s seconds", async_id, self._ttl)
            self._invoke(async_id, callback, AsyncResponseTimeoutError(async_id, self._ttl), None)
        return len(expired)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _invoke(async_id: str, callback: CompletionCallback, error: Exception | None, value: Any) -> None:
        try:
            callback(error, value)
        except Exception:  # noqa: BLE001
            _LOGGER.exception("Completion callback for async response %s failed", async_id)
