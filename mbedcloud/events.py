"""
EventEmitter — named event channels with any number of listeners each.

Listeners run synchronously inside emit(), in registration order. A listener
that returns a coroutine has it scheduled as a task on the running loop.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections import defaultdict
from typing import Any, Callable

_LOGGER = logging.getLogger(__name__)

Listener = Callable[[Any], Any]


@dataclasses.dataclass(eq=False)
class _Registration:
    """One on()/once() call; the same function may be registered several times."""

    listener: Listener
    once: bool = False


class EventEmitter:
    """Publish/subscribe hub for the events emitted by ConnectApi."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[_Registration]] = defaultdict(list)
        self._tasks: set[asyncio.Task] = set()

    def on(self, event: str, listener: Listener) -> Callable[[], None]:
        """Register listener for event. Returns a function that removes it again."""
        return self._add(event, _Registration(listener))

    def once(self, event: str, listener: Listener) -> Callable[[], None]:
        """Register listener for the next emission of event only."""
        return self._add(event, _Registration(listener, once=True))

    def off(self, event: str, listener: Listener | None = None) -> None:
        """Remove listener from event, or every listener of event when none is given."""
        if listener is None:
            self._listeners.pop(event, None)
            return
        for registration in self._listeners.get(event, ()):
            if registration.listener == listener:
                self._remove(event, registration)
                return

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def emit(self, event: str, data: Any = None) -> bool:
        """
        Call every listener of event with data.

        Returns True if the event had listeners. A failing listener is logged
        and does not prevent delivery to the listeners after it.
        """
        registrations = list(self._listeners.get(event, ()))
        for registration in registrations:
            if registration.once:
                self._remove(event, registration)
            try:
                result = registration.listener(data)
            except Exception:  # noqa: BLE001
                _LOGGER.exception("Listener %r failed for event '%s'", registration.listener, event)
                continue
            if asyncio.iscoroutine(result):
                self.schedule(event, result)
        return bool(registrations)

    def _add(self, event: str, registration: _Registration) -> Callable[[], None]:
        self._listeners[event].append(registration)
        _LOGGER.debug("Listener added to '%s' (%d listeners)", event, len(self._listeners[event]))
        return lambda: self._remove(event, registration)

    def _remove(self, event: str, registration: _Registration) -> None:
        registrations = self._listeners.get(event)
        if registrations and registration in registrations:
            registrations.remove(registration)

    def schedule(self, event: str, coro) -> None:
        """Run coro as a task on the running loop, logging its failure against event."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            _LOGGER.error("Async listener for event '%s' needs a running event loop", event)
            return
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._task_done(event, t))

    def _task_done(self, event: str, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            _LOGGER.error("Async listener failed for event '%s': %s", event, task.exception())
