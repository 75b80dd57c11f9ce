"""
Tests for EventEmitter.
"""

from __future__ import annotations

import asyncio
import unittest
from unittest.mock import MagicMock

from mbedcloud.events import EventEmitter


class TestEventEmitter(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.emitter = EventEmitter()

    async def test_all_listeners_called_in_order(self):
        calls = []
        self.emitter.on("registration", lambda data: calls.append(("first", data)))
        self.emitter.on("registration", lambda data: calls.append(("second", data)))

        self.assertTrue(self.emitter.emit("registration", "dev-1"))

        self.assertEqual(calls, [("first", "dev-1"), ("second", "dev-1")])

    async def test_emit_without_listeners(self):
        self.assertFalse(self.emitter.emit("expired", "dev-1"))

    async def test_unsubscribe_function(self):
        listener = MagicMock()
        remove = self.emitter.on("expired", listener)
        remove()

        self.emitter.emit("expired", "dev-1")

        listener.assert_not_called()
        self.assertEqual(self.emitter.listener_count("expired"), 0)

    async def test_off_without_listener_removes_all(self):
        self.emitter.on("expired", MagicMock())
        self.emitter.on("expired", MagicMock())

        self.emitter.off("expired")

        self.assertEqual(self.emitter.listener_count("expired"), 0)

    async def test_off_unknown_listener_is_noop(self):
        self.emitter.off("expired", MagicMock())
        self.assertEqual(self.emitter.listener_count("expired"), 0)

    async def test_once_fires_a_single_time(self):
        listener = MagicMock()
        self.emitter.once("registration", listener)

        self.emitter.emit("registration", 1)
        self.emitter.emit("registration", 2)

        listener.assert_called_once_with(1)

    async def test_once_leaves_permanent_registration_of_same_listener(self):
        listener = MagicMock()
        self.emitter.on("registration", listener)
        self.emitter.once("registration", listener)

        self.emitter.emit("registration", 1)
        self.emitter.emit("registration", 2)

        self.assertEqual([c.args[0] for c in listener.call_args_list], [1, 1, 2])
        self.assertEqual(self.emitter.listener_count("registration"), 1)

    async def test_unsubscribe_removes_only_its_registration(self):
        listener = MagicMock()
        self.emitter.on("expired", listener)
        remove_once = self.emitter.once("expired", listener)
        remove_once()

        self.emitter.emit("expired", "dev-1")
        self.emitter.emit("expired", "dev-2")

        self.assertEqual(listener.call_count, 2)

    async def test_failing_listener_does_not_block_later_ones(self):
        later = MagicMock()
        self.emitter.on("notification", MagicMock(side_effect=RuntimeError("boom")))
        self.emitter.on("notification", later)

        with self.assertLogs("mbedcloud.events", level="ERROR"):
            self.emitter.emit("notification", 5)

        later.assert_called_once_with(5)

    async def test_coroutine_listener_is_scheduled(self):
        received = asyncio.Event()
        values = []

        async def listener(data):
            values.append(data)
            received.set()

        self.emitter.on("notification", listener)
        self.emitter.emit("notification", 7)

        await asyncio.wait_for(received.wait(), timeout=1)
        self.assertEqual(values, [7])

    async def test_failing_coroutine_listener_is_logged(self):
        async def listener(_data):
            raise RuntimeError("boom")

        self.emitter.on("notification", listener)
        with self.assertLogs("mbedcloud.events", level="ERROR"):
            self.emitter.emit("notification", 7)
            for _ in range(3):
                await asyncio.sleep(0)


class TestEventEmitterWithoutLoop(unittest.TestCase):

    def test_coroutine_listener_without_running_loop(self):
        emitter = EventEmitter()

        async def listener(_data):
            return None

        emitter.on("notification", listener)
        with self.assertLogs("mbedcloud.events", level="ERROR"):
            emitter.emit("notification", 1)
