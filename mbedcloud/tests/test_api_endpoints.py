"""
Tests for the api/ call modules and the ConnectEndpoints facade, with
make_request patched out.
"""

from __future__ import annotations

import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from mbedcloud.api import notifications, resources, subscriptions
from mbedcloud.api.auth import get_standard_headers
from mbedcloud.endpoints import ConnectEndpoints
from mbedcloud.exceptions import ApiResponseError
from mbedcloud.models import NotificationBatch, Presubscription, Webhook

from .test_common import DEVICE_ID, b64, make_config

HOST = "https://api.example.com"
HEADERS = {"Authorization": "Bearer ak_test"}


class TestNotificationCalls(unittest.IsolatedAsyncioTestCase):

    async def test_fetch_maps_batch(self):
        body = {"notifications": [{"ep": DEVICE_ID, "path": "/3/0/0", "payload": b64("ARM")}]}
        with patch("mbedcloud.api.notifications.make_request", new=AsyncMock(return_value=body)) as mock_request:
            batch = await notifications.fetch_pending_notifications(MagicMock(), HOST, HEADERS, timeout=5)

        self.assertEqual(batch.notifications[0].decode(), "ARM")
        args, kwargs = mock_request.call_args
        self.assertEqual(args[1:3], ("GET", HOST + "/v2/notification/pull"))
        self.assertEqual(kwargs["timeout"], 5)

    async def test_fetch_keeps_valid_entries_of_malformed_batch(self):
        body = {
            "notifications": [{"path": "/3/0/1"}],
            "async-responses": [{"id": "a1", "status": 200, "payload": b64("42")}],
        }
        with patch("mbedcloud.api.notifications.make_request", new=AsyncMock(return_value=body)):
            with self.assertLogs("mbedcloud.models", level="WARNING"):
                batch = await notifications.fetch_pending_notifications(MagicMock(), HOST, HEADERS)

        self.assertEqual(batch.notifications, ())
        self.assertEqual(batch.async_responses[0].decode(), 42)

    async def test_fetch_empty_poll(self):
        with patch("mbedcloud.api.notifications.make_request", new=AsyncMock(return_value=None)):
            batch = await notifications.fetch_pending_notifications(MagicMock(), HOST, HEADERS)

        self.assertTrue(batch.is_empty)

    async def test_fetch_unexpected_body(self):
        with patch("mbedcloud.api.notifications.make_request", new=AsyncMock(return_value=["x"])):
            batch = await notifications.fetch_pending_notifications(MagicMock(), HOST, HEADERS)

        self.assertEqual(batch, NotificationBatch())

    async def test_delete_pull_channel_ignores_not_found(self):
        error = ApiResponseError(404, "Not Found")
        with patch("mbedcloud.api.notifications.make_request", new=AsyncMock(side_effect=error)):
            await notifications.delete_pull_channel(MagicMock(), HOST, HEADERS)

    async def test_delete_pull_channel_raises_other_errors(self):
        error = ApiResponseError(500, "Server Error")
        with patch("mbedcloud.api.notifications.make_request", new=AsyncMock(side_effect=error)):
            with self.assertRaises(ApiResponseError):
                await notifications.delete_pull_channel(MagicMock(), HOST, HEADERS)

    async def test_get_webhook(self):
        body = {"url": "https://example.com/hook", "headers": {"a": "b"}}
        with patch("mbedcloud.api.notifications.make_request", new=AsyncMock(return_value=body)):
            webhook = await notifications.get_webhook(MagicMock(), HOST, HEADERS)

        self.assertEqual(webhook, Webhook(url="https://example.com/hook", headers={"a": "b"}))

    async def test_get_webhook_not_found(self):
        error = ApiResponseError(404, "Not Found")
        with patch("mbedcloud.api.notifications.make_request", new=AsyncMock(side_effect=error)):
            self.assertIsNone(await notifications.get_webhook(MagicMock(), HOST, HEADERS))

    async def test_get_webhook_other_error(self):
        error = ApiResponseError(401, "Unauthorized")
        with patch("mbedcloud.api.notifications.make_request", new=AsyncMock(side_effect=error)):
            with self.assertRaises(ApiResponseError):
                await notifications.get_webhook(MagicMock(), HOST, HEADERS)

    async def test_put_webhook_body(self):
        with patch("mbedcloud.api.notifications.make_request", new=AsyncMock(return_value=None)) as mock_request:
            await notifications.put_webhook(MagicMock(), HOST, HEADERS, Webhook(url="https://example.com/hook"))

        args, kwargs = mock_request.call_args
        self.assertEqual(args[1:3], ("PUT", HOST + "/v2/notification/callback"))
        self.assertEqual(kwargs["payload"], {"url": "https://example.com/hook", "headers": {}})

    async def test_delete_webhook_propagates_not_found(self):
        error = ApiResponseError(404, "Not Found")
        with patch("mbedcloud.api.notifications.make_request", new=AsyncMock(side_effect=error)):
            with self.assertRaises(ApiResponseError):
                await notifications.delete_webhook(MagicMock(), HOST, HEADERS)


class TestResourceCalls(unittest.IsolatedAsyncioTestCase):

    async def test_list_resources(self):
        body = [{"uri": "/3/0/0", "rt": "Manufacturer", "type": "text/plain", "obs": False}]
        with patch("mbedcloud.api.resources.make_request", new=AsyncMock(return_value=body)):
            result = await resources.list_resources(MagicMock(), HOST, HEADERS, DEVICE_ID)

        self.assertEqual(result[0].path, "3/0/0")
        self.assertEqual(result[0].device_id, DEVICE_ID)

    async def test_get_value_flags(self):
        with patch("mbedcloud.api.resources.make_request", new=AsyncMock(return_value=None)) as mock_request:
            await resources.get_resource_value(MagicMock(), HOST, HEADERS, DEVICE_ID, "3/0/0", cache_only=True)

        args, kwargs = mock_request.call_args
        self.assertEqual(args[1:3], ("GET", f"{HOST}/v2/endpoints/{DEVICE_ID}/3/0/0"))
        self.assertEqual(kwargs["params"], {"cacheOnly": "true"})

    async def test_get_value_without_flags(self):
        with patch("mbedcloud.api.resources.make_request", new=AsyncMock(return_value=None)) as mock_request:
            await resources.get_resource_value(MagicMock(), HOST, HEADERS, DEVICE_ID, "3/0/0")

        self.assertIsNone(mock_request.call_args.kwargs["params"])

    async def test_set_value_is_text_body(self):
        with patch("mbedcloud.api.resources.make_request", new=AsyncMock(return_value=None)) as mock_request:
            await resources.set_resource_value(MagicMock(), HOST, HEADERS, DEVICE_ID, "3/0/1", 12, no_response=True)

        args, kwargs = mock_request.call_args
        self.assertEqual(args[1], "PUT")
        self.assertEqual(args[3]["Content-Type"], "text/plain")
        self.assertEqual(kwargs["data"], "12")
        self.assertEqual(kwargs["params"], {"noResp": "true"})
        self.assertNotIn("Content-Type", HEADERS)

    async def test_execute_sends_function_name(self):
        with patch("mbedcloud.api.resources.make_request", new=AsyncMock(return_value=None)) as mock_request:
            await resources.execute_resource(MagicMock(), HOST, HEADERS, DEVICE_ID, "3/0/4", "reboot")

        args, kwargs = mock_request.call_args
        self.assertEqual(args[1], "POST")
        self.assertEqual(kwargs["data"], "reboot")


class TestSubscriptionCalls(unittest.IsolatedAsyncioTestCase):

    async def test_get_subscription(self):
        with patch("mbedcloud.api.subscriptions.make_request", new=AsyncMock(return_value=None)):
            self.assertTrue(await subscriptions.get_resource_subscription(MagicMock(), HOST, HEADERS, DEVICE_ID, "3/0/0"))

    async def test_get_subscription_not_found(self):
        error = ApiResponseError(404, "Not Found")
        with patch("mbedcloud.api.subscriptions.make_request", new=AsyncMock(side_effect=error)):
            self.assertFalse(await subscriptions.get_resource_subscription(MagicMock(), HOST, HEADERS, DEVICE_ID, "3/0/0"))

    async def test_list_device_subscriptions_from_text(self):
        body = "/3/0/0\n/3200/0/5501\n"
        with patch("mbedcloud.api.subscriptions.make_request", new=AsyncMock(return_value=body)):
            paths = await subscriptions.list_device_subscriptions(MagicMock(), HOST, HEADERS, DEVICE_ID)

        self.assertEqual(paths, ["/3/0/0", "/3200/0/5501"])

    async def test_list_device_subscriptions_empty(self):
        with patch("mbedcloud.api.subscriptions.make_request", new=AsyncMock(return_value=None)):
            self.assertEqual(await subscriptions.list_device_subscriptions(MagicMock(), HOST, HEADERS, DEVICE_ID), [])

    async def test_update_presubscriptions_payload(self):
        rules = [Presubscription(device_type="sensor", resource_paths=("/3200/0/*",))]
        with patch("mbedcloud.api.subscriptions.make_request", new=AsyncMock(return_value=None)) as mock_request:
            await subscriptions.update_presubscriptions(MagicMock(), HOST, HEADERS, rules)

        self.assertEqual(
            mock_request.call_args.kwargs["payload"],
            [{"endpoint-type": "sensor", "resource-path": ["/3200/0/*"]}],
        )

    async def test_list_presubscriptions(self):
        body = [{"endpoint-name": DEVICE_ID, "resource-path": ["/3/0/0"]}]
        with patch("mbedcloud.api.subscriptions.make_request", new=AsyncMock(return_value=body)):
            rules = await subscriptions.list_presubscriptions(MagicMock(), HOST, HEADERS)

        self.assertEqual(rules, [Presubscription(device_id=DEVICE_ID, resource_paths=("/3/0/0",))])


class TestConnectEndpoints(unittest.IsolatedAsyncioTestCase):

    def test_standard_headers(self):
        headers = get_standard_headers("ak_test")
        self.assertEqual(headers["Authorization"], "Bearer ak_test")
        self.assertEqual(headers["accept"], "application/json")

    async def test_calls_use_configured_host_and_timeouts(self):
        session = MagicMock()
        session.closed = False
        endpoints = ConnectEndpoints(make_config(pull_timeout=30, request_timeout=7), session=session)

        with patch("mbedcloud.api.notifications.make_request", new=AsyncMock(return_value=None)) as mock_request:
            await endpoints.fetch_pending_notifications()
            await endpoints.delete_pull_channel()

        first, second = mock_request.call_args_list
        self.assertIs(first.args[0], session)
        self.assertEqual(first.args[2], "https://api.example.com/v2/notification/pull")
        self.assertEqual(first.kwargs["timeout"], 30)
        self.assertEqual(second.kwargs["timeout"], 7)

    async def test_close_leaves_foreign_session_open(self):
        session = MagicMock()
        session.closed = False
        session.close = AsyncMock()
        endpoints = ConnectEndpoints(make_config(), session=session)

        await endpoints.close()

        session.close.assert_not_awaited()

    async def test_owned_session_is_created_and_closed(self):
        endpoints = ConnectEndpoints(make_config())

        session = endpoints.session
        self.assertIs(endpoints.session, session)
        await endpoints.close()

        self.assertTrue(session.closed)
