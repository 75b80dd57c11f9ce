"""
ConnectEndpoints — the HTTP transport used by ConnectApi.

Owns one aiohttp session plus the host and auth headers, and exposes every
Connect REST call as a coroutine method delegating to the api/ modules.
Nothing here keeps notification state.
"""
from __future__ import annotations

import logging

import aiohttp

from .api import notifications, resources, subscriptions
from .api.auth import get_standard_headers
from .config import ConnectionConfig
from .models import NotificationBatch, Presubscription, Resource, Webhook

_LOGGER = logging.getLogger(__name__)


class ConnectEndpoints:
    """Connect REST calls bound to one connection configuration."""

    def __init__(self, config: ConnectionConfig, session: aiohttp.ClientSession | None = None) -> None:
        self.config = config
        self.host = config.host
        self.headers = get_standard_headers(config.api_key)
        self._session = session
        self._owns_session = session is None

    @property
    def session(self) -> aiohttp.ClientSession:
        """The aiohttp session, created lazily inside the running event loop."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the session if this object created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    # ------------------------------------------------------------------
    # Notification channels
    # ------------------------------------------------------------------

    async def fetch_pending_notifications(self) -> NotificationBatch:
        return await notifications.fetch_pending_notifications(
            self.session, self.host, self.headers, timeout=self.config.pull_timeout
        )

    async def delete_pull_channel(self) -> None:
        await notifications.delete_pull_channel(
            self.session, self.host, self.headers, timeout=self.config.request_timeout
        )

    async def get_webhook(self) -> Webhook | None:
        return await notifications.get_webhook(
            self.session, self.host, self.headers, timeout=self.config.request_timeout
        )

    async def put_webhook(self, webhook: Webhook) -> None:
        await notifications.put_webhook(
            self.session, self.host, self.headers, webhook, timeout=self.config.request_timeout
        )

    async def delete_webhook(self) -> None:
        await notifications.delete_webhook(
            self.session, self.host, self.headers, timeout=self.config.request_timeout
        )

    # ------------------------------------------------------------------
    # Device resources
    # ------------------------------------------------------------------

    async def list_resources(self, device_id: str) -> list[Resource]:
        return await resources.list_resources(
            self.session, self.host, self.headers, device_id, timeout=self.config.request_timeout
        )

    async def get_resource_value(self, device_id: str, path: str, cache_only: bool = False, no_response: bool = False):
        return await resources.get_resource_value(
            self.session, self.host, self.headers, device_id, path,
            cache_only=cache_only, no_response=no_response, timeout=self.config.request_timeout,
        )

    async def set_resource_value(self, device_id: str, path: str, value, no_response: bool = False):
        return await resources.set_resource_value(
            self.session, self.host, self.headers, device_id, path, value,
            no_response=no_response, timeout=self.config.request_timeout,
        )

    async def execute_resource(self, device_id: str, path: str, function_name: str | None = None, no_response: bool = False):
        return await resources.execute_resource(
            self.session, self.host, self.headers, device_id, path,
            function_name=function_name, no_response=no_response, timeout=self.config.request_timeout,
        )

    async def delete_resource(self, device_id: str, path: str, no_response: bool = False):
        return await resources.delete_resource(
            self.session, self.host, self.headers, device_id, path,
            no_response=no_response, timeout=self.config.request_timeout,
        )

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    async def add_subscription(self, device_id: str, path: str):
        return await subscriptions.add_resource_subscription(
            self.session, self.host, self.headers, device_id, path, timeout=self.config.request_timeout
        )

    async def delete_subscription(self, device_id: str, path: str):
        return await subscriptions.delete_resource_subscription(
            self.session, self.host, self.headers, device_id, path, timeout=self.config.request_timeout
        )

    async def get_subscription(self, device_id: str, path: str) -> bool:
        return await subscriptions.get_resource_subscription(
            self.session, self.host, self.headers, device_id, path, timeout=self.config.request_timeout
        )

    async def list_device_subscriptions(self, device_id: str) -> list[str]:
        return await subscriptions.list_device_subscriptions(
            self.session, self.host, self.headers, device_id, timeout=self.config.request_timeout
        )

    async def delete_device_subscriptions(self, device_id: str) -> None:
        await subscriptions.delete_device_subscriptions(
            self.session, self.host, self.headers, device_id, timeout=self.config.request_timeout
        )

    async def delete_subscriptions(self) -> None:
        await subscriptions.delete_subscriptions(
            self.session, self.host, self.headers, timeout=self.config.request_timeout
        )

    async def list_presubscriptions(self) -> list[Presubscription]:
        return await subscriptions.list_presubscriptions(
            self.session, self.host, self.headers, timeout=self.config.request_timeout
        )

    async def update_presubscriptions(self, presubscriptions: list[Presubscription]) -> None:
        await subscriptions.update_presubscriptions(
            self.session, self.host, self.headers, presubscriptions, timeout=self.config.request_timeout
        )
