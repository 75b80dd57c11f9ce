"""
ConnectApi — notification coordinator for the Connect API.

Responsibilities:
- Own the notification channel state: idle, pulling, or a registered webhook.
- Drive the pull loop: one long-poll at a time, each iteration scheduled only
  after the previous response has been dispatched.
- Dispatch every incoming batch (pulled, or injected through notify() by a
  webhook receiver) into events, per-resource callbacks and pending async callers.
- Expose the device resource and subscription operations; those answering with
  an async response id settle only when the matching async response arrives.

All state is touched from the event loop only, so nothing here takes a lock.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from .async_responses import AsyncResponseCorrelator
from .config import ConnectionConfig, load_config
from .const import (
    ASYNC_KEY,
    EVENT_DEREGISTRATION,
    EVENT_EXPIRED,
    EVENT_NOTIFICATION,
    EVENT_REGISTRATION,
    EVENT_REREGISTRATION,
)
from .dispatcher import NotificationDispatcher
from .endpoints import ConnectEndpoints
from .events import EventEmitter, Listener
from .exceptions import MbedCloudError, ResourceNotFoundError
from .models import (
    AsyncResponse,
    CoordinatorMode,
    NotificationBatch,
    Presubscription,
    Resource,
    Webhook,
)
from .payload import normalize_path, parse_number
from .subscriptions import NotifyFn, SubscriptionRegistry

_LOGGER = logging.getLogger(__name__)

AsyncBatchCallback = Callable[[Exception | None, tuple[AsyncResponse, ...]], Any]


class ConnectApi:
    """
    Client for the Connect API with notification handling.

    Resource values, execution results and subscription confirmations travel
    back from devices as async responses, so a notification channel must be
    set up first: either call start_notifications() to long-poll, or register
    a webhook with update_webhook(), set handle_notifications to True and
    feed the deliveries into notify().
    """

    EVENT_NOTIFICATION = EVENT_NOTIFICATION
    EVENT_REGISTRATION = EVENT_REGISTRATION
    EVENT_REREGISTRATION = EVENT_REREGISTRATION
    EVENT_DEREGISTRATION = EVENT_DEREGISTRATION
    EVENT_EXPIRED = EVENT_EXPIRED

    def __init__(
        self,
        config: ConnectionConfig | dict | None = None,
        endpoints: ConnectEndpoints | None = None,
    ) -> None:
        """Initialize from a ConnectionConfig, a dict of options, or the environment."""
        self.config = config if isinstance(config, ConnectionConfig) else load_config(config)
        self._endpoints = endpoints or ConnectEndpoints(self.config)

        self._events = EventEmitter()
        self._correlator = AsyncResponseCorrelator(ttl=self.config.async_response_ttl)
        self._subscriptions = SubscriptionRegistry()
        self._dispatcher = NotificationDispatcher(self._events, self._correlator, self._subscriptions)

        # True while async responses are expected to reach notify(); set by
        # pull mode, set by hand when a webhook receiver calls notify()
        self.handle_notifications: bool = False
        self._mode = CoordinatorMode.IDLE
        self._poll_task: asyncio.Task | None = None
        # Bumped by every start, stop and close; a start resuming under a newer
        # generation has been superseded and must not launch its loop
        self._generation = 0

    async def __aenter__(self) -> ConnectApi:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @property
    def mode(self) -> CoordinatorMode:
        return self._mode

    @property
    def is_pulling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: str, listener: Listener) -> Callable[[], None]:
        """Listen to one of the EVENT_* events. Returns a function removing the listener."""
        return self._events.on(event, listener)

    def once(self, event: str, listener: Listener) -> Callable[[], None]:
        return self._events.once(event, listener)

    def off(self, event: str, listener: Listener | None = None) -> None:
        self._events.off(event, listener)

    def notify(self, data: NotificationBatch | dict | None) -> None:
        """
        Inject a notification batch, as pulled or as delivered to a webhook.

        Accepts the raw JSON dict or an already parsed NotificationBatch.
        Async responses are only correlated while handle_notifications is set
        or a pull loop registered the callers.
        """
        if not data:
            return
        batch = data if isinstance(data, NotificationBatch) else NotificationBatch.from_json(data)
        self._dispatcher.dispatch(batch)

    # ------------------------------------------------------------------
    # Pull notifications
    # ------------------------------------------------------------------

    async def start_notifications(
        self,
        interval: float | None = None,
        on_async_batch: AsyncBatchCallback | None = None,
    ) -> None:
        """
        Begin pull notifications.

        Any local pull loop is stopped first and the webhook is removed, as
        the cloud only serves pulls while no webhook is registered. A missing
        webhook is not an error.

        Args:
            interval: Seconds to wait after each response before polling again
            on_async_batch: Called with (error, async_responses) for every pulled
                batch carrying async responses, in addition to normal correlation
        """
        self._cancel_poll_task()
        self._generation += 1
        generation = self._generation

        try:
            await self._endpoints.delete_webhook()
        except MbedCloudError as exc:
            _LOGGER.debug("No webhook removed before pulling: %s", exc)

        if generation != self._generation:
            _LOGGER.debug("Pull start superseded by a later start or stop")
            return

        self._cancel_poll_task()
        interval = self.config.pull_interval if interval is None else interval
        self.handle_notifications = True
        self._mode = CoordinatorMode.PULL
        self._poll_task = asyncio.get_running_loop().create_task(
            self._poll(interval, on_async_batch)
        )
        _LOGGER.debug("Pull notifications started (interval %s s)", interval)

    async def stop_notifications(self) -> None:
        """
        Stop pull notifications.

        Deletes the pull channel and cancels the local loop, including a next
        iteration that is scheduled but has not fired, and a start that is
        still removing the webhook. Safe to call repeatedly.
        """
        self._generation += 1
        try:
            await self._endpoints.delete_pull_channel()
        except MbedCloudError as exc:
            _LOGGER.warning("Failed to delete pull channel: %s", exc)

        self._cancel_poll_task()
        self.handle_notifications = False
        if self._mode is CoordinatorMode.PULL:
            self._mode = CoordinatorMode.IDLE

    async def _poll(self, interval: float, on_async_batch: AsyncBatchCallback | None) -> None:
        """Long-poll until stopped or until a fetch fails."""
        while True:
            error: Exception | None = None
            batch: NotificationBatch | None = None
            try:
                batch = await self._endpoints.fetch_pending_notifications()
            except Exception as exc:  # noqa: BLE001
                error = exc

            if not self.handle_notifications:
                if self._mode is CoordinatorMode.PULL:
                    self._mode = CoordinatorMode.IDLE
                return

            if batch is not None:
                self.notify(batch)
                if on_async_batch is not None and batch.async_responses:
                    try:
                        on_async_batch(error, batch.async_responses)
                    except Exception:  # noqa: BLE001
                        _LOGGER.exception("Async batch callback failed")

            if error is not None:
                _LOGGER.warning("Notification pull failed, pull notifications stopped: %s", error)
                self.handle_notifications = False
                if self._mode is CoordinatorMode.PULL:
                    self._mode = CoordinatorMode.IDLE
                return

            await asyncio.sleep(interval)

    def _cancel_poll_task(self) -> None:
        if self._poll_task is not None and not self._poll_task.done():
            self._poll_task.cancel()
        self._poll_task = None

    # ------------------------------------------------------------------
    # Webhook
    # ------------------------------------------------------------------

    async def get_webhook(self) -> Webhook | None:
        """Return the registered webhook, or None when there is none."""
        return await self._endpoints.get_webhook()

    async def update_webhook(self, url: str, headers: dict | None = None) -> None:
        """
        Register a webhook, overwriting any existing one.

        The pull channel is deleted first. A running local pull loop is left
        alone; the cloud stops answering it once the webhook exists.
        """
        try:
            await self._endpoints.delete_pull_channel()
        except MbedCloudError as exc:
            _LOGGER.debug("Pull channel not deleted before webhook update: %s", exc)

        await self._endpoints.put_webhook(Webhook(url=url, headers=dict(headers or {})))
        self._mode = CoordinatorMode.WEBHOOK

    async def delete_webhook(self) -> None:
        """
        Delete the webhook. Every subscription is removed with it by the cloud.

        Raises ApiResponseError (404) when no webhook is registered.
        """
        await self._endpoints.delete_webhook()
        if self._mode is CoordinatorMode.WEBHOOK:
            self._mode = CoordinatorMode.IDLE

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    async def list_resources(self, device_id: str) -> list[Resource]:
        return await self._endpoints.list_resources(device_id)

    async def get_resource(self, device_id: str, path: str) -> Resource:
        """Return one resource of a device, raising ResourceNotFoundError if it has none at path."""
        path = normalize_path(path)
        for resource in await self._endpoints.list_resources(device_id):
            if normalize_path(resource.path) == path:
                return resource
        raise ResourceNotFoundError(f"Resource {path} not found on device {device_id}")

    async def delete_resource(self, device_id: str, path: str, no_response: bool = False) -> str | None:
        """Delete a resource. Returns the async response id of the operation."""
        response = await self._endpoints.delete_resource(device_id, normalize_path(path), no_response=no_response)
        return self._async_id(response)

    async def get_resource_value(
        self,
        device_id: str,
        path: str,
        cache_only: bool = False,
        no_response: bool = False,
    ):
        """
        Get the value of a resource.

        With notification handling active this waits for the device's async
        response and returns the decoded value; otherwise it returns the
        async response id. There is no built-in timeout.
        """
        response = await self._endpoints.get_resource_value(
            device_id, normalize_path(path), cache_only=cache_only, no_response=no_response
        )
        return await self._settle(response)

    async def set_resource_value(self, device_id: str, path: str, value, no_response: bool = False):
        """Set the value of a resource. Settles like get_resource_value()."""
        response = await self._endpoints.set_resource_value(
            device_id, normalize_path(path), value, no_response=no_response
        )
        return await self._settle(response)

    async def execute_resource(
        self,
        device_id: str,
        path: str,
        function_name: str | None = None,
        no_response: bool = False,
    ):
        """Execute a function on a resource. Settles like get_resource_value()."""
        response = await self._endpoints.execute_resource(
            device_id, normalize_path(path), function_name=function_name, no_response=no_response
        )
        return await self._settle(response)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    async def add_resource_subscription(self, device_id: str, path: str, notify_fn: NotifyFn | None = None):
        """
        Subscribe to a resource.

        notify_fn, when given, is called with the decoded value of every later
        notification for this resource, replacing any earlier function.
        """
        path = normalize_path(path)
        response = await self._endpoints.add_subscription(device_id, path)
        if notify_fn is not None:
            self._subscriptions.add(device_id, path, notify_fn)
        return await self._settle(response)

    async def delete_resource_subscription(self, device_id: str, path: str):
        """Unsubscribe from a resource. The local notify function is dropped even if the call fails."""
        path = normalize_path(path)
        try:
            response = await self._endpoints.delete_subscription(device_id, path)
        finally:
            self._subscriptions.remove(device_id, path)
        return await self._settle(response)

    async def get_resource_subscription(self, device_id: str, path: str) -> bool:
        return await self._endpoints.get_subscription(device_id, normalize_path(path))

    async def list_device_subscriptions(self, device_id: str) -> list[str]:
        return await self._endpoints.list_device_subscriptions(device_id)

    async def delete_device_subscriptions(self, device_id: str) -> None:
        await self._endpoints.delete_device_subscriptions(device_id)

    async def delete_subscriptions(self) -> None:
        await self._endpoints.delete_subscriptions()

    async def list_presubscriptions(self) -> list[Presubscription]:
        return await self._endpoints.list_presubscriptions()

    async def update_presubscriptions(self, presubscriptions: list[Presubscription]) -> None:
        """Replace the pre-subscription rules. An empty list removes them."""
        await self._endpoints.update_presubscriptions(list(presubscriptions))

    async def delete_presubscriptions(self) -> None:
        await self._endpoints.update_presubscriptions([])

    # ------------------------------------------------------------------
    # Async response handling
    # ------------------------------------------------------------------

    @staticmethod
    def _async_id(response) -> str | None:
        if isinstance(response, dict):
            return response.get(ASYNC_KEY)
        return None

    async def _settle(self, response):
        """
        Turn a resource operation response into the caller's result.

        An async response id is awaited through the correlator while
        notifications are handled, and returned as-is otherwise. A body without
        an id is the value itself.
        """
        async_id = self._async_id(response)
        if async_id is None:
            if isinstance(response, str):
                return parse_number(response)
            return response
        if not self.handle_notifications:
            return async_id
        return await self._correlator.create_future(async_id)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Stop the local pull loop and close the HTTP session. No remote calls are made."""
        self._generation += 1
        self._cancel_poll_task()
        self.handle_notifications = False
        self._mode = CoordinatorMode.IDLE
        await self._endpoints.close()
