"""
NotificationDispatcher — fans one NotificationBatch out to its consumers.

Within a batch the kinds are processed in a fixed order:
    notifications → registrations → re-registrations → de-registrations
    → expirations → async responses
Observers may rely on seeing a device's de-registration before its expiration.
"""
from __future__ import annotations

import asyncio
import logging

from .async_responses import AsyncResponseCorrelator
from .const import (
    EVENT_DEREGISTRATION,
    EVENT_EXPIRED,
    EVENT_NOTIFICATION,
    EVENT_REGISTRATION,
    EVENT_REREGISTRATION,
)
from .events import EventEmitter
from .models import NotificationBatch, ResourceNotification, ResourceValueNotification
from .subscriptions import SubscriptionRegistry

_LOGGER = logging.getLogger(__name__)


class NotificationDispatcher:
    """Routes each entry of a batch to events, subscription callbacks and pending async callers."""

    def __init__(
        self,
        emitter: EventEmitter,
        correlator: AsyncResponseCorrelator,
        subscriptions: SubscriptionRegistry,
    ) -> None:
        self._emitter = emitter
        self._correlator = correlator
        self._subscriptions = subscriptions

    def dispatch(self, batch: NotificationBatch) -> None:
        """Process every entry of batch synchronously, in dispatch order."""
        if batch.is_empty:
            return

        for notification in batch.notifications:
            self._dispatch_notification(notification)

        for device in batch.registrations:
            self._emitter.emit(EVENT_REGISTRATION, device)

        for device in batch.reregistrations:
            self._emitter.emit(EVENT_REREGISTRATION, device)

        for device_id in batch.deregistrations:
            self._emitter.emit(EVENT_DEREGISTRATION, device_id)

        for device_id in batch.expirations:
            self._emitter.emit(EVENT_EXPIRED, device_id)

        self._correlator.purge_expired()
        for response in batch.async_responses:
            self._correlator.resolve(response)

    def _dispatch_notification(self, notification: ResourceNotification) -> None:
        value = notification.decode()

        callback = self._subscriptions.get(notification.device_id, notification.path)
        if callback is not None:
            try:
                result = callback(value)
            except Exception:  # noqa: BLE001
                _LOGGER.exception(
                    "Subscription callback for %s%s failed", notification.device_id, notification.path
                )
            else:
                if asyncio.iscoroutine(result):
                    self._emitter.schedule(EVENT_NOTIFICATION, result)

        self._emitter.emit(
            EVENT_NOTIFICATION,
            ResourceValueNotification(
                device_id=notification.device_id,
                path=notification.path,
                payload=value,
            ),
        )
