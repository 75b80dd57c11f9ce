"""
Domain models for the Connect client.

This module contains pure data classes representing notification payloads,
device events and Connect configuration objects, plus their wire mapping.
The mapping is field renaming only; these classes have no dependencies on
HTTP or the event loop.
"""
from __future__ import annotations

import dataclasses
import enum
import logging

from mbedcloud.const import (
    BATCH_ASYNC_RESPONSES,
    BATCH_DEREGISTRATIONS,
    BATCH_EXPIRATIONS,
    BATCH_NOTIFICATIONS,
    BATCH_REGISTRATIONS,
    BATCH_REREGISTRATIONS,
)
from mbedcloud.payload import decode_payload, normalize_path

_LOGGER = logging.getLogger(__name__)


class CoordinatorMode(enum.Enum):
    """Which notification channel, if any, the coordinator believes is active."""

    IDLE = "idle"
    PULL = "pull"
    WEBHOOK = "webhook"


@dataclasses.dataclass(frozen=True)
class ResourceNotification:
    """A resource value change reported by a device."""

    device_id: str
    path: str
    payload: str | None = None          # base64
    content_type: str | None = None
    max_age: int | None = None

    @classmethod
    def from_json(cls, raw: dict) -> ResourceNotification:
        return cls(
            device_id=raw["ep"],
            path=raw["path"],
            payload=raw.get("payload"),
            content_type=raw.get("ct"),
            max_age=raw.get("max-age"),
        )

    def decode(self):
        """Return the decoded payload, or None when the notification carries none."""
        return decode_payload(self.payload, self.content_type)


@dataclasses.dataclass(frozen=True)
class AsyncResponse:
    """The outcome of an operation started with an async response id."""

    async_id: str
    status: int
    payload: str | None = None          # base64
    content_type: str | None = None
    error: str | None = None
    max_age: int | None = None

    @classmethod
    def from_json(cls, raw: dict) -> AsyncResponse:
        return cls(
            async_id=raw["id"],
            status=int(raw.get("status", 0)),
            payload=raw.get("payload"),
            content_type=raw.get("ct"),
            error=raw.get("error"),
            max_age=raw.get("max-age"),
        )

    @property
    def is_error(self) -> bool:
        return self.status >= 400

    def decode(self):
        return decode_payload(self.payload, self.content_type)


@dataclasses.dataclass(frozen=True)
class DeviceEventResource:
    """A resource advertised in a registration event."""

    path: str
    content_type: str | None = None
    type: str | None = None
    observable: bool = False
    interface: str | None = None

    @classmethod
    def from_json(cls, raw: dict) -> DeviceEventResource:
        return cls(
            path=raw["path"],
            content_type=raw.get("ct"),
            type=raw.get("rt"),
            observable=bool(raw.get("obs", False)),
            interface=raw.get("if"),
        )


@dataclasses.dataclass(frozen=True)
class DeviceEvent:
    """A device registration or registration update."""

    device_id: str
    device_type: str | None = None
    queue_mode: bool = False
    original_id: str | None = None
    resources: tuple[DeviceEventResource, ...] = ()

    @classmethod
    def from_json(cls, raw: dict) -> DeviceEvent:
        return cls(
            device_id=raw["ep"],
            device_type=raw.get("ept"),
            queue_mode=bool(raw.get("q", False)),
            original_id=raw.get("original-ep"),
            resources=tuple(DeviceEventResource.from_json(r) for r in raw.get("resources") or ()),
        )


@dataclasses.dataclass(frozen=True)
class ResourceValueNotification:
    """Payload of the ``notification`` event."""

    device_id: str
    path: str
    payload: object = None


def _device_id(raw) -> str:
    if not isinstance(raw, str):
        raise TypeError(f"expected a device id string, got {type(raw).__name__}")
    return raw


def _parse_entries(raw: dict, field: str, parse) -> tuple:
    entries = raw.get(field)
    if not entries:
        return ()
    if not isinstance(entries, list):
        _LOGGER.warning("Ignoring batch field '%s': expected a list, got %r", field, entries)
        return ()

    parsed = []
    for entry in entries:
        try:
            parsed.append(parse(entry))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            _LOGGER.warning("Skipping malformed '%s' entry %r: %r", field, entry, e)
    return tuple(parsed)


@dataclasses.dataclass(frozen=True)
class NotificationBatch:
    """
    One decoded notification payload, as delivered by the pull endpoint or a webhook.

    Every field is an ordered tuple; a field absent on the wire is an empty tuple.
    """

    notifications: tuple[ResourceNotification, ...] = ()
    registrations: tuple[DeviceEvent, ...] = ()
    reregistrations: tuple[DeviceEvent, ...] = ()
    deregistrations: tuple[str, ...] = ()
    expirations: tuple[str, ...] = ()
    async_responses: tuple[AsyncResponse, ...] = ()

    @classmethod
    def from_json(cls, raw: dict | None) -> NotificationBatch:
        """Map a wire batch. Malformed entries are logged and skipped; the rest is kept."""
        if not raw:
            return cls()
        return cls(
            notifications=_parse_entries(raw, BATCH_NOTIFICATIONS, ResourceNotification.from_json),
            registrations=_parse_entries(raw, BATCH_REGISTRATIONS, DeviceEvent.from_json),
            reregistrations=_parse_entries(raw, BATCH_REREGISTRATIONS, DeviceEvent.from_json),
            deregistrations=_parse_entries(raw, BATCH_DEREGISTRATIONS, _device_id),
            expirations=_parse_entries(raw, BATCH_EXPIRATIONS, _device_id),
            async_responses=_parse_entries(raw, BATCH_ASYNC_RESPONSES, AsyncResponse.from_json),
        )

    @property
    def is_empty(self) -> bool:
        return not (
            self.notifications
            or self.registrations
            or self.reregistrations
            or self.deregistrations
            or self.expirations
            or self.async_responses
        )


@dataclasses.dataclass(frozen=True)
class Webhook:
    """The registered push callback."""

    url: str
    headers: dict = dataclasses.field(default_factory=dict)

    @classmethod
    def from_json(cls, raw: dict) -> Webhook:
        return cls(url=raw["url"], headers=dict(raw.get("headers") or {}))

    def to_json(self) -> dict:
        return {"url": self.url, "headers": dict(self.headers)}


@dataclasses.dataclass(frozen=True)
class Resource:
    """A resource exposed by a connected device."""

    device_id: str
    path: str
    type: str | None = None
    content_type: str | None = None
    observable: bool = False

    @classmethod
    def from_json(cls, raw: dict, device_id: str) -> Resource:
        return cls(
            device_id=device_id,
            path=normalize_path(raw["uri"]),
            type=raw.get("rt"),
            content_type=raw.get("type"),
            observable=bool(raw.get("obs", False)),
        )


@dataclasses.dataclass(frozen=True)
class Presubscription:
    """A pre-subscription rule applied to devices when they register."""

    device_id: str | None = None
    device_type: str | None = None
    resource_paths: tuple[str, ...] = ()

    @classmethod
    def from_json(cls, raw: dict) -> Presubscription:
        return cls(
            device_id=raw.get("endpoint-name"),
            device_type=raw.get("endpoint-type"),
            resource_paths=tuple(raw.get("resource-path") or ()),
        )

    def to_json(self) -> dict:
        data = {}
        if self.device_id is not None:
            data["endpoint-name"] = self.device_id
        if self.device_type is not None:
            data["endpoint-type"] = self.device_type
        if self.resource_paths:
            data["resource-path"] = list(self.resource_paths)
        return data
