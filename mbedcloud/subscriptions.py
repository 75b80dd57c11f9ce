"""
SubscriptionRegistry — per-resource notification callbacks.

One callback per (device id, resource path). Paths are stored without their
leading slash so "/3/0/1" and "3/0/1" name the same resource, and the key is a
tuple so no two distinct device/path pairs can collide.
"""
from __future__ import annotations

import logging
from typing import Any, Callable

from .payload import normalize_path

_LOGGER = logging.getLogger(__name__)

NotifyFn = Callable[[Any], Any]


class SubscriptionRegistry:
    """Maps (device_id, path) to the callback invoked on each value change."""

    def __init__(self) -> None:
        self._callbacks: dict[tuple[str, str], NotifyFn] = {}

    @staticmethod
    def key(device_id: str, path: str) -> tuple[str, str]:
        return device_id, normalize_path(path)

    def add(self, device_id: str, path: str, callback: NotifyFn) -> None:
        """Register callback, silently replacing any previous one for the same resource."""
        key = self.key(device_id, path)
        if key in self._callbacks:
            _LOGGER.debug("Replacing notification callback for %s/%s", *key)
        self._callbacks[key] = callback

    def remove(self, device_id: str, path: str) -> bool:
        """Remove the callback for the resource. A missing entry is not an error."""
        return self._callbacks.pop(self.key(device_id, path), None) is not None

    def get(self, device_id: str, path: str) -> NotifyFn | None:
        return self._callbacks.get(self.key(device_id, path))

    def __contains__(self, item: tuple[str, str]) -> bool:
        device_id, path = item
        return self.key(device_id, path) in self._callbacks

    def __len__(self) -> int:
        return len(self._callbacks)
