"""Exceptions raised by the mbedcloud Connect client."""
from __future__ import annotations


class MbedCloudError(Exception):
    """Base exception for the Connect client."""


class ConfigError(MbedCloudError):
    """Exception raised for invalid connection options."""


class TransportError(MbedCloudError):
    """Exception raised when the cloud cannot be reached (network failure or timeout)."""


class ApiResponseError(MbedCloudError):
    """Exception raised when the API returns an error status."""

    def __init__(self, status: int, message: str | None = None, error_json: dict | None = None) -> None:
        self.status = status
        self.message = message
        self.error_json = error_json
        super().__init__(f"API Error {status}: {message or error_json}")

    @property
    def is_not_found(self) -> bool:
        return self.status == 404


class RemoteOperationError(ApiResponseError):
    """Exception delivered to an async caller whose async response carried status >= 400."""

    def __init__(self, async_id: str, status: int, message: str | None = None) -> None:
        self.async_id = async_id
        super().__init__(status, message)


class AsyncResponseTimeoutError(MbedCloudError):
    """Exception delivered to a pending async caller evicted after its TTL expired."""

    def __init__(self, async_id: str, ttl: float) -> None:
        self.async_id = async_id
        self.ttl = ttl
        super().__init__(f"No async response for {async_id} within {ttl} seconds")


class ResourceNotFoundError(MbedCloudError):
    """Exception raised when a device does not expose the requested resource path."""
