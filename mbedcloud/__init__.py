"""
Python client for the Mbed Cloud Connect API.

The central object is ConnectApi, which manages the notification channel
(pull notifications or a webhook) and resolves device resource operations
through the async responses delivered on it.

Example usage:
```
    async with ConnectApi({"api_key": "<API key>"}) as connect:
        connect.on(ConnectApi.EVENT_REGISTRATION, print)
        await connect.start_notifications()
        value = await connect.get_resource_value(device_id, "/3/0/1")
        await connect.stop_notifications()
```
"""
from .config import ConnectionConfig, load_config
from .const import VERSION
from .coordinator import ConnectApi
from .exceptions import (
    ApiResponseError,
    AsyncResponseTimeoutError,
    ConfigError,
    MbedCloudError,
    RemoteOperationError,
    ResourceNotFoundError,
    TransportError,
)
from .models import (
    AsyncResponse,
    CoordinatorMode,
    DeviceEvent,
    DeviceEventResource,
    NotificationBatch,
    Presubscription,
    Resource,
    ResourceNotification,
    ResourceValueNotification,
    Webhook,
)

__version__ = VERSION

__all__ = [
    "ApiResponseError",
    "AsyncResponse",
    "AsyncResponseTimeoutError",
    "ConfigError",
    "ConnectApi",
    "ConnectionConfig",
    "CoordinatorMode",
    "DeviceEvent",
    "DeviceEventResource",
    "MbedCloudError",
    "NotificationBatch",
    "Presubscription",
    "RemoteOperationError",
    "Resource",
    "ResourceNotFoundError",
    "ResourceNotification",
    "ResourceValueNotification",
    "TransportError",
    "Webhook",
    "load_config",
]
