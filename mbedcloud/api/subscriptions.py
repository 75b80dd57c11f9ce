"""
Low-level subscription calls for the Connect API.

Responsible for:
- Subscribing to / unsubscribing from a single device resource
- Listing and removing all subscriptions of a device, or of the account
- Reading and replacing pre-subscription rules
"""
import logging

import aiohttp

from mbedcloud.const import REQUEST_TIMEOUT, SUBSCRIPTIONS_PATH
from mbedcloud.exceptions import ApiResponseError
from mbedcloud.models import Presubscription
from mbedcloud.requests import make_request

_LOGGER = logging.getLogger(__name__)


def _subscription_url(host: str, device_id: str, path: str) -> str:
    return f"{host}{SUBSCRIPTIONS_PATH}/{device_id}/{path}"


async def add_resource_subscription(
    session: aiohttp.ClientSession,
    host: str,
    headers: dict,
    device_id: str,
    path: str,
    timeout: float = REQUEST_TIMEOUT,
):
    """
    Subscribe to value changes of a resource.

    Corresponding CURL command:
    curl -X 'PUT' 'https://api.us-east-1.mbedcloud.com/v2/subscriptions/<DeviceID>/<Path>'
    """
    return await make_request(
        session, "PUT", _subscription_url(host, device_id, path), headers, timeout=timeout
    )


async def delete_resource_subscription(
    session: aiohttp.ClientSession,
    host: str,
    headers: dict,
    device_id: str,
    path: str,
    timeout: float = REQUEST_TIMEOUT,
):
    """
    Remove the subscription to a resource.

    Corresponding CURL command:
    curl -X 'DELETE' 'https://api.us-east-1.mbedcloud.com/v2/subscriptions/<DeviceID>/<Path>'
    """
    return await make_request(
        session, "DELETE", _subscription_url(host, device_id, path), headers, timeout=timeout
    )


async def get_resource_subscription(
    session: aiohttp.ClientSession,
    host: str,
    headers: dict,
    device_id: str,
    path: str,
    timeout: float = REQUEST_TIMEOUT,
) -> bool:
    """
    Return True when the resource is subscribed, False when the API answers 404.

    Corresponding CURL command:
    curl -X 'GET' 'https://api.us-east-1.mbedcloud.com/v2/subscriptions/<DeviceID>/<Path>'
    """
    try:
        await make_request(
            session, "GET", _subscription_url(host, device_id, path), headers, timeout=timeout
        )
    except ApiResponseError as e:
        if e.is_not_found:
            return False
        raise
    return True


async def list_device_subscriptions(
    session: aiohttp.ClientSession,
    host: str,
    headers: dict,
    device_id: str,
    timeout: float = REQUEST_TIMEOUT,
) -> list[str]:
    """
    List the subscribed resource paths of a device.

    The API answers with one path per line (text/uri-list).

    Corresponding CURL command:
    curl -X 'GET' 'https://api.us-east-1.mbedcloud.com/v2/subscriptions/<DeviceID>'
    """
    url = f"{host}{SUBSCRIPTIONS_PATH}/{device_id}"
    body = await make_request(session, "GET", url, headers, timeout=timeout)
    if not body:
        return []
    if isinstance(body, list):
        return [str(path) for path in body]
    return [line.strip() for line in str(body).splitlines() if line.strip()]


async def delete_device_subscriptions(
    session: aiohttp.ClientSession,
    host: str,
    headers: dict,
    device_id: str,
    timeout: float = REQUEST_TIMEOUT,
) -> None:
    """
    Remove every subscription of a device.

    Corresponding CURL command:
    curl -X 'DELETE' 'https://api.us-east-1.mbedcloud.com/v2/subscriptions/<DeviceID>'
    """
    url = f"{host}{SUBSCRIPTIONS_PATH}/{device_id}"
    await make_request(session, "DELETE", url, headers, timeout=timeout)


async def delete_subscriptions(
    session: aiohttp.ClientSession,
    host: str,
    headers: dict,
    timeout: float = REQUEST_TIMEOUT,
) -> None:
    """
    Remove every subscription of the account.

    Corresponding CURL command:
    curl -X 'DELETE' 'https://api.us-east-1.mbedcloud.com/v2/subscriptions'
    """
    await make_request(session, "DELETE", host + SUBSCRIPTIONS_PATH, headers, timeout=timeout)


async def list_presubscriptions(
    session: aiohttp.ClientSession,
    host: str,
    headers: dict,
    timeout: float = REQUEST_TIMEOUT,
) -> list[Presubscription]:
    """
    Fetch the pre-subscription rules.

    Corresponding CURL command:
    curl -X 'GET' 'https://api.us-east-1.mbedcloud.com/v2/subscriptions'
    """
    raw_json = await make_request(session, "GET", host + SUBSCRIPTIONS_PATH, headers, timeout=timeout)
    if not raw_json:
        return []
    if not isinstance(raw_json, list):
        _LOGGER.warning("Unexpected response format in pre-subscriptions: %s", raw_json)
        return []
    return [Presubscription.from_json(item) for item in raw_json]


async def update_presubscriptions(
    session: aiohttp.ClientSession,
    host: str,
    headers: dict,
    presubscriptions: list[Presubscription],
    timeout: float = REQUEST_TIMEOUT,
) -> None:
    """
    Replace the pre-subscription rules. An empty list removes them all.

    Corresponding CURL command:
    curl -X 'PUT' 'https://api.us-east-1.mbedcloud.com/v2/subscriptions' \\
      -d '[{"endpoint-name": "<DeviceID>", "resource-path": ["/3/0/*"]}]'
    """
    payload = [presubscription.to_json() for presubscription in presubscriptions]
    await make_request(
        session, "PUT", host + SUBSCRIPTIONS_PATH, headers, payload=payload, timeout=timeout
    )
