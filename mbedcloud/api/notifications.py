"""
Low-level notification channel calls for the Connect API.

Responsible for:
- Long-polling pending notifications and mapping them onto a NotificationBatch
- Deleting the pull channel
- Reading, registering and deleting the webhook (push callback)
"""
import logging

import aiohttp

from mbedcloud.const import CALLBACK_PATH, PULL_PATH, PULL_TIMEOUT, REQUEST_TIMEOUT
from mbedcloud.exceptions import ApiResponseError
from mbedcloud.models import NotificationBatch, Webhook
from mbedcloud.requests import make_request

_LOGGER = logging.getLogger(__name__)


async def fetch_pending_notifications(
    session: aiohttp.ClientSession,
    host: str,
    headers: dict,
    timeout: float = PULL_TIMEOUT,
) -> NotificationBatch:
    """
    Fetch pending notifications, blocking server-side until some arrive or the poll expires.

    An empty poll returns an empty batch.

    Corresponding CURL command:
    curl -X 'GET' 'https://api.us-east-1.mbedcloud.com/v2/notification/pull' \\
      -H 'Authorization: Bearer <API_KEY>'
    """
    url = host + PULL_PATH
    raw_json = await make_request(session, "GET", url, headers, timeout=timeout)
    if raw_json is not None and not isinstance(raw_json, dict):
        _LOGGER.warning("Unexpected response format in notification pull: %s", raw_json)
        return NotificationBatch()
    return NotificationBatch.from_json(raw_json)


async def delete_pull_channel(
    session: aiohttp.ClientSession,
    host: str,
    headers: dict,
    timeout: float = REQUEST_TIMEOUT,
) -> None:
    """
    Delete the pull channel. A missing channel (404) is not an error.

    Corresponding CURL command:
    curl -X 'DELETE' 'https://api.us-east-1.mbedcloud.com/v2/notification/pull'
    """
    url = host + PULL_PATH
    try:
        await make_request(session, "DELETE", url, headers, timeout=timeout)
    except ApiResponseError as e:
        if not e.is_not_found:
            raise
        _LOGGER.debug("No pull channel to delete")


async def get_webhook(
    session: aiohttp.ClientSession,
    host: str,
    headers: dict,
    timeout: float = REQUEST_TIMEOUT,
) -> Webhook | None:
    """
    Fetch the registered webhook, or None when no webhook is registered.

    Corresponding CURL command:
    curl -X 'GET' 'https://api.us-east-1.mbedcloud.com/v2/notification/callback'
    """
    url = host + CALLBACK_PATH
    try:
        raw_json = await make_request(session, "GET", url, headers, timeout=timeout)
    except ApiResponseError as e:
        if e.is_not_found:
            return None
        raise

    if not isinstance(raw_json, dict) or "url" not in raw_json:
        _LOGGER.warning("Unexpected response format in webhook data: %s", raw_json)
        return None
    return Webhook.from_json(raw_json)


async def put_webhook(
    session: aiohttp.ClientSession,
    host: str,
    headers: dict,
    webhook: Webhook,
    timeout: float = REQUEST_TIMEOUT,
) -> None:
    """
    Register the webhook, overwriting any existing one.

    Corresponding CURL command:
    curl -X 'PUT' 'https://api.us-east-1.mbedcloud.com/v2/notification/callback' \\
      -d '{"url": "<URL>", "headers": {}}'
    """
    url = host + CALLBACK_PATH
    await make_request(session, "PUT", url, headers, payload=webhook.to_json(), timeout=timeout)


async def delete_webhook(
    session: aiohttp.ClientSession,
    host: str,
    headers: dict,
    timeout: float = REQUEST_TIMEOUT,
) -> None:
    """
    Delete the webhook. Raises ApiResponseError (404) when none is registered.

    Corresponding CURL command:
    curl -X 'DELETE' 'https://api.us-east-1.mbedcloud.com/v2/notification/callback'
    """
    url = host + CALLBACK_PATH
    await make_request(session, "DELETE", url, headers, timeout=timeout)
