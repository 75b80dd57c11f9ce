"""
Low-level HTTP request library for Connect API communication.
This module handles a single HTTP exchange and maps failures onto the client's error types.
Retries and backoff are left to the caller.
"""
import asyncio
import logging

import aiohttp

from mbedcloud.const import REQUEST_TIMEOUT
from mbedcloud.exceptions import ApiResponseError, TransportError

_LOGGER = logging.getLogger(__name__)

SUPPORTED_METHODS = ("GET", "POST", "PUT", "DELETE")


async def make_request(
    session: aiohttp.ClientSession,
    method: str,
    url: str,
    headers: dict,
    payload=None,
    params: dict = None,
    data: str = None,
    timeout: float = REQUEST_TIMEOUT,
):
    """
    Make one HTTP request against the Connect API.

    Args:
        session: Open aiohttp session used for the request
        method: HTTP method (GET, POST, PUT, DELETE)
        url: Target URL for the request
        headers: HTTP headers dictionary (including Authorization)
        payload: JSON payload for POST/PUT requests (optional)
        params: URL query parameters (optional)
        data: Raw text body, used instead of payload for text/plain requests (optional)
        timeout: Total timeout in seconds

    Returns:
        Parsed JSON body, response text, or None for an empty body

    Raises:
        TransportError: On timeout or connection failure
        ApiResponseError: If the API answers with status >= 400
        ValueError: For an unsupported HTTP method
    """
    method = method.upper()
    if method not in SUPPORTED_METHODS:
        raise ValueError(f"Unsupported HTTP method: {method}")

    timeout_config = aiohttp.ClientTimeout(total=timeout)
    try:
        async with session.request(
            method,
            url,
            headers=headers,
            json=payload,
            params=params,
            data=data,
            timeout=timeout_config,
        ) as response:
            return await _process_response(response, url)
    except (asyncio.TimeoutError, TimeoutError) as e:
        _LOGGER.warning("Timeout on %s request to %s after %s seconds", method, url, timeout)
        raise TransportError(f"Timeout on {method} request to {url}") from e
    except aiohttp.ClientError as e:
        _LOGGER.warning("Connection error on %s request to %s: %s", method, url, e)
        raise TransportError(f"{method} request to {url} failed: {e}") from e


async def _process_response(response, url: str):
    """
    Process HTTP response and extract its body.

    Args:
        response: aiohttp response object
        url: Request URL (for logging)

    Returns:
        Parsed JSON for JSON responses, text otherwise, None when the body is empty

    Raises:
        ApiResponseError: For any status >= 400
    """
    content_type = response.headers.get('Content-Type', '')

    # Handle successful response
    if response.status < 400:
        if response.status == 204:
            return None
        if 'application/json' in content_type:
            return await response.json()
        text = await response.text()
        return text or None

    # Handle error responses
    error_json = None
    message = None
    if 'application/json' in content_type:
        try:
            error_json = await response.json()
        except (aiohttp.ContentTypeError, ValueError) as e:
            _LOGGER.error(
                "Failed to parse error response as JSON from %s: %s (status %s)",
                url, e, response.status
            )
        if isinstance(error_json, dict):
            message = error_json.get("message") or error_json.get("error")
    else:
        # Non-JSON error response (e.g., plain text or an HTML error page)
        text = await response.text()
        _LOGGER.debug(
            "Received non-JSON error response from %s: status %s, content-type: %s, body preview: %s",
            url, response.status, content_type, text[:200]
        )
        message = text[:200] or None

    raise ApiResponseError(response.status, message or response.reason, error_json)
