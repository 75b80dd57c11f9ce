"""
Low-level device resource calls for the Connect API.

Responsible for:
- Listing the resources a connected device exposes
- Reading, writing, executing and deleting a single resource

Resource operations usually answer with an async response id (see
const.ASYNC_KEY); the raw body is returned so the coordinator can decide how to
resolve it.
"""
import logging

import aiohttp

from mbedcloud.const import ENDPOINTS_PATH, REQUEST_TIMEOUT
from mbedcloud.models import Resource
from mbedcloud.requests import make_request

_LOGGER = logging.getLogger(__name__)


def _resource_url(host: str, device_id: str, path: str) -> str:
    return f"{host}{ENDPOINTS_PATH}/{device_id}/{path}"


def _flag_params(**flags: bool) -> dict | None:
    """Query flags are only sent when set, as the literal string 'true'."""
    params = {name: "true" for name, value in flags.items() if value}
    return params or None


async def list_resources(
    session: aiohttp.ClientSession,
    host: str,
    headers: dict,
    device_id: str,
    timeout: float = REQUEST_TIMEOUT,
) -> list[Resource]:
    """
    List the resources of a connected device.

    Corresponding CURL command:
    curl -X 'GET' 'https://api.us-east-1.mbedcloud.com/v2/endpoints/<DeviceID>'
    """
    url = f"{host}{ENDPOINTS_PATH}/{device_id}"
    raw_json = await make_request(session, "GET", url, headers, timeout=timeout)
    if not isinstance(raw_json, list):
        _LOGGER.warning("Unexpected response format in resource list for %s: %s", device_id, raw_json)
        return []
    return [Resource.from_json(resource, device_id) for resource in raw_json]


async def get_resource_value(
    session: aiohttp.ClientSession,
    host: str,
    headers: dict,
    device_id: str,
    path: str,
    cache_only: bool = False,
    no_response: bool = False,
    timeout: float = REQUEST_TIMEOUT,
):
    """
    Request the value of a resource.

    Corresponding CURL command:
    curl -X 'GET' \\
      'https://api.us-east-1.mbedcloud.com/v2/endpoints/<DeviceID>/<Path>?cacheOnly=true'
    """
    params = _flag_params(cacheOnly=cache_only, noResp=no_response)
    return await make_request(
        session, "GET", _resource_url(host, device_id, path), headers, params=params, timeout=timeout
    )


async def set_resource_value(
    session: aiohttp.ClientSession,
    host: str,
    headers: dict,
    device_id: str,
    path: str,
    value,
    no_response: bool = False,
    timeout: float = REQUEST_TIMEOUT,
):
    """
    Write a resource value. The value is sent as a text/plain body.

    Corresponding CURL command:
    curl -X 'PUT' 'https://api.us-east-1.mbedcloud.com/v2/endpoints/<DeviceID>/<Path>' \\
      -H 'Content-Type: text/plain' -d '<Value>'
    """
    request_headers = {**headers, "Content-Type": "text/plain"}
    params = _flag_params(noResp=no_response)
    return await make_request(
        session,
        "PUT",
        _resource_url(host, device_id, path),
        request_headers,
        params=params,
        data=str(value),
        timeout=timeout,
    )


async def execute_resource(
    session: aiohttp.ClientSession,
    host: str,
    headers: dict,
    device_id: str,
    path: str,
    function_name: str | None = None,
    no_response: bool = False,
    timeout: float = REQUEST_TIMEOUT,
):
    """
    Execute a function on a resource, optionally passing a function name as the body.

    Corresponding CURL command:
    curl -X 'POST' 'https://api.us-east-1.mbedcloud.com/v2/endpoints/<DeviceID>/<Path>'
    """
    request_headers = {**headers, "Content-Type": "text/plain"}
    params = _flag_params(noResp=no_response)
    return await make_request(
        session,
        "POST",
        _resource_url(host, device_id, path),
        request_headers,
        params=params,
        data=function_name,
        timeout=timeout,
    )


async def delete_resource(
    session: aiohttp.ClientSession,
    host: str,
    headers: dict,
    device_id: str,
    path: str,
    no_response: bool = False,
    timeout: float = REQUEST_TIMEOUT,
):
    """
    Delete a resource from a device.

    Corresponding CURL command:
    curl -X 'DELETE' 'https://api.us-east-1.mbedcloud.com/v2/endpoints/<DeviceID>/<Path>'
    """
    params = _flag_params(noResp=no_response)
    return await make_request(
        session, "DELETE", _resource_url(host, device_id, path), headers, params=params, timeout=timeout
    )
