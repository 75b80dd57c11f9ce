"""
Minimal aiohttp web application receiving webhook deliveries.

The cloud PUTs each notification batch as JSON to the registered callback URL
and only needs a 2xx answer. Every delivery is handed to ConnectApi.notify().
"""
from __future__ import annotations

import json
import logging

from aiohttp import web

from .coordinator import ConnectApi

_LOGGER = logging.getLogger(__name__)

CONNECT_API_KEY = web.AppKey("connect_api", ConnectApi)


async def handle_delivery(request: web.Request) -> web.Response:
    """Parse one delivery and dispatch it."""
    try:
        data = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        _LOGGER.warning("Ignoring webhook delivery that is not UTF-8 encoded JSON")
        return web.Response(status=400, text="expected a JSON body")

    if data is not None and not isinstance(data, dict):
        _LOGGER.warning("Ignoring webhook delivery with unexpected format: %s", str(data)[:200])
        return web.Response(status=400, text="expected a JSON object")

    request.app[CONNECT_API_KEY].notify(data)
    return web.Response(status=204)


def create_webhook_app(connect_api: ConnectApi, path: str = "/") -> web.Application:
    """
    Build an aiohttp application feeding webhook deliveries into connect_api.

    Set connect_api.handle_notifications to True if resource operations should
    wait for their async responses through this receiver.
    """
    app = web.Application()
    app[CONNECT_API_KEY] = connect_api
    app.router.add_put(path, handle_delivery)
    app.router.add_post(path, handle_delivery)
    return app
