"""
Payload helpers shared by the dispatcher and the resource operations.

No network or event-loop dependencies; every function here is pure.
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
import re

_LOGGER = logging.getLogger(__name__)

# Plain decimal numbers as devices send them ("42", "-3.5", "1e3")
_NUMBER_RE = re.compile(r"^\s*[-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?\s*$")


def decode_payload(payload: str | None, content_type: str | None = None):
    """
    Decode a base64 payload from a notification or async response.

    JSON content types are parsed into a structure, numeric text becomes an
    int or float, anything else is returned as the UTF-8 string.
    """
    if not payload:
        return None
    try:
        raw = base64.b64decode(payload)
    except (binascii.Error, ValueError):
        _LOGGER.debug("Payload is not valid base64, passing through: %r", payload)
        return payload
    text = raw.decode("utf-8", errors="replace")

    if content_type and "json" in content_type.lower():
        try:
            return json.loads(text)
        except ValueError:
            _LOGGER.debug("JSON content type but undecodable body: %r", text[:200])
            return text

    return parse_number(text)


def parse_number(text: str):
    """Return text as an int or float when it is a plain number, else unchanged."""
    if not _NUMBER_RE.match(text):
        return text
    stripped = text.strip()
    if re.fullmatch(r"[-+]?\d+", stripped):
        return int(stripped)
    return float(stripped)


def normalize_path(path: str | None) -> str | None:
    """Strip a single leading slash from a resource path ("/3/0/1" -> "3/0/1")."""
    if path and path.startswith("/"):
        return path[1:]
    return path
