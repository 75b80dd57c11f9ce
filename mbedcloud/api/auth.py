"""
Low-level authentication helpers for the Connect API.

Responsible for:
- Building the standard authorization headers used by all API calls

The cloud authenticates every request with a long-lived API key sent as a
bearer token; there is no login round-trip or token refresh.
"""
from mbedcloud.const import VERSION


def get_standard_headers(api_key: str) -> dict:
    """
    Build the standard HTTP headers used by all authenticated Connect API requests.

    :param api_key: API key issued by the cloud account.
    :return: Dictionary of HTTP headers.
    """
    return {
        "accept": "application/json",
        "Authorization": f"Bearer {api_key}",
        "User-Agent": f"mbedcloud-connect-python/{VERSION}",
    }
