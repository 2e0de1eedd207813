"""
Upstream fetch wrapped in the gateway's response envelope.
"""

import logging
from typing import Any, Dict

import requests

from api.v1.envelope import error_envelope, success_envelope

logger = logging.getLogger('api.v1.proxy')

UNSUPPORTED_CONTENT_TYPE_MESSAGE = "Server does not handle this content type"


def proxy_fetch(url: str, timeout: float = 10.0) -> Dict[str, Any]:
    """
    Fetch *url* and describe the outcome as an envelope.

    ``application/json`` objects are placed under ``data`` as-is, any other
    JSON value (array, scalar, ``null``) under ``data.json``, and
    ``text/plain`` bodies under ``data.text``. Upstream failures keep the
    upstream status; other content types become 415.

    Args:
        url: Absolute http(s) URL to fetch
        timeout: Seconds to wait for the upstream server

    Returns:
        The envelope for the proxied response; it never raises
    """
    try:
        response = requests.get(url, timeout=timeout)

        if not response.ok:
            logger.warning("Proxy upstream returned %s", response.status_code)
            return error_envelope(
                response.status_code,
                response.reason or "Upstream request failed",
                f"proxy_fetch from {url} was not successful",
            )

        content_type = response.headers.get("content-type", "")
        details = f"Content type: {content_type}"

        if "application/json" in content_type:
            body = response.json()
            if not isinstance(body, dict):
                body = {"json": body}
            return success_envelope(
                body,
                response.reason or "OK",
                details,
                status=response.status_code,
            )

        if content_type.startswith("text/plain"):
            return success_envelope(
                {"text": response.text},
                response.reason or "OK",
                details,
                status=response.status_code,
            )

        return error_envelope(415, UNSUPPORTED_CONTENT_TYPE_MESSAGE, details)

    except (requests.RequestException, ValueError) as exc:
        logger.warning("Proxy fetch failed: %s", type(exc).__name__)
        return error_envelope(
            500,
            str(exc) or type(exc).__name__,
            "Unexpected error in proxy_fetch",
            name=type(exc).__name__,
        )
