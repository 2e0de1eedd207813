"""
Response envelope shared by every gateway endpoint.

Every JSON body has the same keys::

    {"ok": bool, "status": int, "data": ..., "info": ..., "error": ..., "timestamp": str}

``data`` and ``info`` are set only on success, ``error`` only on failure, and
``status`` always mirrors the HTTP status code.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


def utc_timestamp() -> str:
    """Return the current UTC time as ISO-8601 with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def success_envelope(
    data: Dict[str, Any],
    message: str,
    details: Optional[str] = None,
    status: int = 200,
) -> Dict[str, Any]:
    """Build the body of a successful response."""
    if not 200 <= status < 300:
        raise ValueError("success envelopes need a 2xx status")
    return {
        "ok": True,
        "status": status,
        "data": data,
        "info": {
            "code": status,
            "message": message,
            "details": details,
        },
        "error": None,
        "timestamp": utc_timestamp(),
    }


def error_envelope(
    status: int,
    message: str,
    details: Optional[str] = None,
    name: Optional[str] = None,
) -> Dict[str, Any]:
    """Build the body of a failed response; ``name`` is the error kind, if any."""
    if status < 400:
        raise ValueError("error envelopes need a 4xx or 5xx status")
    error: Dict[str, Any] = {
        "code": status,
        "message": message,
        "details": details,
    }
    if name is not None:
        error["name"] = name
    return {
        "ok": False,
        "status": status,
        "data": None,
        "info": None,
        "error": error,
        "timestamp": utc_timestamp(),
    }
