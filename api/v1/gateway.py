"""
Request lifecycle shared by every gateway endpoint.

The gateway works on a transport-neutral :class:`GatewayRequest` and returns a
:class:`GatewayResponse`; the Flask routes only translate to and from those.
Every request moves through the same states:

1. CORS headers are applied, whatever happens next.
2. ``OPTIONS`` is answered with 204 and no body.
3. ``GET`` is dispatched to the endpoint's handler, which returns an envelope.
4. Anything else gets 405 with an ``Allow`` header.

Exactly one response is produced per request and no exception escapes.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from api.v1.envelope import error_envelope, success_envelope
from api.v1.validation import ValidationError, require_query_param
from utils.crypto.codec import url_decode, url_encode

logger = logging.getLogger('api.v1.gateway')

ALLOWED_METHODS = "GET, OPTIONS"
ALLOWED_HEADERS = "Content-Type"
ALLOWED_ORIGIN = "*"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": ALLOWED_ORIGIN,
    "Access-Control-Allow-Methods": ALLOWED_METHODS,
    "Access-Control-Allow-Headers": ALLOWED_HEADERS,
}

TEXT_FAILURE_DETAILS = "Failed to process the provided text"


class MethodNotAllowedError(Exception):
    """Raised for any verb other than GET or OPTIONS."""
    def __init__(self, method: str):
        self.method = method
        super().__init__(f"{method} method not allowed")


@dataclass(frozen=True)
class GatewayRequest:
    method: str
    query: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    path: str = ""


@dataclass
class GatewayResponse:
    status: int
    headers: Dict[str, str]
    body: Optional[Dict[str, Any]] = None

    @property
    def is_preflight(self) -> bool:
        return self.body is None


GetHandler = Callable[[GatewayRequest], Dict[str, Any]]


def handle_request(request: GatewayRequest, on_get: GetHandler) -> GatewayResponse:
    """
    Run *request* through the CORS/dispatch state machine.

    Args:
        request: The incoming request
        on_get: Builds the envelope for a GET request; may raise
            :class:`ValidationError` for bad parameters

    Returns:
        The single response for this request
    """
    headers = dict(CORS_HEADERS)
    method = (request.method or "").upper()

    if method == "OPTIONS":
        return GatewayResponse(status=204, headers=headers)

    try:
        if method != "GET":
            raise MethodNotAllowedError(method)
        body = on_get(request)
    except MethodNotAllowedError as exc:
        headers["Allow"] = ALLOWED_METHODS
        body = error_envelope(405, "Method not allowed", str(exc))
    except ValidationError as exc:
        body = error_envelope(exc.code, exc.message, exc.details)
    except Exception as exc:
        logger.error("Unhandled %s while serving %s", type(exc).__name__, request.path or "request")
        body = error_envelope(
            500,
            str(exc) or "Internal server error",
            "Failed to process the request",
            name=type(exc).__name__,
        )

    return GatewayResponse(status=body["status"], headers=headers, body=body)


@dataclass(frozen=True)
class TextOperation:
    """One text transform an endpoint offers, selected by its query parameter."""

    parameter: str
    action: str
    transform: Callable[[str], str]
    encode_result: bool = False
    decode_input: bool = False

    def run(self, raw_value: str) -> str:
        value = url_decode(raw_value) if self.decode_input else raw_value
        result = self.transform(value)
        return url_encode(result) if self.encode_result else result


def text_handler(operations: Sequence[TextOperation], usage: str) -> GetHandler:
    """
    Build a GET handler running the first operation whose parameter is present.

    Failures of the transform itself (key import, encryption, decryption) are
    reported as a 500 envelope carrying the error's class name and message.
    """
    if not operations:
        raise ValueError("at least one operation is required")
    by_parameter = {operation.parameter: operation for operation in operations}
    names = [operation.parameter for operation in operations]

    def on_get(request: GatewayRequest) -> Dict[str, Any]:
        name, raw_value = require_query_param(request.query, names, usage)
        operation = by_parameter[name]
        try:
            result = operation.run(raw_value)
        except Exception as exc:
            logger.warning("Could not produce %s text: %s", operation.action, type(exc).__name__)
            return error_envelope(
                500,
                str(exc) or type(exc).__name__,
                TEXT_FAILURE_DETAILS,
                name=type(exc).__name__,
            )
        return success_envelope(
            {"text": result},
            f"Text successfully {operation.action}",
            f"{operation.action.capitalize()} text available at response.data.text",
        )

    return on_get


def encrypt_operation(transform: Callable[[str], str]) -> TextOperation:
    """Encrypt the ``plain`` parameter as received; the ciphertext is returned URL-encoded."""
    return TextOperation(parameter="plain", action="encrypted", transform=transform,
                         encode_result=True)


def decrypt_operation(transform: Callable[[str], str]) -> TextOperation:
    """Decrypt the URL-encoded base64 ``text`` parameter."""
    return TextOperation(parameter="text", action="decrypted", transform=transform,
                         decode_input=True)
