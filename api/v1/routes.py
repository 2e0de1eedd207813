"""
API routes for the OAEP gateway v1.
Every route accepts all verbs and lets the gateway decide between preflight,
dispatch and 405.
"""

import logging

from flask import Blueprint, Response, jsonify, request

from api.v1.envelope import error_envelope, success_envelope
from api.v1.gateway import (
    CORS_HEADERS,
    GatewayRequest,
    GatewayResponse,
    decrypt_operation,
    encrypt_operation,
    handle_request,
    text_handler,
)
from api.v1.proxy import proxy_fetch
from api.v1.validation import require_query_param, validate_http_url
from config import get_config
from utils.crypto.crypto_manager import KeyNotConfiguredError, get_crypto_manager

logger = logging.getLogger('api.v1.routes')

# OPTIONS is listed explicitly so Flask does not answer preflights itself.
ROUTE_METHODS = ['GET', 'OPTIONS', 'POST', 'PUT', 'PATCH', 'DELETE']

DECRYPT_USAGE = "?text=<urlencoded-base64-ciphertext>"
ENCRYPT_USAGE = "?plain=<text>"
COMBINED_USAGE = "?plain=<text> or ?text=<urlencoded-base64-ciphertext>"
PROXY_USAGE = "?url=https://www.example.com"


def log_info(message):
    """Log info only in non-production environments"""
    if not get_config().is_production:
        logger.info(message)


def log_warning(message):
    """Log warnings only in non-production environments"""
    if not get_config().is_production:
        logger.warning(message)


def log_error(message, exc_info=False):
    """Log errors, hiding stack traces in production"""
    logger.error(message, exc_info=exc_info and not get_config().is_production)


def to_flask_response(result: GatewayResponse) -> Response:
    """Convert a gateway response into a Flask response."""
    if result.is_preflight:
        response = Response(status=result.status)
        response.headers.pop('Content-Type', None)
    else:
        response = jsonify(result.body)
        response.status_code = result.status
    for name, value in result.headers.items():
        response.headers[name] = value
    return response


def _gateway_request() -> GatewayRequest:
    return GatewayRequest(
        method=request.method,
        query=request.args.to_dict(),
        headers=dict(request.headers),
        path=request.path,
    )


def _serve(on_get) -> Response:
    log_info(f"API request: {request.method.upper()} {request.path}")
    result = handle_request(_gateway_request(), on_get)
    if not result.is_preflight and result.status >= 500:
        log_warning(f"Responding {result.status} to {request.method.upper()} {request.path}")
    return to_flask_response(result)


def _encrypt_text(plaintext: str) -> str:
    return get_crypto_manager().encrypt_text(plaintext)


def _decrypt_text(ciphertext_text: str) -> str:
    return get_crypto_manager().decrypt_text(ciphertext_text)


_decrypt_get = text_handler([decrypt_operation(_decrypt_text)], DECRYPT_USAGE)
_encrypt_get = text_handler([encrypt_operation(_encrypt_text)], ENCRYPT_USAGE)
_combined_get = text_handler(
    [encrypt_operation(_encrypt_text), decrypt_operation(_decrypt_text)],
    COMBINED_USAGE,
)


def _public_key_get(_request: GatewayRequest):
    public_key = get_crypto_manager().public_key_b64
    if not public_key:
        return error_envelope(
            500,
            "Public key is not configured",
            "Set PUBLIC_KEY to a base64-encoded SPKI key",
            name=KeyNotConfiguredError.__name__,
        )
    return success_envelope(
        {
            "PUBLIC_KEY": public_key,
            "message": "Base64-encoded RSA-OAEP key",
        },
        "Public key returned",
        "response.data.PUBLIC_KEY accessible",
    )


def _proxy_get(gateway_request: GatewayRequest):
    _, url = require_query_param(gateway_request.query, ["url"], PROXY_USAGE)
    url = validate_http_url(url)
    return proxy_fetch(url, timeout=get_config().get('api.proxy_timeout', 10.0))


def _health_get(_request: GatewayRequest):
    return success_envelope(
        {
            "status": "ok",
            "version": "v1",
            "service": get_config().get('api.service_name') or 'oaep-gateway',
        },
        "Service healthy",
    )


# Create a Blueprint for v1 API
v1_bp = Blueprint('v1', __name__, url_prefix='/api/v1')


@v1_bp.route('/decrypt', methods=ROUTE_METHODS)
def decrypt_text():
    """Decrypt URL-encoded base64 ciphertext from ``?text=``."""
    return _serve(_decrypt_get)


@v1_bp.route('/encrypt', methods=ROUTE_METHODS)
def encrypt_text():
    """Encrypt ``?plain=`` and return URL-encoded base64 ciphertext."""
    return _serve(_encrypt_get)


@v1_bp.route('/rsa-oaep', methods=ROUTE_METHODS)
def rsa_oaep():
    """Encrypt ``?plain=`` when given, otherwise decrypt ``?text=``."""
    return _serve(_combined_get)


@v1_bp.route('/public-key', methods=ROUTE_METHODS)
def get_public_key():
    """Expose the configured public key so clients can encrypt locally."""
    return _serve(_public_key_get)


@v1_bp.route('/proxy', methods=ROUTE_METHODS)
def proxy():
    return _serve(_proxy_get)


@v1_bp.route('/health', methods=ROUTE_METHODS)
def health_check():
    return _serve(_health_get)


@v1_bp.errorhandler(Exception)
def _handle_unexpected_error(exc):
    log_error(f"Unexpected {type(exc).__name__} in v1 endpoint", exc_info=True)
    return to_flask_response(GatewayResponse(
        status=500,
        headers=dict(CORS_HEADERS),
        body=error_envelope(500, "Internal server error", name=type(exc).__name__),
    ))


# --- Short alias routes ---

# Mirror the /api/v1 endpoints at /api so clients written against the
# un-versioned paths keep working.
legacy_bp = Blueprint('legacy', __name__, url_prefix='/api')


@legacy_bp.route('/decrypt', methods=ROUTE_METHODS)
def decrypt_text_legacy():
    return decrypt_text()


@legacy_bp.route('/encrypt', methods=ROUTE_METHODS)
def encrypt_text_legacy():
    return encrypt_text()


@legacy_bp.route('/rsa-oaep', methods=ROUTE_METHODS)
def rsa_oaep_legacy():
    return rsa_oaep()


@legacy_bp.route('/public-key', methods=ROUTE_METHODS)
def get_public_key_legacy():
    return get_public_key()


@legacy_bp.route('/proxy', methods=ROUTE_METHODS)
def proxy_legacy():
    return proxy()


@legacy_bp.route('/health', methods=ROUTE_METHODS)
def health_check_legacy():
    return health_check()


legacy_bp.register_error_handler(Exception, _handle_unexpected_error)
