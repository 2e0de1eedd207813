"""OAEP gateway API package."""

from flask import request
from prometheus_client import CollectorRegistry
from prometheus_flask_exporter import PrometheusMetrics
from werkzeug.exceptions import MethodNotAllowed

from api.v1 import routes as v1_routes
from api.v1.gateway import GatewayRequest, handle_request


def _method_not_allowed(exc: MethodNotAllowed):
    """Answer verbs the router rejects with the same envelope as the gateway."""

    def _unreachable(_request):
        raise exc

    result = handle_request(
        GatewayRequest(method=request.method, query=request.args.to_dict(), path=request.path),
        _unreachable,
    )
    return v1_routes.to_flask_response(result)


def init_app(app, *, metrics_enabled: bool = True):
    """Initialize the API with the Flask app.

    Returns the :class:`PrometheusMetrics` instance, or ``None`` when metrics
    are disabled.
    """

    app.register_blueprint(v1_routes.v1_bp)
    app.register_blueprint(v1_routes.legacy_bp)
    app.register_error_handler(MethodNotAllowed, _method_not_allowed)

    if not metrics_enabled:
        return None

    # A registry per app keeps repeated app creation (tests, reloads) from
    # registering duplicate collectors.
    return PrometheusMetrics(app, registry=CollectorRegistry())
