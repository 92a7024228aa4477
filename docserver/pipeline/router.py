"""Request routing logic."""

import logging

from docserver.bootstrap.config import ServerConfig
from docserver.domain.correlation_id import get_logger
from docserver.domain.errors import ForbiddenPath
from docserver.domain.http_types import SUPPORTED_METHODS, HttpRequest, HttpResponse
from docserver.domain.response_builders import (
    forbidden_response,
    internal_error_response,
    not_implemented_response,
)
from docserver.domain.sandbox import resolve_target
from docserver.handlers.echo_handlers import (
    PARAMS_INFO_PAGE,
    handle_params_info,
    handle_trace,
)
from docserver.handlers.file_handler import apply_default_page, file_response

ROUTER_LOGGER = get_logger("pipeline.router")


def _route(request: HttpRequest, config: ServerConfig) -> HttpResponse:
    if request.method not in SUPPORTED_METHODS:
        ROUTER_LOGGER.info(
            "Unsupported method",
            extra={"event": "method_not_implemented", "method": request.method},
        )
        return not_implemented_response()

    if request.method == "TRACE":
        return handle_trace(request)

    try:
        target = resolve_target(config.document_root, request.path)
        if target.name == PARAMS_INFO_PAGE and request.method in {"GET", "POST"}:
            return handle_params_info(request)
        target = apply_default_page(target, request, config)
    except ForbiddenPath:
        ROUTER_LOGGER.warning(
            "Path escapes document root",
            extra={"event": "forbidden_path", "route": request.path},
        )
        return forbidden_response()

    if ROUTER_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ROUTER_LOGGER.debug(
            "Route matched",
            extra={"event": "route_matched", "route": request.path},
        )
    return file_response(request, target)


def route_request(request: HttpRequest, config: ServerConfig) -> HttpResponse:
    """Pick the action for a parsed request; any failure becomes a 500."""
    try:
        return _route(request, config)
    except Exception as error:  # pylint: disable=broad-except
        ROUTER_LOGGER.error(
            "Request handling failed",
            extra={
                "event": "route_error",
                "route": request.path,
                "method": request.method,
                "error_type": type(error).__name__,
            },
            exc_info=True,
        )
        return internal_error_response()
