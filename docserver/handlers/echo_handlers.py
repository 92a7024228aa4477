"""Handlers that answer from the request itself without touching disk."""

import logging

from docserver.domain.correlation_id import get_logger
from docserver.domain.http_types import HttpRequest, HttpResponse
from docserver.domain.response_builders import (
    content_response,
    render_parameters_page,
    render_trace_message,
)

ECHO_LOGGER = get_logger("handlers.echo")

PARAMS_INFO_PAGE = "params_info.html"


def handle_trace(request: HttpRequest) -> HttpResponse:
    """Echo the request line and headers back as message/http."""
    if ECHO_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ECHO_LOGGER.debug(
            "Trace request echoed",
            extra={"event": "trace_echo", "route": request.target},
        )
    payload = render_trace_message(request).encode("iso-8859-1", errors="replace")
    return content_response(payload, "message/http", request)


def handle_params_info(request: HttpRequest) -> HttpResponse:
    """List the submitted query and body parameters as an HTML page."""
    parameters = request.parameters
    ECHO_LOGGER.info(
        "Parameters page rendered",
        extra={"event": "params_info", "method": request.method},
    )
    payload = render_parameters_page(parameters).encode("utf-8")
    return content_response(payload, "text/html", request)
