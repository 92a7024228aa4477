"""Static file handlers."""

import logging
import os
from http import HTTPStatus
from pathlib import Path

from docserver.bootstrap.config import ServerConfig
from docserver.domain.content_types import content_type_for
from docserver.domain.correlation_id import get_logger
from docserver.domain.http_types import HttpRequest, HttpResponse
from docserver.domain.response_builders import FileBody, not_found_response, status_line
from docserver.domain.sandbox import resolve_target

FILE_LOGGER = get_logger("handlers.file")


def apply_default_page(
    target: Path, request: HttpRequest, config: ServerConfig
) -> Path:
    """Substitute the default page when the target is a directory.

    The substituted path goes through the containment check again, so a
    default page symlinked outside the root is still refused.
    """
    if not target.is_dir():
        return target
    directory_path = request.path.rstrip("/")
    document = resolve_target(
        config.document_root, f"{directory_path}/{config.default_page}"
    )
    if FILE_LOGGER.logger.isEnabledFor(logging.DEBUG):
        FILE_LOGGER.debug(
            "Directory resolved to default page",
            extra={"event": "default_page", "path": document.as_posix()},
        )
    return document


def file_response(request: HttpRequest, resolved_path: Path) -> HttpResponse:
    """Serve a regular file, or headers only for HEAD."""
    if not resolved_path.is_file():
        FILE_LOGGER.info(
            "File not found",
            extra={
                "event": "file_not_found",
                "path": resolved_path.as_posix(),
                "method": request.method,
            },
        )
        return not_found_response()

    headers = {"Content-Type": content_type_for(resolved_path)}
    ok_line = status_line(HTTPStatus.OK)

    if request.method == "HEAD":
        return HttpResponse(
            ok_line,
            headers,
            content_length=resolved_path.stat().st_size,
            head_only=True,
        )

    # Opened before any response bytes go out so open errors become a 500.
    file_handle = open(resolved_path, "rb")  # pylint: disable=consider-using-with
    try:
        size = os.fstat(file_handle.fileno()).st_size
    except OSError:
        file_handle.close()
        raise
    FILE_LOGGER.info(
        "Serving file",
        extra={
            "event": "file_served",
            "path": resolved_path.as_posix(),
            "method": request.method,
            "chunked": request.use_chunked_response,
        },
    )
    return HttpResponse(
        ok_line,
        headers,
        body_iter=FileBody(file_handle),
        content_length=size,
        use_chunked=request.use_chunked_response,
    )
