import logging
import time
import uuid
from typing import Callable

from fastapi import Request

from ptbuddy.settings import get_settings

HEALTH_CHECK_PATHS = frozenset({"/healthz", "/readyz"})


def configure_logging() -> logging.Logger:
    settings = get_settings()
    level = getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    # Statement echo stays off unless LOG_LEVEL=DEBUG.
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if level <= logging.DEBUG else logging.WARNING
    )
    return logging.getLogger("ptbuddy")


def _level_for(path: str, status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if path in HEALTH_CHECK_PATHS:
        return logging.DEBUG
    if status_code in (401, 403, 429):
        return logging.WARNING
    return logging.INFO


def request_logging_middleware(logger: logging.Logger) -> Callable:
    """Tag each request with an id, echo it in the response and log one access line."""
    request_id_header = get_settings().request_id_header

    async def middleware(request: Request, call_next):
        request_id = request.headers.get(request_id_header) or uuid.uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()
        response = await call_next(request)
        response.headers[request_id_header] = request_id
        logger.log(
            _level_for(request.url.path, response.status_code),
            "request_id=%s method=%s path=%s status=%s client=%s duration_ms=%.2f",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            request.client.host if request.client else "-",
            (time.perf_counter() - started) * 1000,
        )
        return response

    return middleware
