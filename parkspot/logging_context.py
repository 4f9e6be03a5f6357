"""Request ID logging context for tracing one booking operation across modules.

Every public booking operation runs inside ``request_scope``, so the log
lines it emits from pricing, payments and the lot store share one
correlation ID. A scope opened by the caller (the console demo, a request
handler) is reused by nested operations instead of being replaced.

Usage:
    from parkspot.logging_context import get_request_logger, request_scope

    logger = get_request_logger(__name__)
    with request_scope() as request_id:
        logger.info("Creating booking")  # record.request_id == request_id
"""

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Optional

NO_REQUEST_ID = "NO_REQUEST_ID"

_request_id: ContextVar[str] = ContextVar("request_id", default=NO_REQUEST_ID)


def _new_request_id() -> str:
    return f"REQ-{uuid.uuid4().hex[:8]}"


def set_request_id(request_id: Optional[str] = None) -> str:
    """Set the correlation ID for the current context, generating one if omitted."""
    request_id = request_id or _new_request_id()
    _request_id.set(request_id)
    return request_id


def get_request_id() -> str:
    """Retrieve the current correlation ID."""
    return _request_id.get()


@contextmanager
def request_scope(request_id: Optional[str] = None) -> Iterator[str]:
    """Bind a correlation ID for the duration of one operation.

    Without an explicit ID, an ID already bound by an outer scope is kept;
    otherwise a fresh one is generated and unbound again on exit.
    """
    current = _request_id.get()
    if request_id is None and current != NO_REQUEST_ID:
        yield current
        return

    token = _request_id.set(request_id or _new_request_id())
    try:
        yield _request_id.get()
    finally:
        _request_id.reset(token)


class RequestIdFilter(logging.Filter):
    """Injects request_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get()  # type: ignore[attr-defined]
        return True


def get_request_logger(name: str) -> logging.Logger:
    """Return a logger with the RequestIdFilter attached.

    The filter adds ``request_id`` to each record so formatters can
    include ``%(request_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, RequestIdFilter) for f in logger.filters):
        logger.addFilter(RequestIdFilter())
    return logger


def install_request_id_filter(logger: Optional[logging.Logger] = None) -> None:
    """Attach a RequestIdFilter to every handler of ``logger`` (root by default).

    Handler-level filters also cover records propagated from loggers that
    were created with plain ``logging.getLogger``.
    """
    target = logger or logging.getLogger()
    for handler in target.handlers:
        if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
            handler.addFilter(RequestIdFilter())
