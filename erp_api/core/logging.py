"""
Request-aware logging.

Every record carries the correlation id and tenant of the request that
produced it. The middleware opens a request context; tenant resolution binds
the tenant once the credential is verified. Records emitted outside a
request show "-" for both.
"""
from __future__ import annotations

import logging
import sys
from contextvars import ContextVar, Token
from typing import Optional, Tuple, Union

correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
tenant_id_var: ContextVar[Optional[str]] = ContextVar("tenant_id", default=None)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | cid=%(correlation_id)s | tenant=%(tenant_id)s | %(message)s"

# Loggers that are too chatty at INFO for a request-per-line log.
_QUIET_LOGGERS = ("passlib", "aiosqlite", "asyncio")

RequestContext = Tuple[Token, Token]


class RequestContextFilter(logging.Filter):
    """Stamp correlation_id and tenant_id of the current request on each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get() or "-"
        record.tenant_id = tenant_id_var.get() or "-"
        return True


# PUBLIC_INTERFACE
def configure_logging(level: Union[int, str] = logging.INFO) -> None:
    """
    Route root logging to stdout with the request-aware format.

    Calling it again replaces the handler instead of stacking a second one.
    """
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestContextFilter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


# PUBLIC_INTERFACE
def open_request_context(correlation_id: str) -> RequestContext:
    """Bind a fresh request context; pass the result to close_request_context."""
    return correlation_id_var.set(correlation_id), tenant_id_var.set(None)


# PUBLIC_INTERFACE
def close_request_context(context: RequestContext) -> None:
    corr_token, tenant_token = context
    correlation_id_var.reset(corr_token)
    tenant_id_var.reset(tenant_token)


# PUBLIC_INTERFACE
def bind_tenant(tenant_id: Optional[int]) -> None:
    """Publish the resolved tenant id to the logging context of the current request."""
    tenant_id_var.set(str(tenant_id) if tenant_id is not None else None)
