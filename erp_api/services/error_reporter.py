from __future__ import annotations

import logging
import traceback
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from erp_api.core.errors import AppError, describe
from erp_api.db.models.logs import ErrorLog

logger = logging.getLogger(__name__)

MAX_STACK_LENGTH = 5000


def normalize_error(error: Any, context: Optional[str], tenant_id: Optional[int] = None) -> Dict[str, Any]:
    """Reduce any raised value to the fields of an error log record."""
    if isinstance(error, AppError):
        message, kind = error.message, error.kind
        context = context or error.context
    elif isinstance(error, BaseException):
        message, kind = str(error) or type(error).__name__, type(error).__name__
    else:
        message, kind = repr(error), "unknown"

    stack = None
    if isinstance(error, BaseException) and error.__traceback__ is not None:
        stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        stack = stack[:MAX_STACK_LENGTH]

    return {
        "message": message,
        "kind": kind,
        "context": context,
        "tenant_id": tenant_id,
        "stack": stack,
    }


# PUBLIC_INTERFACE
class ErrorReporter:
    """
    Persists an audit record for a failure.

    Writes through its own session so a rolled-back request transaction does
    not take the record with it. report() never raises.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def report(self, error: Any, context: Optional[str] = None, tenant_id: Optional[int] = None) -> None:
        record = normalize_error(error, context, tenant_id)
        logger.error("Reporting %s (context=%s)", describe(error), record["context"])
        try:
            async with self.session_factory() as session:
                session.add(ErrorLog(**record))
                await session.commit()
        except Exception:
            logger.exception("Failed to persist error log record")
