from sqlalchemy import select

from erp_api.core.errors import ConflictError
from erp_api.db.models import ErrorLog
from erp_api.services.error_reporter import MAX_STACK_LENGTH, ErrorReporter, normalize_error


async def _records(session_factory):
    async with session_factory() as session:
        return list((await session.execute(select(ErrorLog).order_by(ErrorLog.id))).scalars())


async def test_app_error_is_recorded(session_factory):
    reporter = ErrorReporter(session_factory)

    await reporter.report(ConflictError("Product SKU already exists", context="PRODUCT:create"), tenant_id=7)

    [record] = await _records(session_factory)
    assert record.message == "Product SKU already exists"
    assert record.kind == "conflict"
    assert record.context == "PRODUCT:create"
    assert record.tenant_id == 7
    assert record.stack is None
    assert record.created_at is not None


async def test_explicit_context_wins(session_factory):
    await ErrorReporter(session_factory).report(ConflictError("x", context="inner"), context="GET /api/v1/x")
    [record] = await _records(session_factory)
    assert record.context == "GET /api/v1/x"


async def test_raised_exception_keeps_its_stack(session_factory):
    try:
        raise RuntimeError("boom")
    except RuntimeError as exc:
        await ErrorReporter(session_factory).report(exc)

    [record] = await _records(session_factory)
    assert record.kind == "RuntimeError"
    assert record.message == "boom"
    assert record.tenant_id is None
    assert "RuntimeError: boom" in record.stack


def test_stack_is_truncated():
    long_message = "x" * (MAX_STACK_LENGTH + 1000)
    try:
        raise ValueError(long_message)
    except ValueError as exc:
        record = normalize_error(exc, None)

    assert len(record["stack"]) == MAX_STACK_LENGTH
    assert record["message"] == long_message


def test_short_stack_is_kept_whole():
    try:
        raise ValueError("short")
    except ValueError as exc:
        record = normalize_error(exc, None)

    assert record["stack"].endswith("ValueError: short\n")


def test_non_exception_values_are_normalized():
    record = normalize_error({"code": 42}, "WORKER")
    assert record["kind"] == "unknown"
    assert record["message"] == "{'code': 42}"
    assert record["stack"] is None


async def test_store_failure_never_raises(caplog):
    def broken_factory():
        raise RuntimeError("database is gone")

    await ErrorReporter(broken_factory).report(RuntimeError("original"))

    assert "Failed to persist error log record" in caplog.text
