from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional
from uuid import uuid4

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from erp_api.core.errors import AppError, AuthenticationError, InternalError, ValidationError
from erp_api.core.logging import close_request_context, configure_logging, open_request_context
from erp_api.core.settings import AppSettings, get_app_settings
from erp_api.db.run_migrations import main as run_alembic
from erp_api.db.seed import seed_all
from erp_api.db.session import dispose_engine, get_session_maker, init_engine
from erp_api.schemas.common import ApiResponse, ErrorResponse, ok
from erp_api.services.error_reporter import ErrorReporter
from erp_api.services.token_authority import TokenAuthority

# Routers
from erp_api.api.routes.auth import router as auth_router
from erp_api.api.routes.geography import router as geography_router
from erp_api.api.routes.master_data import router as masterdata_router
from erp_api.api.routes.procurement import router as procurement_router
from erp_api.api.routes.production import router as production_router

settings = get_app_settings()

# Configure structured logging once at import
configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

NESTED_PAYLOAD_FIELD = "items"

openapi_tags = [
    {"name": "Health", "description": "Liveness probe."},
    {"name": "Auth", "description": "Session login, logout and introspection."},
    {"name": "Geography", "description": "Public country/state/city reference data."},
    {"name": "Master Data", "description": "Suppliers and products."},
    {"name": "Procurement", "description": "Purchase orders with nested lines."},
    {"name": "Production", "description": "Recipes with nested inputs."},
]


async def _startup(app_settings: AppSettings) -> None:
    """
    Run the optional startup steps: migrations, seeding and the expired-token sweep.

    Each step logs and continues on failure; the service can still answer
    health probes while the database catches up.
    """
    if app_settings.RUN_MIGRATIONS_ON_STARTUP:
        try:
            logger.info("Running Alembic migrations: upgrade head")
            # env.py drives its own event loop
            await asyncio.to_thread(run_alembic, ["upgrade", "head"])
            logger.info("Migrations completed.")
        except Exception as exc:
            logger.exception("Migration step failed: %s", exc)

    if app_settings.AUTO_SEED:
        try:
            await seed_all(app_settings)
        except Exception as exc:
            logger.exception("Seeding step failed: %s", exc)

    if app_settings.SWEEP_TOKENS_ON_STARTUP:
        try:
            async with get_session_maker()() as session:
                await TokenAuthority(session, app_settings).sweep_expired()
        except Exception as exc:
            logger.exception("Token sweep failed: %s", exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the shared connection pool at startup and drain it at shutdown."""
    init_engine()
    app.state.error_reporter = ErrorReporter(get_session_maker())
    await _startup(settings)
    yield
    await dispose_engine()


app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    openapi_tags=openapi_tags,
    lifespan=lifespan,
)

# CORS - avoid wildcard with credentials
cors_allow_credentials = settings.CORS_ALLOW_CREDENTIALS
if settings.CORS_ORIGINS == ["*"] and cors_allow_credentials:
    logger.warning("CORS_ALLOW_CREDENTIALS=True with '*' origins is not permitted; disabling credentials.")
    cors_allow_credentials = False

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=cors_allow_credentials,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)


def _error_response(status_code: int, message: str) -> JSONResponse:
    """Build the standard {error, message} envelope."""
    return JSONResponse(status_code=status_code, content=ErrorResponse(message=message).model_dump())


def _request_tenant(request: Request) -> Optional[int]:
    return getattr(request.state, "tenant_id", None)


async def _report(request: Request, error: BaseException, context: Optional[str]) -> None:
    reporter: Optional[ErrorReporter] = getattr(request.app.state, "error_reporter", None)
    if reporter is not None:
        await reporter.report(error, context or f"{request.method} {request.url.path}", _request_tenant(request))


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """
    Enrich request context with correlation_id for logging and error responses.
    Adds 'X-Correlation-ID' to every response, including unhandled failures.
    """
    corr = request.headers.get("X-Correlation-ID") or request.headers.get("X-Request-ID") or str(uuid4())
    context = open_request_context(corr)
    request.state.correlation_id = corr

    logger.info("Incoming request %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
    except Exception as exc:
        response = await unhandled_exception_handler(request, exc)
    finally:
        close_request_context(context)

    response.headers["X-Correlation-ID"] = corr
    return response


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """
    Terminal handler for application errors.

    Validation failures are answered directly; every other kind is reported
    before the envelope is returned. A revoked session also clears its cookie.
    """
    if not isinstance(exc, ValidationError):
        await _report(request, exc, exc.context)
    else:
        logger.info("Rejected request: %s", exc.message)

    response = _error_response(exc.status_code, exc.message)
    if isinstance(exc, AuthenticationError) and exc.clear_cookie:
        response.delete_cookie(settings.session_cookie_name, **settings.session_cookie_options)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Map body/path/query schema failures to 400 with a stable message.
    """
    locations = [tuple(err.get("loc", ())) for err in exc.errors()]
    if any(len(loc) > 1 and loc[0] == "body" and loc[1] == NESTED_PAYLOAD_FIELD for loc in locations):
        message = "Invalid items payload"
    elif any(loc and loc[0] == "path" for loc in locations):
        message = "Invalid Id parameter"
    else:
        message = "Request validation failed"
    logger.info("Rejected request: %s %s", message, exc.errors())
    return _error_response(400, message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    Global handler for HTTPException (unknown routes, wrong methods) in the error envelope.
    """
    detail = exc.detail if isinstance(exc.detail, str) else "HTTP Error"
    return _error_response(exc.status_code, detail)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Catch-all: report the failure and answer 500 without leaking internals.
    """
    logger.exception("Unhandled error processing request")
    await _report(request, exc, None)
    return _error_response(InternalError.status_code, InternalError().message)


# Build API v1 router and include sub-routers
api_v1 = APIRouter(prefix="/api/v1")


# PUBLIC_INTERFACE
@api_v1.get(
    "/health",
    response_model=ApiResponse[None],
    summary="Health Check",
    tags=["Health"],
)
def health_check() -> ApiResponse[None]:
    """
    Basic liveness health check endpoint.

    Returns:
        ApiResponse: the success envelope with message "Healthy" and no data.
    """
    return ok(None, "Healthy")


# Include all routers under /api/v1
api_v1.include_router(auth_router)
api_v1.include_router(geography_router)
api_v1.include_router(masterdata_router)
api_v1.include_router(procurement_router)
api_v1.include_router(production_router)

# Attach api_v1 to app
app.include_router(api_v1)
