"""
Viah API service -- duplicate detection and merging for vendors and guests.

Entrypoint: uvicorn services.api.main:app --host 0.0.0.0 --port 8000
"""

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from sqlalchemy.ext.asyncio import async_sessionmaker
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from services.api.config import settings
from services.api.dedup.errors import DedupError
from services.api.middleware.cors import setup_cors
from services.api.middleware.sentry import setup_sentry
from services.api.routers import admin_duplicates, guest_duplicates, health, household_duplicates

logger = logging.getLogger(__name__)

_HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    503: "SERVICE_UNAVAILABLE",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    setup_sentry()
    app.state.settings = settings

    from services.api.db.engine import create_engine as create_sa_engine

    sa_engine = None
    if settings.database_url:
        try:
            sa_engine = create_sa_engine()
            app.state.db_engine = sa_engine
            # expire_on_commit=False: NullPool returns connection after commit,
            # lazy load on closed connection would fail without this.
            app.state.db_session_factory = async_sessionmaker(
                sa_engine, expire_on_commit=False
            )
        except Exception as e:
            logger.warning("SA engine failed to init: %s", e)

    yield

    if sa_engine:
        await sa_engine.dispose()


app = FastAPI(
    title="Viah API",
    version=settings.app_version,
    docs_url="/docs" if settings.environment == "development" else None,
    redoc_url=None,
    lifespan=lifespan,
)
app.state.settings = settings

app.include_router(health.router)
app.include_router(admin_duplicates.router)
app.include_router(guest_duplicates.router)
app.include_router(household_duplicates.router)

# CORS (needs to be outermost to handle preflight)
setup_cors(app)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next) -> Response:
    request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# -- Exception Handlers --

def _error_response(request: Request, status_code: int, error: dict) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "requestId": getattr(request.state, "request_id", str(uuid.uuid4())),
        },
    )


@app.exception_handler(DedupError)
async def dedup_error_handler(request: Request, exc: DedupError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s: %s %s", exc.code, exc.message, exc.details)
    return _error_response(request, exc.status_code, exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(
        request,
        exc.status_code,
        {
            "code": _HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
            "message": str(exc.detail) if exc.detail else "Request failed.",
        },
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error_response(
        request,
        422,
        {
            "code": "VALIDATION_ERROR",
            "message": "Validation error.",
            "details": {"errors": [
                {"loc": list(e.get("loc", ())), "msg": e.get("msg", "")}
                for e in exc.errors()
            ]},
        },
    )


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc) -> JSONResponse:
    return _error_response(
        request,
        500,
        {"code": "INTERNAL_ERROR", "message": "An unexpected error occurred."},
    )
