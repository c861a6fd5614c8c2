"""
TenderAlert Pro API.

Every function endpoint lives under ``/api/v1/<function>`` and answers
``{"success": true, ...}`` or the error envelope produced by the handlers
registered here.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from tenderalert.api.router import api_router
from tenderalert.core.config import Settings, get_settings
from tenderalert.core.exceptions import AppException, ValidationException
from tenderalert.core.logging import get_logger, log_context, setup_logging
from tenderalert.db.session import close_db, get_engine
from tenderalert.schemas.common import ErrorResponse, HealthResponse

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Configure logging, fail fast on an unreachable database, dispose the pool on exit."""
    setup_logging()
    settings = get_settings()
    logger.info(
        "TenderAlert Pro starting",
        version=settings.app_version,
        environment=settings.environment,
    )

    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Database unreachable at startup", error=str(e))
        raise

    yield

    await close_db()
    logger.info("TenderAlert Pro stopped")


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        log = logger.error if exc.status_code >= 500 else logger.warning
        log("Request failed", error_code=exc.error_code, message=exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed JSON bodies get the same envelope as invalid action params."""
        field_errors: dict[str, list[str]] = {}
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"] if part != "body") or "body"
            field_errors.setdefault(field, []).append(error["msg"])
        return await app_exception_handler(request, ValidationException("Invalid request body", field_errors))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception", error=str(exc))
        body = ErrorResponse(
            error="An unexpected error occurred",
            code="INTERNAL_ERROR",
            details={"error": str(exc)} if settings.debug else {},
        )
        return JSONResponse(status_code=500, content=body.model_dump())


def create_application() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Kenyan government tender alerts, smart matching and bid insights",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["POST", "GET", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def bind_request_context(request: Request, call_next):
        with log_context(method=request.method, path=request.url.path):
            return await call_next(request)

    register_exception_handlers(app, settings)
    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        return HealthResponse(version=settings.app_version, environment=settings.environment)

    return app


app = create_application()
