"""
FastAPI application factory and main app configuration.
"""

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.errors import APIError, from_domain_error, from_service_error
from .api.routers import health, records, sessions
from .api.schemas.common import ErrorResponse
from .core.config import get_settings
from .core.exceptions import HealthFlowException
from .core.structured_logger import configure_logging
from .domain.errors import DomainError

logger = logging.getLogger("healthflow")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings = get_settings()
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.app_env}, debug: {settings.debug}")
    logger.info(f"Record store directory: {settings.store.path}")
    yield
    logger.info(f"Shutting down {settings.app_name}")


def _error_response(request: Request, exc: APIError) -> JSONResponse:
    req_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=exc.http_status,
        content=ErrorResponse(
            error=exc.code,
            message=exc.message,
            request_id=req_id or "",
            details=exc.details or {},
        ).model_dump(),
    )


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()
    configure_logging(settings.logging)

    app = FastAPI(
        title=settings.app_name,
        description="Dictation-driven prescription workflow for clinics",
        version=settings.app_version,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        max_age=600,
    )

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request.state.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        response = await call_next(request)
        response.headers["X-Request-ID"] = request.state.request_id
        return response

    app.include_router(health.router)
    app.include_router(sessions.router)
    app.include_router(records.router)

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        return _error_response(request, from_domain_error(exc))

    @app.exception_handler(HealthFlowException)
    async def service_error_handler(request: Request, exc: HealthFlowException):
        api_error = from_service_error(exc)
        logger.error(f"{type(exc).__name__}: {exc.message} | request_id={getattr(request.state, 'request_id', '')}")
        return _error_response(request, api_error)

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return _error_response(request, APIError("VALIDATION_ERROR", str(exc), 422, {}))

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        req_id = getattr(request.state, "request_id", None)
        logger.error(f"APIError: {exc.code} ({exc.http_status}) {exc.message} | request_id={req_id}")
        return _error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        error_details = exc.errors()
        logger.error(f"ValidationError on {request.method} {request.url.path}: {error_details}")

        error_messages = []
        for error in error_details:
            loc = " -> ".join(str(x) for x in error.get("loc", []))
            msg = error.get("msg", "Validation error")
            error_messages.append(f"{loc}: {msg}")

        return _error_response(
            request,
            APIError(
                "INVALID_INPUT",
                f"Input validation failed: {'; '.join(error_messages)}",
                422,
                {"errors": [{"loc": list(e.get("loc", [])), "msg": e.get("msg")} for e in error_details]},
            ),
        )

    @app.get("/", tags=["health"])
    async def root():
        """Root endpoint with API information."""
        return {
            "service": settings.app_name,
            "version": settings.app_version,
            "environment": settings.app_env,
            "status": "running",
            "docs": "/docs",
            "endpoints": {
                "health": "GET /health",
                "create_session": "POST /sessions",
                "submit_patient": "POST /sessions/{session_id}/patient",
                "extract": "POST /sessions/{session_id}/extract",
                "edit_prescription": "PATCH /sessions/{session_id}/prescription",
                "finalize": "POST /sessions/{session_id}/finalize",
                "send": "POST /sessions/{session_id}/send",
                "recent_records": "GET /records/recent",
                "get_record": "GET /records/{upid}",
                "summary": "POST /records/{upid}/summary",
                "delete_record": "DELETE /records/{upid}?confirm=true",
            },
        }

    return app


# Create the app instance
app = create_app()
