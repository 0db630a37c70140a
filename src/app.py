"""FastAPI application factory for the PortzApp marketplace API.

Every error leaves the API in the same envelope:
``{"error": {"code", "message", "details", "requestId"}}``.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from src.api.v1 import v1_router
from src.config import settings
from src.database.engine import engine
from src.exceptions import AppException
from src.middleware.request_id import RequestIdLogFilter, RequestIdMiddleware
from src.modules.invitation.router import limiter

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s"


def configure_logging() -> None:
    """Root logging from settings.log_level, with request IDs on every line."""
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestIdLogFilter())
    logging.basicConfig(level=settings.log_level.upper(), handlers=[handler], force=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await engine.dispose()


def _envelope(request: Request, status_code: int, code: str, message: str, details=None) -> JSONResponse:
    body = {
        "code": code,
        "message": message,
        "details": details or [],
        "requestId": getattr(request.state, "request_id", "unknown"),
    }
    return JSONResponse(status_code=status_code, content={"error": body})


async def handle_domain_error(request: Request, exc: AppException) -> JSONResponse:
    return _envelope(request, exc.status_code, exc.code, exc.message, exc.details)


async def handle_invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"field": ".".join(str(part) for part in err.get("loc", [])), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return _envelope(request, 422, "VALIDATION_ERROR", "Validation failed", details)


async def handle_rate_limited(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return _envelope(request, 429, "RATE_LIMITED", str(exc.detail))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _envelope(request, 500, "INTERNAL_ERROR", "An unexpected error occurred.")


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    configure_logging()

    application = FastAPI(
        title="PortzApp API",
        version="0.1.0",
        lifespan=lifespan,
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
    )
    # slowapi reads the limiter behind the invitation endpoints from app state
    application.state.limiter = limiter

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Added last so it wraps CORS and stamps every response
    application.add_middleware(RequestIdMiddleware)

    application.include_router(v1_router)

    application.add_exception_handler(AppException, handle_domain_error)
    application.add_exception_handler(RequestValidationError, handle_invalid_request)
    application.add_exception_handler(RateLimitExceeded, handle_rate_limited)
    application.add_exception_handler(Exception, handle_unexpected_error)

    @application.get("/health")
    async def health_check() -> dict:
        return {"status": "ok"}

    return application


app = create_app()
