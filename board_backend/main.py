"""FastAPI application initialization."""

from contextlib import asynccontextmanager
from uuid import uuid4

from dotenv import load_dotenv

# Load environment variables before anything else
load_dotenv()

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from board_backend import database
from board_backend.api.auth import router as auth_router
from board_backend.api.dashboard import router as dashboard_router
from board_backend.api.middleware import CorrelationIdMiddleware
from board_backend.api.routes import router
from board_backend.api.users import router as users_router
from board_backend.config import get_settings
from board_backend.errors import BoardError, ErrorKind
from board_backend.services.logging_service import configure_logging, get_logger
from board_backend.services.visitor_service import await_pending_visits

ERROR_STATUS = {
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    settings = get_settings()
    configure_logging(settings.log_level)
    logger = get_logger("main")

    if settings.jwt_secret == "change-me-in-production":
        logger.warning("jwt_secret_default_in_use", note="Set JWT_SECRET in production")

    try:
        await database.init_database()
        await database.run_migrations()
        logger.info("database_initialized")
    except Exception as e:
        logger.warning(
            "database_initialization_failed",
            error=str(e),
            note="Continuing without database - auth and user endpoints will fail",
        )

    logger.info("application_started", log_level=settings.log_level)

    yield

    # Let in-flight visitor counter writes land before the pool closes
    await await_pending_visits(timeout=5.0)
    await database.close_database()

    logger.info("application_shutdown")


app = FastAPI(
    title="Board Community API",
    description="Accounts, JWT authentication with refresh token rotation, and visitor dashboard",
    version="0.1.0",
    lifespan=lifespan,
)


def _correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", None) or str(uuid4())


@app.exception_handler(BoardError)
async def board_error_handler(request: Request, exc: BoardError) -> JSONResponse:
    """Map domain errors to HTTP responses.

    Only the client-safe message leaves the service; details were logged
    where the error was raised.
    """
    correlation_id = _correlation_id(request)
    status_code = ERROR_STATUS.get(exc.kind, 500)

    structlog.get_logger().info(
        "request_failed",
        correlation_id=correlation_id,
        kind=exc.kind.value,
        status_code=status_code,
        path=request.url.path,
    )

    headers = {"X-Correlation-Id": correlation_id}
    if exc.kind is ErrorKind.UNAUTHORIZED:
        headers["WWW-Authenticate"] = "Bearer"

    return JSONResponse(
        status_code=status_code,
        content={
            "error": exc.kind.value,
            "message": exc.message,
            "correlation_id": correlation_id,
        },
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors with a 400 and the first failing field."""
    correlation_id = _correlation_id(request)
    logger = structlog.get_logger()

    errors = exc.errors()
    if errors:
        first_error = errors[0]
        field = ".".join(str(loc) for loc in first_error.get("loc", ["unknown"]))
        message = first_error.get("msg", "Validation failed")
        detail = f"Field '{field}': {message}"
    else:
        detail = "Request validation failed"

    logger.warning(
        "validation_error",
        correlation_id=correlation_id,
        detail=detail,
    )

    return JSONResponse(
        status_code=400,
        content={
            "error": "Validation error",
            "detail": detail,
            "correlation_id": correlation_id,
        },
        headers={"X-Correlation-Id": correlation_id},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Correlation ID middleware for request tracking and observability
app.add_middleware(CorrelationIdMiddleware)

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(dashboard_router)
app.include_router(router)
