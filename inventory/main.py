"""FastAPI application initialization."""

from contextlib import asynccontextmanager

from dotenv import load_dotenv

# Load environment variables before anything else
load_dotenv()

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from inventory.api.auth import router as auth_router
from inventory.api.equipments import router as equipments_router
from inventory.api.middleware import CorrelationIdMiddleware
from inventory.api.responses import correlation_id_for, error_response, see_other
from inventory.api.users import router as users_router
from inventory.api.views import router as views_router
from inventory.config import get_settings
from inventory.context import build_context
from inventory.errors import (
    AuthError,
    AuthErrorReason,
    InventoryError,
    NetworkError,
    NotFoundError,
    ValidationError,
)
from inventory.services.logging_service import configure_logging, get_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    settings = get_settings()
    configure_logging(settings.log_level)
    logger = get_logger("main")

    # A test may install its own context before startup
    if getattr(app.state, "context", None) is None:
        app.state.context = build_context(settings)

    logger.info(
        "application_started",
        data_source=settings.data_source,
        log_level=settings.log_level,
        authenticated=app.state.context.guard.is_authenticated,
    )

    yield

    # Shutdown
    await app.state.context.close()
    logger.info("application_shutdown")


app = FastAPI(
    title="Equipment Inventory Console",
    description="Role-gated equipment and user management with maintenance history",
    version="0.3.0",
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors with user-friendly messages.

    Returns 400 Bad Request naming the first offending field.
    """
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
        correlation_id=correlation_id_for(request),
        detail=detail,
    )
    return error_response(request, status.HTTP_400_BAD_REQUEST, "Validation error", detail)


_ERROR_STATUS = [
    (ValidationError, status.HTTP_400_BAD_REQUEST, "Validation error"),
    (NotFoundError, status.HTTP_404_NOT_FOUND, "Not found"),
    (NetworkError, status.HTTP_502_BAD_GATEWAY, "Backend unavailable"),
]


@app.exception_handler(InventoryError)
async def inventory_exception_handler(request: Request, exc: InventoryError) -> Response:
    """Map errors that escaped the controllers onto HTTP responses.

    An AuthError for a rejected token forces a logout and sends the
    browser to the login page. Any other error gets a JSON body with the
    correlation ID.
    """
    logger = structlog.get_logger()

    if isinstance(exc, AuthError):
        if exc.invalidates_session:
            request.app.state.context.guard.handle_session_invalidated(exc)
            return see_other("/login")
        status_code = (
            status.HTTP_502_BAD_GATEWAY
            if exc.reason == AuthErrorReason.NETWORK_FAILURE
            else status.HTTP_401_UNAUTHORIZED
        )
        logger.warning("authentication_failed", reason=exc.reason.value, detail=exc.message)
        return error_response(request, status_code, "Authentication failed", exc.message)

    for error_type, status_code, label in _ERROR_STATUS:
        if isinstance(exc, error_type):
            logger.warning(
                "request_failed",
                error_type=type(exc).__name__,
                status_code=status_code,
                detail=exc.message,
            )
            return error_response(request, status_code, label, exc.message)

    logger.error("unhandled_inventory_error", error_type=type(exc).__name__, detail=exc.message)
    return error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal error", exc.message)


# CORS middleware for browser clients
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Correlation ID middleware for request tracking and observability
app.add_middleware(CorrelationIdMiddleware)

# Include routes
app.include_router(views_router)
app.include_router(auth_router)
app.include_router(equipments_router)
app.include_router(users_router)
