"""Response helpers shared by routers and exception handlers."""

from uuid import uuid4

from fastapi import Request, status
from fastapi.responses import JSONResponse, RedirectResponse

from inventory.errors import ValidationError


def correlation_id_for(request: Request) -> str:
    """Correlation ID from the middleware, or a fresh one."""
    return getattr(request.state, "correlation_id", None) or str(uuid4())


def error_response(request: Request, status_code: int, error: str, detail: str) -> JSONResponse:
    """{error, detail, correlation_id} body used for every failure."""
    correlation_id = correlation_id_for(request)
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "detail": detail,
            "correlation_id": correlation_id,
        },
        headers={"X-Correlation-Id": correlation_id},
    )


def see_other(location: str) -> RedirectResponse:
    """303 redirect, so the browser follows with a GET."""
    return RedirectResponse(url=location, status_code=status.HTTP_303_SEE_OTHER)


def raise_failure(controller) -> None:
    """Re-raise the error behind a failed mutation for the exception handlers."""
    if controller.failure is not None:
        raise controller.failure
    raise ValidationError("form", controller.error or "The request could not be completed")
