import json
import math

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse, Response

from bookcatalog.errors import (
    AccessDeniedError,
    AuthenticationError,
    GatewayTimeoutError,
    InternalInvariantViolation,
    NotFoundError,
    RateLimitedError,
    UpstreamClientError,
    UpstreamServerError,
    UpstreamUnreachableError,
    ValidationError,
)

logger = structlog.get_logger(__name__)


def create_json_error_response(
    status_code: int, message: str, error_type: str | None = None, headers: dict[str, str] | None = None
) -> JSONResponse:
    """Create JSON error response with optional type for machine parsing."""
    content = {"message": message}
    if error_type:
        content["type"] = error_type
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    headers = None
    if isinstance(exc, AuthenticationError):
        status_code = 401
        error_type = "authentication_error"
    elif isinstance(exc, AccessDeniedError):
        status_code = 403
        error_type = "access_denied"
    elif isinstance(exc, NotFoundError):
        status_code = 404
        error_type = "not_found"
    elif isinstance(exc, ValidationError):
        status_code = 400
        error_type = "validation_error"
    elif isinstance(exc, RateLimitedError):
        status_code = 429
        error_type = "rate_limited"
        headers = {"Retry-After": str(max(1, math.ceil(exc.retry_after)))}
    else:
        # Default for any other UserError subclass
        status_code = 400
        error_type = "bad_request"

    return create_json_error_response(status_code=status_code, message=str(exc), error_type=error_type, headers=headers)


def upstream_message(exc: UpstreamClientError) -> str:
    """Message of a downstream error body, falling back to the status line."""
    try:
        data = json.loads(exc.body)
    except ValueError:
        return str(exc)
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return data["message"]
    return str(exc)


async def gateway_error_handler(request: Request, exc: Exception) -> Response:
    """Handle classified failures of the downstream call."""
    if isinstance(exc, GatewayTimeoutError):
        return create_json_error_response(504, str(exc), "upstream_timeout")
    if isinstance(exc, UpstreamUnreachableError):
        return create_json_error_response(502, str(exc), "upstream_unreachable")
    if isinstance(exc, UpstreamClientError):
        return create_json_error_response(exc.status_code, upstream_message(exc), "upstream_client_error")
    if isinstance(exc, UpstreamServerError):
        return create_json_error_response(502, str(exc), "upstream_error")
    return await general_exception_handler(request, exc)


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    if isinstance(exc, InternalInvariantViolation):
        logger.exception("internal_invariant_violation", error=str(exc))
    else:
        logger.exception("unexpected_error", error=str(exc))
    return create_json_error_response(
        status_code=500, message="An unexpected error occurred.", error_type="internal_server_error"
    )
