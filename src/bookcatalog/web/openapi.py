from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field

# (method, path) pairs that require a session
PROTECTED_ENDPOINTS = {
    ("POST", "/api/v1/auth/logout"),
    ("GET", "/api/v1/auth/me"),
    ("PUT", "/api/v1/books/{isbn}/reviews"),
    ("DELETE", "/api/v1/books/{isbn}/reviews"),
    ("DELETE", "/api/v1/books/{isbn}/reviews/{username}"),
}


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="Book Catalog API",
            version="0.1.0",
            summary="Book catalog with per-user reviews",
            routes=app.routes,
        )

        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "BearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "description": "Session id returned by login (preferred)",
            },
            "SessionCookie": {
                "type": "apiKey",
                "in": "cookie",
                "name": "bookcatalog_session",
                "description": "Signed session cookie set by login",
            },
        }

        # Only review mutations and session endpoints require a session
        for path, path_item in openapi_schema["paths"].items():
            for method, operation in path_item.items():
                if (method.upper(), path) in PROTECTED_ENDPOINTS:
                    operation["security"] = [{"BearerAuth": []}, {"SessionCookie": []}]

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Invalid login. Check username and password", "type": "authentication_error"},
                {"message": "Book '42' not found", "type": "not_found"},
                {"message": "Rate limit exceeded, retry after 12.0 seconds", "type": "rate_limited"},
            ]
        }
    }
