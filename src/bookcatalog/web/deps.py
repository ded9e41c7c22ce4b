from typing import Annotated, cast

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from bookcatalog.app import App
from bookcatalog.core.modules.session.models import SessionId
from bookcatalog.errors import UnauthenticatedError

SESSION_KEY = "session_id"

# Security schemes
bearer_scheme = HTTPBearer(auto_error=False)


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_session_id(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
) -> SessionId:
    """Get the session id from the Authorization Bearer header or the session cookie."""

    # Check Bearer header first (preferred)
    if credentials and credentials.scheme == "Bearer":
        return SessionId(credentials.credentials)

    # Fallback to cookie
    session_id = request.session.get(SESSION_KEY)
    if session_id:
        return SessionId(session_id)

    raise UnauthenticatedError


async def get_client_id(request: Request) -> str:
    """Client identity used for rate limiting."""
    return request.client.host if request.client else "unknown"


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
SessionIdDep = Annotated[SessionId, Depends(get_session_id)]
ClientIdDep = Annotated[str, Depends(get_client_id)]
