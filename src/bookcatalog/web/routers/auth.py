from datetime import datetime

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from bookcatalog.core.modules.user.models import UserView
from bookcatalog.web.deps import SESSION_KEY, AppDep, SessionIdDep
from bookcatalog.web.openapi import ErrorResponse

router = APIRouter(tags=["auth"])


class CredentialsRequest(BaseModel):
    """Username and password."""

    username: str = Field(..., min_length=1, max_length=32, description="Username")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class LoginResponse(BaseModel):
    """Authentication response."""

    session_id: str = Field(..., description="Session id to send as a Bearer token on subsequent requests")
    expires_at: datetime = Field(..., description="When the session's token expires")


@router.post(
    "/auth/register",
    summary="Register user",
    description="Create a new user account. Usernames are unique ignoring case.",
    operation_id="register",
    status_code=201,
    responses={
        201: {"description": "User created successfully"},
        400: {"model": ErrorResponse, "description": "Invalid or duplicate username, or invalid password"},
    },
)
async def register(request: CredentialsRequest, app: AppDep) -> UserView:
    return await app.register(request.username.strip(), request.password)


@router.post(
    "/auth/login",
    summary="Authenticate user",
    description="Authenticate with username and password to start a session.",
    operation_id="login",
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
async def login(login_data: CredentialsRequest, app: AppDep, request: Request) -> LoginResponse:
    """Authenticate user and create session."""
    session = await app.login(login_data.username.strip(), login_data.password)

    # Cookie-carried session for browser-based clients
    request.session[SESSION_KEY] = session.session_id

    return LoginResponse(session_id=session.session_id, expires_at=session.token.expires_at)


@router.post(
    "/auth/logout",
    summary="End session",
    description="Invalidate the current session. Logging out twice is not an error.",
    operation_id="logout",
    status_code=204,
    responses={
        204: {"description": "Successfully logged out"},
        401: {"model": ErrorResponse, "description": "No session supplied"},
    },
)
async def logout(app: AppDep, session_id: SessionIdDep, request: Request) -> None:
    await app.logout(session_id)
    request.session.pop(SESSION_KEY, None)


@router.get(
    "/auth/me",
    summary="Get current user",
    description="Get the user the current session resolves to.",
    operation_id="getCurrentUser",
    responses={
        200: {"description": "Current user"},
        401: {"model": ErrorResponse, "description": "Not authenticated or session expired"},
    },
)
async def get_me(app: AppDep, session_id: SessionIdDep) -> UserView:
    return await app.get_current_user(session_id)
