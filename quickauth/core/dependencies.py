"""
FastAPI dependency injection for quickauth.
"""

from typing import Optional
from fastapi import Depends, HTTPException, Request
from quickauth.api.middleware import authenticate_request, extract_bearer_token
from quickauth.core.engine import AuthEngine
from quickauth.core.errors import NotAuthenticatedError
from quickauth.models.schemas import User


def get_auth_engine(request: Request) -> AuthEngine:
    """Get the engine installed on the application."""
    engine = getattr(request.app.state, "auth_engine", None)
    if engine is None:
        raise HTTPException(
            status_code=500,
            detail="Authentication engine not initialized"
        )
    return engine


async def get_current_user(
    request: Request,
    engine: AuthEngine = Depends(get_auth_engine)
) -> User:
    """
    Get the current authenticated user.

    Raises:
        NotAuthenticatedError: If there is no valid bearer token
    """
    user = getattr(request.state, "user", None)
    if user is not None:
        return user

    if extract_bearer_token(request) is None:
        raise NotAuthenticatedError("Authentication required")

    try:
        result = await authenticate_request(engine, request)
    except Exception as e:
        raise NotAuthenticatedError("Authentication failed") from e

    if not result.success or result.user is None:
        raise NotAuthenticatedError(result.error or "Invalid token")

    request.state.user = result.user
    return result.user


async def get_optional_user(
    request: Request,
    engine: AuthEngine = Depends(get_auth_engine)
) -> Optional[User]:
    """Get the current user if a valid bearer token is present."""
    try:
        return await get_current_user(request, engine)
    except NotAuthenticatedError:
        return None
