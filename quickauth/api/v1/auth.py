"""
Authentication API endpoints.
"""

from typing import Any, Dict, Optional
from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from quickauth.core.dependencies import get_auth_engine, get_optional_user
from quickauth.core.engine import AuthEngine
from quickauth.models.schemas import User

router = APIRouter(tags=["Authentication"])


@router.post("/register")
async def register(
    payload: Dict[str, Any] = Body(...),
    engine: AuthEngine = Depends(get_auth_engine)
):
    """
    Register a new user and return a token.
    """
    result = await engine.register(payload)
    return JSONResponse(
        status_code=201 if result.success else 400,
        content=result.to_response()
    )


@router.post("/login")
async def login(
    payload: Dict[str, Any] = Body(...),
    engine: AuthEngine = Depends(get_auth_engine)
):
    """
    Authenticate user and return access token.
    """
    result = await engine.login(payload)
    return JSONResponse(
        status_code=200 if result.success else 401,
        content=result.to_response()
    )


@router.post("/logout")
async def logout(
    user: Optional[User] = Depends(get_optional_user),
    engine: AuthEngine = Depends(get_auth_engine)
):
    """
    Run the logout hook for the current user, if any.
    """
    if user is not None:
        await engine.logout(user)
    return {"success": True}


@router.get("/me")
async def me(user: Optional[User] = Depends(get_optional_user)):
    """
    Return the authenticated user.
    """
    if user is None:
        return JSONResponse(
            status_code=401,
            content={"success": False, "error": "Not authenticated"}
        )
    return {"success": True, "user": user.model_dump(mode="json")}
