"""
Exception handlers rendering quickauth errors as JSON envelopes.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from quickauth.api.middleware import unauthenticated_response
from quickauth.core.errors import DuplicateEmailError, NotAuthenticatedError, UserNotFoundError


async def not_authenticated_handler(request: Request, exc: NotAuthenticatedError) -> JSONResponse:
    return unauthenticated_response(exc.message)


async def user_not_found_handler(request: Request, exc: UserNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"success": False, "error": "User not found"})


async def duplicate_email_handler(request: Request, exc: DuplicateEmailError) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={
            "success": False,
            "error": "User already exists",
            "errors": {"email": "This email is already registered"},
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register quickauth exception handlers on ``app``."""
    app.add_exception_handler(NotAuthenticatedError, not_authenticated_handler)
    app.add_exception_handler(UserNotFoundError, user_not_found_handler)
    app.add_exception_handler(DuplicateEmailError, duplicate_email_handler)
