"""
Bearer token middleware.
"""

from typing import Iterable, Optional
from fastapi import Request
from fastapi.responses import JSONResponse
from quickauth.core.engine import AuthEngine
from quickauth.models.schemas import AuthResult
from quickauth.observability.logging import get_logger

logger = get_logger(__name__)

BEARER_PREFIX = "Bearer "


def extract_bearer_token(request: Request) -> Optional[str]:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    authorization = request.headers.get("Authorization")
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    return authorization[len(BEARER_PREFIX):].strip() or None


async def authenticate_request(engine: AuthEngine, request: Request) -> AuthResult:
    """Verify the request's bearer token with the engine."""
    token = extract_bearer_token(request)
    if token is None:
        return AuthResult.fail("Authentication required")
    return await engine.verify_token(token)


def unauthenticated_response(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={"success": False, "error": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


class AuthMiddleware:
    """
    HTTP middleware attaching the authenticated user to ``request.state.user``.

    With ``require_auth=False`` unauthenticated requests proceed with
    ``request.state.user = None``. With ``require_auth=True`` they get a 401
    unless their path starts with one of ``public_paths``.

    Usage:
        app.middleware("http")(AuthMiddleware(engine))
    """

    def __init__(
        self,
        engine: AuthEngine,
        require_auth: bool = False,
        public_paths: Iterable[str] = ()
    ):
        self.engine = engine
        self.require_auth = require_auth
        self.public_paths = tuple(public_paths)

    def _is_public(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self.public_paths)

    async def __call__(self, request: Request, call_next):
        request.state.user = None

        try:
            result = await authenticate_request(self.engine, request)
        except Exception:
            logger.exception("Token verification raised")
            result = AuthResult.fail("Authentication failed")

        if result.success and result.user is not None:
            request.state.user = result.user
        elif self.require_auth and not self._is_public(request.url.path):
            return unauthenticated_response(result.error or "Invalid token")

        return await call_next(request)
