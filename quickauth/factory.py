"""
One-call setup helpers.
"""

from dataclasses import dataclass
from typing import ClassVar, Optional
from fastapi import APIRouter, FastAPI
from quickauth.adapters.impl.jwt_strategy import JWTStrategy, Duration
from quickauth.adapters.impl.memory_users import InMemoryUserStore
from quickauth.adapters.storage import UserStore
from quickauth.adapters.strategy import AuthStrategy
from quickauth.api.exception_handlers import register_exception_handlers
from quickauth.api.middleware import AuthMiddleware
from quickauth.api.v1.auth import router as auth_router
from quickauth.core.dependencies import get_current_user, get_optional_user
from quickauth.core.engine import AuthCallbacks, AuthEngine
from quickauth.core.validation import ValidationConfig


@dataclass
class QuickAuth:
    """
    An engine plus the FastAPI pieces that expose it.

    ``require_auth`` and ``optional_auth`` are dependencies for protected
    routes; ``install`` wires the engine, routes and error handlers into an app.
    """
    engine: AuthEngine
    router: ClassVar[APIRouter] = auth_router
    require_auth = staticmethod(get_current_user)
    optional_auth = staticmethod(get_optional_user)

    def middleware(self, require_auth: bool = False, public_paths=()) -> AuthMiddleware:
        return AuthMiddleware(self.engine, require_auth=require_auth, public_paths=public_paths)

    def install(self, app: FastAPI, prefix: str = "/auth", attach_user: bool = True) -> FastAPI:
        """
        Attach the engine to ``app`` and mount the auth routes under ``prefix``.

        With ``attach_user`` every request gets ``request.state.user`` set by an
        optional-auth middleware.

        The routes and dependencies find the engine through
        ``app.state.auth_engine``, so an app holds one QuickAuth bundle.

        Raises:
            RuntimeError: If a different engine is already installed on ``app``
        """
        installed = getattr(app.state, "auth_engine", None)
        if installed is not None and installed is not self.engine:
            raise RuntimeError("Another QuickAuth engine is already installed on this app")

        app.state.auth_engine = self.engine
        app.include_router(self.router, prefix=prefix)
        register_exception_handlers(app)
        if attach_user:
            app.middleware("http")(self.middleware())
        return app


def create_auth(
    store: UserStore,
    strategy: AuthStrategy,
    validation: Optional[ValidationConfig] = None,
    callbacks: Optional[AuthCallbacks] = None,
) -> QuickAuth:
    """Build a QuickAuth from explicit components."""
    return QuickAuth(engine=AuthEngine(
        store=store,
        strategy=strategy,
        validation=validation,
        callbacks=callbacks,
    ))


def quick_auth(
    secret: str,
    store: Optional[UserStore] = None,
    strategy: Optional[AuthStrategy] = None,
    expires_in: Optional[Duration] = None,
    validation: Optional[ValidationConfig] = None,
    callbacks: Optional[AuthCallbacks] = None,
) -> QuickAuth:
    """
    Build a QuickAuth with defaults: an in-memory store and a JWT strategy.

    Example:
        auth = quick_auth(secret="...")
        auth.install(app)

        @app.get("/api/protected")
        async def protected(user: User = Depends(auth.require_auth)):
            ...
    """
    if strategy is None:
        if expires_in is not None:
            strategy = JWTStrategy(secret, expires_in=expires_in)
        else:
            strategy = JWTStrategy(secret)

    return create_auth(
        store=store or InMemoryUserStore(),
        strategy=strategy,
        validation=validation,
        callbacks=callbacks,
    )
