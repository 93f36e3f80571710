"""
quickauth demo service.

A ready-to-run FastAPI application exposing the auth routes, configured
entirely from ``Settings``.
"""

from contextlib import asynccontextmanager
from typing import Optional
from fastapi import Depends, FastAPI, Response
import uvicorn

from quickauth.adapters.impl.jwt_strategy import JWTStrategy
from quickauth.adapters.impl.memory_users import InMemoryUserStore
from quickauth.adapters.impl.sqlite_users import SQLiteUserStore
from quickauth.adapters.storage import UserStore
from quickauth.core.config import Settings, load_merged_config
from quickauth.factory import create_auth
from quickauth.core.dependencies import get_current_user
from quickauth.models.schemas import User
from quickauth.observability.logging import get_logger, setup_logging
from quickauth.observability.metrics import get_metrics_collector

logger = get_logger(__name__)


def build_user_store(settings: Settings) -> UserStore:
    """Create the user store selected by ``settings.user_store``."""
    if settings.user_store == "memory":
        return InMemoryUserStore()
    if settings.user_store == "sqlite":
        return SQLiteUserStore(settings.user_store_path)
    raise ValueError(f"Unsupported user store: {settings.user_store}")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create the demo application."""
    settings = settings or load_merged_config()

    store = build_user_store(settings)
    strategy = JWTStrategy(
        settings.secret,
        expires_in=settings.token_expires_in,
        issuer=settings.issuer,
        audience=settings.audience,
    )
    auth = create_auth(store=store, strategy=strategy)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level, settings.log_format)
        logger.info(f"quickauth started with {settings.user_store} user store")
        yield
        await store.close()
        logger.info("quickauth shutdown complete")

    app = FastAPI(
        title="quickauth",
        description="Drop-in register/login/logout for FastAPI backends",
        version="0.1.0",
        lifespan=lifespan
    )
    auth.install(app, prefix=settings.route_prefix)

    @app.get("/health", tags=["Health"])
    def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    if settings.enable_metrics:
        @app.get("/metrics", tags=["Observability"])
        def metrics():
            """Prometheus metrics endpoint."""
            collector = get_metrics_collector()
            return Response(collector.get_metrics(), media_type=collector.content_type)

    @app.get("/api/protected", tags=["Example"])
    async def protected(user: User = Depends(get_current_user)):
        """Example of a route behind required auth."""
        return {"message": "This is protected", "user": user.model_dump(mode="json")}

    return app


def main():
    """Main entry point for the demo service."""
    import argparse

    parser = argparse.ArgumentParser(description="quickauth demo service")
    parser.add_argument("--host", help="Host to bind to")
    parser.add_argument("--port", type=int, help="Port to bind to")
    parser.add_argument("--log-level", help="Log level")
    args = parser.parse_args()

    overrides = {
        key: value for key, value in {
            "host": args.host,
            "port": args.port,
            "log_level": args.log_level,
        }.items() if value is not None
    }
    settings = load_merged_config(**overrides)

    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
