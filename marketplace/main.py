import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from marketplace.api.routes import admin as admin_router
from marketplace.api.routes import admin_dashboard as admin_dashboard_router
from marketplace.api.routes import auth
from marketplace.api.routes import bookings as bookings_router
from marketplace.api.routes import provider as provider_router
from marketplace.api.routes import services as services_router
from marketplace.core.auth import AuthClient, AuthState
from marketplace.core.config import Settings, get_settings
from marketplace.core.errors import register_exception_handlers
from marketplace.core.logging_config import configure_logging
from marketplace.services.lifecycle import BookingLifecycle
from marketplace.store import RecordStore, build_store

logger = logging.getLogger(__name__)


def _log_auth_state(state: AuthState) -> None:
    if state.user is None:
        logger.debug("Auth state changed: signed out")
    else:
        logger.debug("Auth state changed: signed in", extra={"user_id": state.user["id"]})


def ensure_admin(auth_client: AuthClient, settings: Settings) -> None:
    """Create the bootstrap admin account from ADMIN_EMAIL / ADMIN_PASSWORD if missing."""
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        return
    if auth_client.store.list("users", where={"email": settings.ADMIN_EMAIL.lower()}, limit=1):
        return
    auth_client.sign_up(settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD, display_name="Admin", role="admin")
    logger.info("Bootstrap admin account created")


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[RecordStore] = None,
    auth_client: Optional[AuthClient] = None,
) -> FastAPI:
    """
    Build the API with its collaborators.

    The record store and auth client are created once here (unless injected),
    kept on app.state for the request dependencies, and closed on shutdown.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    store = store or build_store(settings)
    auth_client = auth_client or AuthClient(store, settings)
    unsubscribe = auth_client.on_auth_state_changed(_log_auth_state)
    ensure_admin(auth_client, settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Marketplace API starting (%s)", settings.ENVIRONMENT)
        yield
        unsubscribe()
        auth_client.close()
        store.close()
        logger.info("Marketplace API stopped")

    app = FastAPI(
        title="Home Services Marketplace API",
        description="Customer, provider and admin API for booking home services",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.auth = auth_client
    app.state.lifecycle = BookingLifecycle(store)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    @app.get("/")
    def root():
        return {"message": "Home Services Marketplace API running"}

    @app.get("/health")
    def health_check():
        return {"status": "healthy", "environment": settings.ENVIRONMENT}

    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(services_router.router)
    app.include_router(bookings_router.router)
    app.include_router(provider_router.router)
    app.include_router(admin_router.router)
    app.include_router(admin_dashboard_router.router)

    return app
