"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.asynchronous.mongo_client import AsyncMongoClient

from config import AppSettings
from errors import register_error_handlers
from repositories.pairing_repository import PairingRepository
from routes.health_routes import router as health_router
from schemas.models.pairing import PAIRINGS_COLLECTION
from services.extension_tokens import ExtensionTokenService
from services.pairing_service import PairingService
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def build_pairing_service(db, settings: AppSettings) -> PairingService:
    """Wire the pairing service against *db* (an async MongoDB database)."""
    repository = PairingRepository(db[PAIRINGS_COLLECTION])
    tokens = ExtensionTokenService(settings.extension_token)
    return PairingService(repository, tokens, settings.pairing)


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.logging, env=settings.env)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            profiles_sample_rate=settings.sentry.sentry_profile_sample_rate,
        )

    if settings.extension_token.uses_default_secret:
        log_method = log.warning if settings.is_production else log.info
        log_method("default_signing_secret_in_use", env=settings.env)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        mongo_client: AsyncMongoClient = AsyncMongoClient(
            settings.db.mongodb_uri, tz_aware=True
        )
        app.state.mongo_client = mongo_client
        app.state.db = mongo_client[settings.db.db_name]
        app.state.settings = settings

        pairing_service = build_pairing_service(app.state.db, settings)
        app.state.pairing_service = pairing_service
        await pairing_service.ensure_indexes()

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await mongo_client.close()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(health_router)

    return app
