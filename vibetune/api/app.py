"""
FastAPI application factory.

``create_app()`` assembles the application with CORS, auth, error handlers,
routers, and the health endpoint. Long-lived clients (database, object store,
music generator, prompt service, orchestrator) are built in the lifespan and
stored on ``app.state``. The module-level ``app`` instance allows
``uvicorn vibetune.api.app:app --reload``.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vibetune.api import websocket
from vibetune.api.middleware.auth import APIKeyAuthMiddleware
from vibetune.api.middleware.error_handler import register_error_handlers
from vibetune.api.routes import generate, media, songs, upload
from vibetune.core.config import Settings, get_settings
from vibetune.core.logging import configure_logging
from vibetune.core.models import HealthResponse
from vibetune.services.music import BaseMusicGenerator, create_music_generator
from vibetune.services.orchestrator import GenerationOrchestrator
from vibetune.services.prompting import PromptService, create_prompt_service
from vibetune.services.storage import Database, ObjectStore, create_object_store

logger = logging.getLogger(__name__)


def _build_lifespan(
    settings: Settings,
    database: Database | None,
    object_store: ObjectStore | None,
    music_generator: BaseMusicGenerator | None,
    prompt_service: PromptService | None,
):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Build clients on startup; drain jobs and close clients on shutdown."""
        db = database or Database(settings.database_url)
        await db.init()
        store = object_store or create_object_store(settings)
        generator = music_generator or create_music_generator(
            project=settings.lyria_project,
            location=settings.lyria_location,
            model=settings.lyria_model,
            access_token=settings.lyria_access_token,
            timeout=settings.generation_timeout,
        )
        prompts = prompt_service or create_prompt_service(settings=settings)
        orchestrator = GenerationOrchestrator(db, store, generator, prompts)

        app.state.settings = settings
        app.state.database = db
        app.state.object_store = store
        app.state.music_generator = generator
        app.state.prompt_service = prompts
        app.state.orchestrator = orchestrator
        logger.info("VibeTune started (db=%s, storage=%s)", settings.database_url, settings.storage_dir)

        yield

        # Finish in-flight generation before closing the DB
        await orchestrator.shutdown(timeout=settings.job_shutdown_timeout)
        await generator.aclose()
        await prompts.aclose()
        if database is None:
            await db.close()
        logger.info("VibeTune stopped")

    return lifespan


def create_app(
    settings: Settings | None = None,
    database: Database | None = None,
    object_store: ObjectStore | None = None,
    music_generator: BaseMusicGenerator | None = None,
    prompt_service: PromptService | None = None,
) -> FastAPI:
    """Build and return a fully configured FastAPI application.

    Any client passed in is used as-is instead of being built from settings
    (tests inject in-memory databases and fake model clients this way).

    Returns:
        FastAPI: The configured application, ready for ``uvicorn``.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="VibeTune",
        description="Record a short video, get an AI-generated song.",
        version="0.1.0",
        lifespan=_build_lifespan(settings, database, object_store, music_generator, prompt_service),
    )

    # -- CORS --
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Audio-Duration", "X-Audio-Sample-Rate", "X-Audio-Channels"],
    )

    # -- API key auth --
    app.add_middleware(APIKeyAuthMiddleware, settings=settings)

    # -- Error handlers --
    register_error_handlers(app)

    @app.get("/health", response_model=HealthResponse, tags=["system"])
    async def health() -> HealthResponse:
        return HealthResponse(timestamp=datetime.now(UTC))

    # -- REST routes --
    app.include_router(songs.router, prefix="/api")
    app.include_router(generate.router, prefix="/api")
    app.include_router(upload.router, prefix="/api")
    app.include_router(media.router)

    # -- WebSocket --
    app.include_router(websocket.router)

    return app


app = create_app()
