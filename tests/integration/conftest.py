"""Fixtures for API-level tests.

``client`` drives the app over ``ASGITransport`` inside its lifespan, with the
in-memory database and mock model providers injected. ``ws_client`` uses
Starlette's ``TestClient`` (its own event loop), so it gets a file-backed
database built from settings instead of the shared in-memory engine.
"""

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from vibetune.api.app import create_app


@pytest.fixture
def app(settings, database, object_store, mock_generator, mock_prompt_service):
    """Application wired to test doubles."""
    return create_app(
        settings,
        database=database,
        object_store=object_store,
        music_generator=mock_generator,
        prompt_service=mock_prompt_service,
    )


@pytest.fixture
async def client(app):
    """AsyncClient against the app with its lifespan running."""
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            yield c


@pytest.fixture
def ws_settings(settings):
    """Settings with a fast recorder clock."""
    return settings.model_copy(
        update={"countdown_seconds": 1, "recorder_tick_seconds": 0.05, "max_recording_seconds": 200}
    )


@pytest.fixture
def ws_app(ws_settings, object_store, mock_generator, mock_prompt_service):
    return create_app(
        ws_settings,
        object_store=object_store,
        music_generator=mock_generator,
        prompt_service=mock_prompt_service,
    )


@pytest.fixture
def ws_client(ws_app):
    with TestClient(ws_app) as c:
        yield c
