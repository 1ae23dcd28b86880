"""Shared pytest fixtures for the VibeTune test suite.

Provides an in-memory database, a temporary object store, WAV fixtures and
mock model providers used across unit and integration tests.
"""

import io
import math
import struct
import wave
from unittest.mock import AsyncMock

import pytest

from vibetune.core.config import Settings
from vibetune.core.models import PromptSource

# ---------------------------------------------------------------------------
# Audio Fixtures
# ---------------------------------------------------------------------------


def make_wav(seconds: float = 1.0, sample_rate: int = 16000, channels: int = 1) -> bytes:
    """Build an in-memory 440 Hz sine WAV (16-bit PCM)."""
    frames = []
    for i in range(int(sample_rate * seconds)):
        value = int(8000 * math.sin(2 * math.pi * 440.0 * i / sample_rate))
        frames.append(struct.pack("<h", value) * channels)
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(b"".join(frames))
    return buf.getvalue()


@pytest.fixture
def wav_factory():
    """Return the WAV builder for tests needing custom formats."""
    return make_wav


@pytest.fixture
def wav_bytes():
    """One second of mono 16 kHz WAV audio."""
    return make_wav()


@pytest.fixture
def video_bytes():
    """Stand-in for a recorded WebM clip."""
    return b"\x1a\x45\xdf\xa3" + b"\x00" * 256


# ---------------------------------------------------------------------------
# Database Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine with tables, dispose after test."""
    from sqlalchemy.ext.asyncio import create_async_engine

    from vibetune.services.storage import models_db  # noqa: F401
    from vibetune.services.storage.database import Base

    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Yield an AsyncSession bound to the test engine; rolls back after test."""
    from sqlalchemy.ext.asyncio import async_sessionmaker

    factory = async_sessionmaker(db_engine, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def repository(db_session):
    """Return a SongRepository bound to the test session."""
    from vibetune.services.storage.repository import SongRepository

    return SongRepository(db_session)


@pytest.fixture
def database(db_engine):
    """A ``Database`` wrapping the in-memory test engine."""
    from vibetune.services.storage.database import Database

    return Database(engine=db_engine)


# ---------------------------------------------------------------------------
# Storage Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def object_store(tmp_path):
    """Local object store rooted in a temporary directory."""
    from vibetune.services.storage.object_store import LocalObjectStore

    return LocalObjectStore(str(tmp_path / "storage"), "songs", "http://test")


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'vibetune.db'}",
        storage_dir=str(tmp_path / "storage"),
        public_base_url="http://test",
        api_key="",
        job_shutdown_timeout=5.0,
    )


# ---------------------------------------------------------------------------
# Model Provider Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_generator(wav_bytes):
    """Mock music generator returning a decoded one-second WAV."""
    from vibetune.services.music.audio import read_wav
    from vibetune.services.music.base import BaseMusicGenerator

    generator = AsyncMock(spec=BaseMusicGenerator)
    generator.generate.return_value = read_wav(wav_bytes)
    return generator


@pytest.fixture
def mock_prompt_service():
    """Mock prompt service returning a fixed video-derived prompt."""
    from vibetune.services.prompting.service import PromptResult, PromptService

    service = AsyncMock(spec=PromptService)
    service.generate_prompt.return_value = PromptResult(
        prompt="Mellow lo-fi hip hop at 85 BPM with warm piano chords",
        source=PromptSource.video,
    )
    return service
