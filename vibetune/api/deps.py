"""
FastAPI dependencies.

Every long-lived client is built once in the application lifespan and stored
on ``app.state``; handlers reach them through these functions so tests can
swap any of them with ``app.dependency_overrides``.
"""

from fastapi import Request

from vibetune.core.config import Settings
from vibetune.services.music.base import BaseMusicGenerator
from vibetune.services.orchestrator import GenerationOrchestrator
from vibetune.services.prompting.service import PromptService
from vibetune.services.storage.database import Database
from vibetune.services.storage.object_store import ObjectStore


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_object_store(request: Request) -> ObjectStore:
    return request.app.state.object_store


def get_music_generator(request: Request) -> BaseMusicGenerator:
    return request.app.state.music_generator


def get_prompt_service(request: Request) -> PromptService:
    return request.app.state.prompt_service


def get_orchestrator(request: Request) -> GenerationOrchestrator:
    return request.app.state.orchestrator
