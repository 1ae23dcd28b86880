"""
Abstract base class for text-to-music providers.

The generation pipeline only depends on this interface, so the managed model
can be swapped (or mocked in tests) without touching the orchestrator.
"""

from abc import ABC, abstractmethod

from vibetune.services.music.audio import GeneratedAudio


class BaseMusicGenerator(ABC):
    """Interface that every music generation provider must implement."""

    @abstractmethod
    async def generate(self, prompt: str, negative_prompt: str | None = None) -> GeneratedAudio:
        """Generate a song from a text prompt.

        Args:
            prompt: Positive description of the music to generate.
            negative_prompt: Comma-separated elements to avoid.

        Returns:
            The decoded WAV artifact.
        """

    async def aclose(self) -> None:
        """Release network resources held by the provider."""
