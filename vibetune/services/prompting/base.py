"""
Abstract base class for video-to-prompt providers.

A prompter turns a short video clip (plus an optional user annotation) into a
detailed text prompt for the music model.
"""

from abc import ABC, abstractmethod


class BaseVideoPrompter(ABC):
    """Interface that every video-understanding provider must implement."""

    @abstractmethod
    async def describe_video(
        self,
        video: bytes,
        mime_type: str = "video/webm",
        user_text: str | None = None,
    ) -> str:
        """Describe a video clip as a music prompt.

        Args:
            video: Raw video bytes.
            mime_type: Container MIME type of *video*.
            user_text: Optional musical description typed by the user.

        Returns:
            The model's raw text response.
        """

    @abstractmethod
    async def describe_text(self, user_text: str) -> str:
        """Expand a user's text annotation into a music prompt."""

    async def aclose(self) -> None:
        """Release network resources held by the provider."""
