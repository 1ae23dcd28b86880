"""
Music module - Text-to-music provider abstraction layer.

Factory function for creating music generators based on provider configuration.
"""

from .audio import GeneratedAudio, decode_base64_wav, read_wav
from .base import BaseMusicGenerator

__all__ = [
    "BaseMusicGenerator",
    "GeneratedAudio",
    "create_music_generator",
    "decode_base64_wav",
    "read_wav",
]


def create_music_generator(provider: str = "lyria", **kwargs) -> BaseMusicGenerator:
    """Factory function to create a music generator instance.

    Args:
        provider: Provider name ("lyria")
        **kwargs: Provider-specific configuration

    Returns:
        BaseMusicGenerator implementation instance

    Raises:
        ValueError: If provider is unknown
    """
    if provider == "lyria":
        from .lyria import LyriaGenerator

        return LyriaGenerator(**kwargs)
    raise ValueError(f"Unknown music provider: {provider}")
