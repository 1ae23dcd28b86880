"""
Prompting module - video-to-music-prompt provider abstraction layer.

Factory function for creating prompt services based on configuration.
"""

from .base import BaseVideoPrompter
from .cleaning import clean_prompt, simplify_prompt
from .fallback import fallback_prompt
from .policy import AttemptPolicy, exponential_backoff, is_transient
from .service import PromptResult, PromptService

__all__ = [
    "AttemptPolicy",
    "BaseVideoPrompter",
    "PromptResult",
    "PromptService",
    "clean_prompt",
    "create_prompt_service",
    "exponential_backoff",
    "fallback_prompt",
    "is_transient",
    "simplify_prompt",
]


def create_prompt_service(provider: str = "gemini", settings=None, **kwargs) -> PromptService:
    """Factory function to create a prompt service.

    Args:
        provider: Provider name ("gemini")
        settings: Optional Settings for the provider and the attempt policy
        **kwargs: Provider-specific configuration

    Returns:
        PromptService wrapping the provider

    Raises:
        ValueError: If provider is unknown
    """
    if provider != "gemini":
        raise ValueError(f"Unknown prompt provider: {provider}")

    from .gemini import GeminiPrompter

    if settings is None:
        from vibetune.core.config import get_settings

        settings = get_settings()

    policy = AttemptPolicy(
        max_attempts=settings.prompt_max_attempts,
        backoff=exponential_backoff(settings.prompt_backoff_base),
    )
    kwargs.setdefault("api_key", settings.gemini_api_key)
    kwargs.setdefault("model", settings.gemini_model)
    kwargs.setdefault("base_url", settings.gemini_base_url)
    kwargs.setdefault("timeout", settings.gemini_timeout)
    return PromptService(GeminiPrompter(**kwargs), policy=policy)
