"""Shared utility functions for VibeTune."""

import re


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences wrapping LLM responses."""
    text = text.strip()
    if text.startswith("```"):
        text = re.sub(r"^```\w*\n?", "", text)
        text = re.sub(r"\n?```$", "", text)
    return text.strip()


def clean_text(value: str | None) -> str | None:
    """Strip *value*, mapping blank strings to ``None``."""
    if value is None:
        return None
    value = value.strip()
    return value or None
