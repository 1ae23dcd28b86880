"""Post-processing of model-written music prompts."""

import re

from vibetune.core.utils import strip_code_fences

GENRES = [
    "pop",
    "rock",
    "jazz",
    "blues",
    "folk",
    "classical",
    "electronic",
    "hip hop",
    "country",
    "reggae",
]
MOODS = [
    "happy",
    "sad",
    "calm",
    "energetic",
    "upbeat",
    "mellow",
    "dramatic",
    "peaceful",
    "exciting",
]
INSTRUMENTS = ["piano", "guitar", "drums", "violin", "bass", "synth", "vocals"]

MAX_SIMPLE_PROMPT = 50


def clean_prompt(text: str) -> str:
    """Normalize raw model output into a single-paragraph prompt.

    Strips code fences, a leading ``Prompt:`` label, wrapping quotes, and
    collapses whitespace.
    """
    text = strip_code_fences(text)
    text = re.sub(r"^\s*(music\s+)?prompt\s*:\s*", "", text, flags=re.IGNORECASE)
    text = " ".join(text.split())
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        text = text[1:-1].strip()
    return text


def simplify_prompt(text: str) -> str:
    """Reduce a prompt to ``<mood> <genre> [instrument]`` keywords.

    Defaults to ``upbeat`` and ``pop`` when nothing matches; never longer than
    50 characters.
    """
    cleaned = re.sub(r"[^\w\s]", " ", text.lower())
    cleaned = " ".join(cleaned.split())

    mood = next((m for m in MOODS if m in cleaned), "upbeat")
    genre = next((g for g in GENRES if g in cleaned), "pop")
    instrument = next((i for i in INSTRUMENTS if i in cleaned), None)

    simple = f"{mood} {genre}"
    if instrument:
        simple += f" {instrument}"
    if len(simple) > MAX_SIMPLE_PROMPT:
        simple = simple[: MAX_SIMPLE_PROMPT - 3] + "..."
    return simple.strip()
