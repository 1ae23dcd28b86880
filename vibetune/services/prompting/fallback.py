"""Heuristic prompt templates used when the video model is unavailable.

Keyword matching on the user's own annotation picks a hand-written template,
so the pipeline always has a non-empty prompt to submit downstream.
"""

TRAP_PROMPT = (
    "Aggressive trap beat at 140 BPM. Heavy 808 bassline with hard-hitting kick and "
    "snare patterns. Use distorted synth leads and dark, gritty sound design for an "
    "intense mood. Add ad-libs and vocal chops with heavy autotune and aggressive "
    "mixing for a sinister tone."
)

ROCK_PROMPT = (
    "Energetic rock song at 140 BPM with driving electric guitar power chords, punchy "
    "drum kit with snare on beats 2 and 4, distorted bass guitar, and powerful lead "
    "vocals. Heavy guitar solos with wah pedal, arena-style production with wide "
    "reverb, and anthemic chorus sections."
)

JAZZ_PROMPT = (
    "Smooth jazz ballad at 90 BPM featuring grand piano with rich chord voicings, "
    "upright bass walking lines, brush drums with subtle swing, and warm tenor "
    "saxophone melodies. Sophisticated harmonic progressions with intimate recording "
    "and natural room ambience."
)

GENERIC_PROMPT = (
    "Upbeat contemporary song at 120 BPM with catchy melodies, rhythmic "
    "instrumentation, modern production techniques, and engaging musical "
    "arrangements. Balanced mix with dynamic energy and professional sound quality."
)

# Checked in order; first keyword found in the annotation wins
KEYWORD_TEMPLATES: list[tuple[str, str]] = [
    ("trap", TRAP_PROMPT),
    ("rock", ROCK_PROMPT),
    ("jazz", JAZZ_PROMPT),
]


def fallback_prompt(user_text: str | None = None) -> str:
    """Return a deterministic, non-empty prompt for *user_text*."""
    text = (user_text or "").strip()
    if not text:
        return GENERIC_PROMPT

    lowered = text.lower()
    for keyword, template in KEYWORD_TEMPLATES:
        if keyword in lowered:
            return template

    return (
        f"{text} song with detailed instrumentation, professional production, and "
        "engaging musical arrangements. Modern mixing with balanced dynamics and "
        "contemporary sound design."
    )
