"""Unit tests for prompt cleaning, simplification and fallback templates."""

import pytest

from vibetune.services.prompting.cleaning import clean_prompt, simplify_prompt
from vibetune.services.prompting.fallback import (
    GENERIC_PROMPT,
    JAZZ_PROMPT,
    ROCK_PROMPT,
    TRAP_PROMPT,
    fallback_prompt,
)


class TestCleanPrompt:
    def test_strips_code_fences(self):
        assert clean_prompt("```text\nLo-fi beat\n```") == "Lo-fi beat"

    def test_strips_quotes_and_label(self):
        assert clean_prompt('Prompt: "Lo-fi beat"') == "Lo-fi beat"

    def test_collapses_whitespace(self):
        assert clean_prompt("Lo-fi\n\n beat\twith   rain") == "Lo-fi beat with rain"

    def test_empty(self):
        assert clean_prompt("  ") == ""


class TestSimplifyPrompt:
    def test_picks_mood_genre_instrument(self):
        assert simplify_prompt("A calm, jazz tune with soft piano!") == "calm jazz piano"

    def test_defaults(self):
        assert simplify_prompt("something completely different") == "upbeat pop"

    def test_list_order_wins(self):
        # "happy" precedes "sad" in the mood list
        assert simplify_prompt("sad but happy rock") == "happy rock"

    def test_never_longer_than_50(self):
        assert len(simplify_prompt("energetic electronic synth " * 10)) <= 50


class TestFallbackPrompt:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("dark TRAP vibes", TRAP_PROMPT),
            ("classic rock", ROCK_PROMPT),
            ("jazz bar", JAZZ_PROMPT),
            ("trap meets jazz", TRAP_PROMPT),
        ],
    )
    def test_keyword_templates(self, text, expected):
        assert fallback_prompt(text) == expected

    @pytest.mark.parametrize("text", [None, "", "   "])
    def test_generic(self, text):
        assert fallback_prompt(text) == GENERIC_PROMPT

    def test_free_text(self):
        assert fallback_prompt("sunset picnic").startswith(
            "sunset picnic song with detailed instrumentation"
        )
