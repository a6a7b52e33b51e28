"""Builders shared by the test modules."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

STORMY_NIGHT = "It was a dark and stormy night."

# Smallest valid PNG signature is enough; nothing decodes it
PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image-body"


def analysis_payload(**overrides) -> dict:
    payload = {
        "originalText": "Era una noche oscura y tormentosa.",
        "translatedText": "It was a dark and stormy night.",
        "sourceLanguage": "Spanish",
        "visualDetails": {
            "characters": "A lone traveller in a long coat",
            "gestures": "Clutching the collar against the wind",
            "environment": "A moor road beside a crooked inn",
            "lighting": "Lightning flashes through heavy cloud",
            "mood": "Ominous and restless",
        },
        "imagePrompt": "A lone traveller on a storm-lashed moor at night, lightning overhead",
    }
    payload.update(overrides)
    return payload


def gemini_response(text=None, parts=None, block_reason=None, finish_reason=None):
    candidate = SimpleNamespace(
        content=SimpleNamespace(parts=parts or []),
        finish_reason=finish_reason,
    )
    return SimpleNamespace(
        text=text,
        candidates=[candidate],
        prompt_feedback=SimpleNamespace(block_reason=block_reason) if block_reason else None,
    )


def fake_genai_client(response=None, error=None):
    """A stand-in for genai.Client exposing only `aio.models.generate_content`."""
    generate = AsyncMock(return_value=response, side_effect=error)
    client = SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=generate)))
    return client, generate
