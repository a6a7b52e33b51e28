"""Tests for the text-to-image client."""

import asyncio
import base64
from types import SimpleNamespace

import pytest

from change_modality.txt_to_image import STYLE_PREAMBLE, ImageSynthesisClient, extract_image_bytes
from errors import ImageSynthesisError
from tests.helpers import PNG_BYTES, fake_genai_client, gemini_response


def inline_part(data):
    return SimpleNamespace(text=None, inline_data=SimpleNamespace(data=data, mime_type="image/png"))


def text_part(text):
    return SimpleNamespace(text=text, inline_data=None)


def generate(client, prompt="A lighthouse in a gale"):
    return asyncio.run(ImageSynthesisClient(client=client).generate(prompt))


def test_prompt_is_wrapped_in_style_preamble():
    client, call = fake_genai_client(gemini_response(parts=[inline_part(PNG_BYTES)]))
    generate(client, "A lighthouse in a gale")

    kwargs = call.call_args.kwargs
    assert kwargs["model"] == "gemini-3-pro-image-preview"
    assert kwargs["contents"] == [STYLE_PREAMBLE + "A lighthouse in a gale"]
    assert "soft volumetric lighting" in STYLE_PREAMBLE


def test_fixed_aspect_ratio_and_size():
    client, call = fake_genai_client(gemini_response(parts=[inline_part(PNG_BYTES)]))
    generate(client)

    image_config = call.call_args.kwargs["config"].image_config
    assert image_config.aspect_ratio == "16:9"
    assert image_config.image_size == "1K"


def test_returns_png_data_uri():
    client, _ = fake_genai_client(gemini_response(parts=[text_part("Here you go"), inline_part(PNG_BYTES)]))
    handle = generate(client)

    assert handle.mime_type == "image/png"
    assert handle.url == "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")
    assert handle.data == PNG_BYTES


def test_base64_inline_data_is_decoded():
    encoded = base64.b64encode(PNG_BYTES).decode("ascii")
    response = gemini_response(parts=[inline_part(encoded)])
    assert extract_image_bytes(response) == PNG_BYTES


def test_text_only_response_fails():
    client, _ = fake_genai_client(gemini_response(parts=[text_part("I cannot draw that")]))
    with pytest.raises(ImageSynthesisError):
        generate(client)


def test_response_without_candidates_fails():
    client, _ = fake_genai_client(SimpleNamespace(candidates=None))
    with pytest.raises(ImageSynthesisError):
        generate(client)


def test_sdk_error_becomes_image_failure():
    client, _ = fake_genai_client(error=RuntimeError("quota exhausted"))
    with pytest.raises(ImageSynthesisError) as exc_info:
        generate(client)
    assert exc_info.value.message == "Image generation failed."


def test_empty_prompt_rejected():
    client, call = fake_genai_client()
    with pytest.raises(ValueError):
        generate(client, "  ")
    call.assert_not_called()
