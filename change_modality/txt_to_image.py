# change_modality/txt_to_image.py

"""
Text-to-image generation through Gemini's image model.

    ImageSynthesisClient.generate(prompt: str) -> ImageHandle

The caller's prompt is wrapped in a fixed literary style preamble and rendered
at a fixed aspect ratio and size. The first inline image part of the response
becomes the handle; a response without one is a failure.
"""

import base64
import logging
from typing import Iterable, Optional

from google import genai
from google.genai import types

from config import settings
from errors import ImageSynthesisError, ReaderError
from llm import get_client
from schemas import ImageHandle

logger = logging.getLogger(__name__)

STYLE_PREAMBLE = (
    "High-fidelity cinematic literary masterpiece, atmospheric, detailed, "
    "soft volumetric lighting: "
)


def styled_prompt(prompt: str) -> str:
    return f"{STYLE_PREAMBLE}{prompt}"


def _iter_parts(response) -> Iterable:
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            yield part


def extract_image_bytes(response) -> Optional[bytes]:
    """First inline image payload in the response, or None."""
    for part in _iter_parts(response):
        inline_data = getattr(part, "inline_data", None)
        data = getattr(inline_data, "data", None) if inline_data is not None else None
        if not data:
            continue
        if isinstance(data, str):
            return base64.b64decode(data)
        return data
    return None


class ImageSynthesisClient:

    def __init__(self, client: Optional[genai.Client] = None, model: Optional[str] = None):
        self._client = client
        self.model = model or settings.image_model

    @property
    def client(self) -> genai.Client:
        return self._client if self._client is not None else get_client()

    async def generate(self, prompt: str) -> ImageHandle:
        if not prompt or not prompt.strip():
            raise ValueError("prompt must not be empty")

        config = types.GenerateContentConfig(
            image_config=types.ImageConfig(
                aspect_ratio=settings.image_aspect_ratio,
                image_size=settings.image_size,
            ),
        )
        logger.debug("Requesting %s image from %s", settings.image_aspect_ratio, self.model)

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=[styled_prompt(prompt)],
                config=config,
            )
        except ReaderError:
            raise
        except Exception as e:
            logger.warning("Image generation error: %s", e)
            raise ImageSynthesisError() from e

        image_bytes = extract_image_bytes(response)
        if image_bytes is None:
            logger.warning("No image in Gemini response")
            raise ImageSynthesisError()

        return ImageHandle.from_png(image_bytes)
