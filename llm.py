import json
import logging
from typing import Optional

from google import genai
from google.genai import types
from pydantic import ValidationError

from config import settings
from errors import (
    DEFAULT_ANALYSIS_ERROR,
    ContentBlockedError,
    EmptyResponseError,
    ReaderError,
    SchemaValidationError,
    TransportError,
)
from schemas import AnalysisResult, Language

logger = logging.getLogger(__name__)

# Substrings that mark a safety/policy refusal in an SDK error or block reason.
BLOCK_MARKERS = ("safety", "blocked")

# Candidate finish reasons that mean the model refused on policy grounds.
BLOCKED_FINISH_REASONS = frozenset(
    reason.value
    for reason in (
        types.FinishReason.SAFETY,
        types.FinishReason.PROHIBITED_CONTENT,
        types.FinishReason.BLOCKLIST,
        types.FinishReason.SPII,
    )
)

EMPTY_IMAGE_ANALYSIS = "The scholar's study is empty. Please try a clearer image."

_client: Optional[genai.Client] = None


def get_client() -> genai.Client:
    """Shared Gemini client, built on first use so imports never need a key."""
    global _client
    if _client is None:
        if not settings.gemini_api_key:
            raise TransportError("GEMINI_API_KEY is not set.")
        _client = genai.Client(api_key=settings.gemini_api_key)
    return _client


# -----------------------------
# Response schema
# -----------------------------

VISUAL_DETAIL_FIELDS = ["characters", "gestures", "environment", "lighting", "mood"]
ANALYSIS_FIELDS = ["originalText", "translatedText", "sourceLanguage", "visualDetails", "imagePrompt"]


def build_response_schema() -> types.Schema:
    text = types.Schema(type=types.Type.STRING)
    visual_details = types.Schema(
        type=types.Type.OBJECT,
        properties={name: text for name in VISUAL_DETAIL_FIELDS},
        required=list(VISUAL_DETAIL_FIELDS),
    )
    properties = {name: text for name in ANALYSIS_FIELDS}
    properties["visualDetails"] = visual_details
    return types.Schema(
        type=types.Type.OBJECT,
        properties=properties,
        required=list(ANALYSIS_FIELDS),
    )


# -----------------------------
# Prompts
# -----------------------------

def image_system_instruction(target_language: Language) -> str:
    return f"""
You are "Insight's Reader", a world-class literary scholar and visual analyst.
Your task is to analyze images of text (book pages, handwritten letters, signs).

STRICT RULES:
1. OCR: Transcribe all visible text verbatim.
2. VISUAL FALLBACK: If NO text is readable or present, write a detailed description
   of the visual scene in the "originalText" field instead.
3. TRANSLATION: Translate the transcription or description into {target_language.value}.
4. JSON: Return ONLY a valid JSON object matching the provided schema.
5. NEVER FAIL: Do not use placeholders if you can describe the scene. Do not return an empty response.
"""


def image_prompt(target_language: Language) -> str:
    return f"""
Please analyze this image.
- If there is text, transcribe it.
- If there is no text, describe what you see visually.
- Translate all analysis into {target_language.value}.
- Generate a high-quality cinematic prompt in English for the "imagePrompt" field.
"""


def text_system_instruction(target_language: Language) -> str:
    return f"""
You are "Insight's Reader", an elite literary scholar.
Translate the passage into literary {target_language.value} and analyze its visual properties.
Return JSON ONLY.
"""


def text_prompt(raw_text: str, target_language: Language) -> str:
    return f"""
Analyze: "{raw_text}"

TASK:
1. Translation: {target_language.value}.
2. Details: characters, gestures, environment, lighting and mood in {target_language.value}.
3. Prompt: Cinematic English image generation prompt.
"""


# -----------------------------
# Response handling
# -----------------------------

def is_block_message(message: str) -> bool:
    lowered = (message or "").lower()
    return any(marker in lowered for marker in BLOCK_MARKERS)


def block_reason(response) -> Optional[str]:
    """Return the refusal reason if Gemini blocked the prompt or the answer."""
    feedback = getattr(response, "prompt_feedback", None)
    reason = getattr(feedback, "block_reason", None) if feedback is not None else None
    if reason:
        return str(reason)

    for candidate in getattr(response, "candidates", None) or []:
        finish_reason = _finish_reason_name(getattr(candidate, "finish_reason", None))
        if finish_reason in BLOCKED_FINISH_REASONS:
            return finish_reason
    return None


def _finish_reason_name(finish_reason) -> str:
    """'SAFETY' for FinishReason.SAFETY, its value, or the string 'FinishReason.SAFETY'."""
    if finish_reason is None:
        return ""
    name = getattr(finish_reason, "value", None) or str(finish_reason)
    return name.rsplit(".", 1)[-1]


def parse_analysis(text: Optional[str], empty_message: str = "") -> AnalysisResult:
    """
    Parse the model's JSON answer into a complete AnalysisResult.
    Anything short of every field present and non-empty is a failure.
    """
    if not text or not text.strip():
        raise EmptyResponseError(empty_message)

    try:
        data = json.loads(text.strip())
    except json.JSONDecodeError as e:
        logger.warning("Analysis response is not JSON: %s", e)
        raise SchemaValidationError() from e

    try:
        return AnalysisResult.model_validate(data)
    except ValidationError as e:
        logger.warning("Analysis response failed validation: %s", e)
        raise SchemaValidationError() from e


def normalize_error(error: Exception) -> ReaderError:
    if isinstance(error, ReaderError):
        return error
    message = str(error)
    if is_block_message(message):
        return ContentBlockedError()
    return TransportError(message or DEFAULT_ANALYSIS_ERROR)


# -----------------------------
# Client
# -----------------------------

class AnalysisClient:
    """Structured OCR / translation / scene analysis through Gemini."""

    def __init__(self, client: Optional[genai.Client] = None, model: Optional[str] = None):
        self._client = client
        self.model = model or settings.analysis_model

    @property
    def client(self) -> genai.Client:
        return self._client if self._client is not None else get_client()

    async def analyze_from_image(
        self,
        image_bytes: bytes,
        mime_type: str,
        target_language: Language,
    ) -> AnalysisResult:
        if not image_bytes:
            raise ValueError("image_bytes must not be empty")

        # Image first, then the instructions
        contents = [
            types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
            image_prompt(target_language),
        ]
        return await self._analyze(
            contents,
            image_system_instruction(target_language),
            settings.image_thinking_budget,
            empty_message=EMPTY_IMAGE_ANALYSIS,
        )

    async def analyze_from_text(self, raw_text: str, target_language: Language) -> AnalysisResult:
        if not raw_text or not raw_text.strip():
            raise ValueError("raw_text must not be empty")

        result = await self._analyze(
            text_prompt(raw_text, target_language),
            text_system_instruction(target_language),
            settings.text_thinking_budget,
        )
        # The passage shown to the user is always what they gave us
        return result.model_copy(update={"original_text": raw_text})

    async def _analyze(
        self,
        contents,
        system_instruction: str,
        thinking_budget: int,
        empty_message: str = "",
    ) -> AnalysisResult:
        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            thinking_config=types.ThinkingConfig(thinking_budget=thinking_budget),
            response_mime_type="application/json",
            response_schema=build_response_schema(),
        )
        logger.debug("Requesting analysis from %s", self.model)

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=contents,
                config=config,
            )
            text = response.text
            if not text or not text.strip():
                reason = block_reason(response)
                if reason:
                    raise ContentBlockedError()
            return parse_analysis(text, empty_message)
        except ReaderError as e:
            logger.error("Analysis failure (%s): %s", type(e).__name__, e.message)
            raise
        except Exception as e:
            error = normalize_error(e)
            logger.error("Analysis failure (%s): %s", type(error).__name__, e)
            raise error from e
