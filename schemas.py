# schemas.py

import base64
from enum import Enum
from typing import Annotated, Optional, List, Union, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


# LANGUAGES

class Language(str, Enum):
    SPANISH = "Español"
    ENGLISH = "English"
    FRENCH = "Français"
    GERMAN = "Deutsch"
    ITALIAN = "Italiano"

    @property
    def code(self) -> str:
        return LANG_CODES[self]


LANG_CODES = {
    Language.SPANISH: "ESP",
    Language.ENGLISH: "ENG",
    Language.FRENCH: "FRA",
    Language.GERMAN: "DEU",
    Language.ITALIAN: "ITA",
}

DEFAULT_LANGUAGE = Language.SPANISH


# MODEL OUTPUT

class _RequiredText(BaseModel):
    """Every field is required and must carry non-blank text."""

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def _not_blank(cls, value):
        if isinstance(value, str) and not value.strip():
            raise ValueError("must not be empty")
        return value


class VisualDetails(_RequiredText):
    characters: str
    gestures: str
    environment: str
    lighting: str
    mood: str


class AnalysisResult(_RequiredText):
    original_text: str = Field(alias="originalText")
    translated_text: str = Field(alias="translatedText")
    source_language: str = Field(alias="sourceLanguage")
    visual_details: VisualDetails = Field(alias="visualDetails")
    image_prompt: str = Field(alias="imagePrompt")


class ImageHandle(BaseModel):
    """A PNG image as a data URI the browser can render directly."""

    url: str = Field(repr=False)
    mime_type: Literal["image/png"] = Field("image/png", alias="mimeType")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @classmethod
    def from_png(cls, data: bytes) -> "ImageHandle":
        encoded = base64.b64encode(data).decode("ascii")
        return cls(url=f"data:image/png;base64,{encoded}")

    @field_validator("url")
    @classmethod
    def _png_data_uri(cls, value: str) -> str:
        if not value.startswith("data:image/png;base64,") or value.endswith(","):
            raise ValueError("expected a non-empty PNG data URI")
        return value

    @property
    def data(self) -> bytes:
        return base64.b64decode(self.url.split(",", 1)[1])


# SESSION STATE

class _State(BaseModel):
    model_config = ConfigDict(frozen=True)


class Idle(_State):
    status: Literal["idle"] = "idle"


class Analyzing(_State):
    status: Literal["analyzing"] = "analyzing"


class Painting(_State):
    status: Literal["painting"] = "painting"


class Result(_State):
    status: Literal["result"] = "result"
    analysis: AnalysisResult
    image: ImageHandle


class Error(_State):
    status: Literal["error"] = "error"
    message: str


SessionState = Annotated[
    Union[Idle, Analyzing, Painting, Result, Error],
    Field(discriminator="status"),
]


# REQUEST SCHEMAS

class SubmitRequest(BaseModel):
    text: str
    language: Language = DEFAULT_LANGUAGE


class SubmitImageRequest(BaseModel):
    image_base64: str
    mime_type: Optional[str] = None
    language: Language = DEFAULT_LANGUAGE


# RESPONSE SCHEMAS

class SessionResponse(BaseModel):
    session_id: str
    state: SessionState


class LanguageInfo(BaseModel):
    name: Language
    code: str


class LanguagesResponse(BaseModel):
    languages: List[LanguageInfo]
    default: Language
