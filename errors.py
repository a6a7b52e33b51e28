# errors.py

DEFAULT_ANALYSIS_ERROR = "The scholar's study is closed. Please try again."


class ReaderError(Exception):
    """Base failure for the reader. `message` is safe to show to the user."""

    default_message = DEFAULT_ANALYSIS_ERROR

    def __init__(self, message: str = ""):
        self.message = message or self.default_message
        super().__init__(self.message)


class EmptyResponseError(ReaderError):
    """The model returned no text at all."""

    default_message = "The scholar's study is empty. Please try again."


class SchemaValidationError(ReaderError):
    """Structured output was unparsable or missing required fields."""

    default_message = "The scholar's notes could not be read. Please try again."


class ContentBlockedError(ReaderError):
    """The model refused the request on safety/policy grounds."""

    default_message = "This content cannot be interpreted due to safety restrictions."


class TransportError(ReaderError):
    """Network, credential or SDK-level failure."""


class ImageSynthesisError(ReaderError):
    """The image model produced no inline image."""

    default_message = "Image generation failed."
