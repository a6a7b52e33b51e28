import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union

from change_modality.txt_to_image import ImageSynthesisClient
from errors import DEFAULT_ANALYSIS_ERROR, ReaderError
from llm import AnalysisClient
from schemas import (
    DEFAULT_LANGUAGE,
    AnalysisResult,
    Analyzing,
    Error,
    Idle,
    ImageHandle,
    Language,
    Painting,
    Result,
    SessionState,
)

logger = logging.getLogger(__name__)

IMAGE_RENDER_ERROR = "The artistic vision could not be rendered. Please try again."


@dataclass(frozen=True)
class Failure:
    message: str


# -----------------------------
# Pipeline steps
# -----------------------------

async def analyze_step(analyze: Callable[[], Awaitable[AnalysisResult]]) -> Union[AnalysisResult, Failure]:
    try:
        return await analyze()
    except ReaderError as e:
        return Failure(e.message or DEFAULT_ANALYSIS_ERROR)
    except Exception as e:
        logger.exception("Unexpected analysis failure")
        return Failure(str(e) or DEFAULT_ANALYSIS_ERROR)


async def paint_step(image_client: ImageSynthesisClient, prompt: str) -> Union[ImageHandle, Failure]:
    try:
        return await image_client.generate(prompt)
    except Exception as e:
        logger.warning("Image stage failed: %s", e)
        return Failure(IMAGE_RENDER_ERROR)


# -----------------------------
# Session controller
# -----------------------------

class OrchestrationController:
    """
    Owns one session's state and drives it through
    Idle -> Analyzing -> Painting -> Result, or into Error.

    `submit`/`submit_image` must be called from a running event loop: they move
    to Analyzing immediately and return the task that finishes the submission.
    `reset` is the only way out of Result or Error.
    """

    def __init__(
        self,
        analysis_client: Optional[AnalysisClient] = None,
        image_client: Optional[ImageSynthesisClient] = None,
        on_transition: Optional[Callable[[SessionState], None]] = None,
    ):
        self.analysis_client = analysis_client or AnalysisClient()
        self.image_client = image_client or ImageSynthesisClient()
        self.on_transition = on_transition

        self._state: SessionState = Idle()
        self._pending_analysis: Optional[AnalysisResult] = None
        # Bumped on every submit and reset so a stale task cannot write state
        self._generation = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def busy(self) -> bool:
        return isinstance(self._state, (Analyzing, Painting))

    def submit(self, raw_text: str, language: Language = DEFAULT_LANGUAGE) -> Optional[asyncio.Task]:
        text = (raw_text or "").strip()
        if not text:
            return None
        return self._start(lambda: self.analysis_client.analyze_from_text(text, language))

    def submit_image(
        self,
        image_bytes: bytes,
        mime_type: str,
        language: Language = DEFAULT_LANGUAGE,
    ) -> Optional[asyncio.Task]:
        if not image_bytes:
            return None
        return self._start(
            lambda: self.analysis_client.analyze_from_image(image_bytes, mime_type, language)
        )

    def reset(self) -> None:
        self._generation += 1
        self._pending_analysis = None
        self._transition(Idle())

    def _start(self, analyze: Callable[[], Awaitable[AnalysisResult]]) -> Optional[asyncio.Task]:
        if not isinstance(self._state, Idle):
            logger.debug("Ignoring submit while %s", self._state.status)
            return None

        loop = asyncio.get_running_loop()
        self._generation += 1
        self._transition(Analyzing())
        generation = self._generation
        task = loop.create_task(self._run(generation, analyze))
        task.add_done_callback(lambda done: self._on_done(generation, done))
        self._task = task
        return task

    async def _run(self, generation: int, analyze: Callable[[], Awaitable[AnalysisResult]]) -> None:
        analysis = await analyze_step(analyze)
        if generation != self._generation:
            return
        if isinstance(analysis, Failure):
            self._transition(Error(message=analysis.message))
            return

        self._pending_analysis = analysis
        self._transition(Painting())

        image = await paint_step(self.image_client, analysis.image_prompt)
        if generation != self._generation:
            return
        self._pending_analysis = None
        if isinstance(image, Failure):
            self._transition(Error(message=image.message))
            return

        self._transition(Result(analysis=analysis, image=image))

    def _on_done(self, generation: int, task: asyncio.Task) -> None:
        if task is self._task:
            self._task = None
        if task.cancelled() or task.exception() is None:
            return

        error = task.exception()
        logger.error("Submission crashed: %s", error, exc_info=error)
        if generation != self._generation or not self.busy:
            return
        message = IMAGE_RENDER_ERROR if isinstance(self._state, Painting) else DEFAULT_ANALYSIS_ERROR
        self._pending_analysis = None
        self._transition(Error(message=message))

    def _transition(self, state: SessionState) -> None:
        logger.debug("Session %s -> %s", self._state.status, state.status)
        self._state = state
        if self.on_transition is not None:
            self.on_transition(state)
