import logging
import uuid
from collections import OrderedDict
from typing import Callable

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from image_to_text import decode_image_payload, sniff_mime_type
from pipeline import OrchestrationController
from schemas import (
    DEFAULT_LANGUAGE,
    Language,
    LanguageInfo,
    LanguagesResponse,
    SessionResponse,
    SubmitImageRequest,
    SubmitRequest,
)

load_dotenv()

logging.basicConfig(
    level=getattr(logging, settings.reader_log_level.upper(), logging.INFO),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Insight's Reader Backend",
    description="Translates literary passages and paints the scene they describe",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# One controller per browser session, process-local only, least recently used first.
SESSIONS: "OrderedDict[str, OrchestrationController]" = OrderedDict()


def controller_factory() -> Callable[[], OrchestrationController]:
    return OrchestrationController


def _get_session(session_id: str) -> OrchestrationController:
    controller = SESSIONS.get(session_id)
    if controller is None:
        raise HTTPException(status_code=404, detail="Unknown session")
    SESSIONS.move_to_end(session_id)
    return controller


def _remember(session_id: str, controller: OrchestrationController) -> None:
    SESSIONS[session_id] = controller
    while len(SESSIONS) > settings.max_sessions:
        _evict_one()


def _evict_one() -> None:
    # Prefer the least recently used session that is not mid-submission
    victim = next((sid for sid, c in SESSIONS.items() if not c.busy), None)
    if victim is None:
        victim = next(iter(SESSIONS))
    SESSIONS.pop(victim).reset()
    logger.info("Session %s evicted", victim)


def _ensure_idle(controller: OrchestrationController) -> None:
    if controller.busy:
        raise HTTPException(status_code=409, detail="A submission is already in progress")


def _view(session_id: str, controller: OrchestrationController) -> SessionResponse:
    return SessionResponse(session_id=session_id, state=controller.state)


# ── Meta ──────────────────────────────────────────────────────────────

@app.get("/health")
def health():
    return {"ok": True}


@app.get("/languages", response_model=LanguagesResponse)
def languages():
    return LanguagesResponse(
        languages=[LanguageInfo(name=lang, code=lang.code) for lang in Language],
        default=DEFAULT_LANGUAGE,
    )


# ── Sessions ──────────────────────────────────────────────────────────

@app.post("/sessions", response_model=SessionResponse)
async def create_session(factory: Callable[[], OrchestrationController] = Depends(controller_factory)):
    session_id = uuid.uuid4().hex
    controller = factory()
    _remember(session_id, controller)
    logger.info("Session %s created", session_id)
    return _view(session_id, controller)


@app.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str):
    return _view(session_id, _get_session(session_id))


@app.post("/sessions/{session_id}/submit", response_model=SessionResponse)
async def submit(session_id: str, request: SubmitRequest):
    controller = _get_session(session_id)
    _ensure_idle(controller)
    controller.submit(request.text, request.language)
    return _view(session_id, controller)


@app.post("/sessions/{session_id}/submit-image", response_model=SessionResponse)
async def submit_image(session_id: str, request: SubmitImageRequest):
    controller = _get_session(session_id)
    _ensure_idle(controller)
    try:
        image_bytes = decode_image_payload(request.image_base64)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    mime_type = sniff_mime_type(request.image_base64, request.mime_type)
    controller.submit_image(image_bytes, mime_type, request.language)
    return _view(session_id, controller)


@app.post("/sessions/{session_id}/reset", response_model=SessionResponse)
async def reset(session_id: str):
    controller = _get_session(session_id)
    controller.reset()
    return _view(session_id, controller)


@app.delete("/sessions/{session_id}")
async def delete_session(session_id: str):
    controller = _get_session(session_id)
    controller.reset()
    del SESSIONS[session_id]
    return {"ok": True}
