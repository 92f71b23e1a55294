import logging
from typing import Literal

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, Response, UploadFile
from slowapi import Limiter
from slowapi.util import get_remote_address

from api.dependencies import get_session
from config import settings
from models.requests import (
    CreateSessionRequest,
    JobDescriptionRequest,
    LanguageRequest,
    PolishRequest,
    RawInputRequest,
    SpeechErrorRequest,
    SpeechEventsRequest,
    StepRequest,
)
from models.responses import SessionView, SpeechStartResponse
from services import exporter, session_store, speech, wizard
from services.file_ingest import UploadError
from services.gemini_client import GeminiNotConfiguredError, GenerationError, SchemaValidationError
from services.session_store import Session, SessionBusyError, SessionLimitError
from services.wizard import WizardStateError

logger = logging.getLogger(__name__)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


def _view(session: Session) -> SessionView:
    return SessionView(session_id=session.session_id, loading=session.loading, state=session.state)


def _error(status_code: int, error: str, message: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"error": error, "message": message})


def _apply(session: Session, transition, *args) -> SessionView:
    """Run a synchronous transition and store its result."""
    try:
        state = transition(session.state, *args)
        session_store.update(session.session_id, state)
    except WizardStateError as e:
        raise _error(409, "invalid_step", str(e))
    except SessionBusyError:
        raise _error(409, "busy", "A request for this session is already in progress")
    return _view(session)


async def _run(session: Session, transition, *args) -> SessionView:
    """Run a Gemini-backed transition under the session's loading flag.

    On any failure the session keeps the state it had before the call.
    """
    try:
        async with session_store.lease(session.session_id) as leased:
            leased.state = await transition(leased.state, *args)
    except SessionBusyError:
        raise _error(409, "busy", "A request for this session is already in progress")
    except WizardStateError as e:
        raise _error(409, "invalid_step", str(e))
    except UploadError as e:
        raise _error(400, "invalid_upload", str(e))
    except GeminiNotConfiguredError:
        raise _error(503, "not_configured", "AI service is not configured")
    except SchemaValidationError as e:
        logger.error("%s failed for session %s: %s", transition.__name__, session.session_id, e)
        raise _error(502, e.kind, "AI returned a malformed response. Please try again.")
    except GenerationError as e:
        logger.error("%s failed for session %s: %s", transition.__name__, session.session_id, e)
        raise _error(502, e.kind, "AI processing failed. Please try again.")
    return _view(session)


@router.get("/health")
async def health():
    return {
        "status": "ok",
        "gemini_configured": bool(settings.gemini_api_key),
        "speech_input_enabled": settings.speech_input_enabled,
        "sessions": session_store.count(),
    }


# --- Sessions ---


@router.post("/sessions", response_model=SessionView, status_code=201)
@limiter.limit(settings.session_rate_limit)
async def create_session(request: Request, body: CreateSessionRequest | None = None):
    language = body.language if body else None
    try:
        session = session_store.create(wizard.new_state(language))
    except SessionLimitError:
        raise _error(503, "capacity", "Too many active sessions. Please try again shortly.")
    return _view(session)


@router.get("/sessions/{session_id}", response_model=SessionView)
async def get_session_view(session: Session = Depends(get_session)):
    return _view(session)


@router.delete("/sessions/{session_id}", status_code=204)
async def delete_session(session: Session = Depends(get_session)):
    if session.loading:
        raise _error(409, "busy", "A request for this session is already in progress")
    session_store.delete(session.session_id)
    return Response(status_code=204)


# --- Direct edits ---


@router.put("/sessions/{session_id}/language", response_model=SessionView)
async def set_language(body: LanguageRequest, session: Session = Depends(get_session)):
    return _apply(session, wizard.set_language, body.language)


@router.put("/sessions/{session_id}/raw-input", response_model=SessionView)
async def set_raw_input(body: RawInputRequest, session: Session = Depends(get_session)):
    return _apply(session, wizard.set_raw_input, body.raw_input)


@router.put("/sessions/{session_id}/job-description", response_model=SessionView)
async def set_job_description(body: JobDescriptionRequest, session: Session = Depends(get_session)):
    return _apply(session, wizard.set_job_description, body.job_description)


# --- Generation steps ---


@router.post("/sessions/{session_id}/extract", response_model=SessionView)
@limiter.limit(settings.rate_limit)
async def extract(request: Request, session: Session = Depends(get_session)):
    return await _run(session, wizard.extract_experience)


@router.post("/sessions/{session_id}/fit-check", response_model=SessionView)
@limiter.limit(settings.rate_limit)
async def fit_check(request: Request, session: Session = Depends(get_session)):
    return await _run(session, wizard.compute_fit)


@router.post("/sessions/{session_id}/draft", response_model=SessionView)
@limiter.limit(settings.rate_limit)
async def draft(request: Request, session: Session = Depends(get_session)):
    return await _run(session, wizard.draft_resume)


@router.post("/sessions/{session_id}/polish", response_model=SessionView)
@limiter.limit(settings.rate_limit)
async def polish(request: Request, body: PolishRequest, session: Session = Depends(get_session)):
    return await _run(session, wizard.polish, body.corrections, body.accept)


@router.post("/sessions/{session_id}/upload", response_model=SessionView)
@limiter.limit(settings.rate_limit)
async def upload(
    request: Request,
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
):
    content = await file.read()
    max_bytes = settings.max_upload_size_mb * 1024 * 1024
    if len(content) > max_bytes:
        raise _error(400, "invalid_upload", f"File too large. Max size: {settings.max_upload_size_mb}MB")
    if not content:
        raise _error(400, "invalid_upload", "File is empty")

    return await _run(session, wizard.ingest_upload, file.filename, file.content_type, content)


# --- Navigation ---


@router.post("/sessions/{session_id}/back", response_model=SessionView)
async def back(session: Session = Depends(get_session)):
    return _apply(session, wizard.go_back)


@router.post("/sessions/{session_id}/step", response_model=SessionView)
async def go_to_step(body: StepRequest, session: Session = Depends(get_session)):
    return _apply(session, wizard.go_to, body.step)


@router.post("/sessions/{session_id}/restart", response_model=SessionView)
async def restart(session: Session = Depends(get_session)):
    return _apply(session, wizard.restart)


# --- Voice input ---


@router.post("/sessions/{session_id}/speech/start", response_model=SpeechStartResponse)
async def speech_start(session: Session = Depends(get_session)):
    if not settings.speech_input_enabled:
        raise _error(409, "speech_unavailable", "Voice input is unavailable")
    view = _apply(session, speech.start_recording)
    return SpeechStartResponse(session=view, locale=speech.recognition_locale(session.state.language))


@router.post("/sessions/{session_id}/speech/events", response_model=SessionView)
async def speech_events(body: SpeechEventsRequest, session: Session = Depends(get_session)):
    return _apply(session, speech.apply_speech_events, body.events)


@router.post("/sessions/{session_id}/speech/stop", response_model=SessionView)
async def speech_stop(session: Session = Depends(get_session)):
    return _apply(session, speech.stop_recording)


@router.post("/sessions/{session_id}/speech/error", response_model=SessionView)
async def speech_error(body: SpeechErrorRequest, session: Session = Depends(get_session)):
    return _apply(session, speech.recording_failed, body.error)


# --- Export ---


@router.get("/sessions/{session_id}/export")
async def export(
    fmt: Literal["md", "txt"] = Query("txt", alias="format"),
    session: Session = Depends(get_session),
):
    if not session.state.final_resume:
        raise _error(409, "invalid_step", "No final resume to export yet")
    body, filename, media_type = exporter.render(session.state.final_resume, fmt)
    return Response(
        content=body,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
