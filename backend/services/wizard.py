"""Wizard controller: step transitions over a single owned WizardState.

Flow:
    BRAINSTORM  --extract_experience-->  FIT_INPUT
    FIT_INPUT   --compute_fit-------->  FIT_RESULT
    FIT_RESULT  --draft_resume------->  DRAFT
    DRAFT       --polish(accept)----->  FINAL

Every handler takes a state and returns a new one. A handler that calls
Gemini either returns the fully advanced state or raises, in which case the
caller still holds the untouched previous state.
"""

import logging

from config import settings
from models.schemas.fit_analysis import FitAnalysis
from models.schemas.resume_draft import ResumeDraft
from models.schemas.wizard_state import Language, WizardState, WizardStep
from services import file_ingest, gemini_client, prompt_builder, response_schemas

logger = logging.getLogger(__name__)


class WizardStateError(Exception):
    """The requested operation isn't valid for the session's current step."""


def _require_step(state: WizardState, *steps: WizardStep) -> None:
    if state.step not in steps:
        allowed = ", ".join(s.name for s in steps)
        raise WizardStateError(f"Not allowed at step {state.step.name} (requires {allowed})")


def _advance(state: WizardState, step: WizardStep, **update) -> WizardState:
    logger.info("Wizard step %s -> %s", state.step.name, step.name)
    return state.model_copy(update={**update, "step": step})


def new_state(language: Language | None = None) -> WizardState:
    return WizardState(language=language or settings.default_language)


# ---------------------------------------------------------------------------
# Generation steps
# ---------------------------------------------------------------------------


async def extract_experience(state: WizardState) -> WizardState:
    _require_step(state, WizardStep.BRAINSTORM)
    if not state.raw_input.strip():
        return state

    prompt = prompt_builder.build_extraction_prompt(state.raw_input, state.language)
    document = await gemini_client.generate_text(prompt, model=settings.fast_model)
    return _advance(state, WizardStep.FIT_INPUT, experience_document=document)


async def compute_fit(state: WizardState) -> WizardState:
    _require_step(state, WizardStep.FIT_INPUT)
    if not state.experience_document.strip():
        raise WizardStateError("No experience document; run extraction first")
    if not state.job_description.strip():
        return state

    prompt = prompt_builder.build_fit_check_prompt(
        state.experience_document, state.job_description, state.language
    )
    analysis = await gemini_client.generate_structured(
        prompt,
        FitAnalysis,
        response_schemas.fit_analysis_schema(state.language),
        model=settings.pro_model,
    )
    logger.info("Fit check score %.0f (%s)", analysis.score, analysis.conclusion_kind)
    return _advance(state, WizardStep.FIT_RESULT, fit_analysis=analysis)


async def draft_resume(state: WizardState) -> WizardState:
    _require_step(state, WizardStep.FIT_RESULT)
    if not state.experience_document.strip() or not state.job_description.strip():
        raise WizardStateError("Drafting needs both the experience document and a job description")

    prompt = prompt_builder.build_draft_prompt(
        state.experience_document, state.job_description, state.language
    )
    draft = await gemini_client.generate_structured(
        prompt,
        ResumeDraft,
        response_schemas.resume_draft_schema(),
        model=settings.pro_model,
    )
    return _advance(state, WizardStep.DRAFT, resume_draft=draft)


async def polish(state: WizardState, corrections: str = "", accept: bool = True) -> WizardState:
    """Polish the current draft.

    With accept=False the session stays on DRAFT and the draft body is
    replaced by the polished text, so the next round of corrections builds
    on it. With accept=True the result becomes the final résumé and the
    session moves to FINAL. Either way the prompt starts from the current
    draft body, so calling with accept=False from FINAL reopens DRAFT and
    replaces both the draft body and the final résumé.
    """
    _require_step(state, WizardStep.DRAFT, WizardStep.FINAL)
    if state.resume_draft is None:
        raise WizardStateError("No resume draft to polish")

    prompt = prompt_builder.build_polish_prompt(
        state.resume_draft.resume_markdown, corrections, state.language
    )
    polished = await gemini_client.generate_text(prompt, model=settings.pro_model)

    if accept:
        return _advance(state, WizardStep.FINAL, final_resume=polished)

    draft = state.resume_draft.model_copy(update={"resume_markdown": polished})
    return _advance(state, WizardStep.DRAFT, resume_draft=draft, final_resume=polished)


async def ingest_upload(
    state: WizardState,
    filename: str | None,
    content_type: str | None,
    data: bytes,
) -> WizardState:
    """Append an uploaded file's text to raw input.

    Raises file_ingest.UploadError for unusable files and GenerationError when
    vision extraction fails; raw input is untouched in both cases.
    """
    _require_step(state, WizardStep.BRAINSTORM)
    kind, mime_type = file_ingest.classify(filename, content_type)

    if kind is file_ingest.UploadKind.TEXT:
        text = file_ingest.decode_text(data)
    else:
        if mime_type == "application/pdf":
            file_ingest.check_pdf(data, settings.max_pdf_pages)
        contents = [
            gemini_client.image_part(data, mime_type),
            prompt_builder.build_vision_prompt(state.language),
        ]
        text = await gemini_client.generate_text(contents, model=settings.fast_model)
        logger.info("Extracted %d chars from %s upload", len(text), mime_type)

    return state.model_copy(update={"raw_input": file_ingest.append_block(state.raw_input, text)})


# ---------------------------------------------------------------------------
# User edits and navigation
# ---------------------------------------------------------------------------


def set_raw_input(state: WizardState, raw_input: str) -> WizardState:
    _require_step(state, WizardStep.BRAINSTORM)
    return state.model_copy(update={"raw_input": raw_input})


def set_job_description(state: WizardState, job_description: str) -> WizardState:
    _require_step(state, WizardStep.FIT_INPUT)
    return state.model_copy(update={"job_description": job_description})


def set_language(state: WizardState, language: Language) -> WizardState:
    return state.model_copy(update={"language": language})


def _has_artifact_for(state: WizardState, step: WizardStep) -> bool:
    if step == WizardStep.FIT_INPUT:
        return bool(state.experience_document)
    if step == WizardStep.FIT_RESULT:
        return state.fit_analysis is not None
    if step == WizardStep.DRAFT:
        return state.resume_draft is not None
    if step == WizardStep.FINAL:
        return bool(state.final_resume)
    return True


def go_back(state: WizardState) -> WizardState:
    if state.step == WizardStep.BRAINSTORM:
        raise WizardStateError("Already at the first step")
    return go_to(state, WizardStep(state.step - 1))


def go_to(state: WizardState, step: WizardStep) -> WizardState:
    """Navigate without calling Gemini.

    Any earlier step is reachable; a later step only if its artifact was
    already computed. Artifacts are never cleared by navigation.
    """
    if step > state.step and not _has_artifact_for(state, step):
        raise WizardStateError(f"Step {step.name} has not been computed yet")
    if state.recording and step != WizardStep.BRAINSTORM:
        state = state.model_copy(update={"recording": False, "interim_transcript": ""})
    return _advance(state, step)


def restart(state: WizardState) -> WizardState:
    """Start over: every artifact is dropped, only the language survives."""
    logger.info("Wizard restarted from step %s", state.step.name)
    return new_state(state.language)
