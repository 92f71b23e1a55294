"""Speech-to-text accumulation for the brainstorm step.

The browser recognizer runs continuously with interim results enabled and
posts its results here as (is_final, transcript, result_index) events.
Interim text is only displayed; final text is committed to raw input once,
in arrival order.
"""

import logging

from models.requests import SpeechEvent
from models.schemas.wizard_state import WizardState, WizardStep
from services.file_ingest import append_block
from services.wizard import WizardStateError

logger = logging.getLogger(__name__)

RECOGNITION_LOCALES = {"en": "en-US", "zh": "zh-CN"}


def recognition_locale(language: str) -> str:
    return RECOGNITION_LOCALES.get(language, "en-US")


def start_recording(state: WizardState) -> WizardState:
    """Begin dictation with a fresh recognizer.

    Result indices restart at 0 for every recognizer instance, so the
    duplicate counter is reset even when already recording.
    """
    if state.step != WizardStep.BRAINSTORM:
        raise WizardStateError("Voice input is only available while brainstorming")
    return state.model_copy(update={
        "recording": True,
        "interim_transcript": "",
        "last_result_index": -1,
    })


def apply_speech_event(state: WizardState, event: SpeechEvent) -> WizardState:
    if not state.recording:
        # The recognizer still delivers the final for the utterance in
        # progress after stop(); only that may land once recording is off.
        if not event.is_final or state.step != WizardStep.BRAINSTORM:
            logger.debug("Dropping speech event received while not recording")
            return state
    elif not event.is_final:
        return state.model_copy(update={"interim_transcript": event.transcript.strip()})

    if event.result_index is not None and event.result_index <= state.last_result_index:
        logger.debug("Ignoring duplicate final result %d", event.result_index)
        return state

    update = {
        "raw_input": append_block(state.raw_input, event.transcript.strip(), " "),
        "interim_transcript": "",
    }
    if event.result_index is not None:
        update["last_result_index"] = event.result_index
    return state.model_copy(update=update)


def apply_speech_events(state: WizardState, events: list[SpeechEvent]) -> WizardState:
    for event in events:
        state = apply_speech_event(state, event)
    return state


def stop_recording(state: WizardState) -> WizardState:
    """Stop dictation. Any interim segment not yet finalized is discarded."""
    if state.interim_transcript:
        logger.debug("Discarding uncommitted interim transcript on stop")
    return state.model_copy(update={"recording": False, "interim_transcript": ""})


def recording_failed(state: WizardState, error: str) -> WizardState:
    logger.warning("Speech recognition error: %s", error)
    return stop_recording(state)
