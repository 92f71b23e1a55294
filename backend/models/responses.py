from pydantic import BaseModel

from models.schemas.wizard_state import WizardState


class SessionView(BaseModel):
    session_id: str
    loading: bool = False
    state: WizardState


class SpeechStartResponse(BaseModel):
    session: SessionView
    locale: str  # BCP-47 tag for the browser recognizer
