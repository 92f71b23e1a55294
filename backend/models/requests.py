from pydantic import BaseModel, Field

from models.schemas.wizard_state import Language, WizardStep


class CreateSessionRequest(BaseModel):
    language: Language | None = None


class LanguageRequest(BaseModel):
    language: Language


class RawInputRequest(BaseModel):
    raw_input: str = Field(..., max_length=50000, description="Free-form career narration")


class JobDescriptionRequest(BaseModel):
    job_description: str = Field(..., max_length=10000, description="Target job description text")


class PolishRequest(BaseModel):
    corrections: str = Field("", max_length=10000, description="Extra facts or fixes for the polish pass")
    accept: bool = Field(True, description="False keeps the session on the draft step for another iteration")


class StepRequest(BaseModel):
    step: WizardStep


class SpeechEvent(BaseModel):
    is_final: bool
    transcript: str
    result_index: int | None = Field(None, ge=0, description="Recognizer result index, used to drop resent finals")


class SpeechEventsRequest(BaseModel):
    events: list[SpeechEvent] = Field(..., max_length=200)


class SpeechErrorRequest(BaseModel):
    error: str = Field(..., max_length=200)
