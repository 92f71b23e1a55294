"""Session state owned by the wizard controller."""

from enum import IntEnum
from typing import Literal

from pydantic import BaseModel, computed_field

from models.schemas.fit_analysis import FitAnalysis
from models.schemas.resume_draft import ResumeDraft

Language = Literal["en", "zh"]


class WizardStep(IntEnum):
    BRAINSTORM = 0
    FIT_INPUT = 1
    FIT_RESULT = 2
    DRAFT = 3
    FINAL = 4


class WizardState(BaseModel):
    """Everything a session knows. Transitions return a new copy.

    Artifacts flow strictly forward: raw_input -> experience_document
    (+ job_description) -> fit_analysis -> resume_draft -> final_resume.
    """
    step: WizardStep = WizardStep.BRAINSTORM
    language: Language = "en"

    raw_input: str = ""
    experience_document: str = ""
    job_description: str = ""
    fit_analysis: FitAnalysis | None = None
    resume_draft: ResumeDraft | None = None
    final_resume: str = ""

    # Speech recognition
    recording: bool = False
    interim_transcript: str = ""  # displayed, never committed on its own
    last_result_index: int = -1  # highest final result index committed this recording

    @computed_field
    @property
    def live_transcript(self) -> str:
        """Raw input as the user should see it while dictating."""
        if not self.interim_transcript:
            return self.raw_input
        if not self.raw_input:
            return self.interim_transcript
        return f"{self.raw_input} {self.interim_transcript}"
