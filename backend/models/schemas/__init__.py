"""Pydantic contracts for wizard state and structured LLM output."""

from models.schemas.fit_analysis import DnaMatch, FitAnalysis
from models.schemas.resume_draft import Critique, CritiqueLevel, ResumeDraft
from models.schemas.wizard_state import WizardState, WizardStep

__all__ = [
    "DnaMatch",
    "FitAnalysis",
    "Critique",
    "CritiqueLevel",
    "ResumeDraft",
    "WizardState",
    "WizardStep",
]
