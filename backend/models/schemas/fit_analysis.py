"""Fit Check output: candidate experience scored against a job description."""

from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, computed_field

# Localized conclusion labels, keyed by the language the prompt was issued in.
CONCLUSION_LABELS: dict[str, tuple[str, str, str]] = {
    "en": ("Go for it", "Stretch goal", "Pivot needed"),
    "zh": ("大胆冲", "够一够", "需要转行"),
}

_CONCLUSION_KINDS = ("go", "stretch", "pivot")

ConclusionLabel = Literal["Go for it", "Stretch goal", "Pivot needed", "大胆冲", "够一够", "需要转行"]

# Below this score, alternative roles are worth surfacing
ALTERNATIVES_THRESHOLD = 60


class DnaMatch(BaseModel):
    """One row of the "Professional DNA" vs JD requirement table."""
    dna: str
    jd: str


class FitAnalysis(BaseModel):
    """Structured output of the fit-check call.

    Every field is required; the model is asked for all of them via the
    response schema and a response missing any is rejected outright.
    """
    score: float = Field(ge=0, le=100)
    dna_comparison: list[DnaMatch] = Field(
        validation_alias=AliasChoices("dnaComparison", "dna_comparison"),
    )
    pros: list[str]
    cons: list[str]
    conclusion: ConclusionLabel
    alternatives: list[str]

    @computed_field
    @property
    def score_band(self) -> str:
        if self.score > 75:
            return "strong"
        if self.score > 50:
            return "moderate"
        return "weak"

    @computed_field
    @property
    def show_alternatives(self) -> bool:
        return self.score < ALTERNATIVES_THRESHOLD

    @computed_field
    @property
    def conclusion_kind(self) -> str:
        for labels in CONCLUSION_LABELS.values():
            if self.conclusion in labels:
                return _CONCLUSION_KINDS[labels.index(self.conclusion)]
        return "pivot"  # unreachable: conclusion is a validated label
