"""Draft call output: résumé body plus a fixed-size critique list."""

from enum import Enum

from pydantic import AliasChoices, BaseModel, Field

CRITIQUE_COUNT = 5


class CritiqueLevel(str, Enum):
    FATAL = "fatal"
    IMPORTANT = "important"
    MINOR = "minor"


class Critique(BaseModel):
    level: CritiqueLevel
    text: str
    suggestion: str


class ResumeDraft(BaseModel):
    """Structured output of the draft call.

    `resume_markdown` is replaced wholesale when an iterative polish is
    applied; the critiques stay as originally diagnosed.
    """
    resume_markdown: str = Field(
        min_length=1,
        validation_alias=AliasChoices("resumeMarkdown", "resume_markdown"),
    )
    critiques: list[Critique] = Field(min_length=CRITIQUE_COUNT, max_length=CRITIQUE_COUNT)
