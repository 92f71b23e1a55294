"""Structured-output schemas sent to Gemini alongside the fit and draft prompts.

Kept separate from the pydantic models in `models.schemas`: these describe what
the model must emit, the pydantic models validate what it actually emitted.
"""

from google.genai import types

from models.schemas.fit_analysis import CONCLUSION_LABELS
from models.schemas.resume_draft import CRITIQUE_COUNT, CritiqueLevel

_STRING_LIST = types.Schema(type=types.Type.ARRAY, items=types.Schema(type=types.Type.STRING))


def fit_analysis_schema(language: str) -> types.Schema:
    labels = CONCLUSION_LABELS.get(language, CONCLUSION_LABELS["en"])
    return types.Schema(
        type=types.Type.OBJECT,
        properties={
            "score": types.Schema(type=types.Type.NUMBER, minimum=0, maximum=100),
            "dnaComparison": types.Schema(
                type=types.Type.ARRAY,
                items=types.Schema(
                    type=types.Type.OBJECT,
                    properties={
                        "dna": types.Schema(type=types.Type.STRING),
                        "jd": types.Schema(type=types.Type.STRING),
                    },
                    required=["dna", "jd"],
                ),
            ),
            "pros": _STRING_LIST,
            "cons": _STRING_LIST,
            "conclusion": types.Schema(type=types.Type.STRING, enum=list(labels)),
            "alternatives": _STRING_LIST,
        },
        required=["score", "dnaComparison", "pros", "cons", "conclusion", "alternatives"],
    )


def resume_draft_schema() -> types.Schema:
    return types.Schema(
        type=types.Type.OBJECT,
        properties={
            "resumeMarkdown": types.Schema(
                type=types.Type.STRING,
                description="Markdown formatted resume content optimized for A4",
            ),
            "critiques": types.Schema(
                type=types.Type.ARRAY,
                min_items=CRITIQUE_COUNT,
                max_items=CRITIQUE_COUNT,
                items=types.Schema(
                    type=types.Type.OBJECT,
                    properties={
                        "level": types.Schema(
                            type=types.Type.STRING,
                            enum=[level.value for level in CritiqueLevel],
                        ),
                        "text": types.Schema(type=types.Type.STRING),
                        "suggestion": types.Schema(type=types.Type.STRING),
                    },
                    required=["level", "text", "suggestion"],
                ),
            ),
        },
        required=["resumeMarkdown", "critiques"],
    )
