"""All prompt templates for Gemini API calls."""

from models.schemas.resume_draft import CRITIQUE_COUNT

SYSTEM_PROMPT_BASE = """ROLE: You are a result-oriented recruiting expert and resume analysis system.
OBJECTIVE: Maximize resume success (ATS + Human review).
STRICT RULES:
- Never fabricate, hallucinate, or exaggerate.
- No flattery or filler language.
- Stay objective and technical.
- If data is missing, mark as [MISSING].
- Strictly output in the user's requested language.
- Final resume must fit one A4 page.
"""

LANGUAGE_NAMES = {"en": "English", "zh": "Chinese"}


def _language_name(language: str) -> str:
    return LANGUAGE_NAMES.get(language, "English")


def build_extraction_prompt(raw_input: str, language: str) -> str:
    """Call 1: raw narration -> Experience Document."""
    return f"""Process this raw input into a structured "Experience Document".
Remove fillers, oral artifacts, and non-essential noise.
Focus on facts: what was done, tools used, and results achieved.
Language: {_language_name(language)}.

Raw Input:
---
{raw_input}
---"""


def build_fit_check_prompt(experience_document: str, job_description: str, language: str) -> str:
    """Call 2: Experience Document vs JD -> FitAnalysis JSON."""
    return f"""Perform a "Fit Check" between this Experience Document and Job Description.
Compare "Professional DNA" vs "JD Requirements".

SCORING RUBRIC (0-100):
- 0-50:   Major gaps in core requirements. Suggest alternative roles that fit better.
- 50-75:  Meets some key requirements; reachable with effort.
- 75-100: Meets most or all core requirements.

Return JSON format.
Language: {_language_name(language)}.

Experience:
---
{experience_document}
---

Job Description:
---
{job_description}
---"""


def build_draft_prompt(experience_document: str, job_description: str, language: str) -> str:
    """Call 3: resume draft + critiques JSON."""
    return f"""Generate a single-page A4 resume draft and provide {CRITIQUE_COUNT} brutal but actionable critiques.
The resume must be ATS-friendly, quantified, and highlight both hard and soft skills found in the JD.
Each critique has a severity level: "fatal", "important" or "minor".
Language: {_language_name(language)}.

Experience:
---
{experience_document}
---

Job Description:
---
{job_description}
---"""


def build_polish_prompt(resume_draft: str, corrections: str, language: str) -> str:
    """Call 4: final ATS polish of the current draft."""
    return f"""Perform final ATS polishing. Ensure all outcomes are quantified.
Strictly stick to verified facts. No fabrication.
If information is missing for a key JD requirement, mark it as [MISSING DATA].
Fit to single A4 page.
Language: {_language_name(language)}.

Current Draft:
---
{resume_draft}
---

Additional Context/Corrections:
---
{corrections.strip() or "(none)"}
---"""


def build_vision_prompt(language: str) -> str:
    """Text part accompanying an uploaded image or PDF."""
    return (
        "Extract and structure all professional experiences from this document into a text format. "
        f"Language: {_language_name(language)}."
    )
