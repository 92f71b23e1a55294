"""Shared test configuration: Gemini is always mocked, sessions start empty."""

import json
import os

# Must be set before the app's settings are imported
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from services import session_store


@pytest.fixture(autouse=True)
def _reset_sessions():
    session_store.clear()
    yield
    session_store.clear()


@pytest.fixture
def gemini():
    """Patch the Gemini client; yields the AsyncMock behind generate_content.

    Set `.return_value` (or `.side_effect`) to objects with a `.text` attribute.
    """
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock()
    with patch("services.gemini_client.get_client", return_value=client):
        yield client.aio.models.generate_content


@pytest.fixture
def fit_payload() -> dict:
    return {
        "score": 82,
        "dnaComparison": [
            {"dna": "Shipped a React checkout flow", "jd": "Frontend performance ownership"},
            {"dna": "Cut load time 30%", "jd": "Web vitals optimization"},
        ],
        "pros": ["Hands-on React delivery", "Measured performance win"],
        "cons": ["No TypeScript mentioned"],
        "conclusion": "Go for it",
        "alternatives": [],
    }


@pytest.fixture
def draft_payload() -> dict:
    return {
        "resumeMarkdown": "# Jane Doe\n\n## Experience\n- Built a React checkout flow, cutting load time 30%",
        "critiques": [
            {"level": "fatal", "text": "No contact details", "suggestion": "Add email and phone"},
            {"level": "important", "text": "Single role listed", "suggestion": "Add earlier positions"},
            {"level": "important", "text": "No dates", "suggestion": "Add start and end dates"},
            {"level": "minor", "text": "Skills section missing", "suggestion": "List React, JavaScript"},
            {"level": "minor", "text": "Summary absent", "suggestion": "Add a 2-line summary"},
        ],
    }


@pytest.fixture
def fit_json(fit_payload) -> str:
    return json.dumps(fit_payload)


@pytest.fixture
def draft_json(draft_payload) -> str:
    return json.dumps(draft_payload)
