"""Google Gemini API wrapper with error handling."""

import json
import logging
from typing import TypeVar

from google import genai
from google.genai import types
from pydantic import BaseModel, ValidationError

from config import settings
from services import prompt_builder

logger = logging.getLogger(__name__)

_client: genai.Client | None = None

T = TypeVar("T", bound=BaseModel)


class GenerationError(Exception):
    """The generation call failed or returned nothing usable."""

    kind = "generation_failed"


class SchemaValidationError(GenerationError):
    """The model answered, but not in the shape the response schema demands."""

    kind = "invalid_response"


class GeminiNotConfiguredError(GenerationError):
    kind = "not_configured"


def get_client() -> genai.Client | None:
    global _client
    if not settings.gemini_api_key:
        logger.warning("No GEMINI_API_KEY set - Gemini features disabled")
        return None
    if _client is None:
        _client = genai.Client(api_key=settings.gemini_api_key)
    return _client


def _strip_code_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else text[3:]
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()
    return text


async def _generate(
    contents: str | list,
    model: str,
    response_schema: types.Schema | None = None,
) -> str:
    client = get_client()
    if client is None:
        raise GeminiNotConfiguredError("Gemini API key is not configured")

    config_kwargs = {
        "system_instruction": prompt_builder.SYSTEM_PROMPT_BASE,
        "temperature": settings.temperature,
    }
    if response_schema is not None:
        config_kwargs["response_mime_type"] = "application/json"
        config_kwargs["response_schema"] = response_schema
    config = types.GenerateContentConfig(**config_kwargs)

    try:
        response = await client.aio.models.generate_content(
            model=model,
            contents=contents,
            config=config,
        )
    except Exception as e:
        logger.error("Gemini API error (%s): %s", model, e)
        raise GenerationError(str(e)) from e

    text = response.text
    if not text or not text.strip():
        logger.error("Gemini returned an empty response (%s)", model)
        raise GenerationError("Empty response from model")
    return text


async def generate_text(contents: str | list, model: str | None = None) -> str:
    """Free-text generation. `contents` may mix strings and inline-data parts."""
    text = await _generate(contents, model or settings.pro_model)
    return text.strip()


async def generate_structured(
    contents: str | list,
    schema: type[T],
    response_schema: types.Schema,
    model: str | None = None,
) -> T:
    """Generate JSON constrained by `response_schema` and validate it into `schema`."""
    text = await _generate(contents, model or settings.pro_model, response_schema)

    try:
        data = json.loads(_strip_code_fences(text))
    except json.JSONDecodeError as e:
        logger.error("Failed to parse Gemini response as JSON: %s", e)
        raise SchemaValidationError(f"Response is not valid JSON: {e}") from e

    try:
        return schema.model_validate(data)
    except ValidationError as e:
        logger.error("Gemini response failed %s validation: %s", schema.__name__, e)
        raise SchemaValidationError(
            f"Response does not match {schema.__name__}: {e.error_count()} error(s)"
        ) from e


def image_part(data: bytes, mime_type: str) -> types.Part:
    """Inline-data part for the vision extraction call."""
    return types.Part.from_bytes(data=data, mime_type=mime_type)
