import os
from pydantic_settings import BaseSettings


def _parse_cors_origins() -> list[str] | None:
    """Parse CORS_ORIGINS env var as comma-separated string or JSON list."""
    raw = os.environ.get("CORS_ORIGINS")
    if not raw:
        return None
    if raw.startswith("["):
        import json
        return json.loads(raw)
    return [o.strip() for o in raw.split(",") if o.strip()]


class Settings(BaseSettings):
    gemini_api_key: str = ""
    fast_model: str = "gemini-3-flash-preview"  # extraction + vision
    pro_model: str = "gemini-3-pro-preview"  # fit check, draft, polish
    temperature: float | None = None  # None = model default

    default_language: str = "en"  # "en" | "zh"
    speech_input_enabled: bool = True

    max_upload_size_mb: int = 5
    max_pdf_pages: int = 10
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    rate_limit: str = "10/minute"  # applies to endpoints that call Gemini
    session_rate_limit: str = "30/minute"  # POST /sessions
    rate_limit_enabled: bool = True

    session_ttl_minutes: int = 120  # idle sessions are dropped after this
    max_sessions: int = 1000

    debug: bool = False
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "protected_namespaces": ("settings_",)}


_cors_override = _parse_cors_origins()
settings = Settings(**{"cors_origins": _cors_override} if _cors_override else {})
