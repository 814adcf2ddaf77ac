"""Runtime configuration loaded from the environment."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

DEFAULT_MODEL = "claude-sonnet-4-20250514"


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {value!r}") from None


class Settings(BaseModel):
    """Service settings.

    Attributes:
        anthropic_api_key: API key for the generative-text service
        model: Model identifier sent with every request
        max_tokens: Output token cap per request
        rate_limit_per_user: Token bucket capacity per identity
        refill_interval_ms: Milliseconds per refilled quota token
        target_chars: Character budget for the text sent upstream
        min_transcript_chars: Shortest transcript accepted for analysis
        host: Bind address for the relay server
        port: Bind port for the relay server
        cors_origin: Origin allowed to call the relay server from a browser
    """

    anthropic_api_key: str | None = None
    model: str = DEFAULT_MODEL
    max_tokens: int = 8192
    rate_limit_per_user: int = 10
    refill_interval_ms: int = 6000
    target_chars: int = 50000
    min_transcript_chars: int = 100
    host: str = "127.0.0.1"
    port: int = 3001
    cors_origin: str = "http://localhost:3000"

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        """Build settings from environment variables, then apply explicit overrides."""
        values = {
            "anthropic_api_key": os.getenv("ANTHROPIC_API_KEY"),
            "model": os.getenv("CLAUDE_MODEL", DEFAULT_MODEL),
            "max_tokens": _env_int("CLAUDE_MAX_TOKENS", 8192),
            "rate_limit_per_user": _env_int("CLAUDE_RATE_LIMIT_PER_USER", 10),
            "refill_interval_ms": _env_int("PRDEXTRACT_REFILL_INTERVAL_MS", 6000),
            "target_chars": _env_int("PRDEXTRACT_TARGET_CHARS", 50000),
            "min_transcript_chars": _env_int("PRDEXTRACT_MIN_TRANSCRIPT_CHARS", 100),
            "host": os.getenv("PRDEXTRACT_HOST", "127.0.0.1"),
            "port": _env_int("PORT", 3001),
            "cors_origin": os.getenv("CORS_ORIGIN", "http://localhost:3000"),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
