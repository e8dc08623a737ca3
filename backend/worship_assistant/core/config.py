"""
Runtime configuration.

All settings come from environment variables, read once by get_settings() and
cached for the life of the process. A .env file at the repository root is
loaded into the environment on import when present (existing variables win).

Environment configuration:
- INFERENCE_API_BASE: OpenAI-compatible API base (default: https://api.deepseek.com/v1)
- INFERENCE_API_KEY: API key / bearer token (DEEPSEEK_API_KEY is accepted too)
- INFERENCE_MODEL: Model name (default: deepseek-chat)
- INFERENCE_TIMEOUT_SECONDS: Per-call timeout, single call and each chunk (default: 50)
- REQUEST_DEADLINE_SECONDS: Hard deadline imposed by the hosting environment (default: 60)
- BATCH_CHUNK_SIZE: Songs per chunk and threshold for chunked analysis (default: 15)
- BATCH_DEGRADED_CHUNK_SIZE: Songs per chunk after a single-call timeout (default: 10)
- BATCH_PAUSE_SECONDS: Pause between successive chunk calls (default: 1.0)
- HISTORY_MAX_TURNS: Conversation turns forwarded to the inference service (default: 4)
- CATALOG_PATH: Optional JSON file with the song catalog
- MEMBERS_PATH: Optional JSON file with the ministry members
- SCHEDULE_PATH: Optional JSON file with schedules, availability and service days
- LOG_LEVEL / LOG_JSON: Logging configuration
"""
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

from .logging import get_logger

logger = get_logger(__name__)

# Load environment variables from .env file in the repository root
env_path = Path(__file__).parent.parent.parent.parent / ".env"

if env_path.exists():
    load_dotenv(env_path)
    logger.info("env_loaded", env_path=str(env_path))


class Settings(BaseModel):
    """Validated settings for the assistant."""

    inference_api_base: str = "https://api.deepseek.com/v1"
    inference_api_key: Optional[str] = None
    inference_model: str = "deepseek-chat"
    inference_timeout_seconds: float = Field(default=50.0, gt=0.0)
    request_deadline_seconds: float = Field(default=60.0, gt=0.0)

    batch_chunk_size: int = Field(default=15, ge=1)
    batch_degraded_chunk_size: int = Field(default=10, ge=1)
    batch_pause_seconds: float = Field(default=1.0, ge=0.0)

    history_max_turns: int = Field(default=4, ge=0)
    catalog_path: Optional[str] = None
    members_path: Optional[str] = None
    schedule_path: Optional[str] = None

    log_level: str = "INFO"
    log_json: bool = True

    @model_validator(mode="after")
    def check_timeout_below_deadline(self) -> "Settings":
        # Leaves room for the merge step before the host kills the request.
        if self.inference_timeout_seconds >= self.request_deadline_seconds:
            raise ValueError(
                "inference_timeout_seconds must be smaller than request_deadline_seconds"
            )
        return self

    @property
    def inference_configured(self) -> bool:
        return bool(self.inference_api_key and self.inference_api_key.strip())


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)) or default)


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)) or default)


def load_settings() -> Settings:
    """Build settings from the current environment."""
    api_key = os.getenv("INFERENCE_API_KEY") or os.getenv("DEEPSEEK_API_KEY")
    return Settings(
        inference_api_base=os.getenv("INFERENCE_API_BASE", "https://api.deepseek.com/v1"),
        inference_api_key=api_key or None,
        inference_model=os.getenv("INFERENCE_MODEL", "deepseek-chat"),
        inference_timeout_seconds=_env_float("INFERENCE_TIMEOUT_SECONDS", 50.0),
        request_deadline_seconds=_env_float("REQUEST_DEADLINE_SECONDS", 60.0),
        batch_chunk_size=_env_int("BATCH_CHUNK_SIZE", 15),
        batch_degraded_chunk_size=_env_int("BATCH_DEGRADED_CHUNK_SIZE", 10),
        batch_pause_seconds=_env_float("BATCH_PAUSE_SECONDS", 1.0),
        history_max_turns=_env_int("HISTORY_MAX_TURNS", 4),
        catalog_path=os.getenv("CATALOG_PATH") or None,
        members_path=os.getenv("MEMBERS_PATH") or None,
        schedule_path=os.getenv("SCHEDULE_PATH") or None,
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_json=os.getenv("LOG_JSON", "true").lower() == "true",
    )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Global singleton accessor for settings."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Drop cached settings so the next access re-reads the environment."""
    global _settings
    _settings = None
