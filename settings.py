from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from persistence.paths import default_data_dir


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


@dataclass(frozen=True)
class Settings:
    # Persistence
    data_dir: Path
    persist_to_disk: bool

    # Text generation
    openai_api_key: str
    openai_model: str
    openai_url: str
    max_output_tokens: int
    generation_timeout: float

    # HTTP
    cors_origins: tuple[str, ...]

    # Logging
    log_level: str


def get_settings() -> Settings:
    data_dir = Path(os.getenv("DATA_DIR", "") or default_data_dir())

    # Serverless filesystems are ephemeral; set PERSIST_TO_DISK=0 there to keep collections in memory.
    persist_to_disk = _env_bool("PERSIST_TO_DISK", True)

    openai_api_key = os.getenv("OPENAI_API_KEY", "")
    openai_model = os.getenv("OPENAI_MODEL", "gpt-4.1-mini")
    openai_url = os.getenv("OPENAI_URL", "https://api.openai.com/v1/responses")
    max_output_tokens = _env_int("MAX_OUTPUT_TOKENS", 1200)
    generation_timeout = float(os.getenv("GENERATION_TIMEOUT", "60"))

    cors_origins = tuple(o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip())

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    return Settings(
        data_dir=data_dir,
        persist_to_disk=persist_to_disk,
        openai_api_key=openai_api_key,
        openai_model=openai_model,
        openai_url=openai_url,
        max_output_tokens=max_output_tokens,
        generation_timeout=generation_timeout,
        cors_origins=cors_origins,
        log_level=log_level,
    )
