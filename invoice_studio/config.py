"""Configuration management for Invoice Studio."""
from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

load_dotenv()


def clean_env_value(value: str | None) -> str:
    """Strip whitespace and surrounding quotes some deployment UIs add to values."""
    if not value:
        return ""
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        value = value[1:-1]
    return value.strip()


def _env(name: str, default: str) -> str:
    return clean_env_value(os.getenv(name)) or default


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    data_dir: Path = Path("data")
    default_currency: str = "AED"
    preview_delay: float = 0.6
    due_days: int = 7
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings(
        data_dir=Path(_env("INVOICE_STUDIO_DATA_DIR", "data")),
        default_currency=_env("INVOICE_STUDIO_CURRENCY", "AED").upper(),
        preview_delay=float(_env("INVOICE_STUDIO_PREVIEW_DELAY", "0.6")),
        due_days=int(_env("INVOICE_STUDIO_DUE_DAYS", "7")),
        log_level=_env("INVOICE_STUDIO_LOG_LEVEL", "INFO").upper(),
    )
