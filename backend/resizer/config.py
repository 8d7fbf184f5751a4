"""
Settings read from the environment.

Entry points call ``load_dotenv()`` before building ``Settings`` so a local
``.env`` file can provide any of these.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .search import SearchLimits

DEFAULT_MAX_BYTES = 524288


def _env_bool(key: str, default: bool = False) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


def _env_int(key: str, default: Optional[int] = None) -> Optional[int]:
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {value!r}") from None


def _env_float(key: str, default: Optional[float] = None) -> Optional[float]:
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {value!r}") from None


def _env_list(key: str, default: Sequence[str] | None = None) -> List[str]:
    value = os.getenv(key)
    if not value:
        return list(default or [])
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    max_bytes: int = field(default_factory=lambda: _env_int("RESIZER_MAX_BYTES", DEFAULT_MAX_BYTES))
    use_lossless: bool = field(default_factory=lambda: _env_bool("RESIZER_USE_LOSSLESS", False))
    max_trials: Optional[int] = field(default_factory=lambda: _env_int("RESIZER_MAX_TRIALS"))
    time_budget_seconds: Optional[float] = field(
        default_factory=lambda: _env_float("RESIZER_TIME_BUDGET_SECONDS")
    )
    uploads_dir: Path = field(default_factory=lambda: Path(os.getenv("RESIZER_UPLOADS_DIR", "uploads")))
    max_upload_size: int = field(
        default_factory=lambda: _env_int("RESIZER_MAX_UPLOAD_SIZE", 25 * 1024 * 1024)
    )
    allowed_origins: List[str] = field(
        default_factory=lambda: _env_list(
            "ALLOWED_ORIGINS", ["http://localhost:3000", "http://127.0.0.1:3000"]
        )
    )
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    port: int = field(default_factory=lambda: _env_int("PORT", 8000))

    def __post_init__(self):
        if self.max_bytes <= 0:
            raise ValueError("RESIZER_MAX_BYTES must be > 0")

    def search_limits(self) -> Optional[SearchLimits]:
        if self.max_trials is None and self.time_budget_seconds is None:
            return None
        return SearchLimits(max_trials=self.max_trials, time_budget_seconds=self.time_budget_seconds)


def get_settings() -> Settings:
    return Settings()
