"""Centralised settings loaded from environment / .env file."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from wearable_emotion.models import EngineConfig

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Runtime configuration for an embedded emotion engine.

    Values are read from environment variables first, then from a *.env* file
    located at the project root.  Every variable lives in the flat
    ``WEARABLE_EMOTION_`` namespace.
    """

    model_config = SettingsConfigDict(
        env_prefix="WEARABLE_EMOTION_",
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        protected_namespaces=(),
    )

    # ── Model ─────────────────────────────────────────────────
    model_id: str = "svm_linear_wrist_sdnn_v1_0"

    # ── Windowing ─────────────────────────────────────────────
    window_seconds: float = 60.0
    step_seconds: float = 5.0
    min_rr_count: int = 30

    # ── Output ────────────────────────────────────────────────
    return_all_probabilities: bool = True
    hr_baseline: float | None = None  # personal resting HR, if known
    priors: dict[str, float] | None = None  # JSON object, e.g. {"Calm": 0.5}

    # ── Logging ───────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    def to_engine_config(self) -> EngineConfig:
        """Build the immutable :class:`EngineConfig` for an engine."""
        return EngineConfig(
            model_id=self.model_id,
            window_seconds=self.window_seconds,
            step_seconds=self.step_seconds,
            min_rr_count=self.min_rr_count,
            return_all_probabilities=self.return_all_probabilities,
            hr_baseline=self.hr_baseline,
            priors=self.priors,
        )


@lru_cache
def get_settings() -> Settings:
    """Return a cached :class:`Settings` singleton."""
    return Settings()
