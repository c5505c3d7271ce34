"""Shared Pydantic models used across the inference pipeline."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ── Enums ─────────────────────────────────────────────────────


class LogLevel(str, Enum):
    """Levels understood by the host log callback."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


# ── Samples ───────────────────────────────────────────────────


class Sample(BaseModel):
    """A single biosignal reading pushed by the host application.

    Immutable once created; owned by the sliding-window buffer after ingestion.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    hr: float
    rr_intervals_ms: tuple[float, ...]
    motion: dict[str, float] | None = None

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        # Externally supplied timestamps may be naive; treat them as UTC.
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


# ── Configuration ────────────────────────────────────────────


class EngineConfig(BaseModel):
    """Immutable configuration supplied at engine construction."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_id: str = "svm_linear_wrist_sdnn_v1_0"
    window_seconds: float = Field(60.0, gt=0, description="Rolling window for features.")
    step_seconds: float = Field(5.0, gt=0, description="Minimum spacing between emissions.")
    min_rr_count: int = Field(30, ge=0, description="Raw RR intervals required per window.")
    return_all_probabilities: bool = True
    hr_baseline: float | None = Field(
        None,
        description="Resting HR subtracted from hr_mean for personalisation.",
    )
    priors: dict[str, float] | None = Field(
        None,
        description="Optional per-label priors used to reweight probabilities.",
    )

    @field_validator("priors")
    @classmethod
    def _check_priors(cls, v: dict[str, float] | None) -> dict[str, float] | None:
        if v is None:
            return v
        for label, prior in v.items():
            if not math.isfinite(prior) or prior < 0:
                raise ValueError(f"prior for {label!r} must be finite and >= 0")
        return v

    def __str__(self) -> str:
        return (
            f"EngineConfig(model_id={self.model_id}, window={self.window_seconds:g}s, "
            f"step={self.step_seconds:g}s, min_rr_count={self.min_rr_count})"
        )


# ── Results ──────────────────────────────────────────────────


class EmotionResult(BaseModel):
    """Outcome of one successful inference cycle."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    timestamp: datetime
    emotion: str
    confidence: float = Field(ge=0.0, le=1.0)
    probabilities: dict[str, float]
    features: dict[str, float]
    model: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_inference(
        cls,
        timestamp: datetime,
        probabilities: dict[str, float],
        features: dict[str, float],
        model: dict[str, Any],
    ) -> EmotionResult:
        """Build a result, picking the top-1 label as the emotion."""
        if probabilities:
            emotion, confidence = max(probabilities.items(), key=lambda kv: kv[1])
        else:
            emotion, confidence = "", 0.0
        return cls(
            timestamp=timestamp,
            emotion=emotion,
            confidence=confidence,
            probabilities=dict(probabilities),
            features=dict(features),
            model=dict(model),
        )

    def __str__(self) -> str:
        return (
            f"EmotionResult({self.emotion}: {self.confidence * 100:.1f}%, "
            f"features: {', '.join(self.features)})"
        )


class BufferStats(BaseModel):
    """Point-in-time summary of the sliding window."""

    model_config = ConfigDict(frozen=True)

    count: int = 0
    duration_ms: int = 0
    hr_range: tuple[float, float] = (0.0, 0.0)
    rr_count: int = 0
