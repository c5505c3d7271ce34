"""Shared pytest fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from wearable_emotion.affect.classifier import LinearClassifier, create_default_model
from wearable_emotion.models import EngineConfig, LogLevel
from wearable_emotion.streaming.engine import InferenceEngine

T0 = datetime(2026, 1, 10, 10, 0, tzinfo=timezone.utc)

# 20 plausible beats around 72 BPM; two samples clear the default min_rr_count.
RR_BLOCK = [850.0, 820.0, 830.0, 845.0, 815.0, 860.0, 840.0, 825.0, 835.0, 850.0,
            810.0, 845.0, 830.0, 855.0, 820.0, 840.0, 835.0, 825.0, 850.0, 830.0]


class FakeClock:
    """Manually advanced clock for deterministic throttle / eviction tests."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class LogRecorder:
    """Host log callback that keeps every record."""

    def __init__(self) -> None:
        self.records: list[tuple[LogLevel, str, dict[str, Any] | None]] = []

    def __call__(self, level: LogLevel, message: str, context: dict[str, Any] | None) -> None:
        self.records.append((level, message, context))

    def messages(self, level: LogLevel) -> list[str]:
        return [m for lvl, m, _ in self.records if lvl == level]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def log_recorder() -> LogRecorder:
    return LogRecorder()


@pytest.fixture
def default_model() -> LinearClassifier:
    return create_default_model()


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig(window_seconds=60.0, step_seconds=5.0, min_rr_count=30)


@pytest.fixture
def engine(config, clock, log_recorder):
    eng = InferenceEngine.from_pretrained(config, on_log=log_recorder, clock=clock)
    yield eng
    eng.close()


def push_window(engine: InferenceEngine, clock: FakeClock, hr: float = 72.0, n: int = 2, **kw) -> None:
    """Push *n* samples stamped at the current clock instant."""
    for _ in range(n):
        engine.push(hr=hr, rr_intervals_ms=RR_BLOCK, timestamp=clock.now, **kw)
    engine.flush()
