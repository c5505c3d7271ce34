"""Tests for models, settings and logging setup."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import pytest
import structlog
from pydantic import ValidationError

from conftest import T0
from wearable_emotion.config import Settings, get_settings
from wearable_emotion.logger import LogEmitter, setup_logging
from wearable_emotion.models import EmotionResult, EngineConfig, LogLevel, Sample
from wearable_emotion.streaming.engine import InferenceEngine


@pytest.fixture
def cached_settings_env(monkeypatch):
    """Monkeypatch with the get_settings() cache dropped before and after."""
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


class TestEngineConfig:
    def test_defaults(self):
        config = EngineConfig()
        assert config.model_id == "svm_linear_wrist_sdnn_v1_0"
        assert config.window_seconds == 60.0
        assert config.step_seconds == 5.0
        assert config.min_rr_count == 30
        assert config.return_all_probabilities is True
        assert config.hr_baseline is None
        assert config.priors is None

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"window_seconds": 0},
            {"step_seconds": -1},
            {"min_rr_count": -5},
            {"priors": {"Calm": -0.1}},
            {"priors": {"Calm": float("nan")}},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValidationError):
            EngineConfig(**kwargs)

    def test_frozen(self):
        config = EngineConfig()
        with pytest.raises(ValidationError):
            config.step_seconds = 1.0

    def test_str(self):
        assert str(EngineConfig()) == (
            "EngineConfig(model_id=svm_linear_wrist_sdnn_v1_0, window=60s, step=5s, min_rr_count=30)"
        )


class TestModels:
    def test_sample_naive_timestamp_becomes_utc(self):
        sample = Sample(timestamp=datetime(2026, 1, 10, 10, 0), hr=72.0, rr_intervals_ms=[800.0])
        assert sample.timestamp.tzinfo == timezone.utc
        assert sample.rr_intervals_ms == (800.0,)

    def test_emotion_result_from_inference(self):
        result = EmotionResult.from_inference(
            timestamp=T0,
            probabilities={"Amused": 0.2, "Calm": 0.5, "Stressed": 0.3},
            features={"hr_mean": 72.0},
            model={"id": "m"},
        )
        assert result.emotion == "Calm"
        assert result.confidence == 0.5
        assert str(result) == "EmotionResult(Calm: 50.0%, features: hr_mean)"

    def test_emotion_result_value_equality(self):
        kwargs = dict(
            timestamp=T0,
            probabilities={"Calm": 0.6, "Stressed": 0.4},
            features={"hr_mean": 70.0},
            model={"id": "m"},
        )
        assert EmotionResult.from_inference(**kwargs) == EmotionResult.from_inference(**kwargs)

    def test_result_serialisation(self):
        result = EmotionResult.from_inference(
            timestamp=T0,
            probabilities={"Calm": 1.0},
            features={"hr_mean": 70.0},
            model={"id": "m"},
        )
        data = result.model_dump(mode="json")
        assert data["emotion"] == "Calm"
        assert data["model"]["id"] == "m"


class TestSettings:
    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("WEARABLE_EMOTION_WINDOW_SECONDS", "30")
        monkeypatch.setenv("WEARABLE_EMOTION_MIN_RR_COUNT", "12")
        monkeypatch.setenv("WEARABLE_EMOTION_HR_BASELINE", "65.5")
        config = Settings().to_engine_config()
        assert config.window_seconds == 30.0
        assert config.min_rr_count == 12
        assert config.hr_baseline == 65.5
        assert config.step_seconds == 5.0

    def test_priors_from_json_env(self, monkeypatch):
        monkeypatch.setenv("WEARABLE_EMOTION_PRIORS", '{"Calm": 0.5, "Stressed": 2}')
        config = Settings().to_engine_config()
        assert config.priors == {"Calm": 0.5, "Stressed": 2.0}

    def test_engine_from_explicit_settings(self):
        settings = Settings(window_seconds=30.0, step_seconds=2.0, priors={"Calm": 0.5})
        with InferenceEngine.from_settings(settings) as engine:
            assert engine.config.window_seconds == 30.0
            assert engine.config.step_seconds == 2.0
            assert engine.config.priors == {"Calm": 0.5}
            assert engine.model.model_id == "wesad_emotion_v1_0"

    def test_engine_from_cached_settings(self, cached_settings_env):
        cached_settings_env.setenv("WEARABLE_EMOTION_MIN_RR_COUNT", "7")
        with InferenceEngine.from_settings() as engine:
            assert engine.config.min_rr_count == 7


class TestLogging:
    def test_setup_logging(self):
        setup_logging("DEBUG")
        assert structlog.is_configured()
        structlog.reset_defaults()

    def test_setup_logging_defaults_to_settings_level(self, cached_settings_env):
        cached_settings_env.setenv("WEARABLE_EMOTION_LOG_LEVEL", "WARNING")
        levels = []
        real = structlog.make_filtering_bound_logger

        def spy(level):
            levels.append(level)
            return real(level)

        cached_settings_env.setattr(structlog, "make_filtering_bound_logger", spy)
        setup_logging()
        structlog.reset_defaults()
        assert levels == [logging.WARNING]

    def test_emitter_forwards_to_callback(self):
        received = []
        emitter = LogEmitter("test", lambda *args: received.append(args))
        emitter.warn("test.event", "hello", value=1)
        emitter.info("test.event", "bare")
        assert received == [(LogLevel.WARN, "hello", {"value": 1}), (LogLevel.INFO, "bare", None)]

    def test_emitter_without_callback(self):
        LogEmitter("test").error("test.event", "no sink")
