"""On-device emotion inference from streaming heart-rate and RR-interval data.

Typical use::

    from wearable_emotion import EngineConfig, InferenceEngine

    engine = InferenceEngine.from_pretrained(EngineConfig(window_seconds=60))
    engine.push(hr=72.0, rr_intervals_ms=[850, 820, 830], timestamp=now)
    for result in engine.consume_ready():
        print(result.emotion, result.confidence)

The bundled default model uses placeholder weights and is not clinically
trained.
"""

from wearable_emotion.affect.classifier import (
    LinearClassifier,
    ModelParameters,
    create_default_model,
)
from wearable_emotion.config import Settings, get_settings
from wearable_emotion.exceptions import (
    BadInputError,
    EmotionError,
    FeatureExtractionError,
    ModelIncompatibleError,
    TooFewRRError,
)
from wearable_emotion.models import (
    BufferStats,
    EmotionResult,
    EngineConfig,
    LogLevel,
    Sample,
)
from wearable_emotion.streaming.buffer import SlidingWindowBuffer
from wearable_emotion.streaming.engine import InferenceEngine

__all__ = [
    "BadInputError",
    "BufferStats",
    "EmotionError",
    "EmotionResult",
    "EngineConfig",
    "FeatureExtractionError",
    "InferenceEngine",
    "LinearClassifier",
    "LogLevel",
    "ModelIncompatibleError",
    "ModelParameters",
    "Sample",
    "Settings",
    "SlidingWindowBuffer",
    "TooFewRRError",
    "create_default_model",
    "get_settings",
]
