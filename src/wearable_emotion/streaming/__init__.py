"""Streaming layer — sliding window buffer and the inference engine."""

from wearable_emotion.streaming.buffer import SlidingWindowBuffer
from wearable_emotion.streaming.engine import InferenceEngine

__all__ = ["InferenceEngine", "SlidingWindowBuffer"]
