"""Error taxonomy for the emotion inference pipeline.

Construction-time problems (an incompatible model) are raised to the caller.
Steady-state problems inside :meth:`InferenceEngine.consume_ready` are logged
and resolved to "no result this cycle" instead.
"""

from __future__ import annotations


class EmotionError(Exception):
    """Base class for every error raised by :mod:`wearable_emotion`."""


class TooFewRRError(EmotionError):
    """Too few RR intervals for a stable inference.

    Reserved for strict callers; the engine itself skips the cycle instead.
    """

    def __init__(self, min_expected: int, actual: int) -> None:
        self.min_expected = min_expected
        self.actual = actual
        super().__init__(
            f"Too few RR intervals: expected at least {min_expected}, got {actual}"
        )


class BadInputError(EmotionError):
    """Malformed or non-finite feature data reached the classifier."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Bad input: {reason}")


class ModelIncompatibleError(EmotionError):
    """Model dimensions do not match its labels / features."""

    def __init__(self, expected_feats: int, actual_feats: int) -> None:
        self.expected_feats = expected_feats
        self.actual_feats = actual_feats
        super().__init__(
            f"Model incompatible: expected {expected_feats} features, got {actual_feats}"
        )


class FeatureExtractionError(EmotionError):
    """Feature extraction could not produce a usable vector."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Feature extraction failed: {reason}")
