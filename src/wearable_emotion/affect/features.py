"""Feature engineering — HR mean and time-domain HRV from a window.

Produces the flat ``dict[str, float]`` feature vector consumed by
:class:`~wearable_emotion.affect.classifier.LinearClassifier`:

- ``hr_mean`` — arithmetic mean of HR samples (BPM)
- ``sdnn`` — sample standard deviation of cleaned RR intervals (ms)
- ``rmssd`` — root mean square of successive cleaned RR differences (ms)
- any caller-supplied motion keys, merged last
"""

from __future__ import annotations

import math
import statistics
from typing import Mapping, Sequence

from wearable_emotion.affect.cleaning import clean_rr_intervals

FEATURE_HR_MEAN = "hr_mean"
FEATURE_SDNN = "sdnn"
FEATURE_RMSSD = "rmssd"

CORE_FEATURES = (FEATURE_HR_MEAN, FEATURE_SDNN, FEATURE_RMSSD)


def hr_mean(hr_values: Sequence[float]) -> float:
    """Mean heart rate; 0.0 for an empty input."""
    if not hr_values:
        return 0.0
    return statistics.fmean(hr_values)


def sdnn(rr_intervals_ms: Sequence[float]) -> float:
    """SDNN over cleaned RR intervals (n-1 denominator).

    Returns 0.0 when fewer than two intervals survive cleaning.
    """
    if len(rr_intervals_ms) < 2:
        return 0.0
    cleaned = clean_rr_intervals(rr_intervals_ms)
    if len(cleaned) < 2:
        return 0.0
    return statistics.stdev(cleaned)


def rmssd(rr_intervals_ms: Sequence[float]) -> float:
    """RMSSD over cleaned RR intervals.

    The sum of squared successive differences is divided by ``n - 1``
    where ``n`` is the cleaned count.  Returns 0.0 when fewer than two
    intervals survive cleaning.
    """
    if len(rr_intervals_ms) < 2:
        return 0.0
    cleaned = clean_rr_intervals(rr_intervals_ms)
    if len(cleaned) < 2:
        return 0.0
    sum_sq = sum((b - a) ** 2 for a, b in zip(cleaned, cleaned[1:]))
    return math.sqrt(sum_sq / (len(cleaned) - 1))


def extract_features(
    hr_values: Sequence[float],
    rr_intervals_ms: Sequence[float],
    motion: Mapping[str, float] | None = None,
) -> dict[str, float]:
    """Combine the core statistics with optional motion features.

    Motion keys are merged after the core three; a colliding key
    overwrites the core value.  Non-finite motion values are dropped so the
    vector never carries NaN or infinity.
    """
    features = {
        FEATURE_HR_MEAN: hr_mean(hr_values),
        FEATURE_SDNN: sdnn(rr_intervals_ms),
        FEATURE_RMSSD: rmssd(rr_intervals_ms),
    }
    if motion:
        features.update((k, v) for k, v in motion.items() if math.isfinite(v))
    return features


def validate_features(
    features: Mapping[str, float],
    required_features: Sequence[str],
) -> bool:
    """True iff every required feature is present and finite."""
    for name in required_features:
        value = features.get(name)
        if value is None or not math.isfinite(value):
            return False
    return True


def normalize_features(
    features: Mapping[str, float],
    mu: Mapping[str, float],
    sigma: Mapping[str, float],
) -> dict[str, float]:
    """Z-score features that have training statistics.

    Zero or negative ``sigma`` yields 0.0.  Features without an entry in
    both ``mu`` and ``sigma`` pass through unchanged.
    """
    normalized: dict[str, float] = {}
    for name, value in features.items():
        if name in mu and name in sigma:
            std = sigma[name]
            normalized[name] = (value - mu[name]) / std if std > 0 else 0.0
        else:
            normalized[name] = value
    return normalized
