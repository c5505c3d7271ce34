"""Affect inference — HRV features and linear emotion classification.

Architecture
------------
1. **Cleaning** (`cleaning.py`)
   - Physiological bounds on RR intervals (300–2000 ms)
   - Artifact rejection on jumps > 250 ms from the last accepted beat

2. **Feature engineering** (`features.py`)
   - HR mean, SDNN, RMSSD over the cleaned window
   - Validation and z-score normalisation against training statistics

3. **Classifier** (`classifier.py`)
   - Linear SVM margins with a numerically stable softmax
   - Placeholder default model (not clinically trained)
"""

from wearable_emotion.affect.classifier import (
    LinearClassifier,
    ModelParameters,
    create_default_model,
    softmax,
)
from wearable_emotion.affect.cleaning import clean_rr_intervals
from wearable_emotion.affect.features import (
    CORE_FEATURES,
    extract_features,
    hr_mean,
    normalize_features,
    rmssd,
    sdnn,
    validate_features,
)

__all__ = [
    "CORE_FEATURES",
    "LinearClassifier",
    "ModelParameters",
    "clean_rr_intervals",
    "create_default_model",
    "extract_features",
    "hr_mean",
    "normalize_features",
    "rmssd",
    "sdnn",
    "softmax",
    "validate_features",
]
