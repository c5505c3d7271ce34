"""Linear classifier — normalised features → margins → softmax probabilities.

The model is a one-vs-rest linear SVM exported as a ``C x F`` weight matrix,
a bias vector and per-feature normalisation statistics.  Loading the model
from a file is the host's job; this module only validates the resulting
parameters and runs inference.
"""

from __future__ import annotations

import math
from typing import Any, Mapping, Sequence

import structlog
from pydantic import BaseModel, ConfigDict, Field, model_validator

from wearable_emotion.affect.features import (
    CORE_FEATURES,
    normalize_features,
    validate_features,
)
from wearable_emotion.exceptions import BadInputError, ModelIncompatibleError

logger = structlog.get_logger(__name__)


# ── Parameters ────────────────────────────────────────────────


def _dimension_error(
    labels: Sequence[str],
    feature_names: Sequence[str],
    weights: Sequence[Sequence[float]],
    biases: Sequence[float],
) -> ModelIncompatibleError | None:
    if len(weights) != len(labels):
        return ModelIncompatibleError(len(labels), len(weights))
    if len(biases) != len(labels):
        return ModelIncompatibleError(len(labels), len(biases))
    for row in weights:
        if len(row) != len(feature_names):
            return ModelIncompatibleError(len(feature_names), len(row))
    return None


def _all_finite(weights: Sequence[Sequence[float]], biases: Sequence[float]) -> bool:
    return all(math.isfinite(w) for row in weights for w in row) and all(
        math.isfinite(b) for b in biases
    )


class ModelParameters(BaseModel):
    """Validated weight set for a :class:`LinearClassifier`.

    Construction fails with :class:`ModelIncompatibleError` when row or
    column counts disagree with ``labels`` / ``feature_names``, and with a
    pydantic ``ValidationError`` on non-finite weights or biases.
    """

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_id: str
    version: str
    labels: tuple[str, ...]
    feature_names: tuple[str, ...]
    weights: tuple[tuple[float, ...], ...]
    biases: tuple[float, ...]
    mu: dict[str, float] = Field(default_factory=dict)
    sigma: dict[str, float] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_dimensions(self) -> ModelParameters:
        err = _dimension_error(self.labels, self.feature_names, self.weights, self.biases)
        if err is not None:
            raise err
        if not _all_finite(self.weights, self.biases):
            raise ValueError("weights and biases must be finite")
        return self


# ── Softmax ───────────────────────────────────────────────────


def softmax(margins: Sequence[float]) -> list[float]:
    """Numerically stable softmax.

    The maximum margin is subtracted before exponentiating so large
    margins never overflow.
    """
    if not margins:
        return []
    top = max(margins)
    exps = [math.exp(m - top) for m in margins]
    total = sum(exps)
    return [e / total for e in exps]


# ── Classifier ────────────────────────────────────────────────


class LinearClassifier:
    """Linear SVM with softmax calibration over its margins.

    Parameters
    ----------
    params : ModelParameters
        Validated, immutable model parameters.
    """

    def __init__(self, params: ModelParameters) -> None:
        self._params = params

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> LinearClassifier:
        """Build a classifier from an already deserialised model mapping."""
        return cls(ModelParameters.model_validate(dict(data)))

    # ── Accessors ─────────────────────────────────────────────

    @property
    def params(self) -> ModelParameters:
        return self._params

    @property
    def model_id(self) -> str:
        return self._params.model_id

    @property
    def version(self) -> str:
        return self._params.version

    @property
    def labels(self) -> tuple[str, ...]:
        return self._params.labels

    @property
    def feature_names(self) -> tuple[str, ...]:
        return self._params.feature_names

    # ── Inference ─────────────────────────────────────────────

    def predict(self, features: Mapping[str, float]) -> dict[str, float]:
        """Return label → probability for one feature vector.

        Raises
        ------
        BadInputError
            If a required feature is missing or non-finite.
        """
        p = self._params
        if not validate_features(features, p.feature_names):
            raise BadInputError("Invalid features: missing required features or NaN values")

        normalized = normalize_features(features, p.mu, p.sigma)

        vector: list[float] = []
        for name in p.feature_names:
            if name not in normalized:
                raise BadInputError(f"Missing required feature: {name}")
            vector.append(normalized[name])

        margins = [
            bias + sum(w * x for w, x in zip(row, vector))
            for row, bias in zip(p.weights, p.biases)
        ]
        if not margins:
            raise BadInputError("Model has no labels to score")
        if not all(math.isfinite(m) for m in margins):
            raise BadInputError(f"Non-finite margins: {margins}")
        probabilities = dict(zip(p.labels, softmax(margins)))
        logger.debug("classifier.predicted", model_id=p.model_id, margins=margins)
        return probabilities

    # ── Introspection ─────────────────────────────────────────

    def get_metadata(self) -> dict[str, Any]:
        """Static description of the model, attached to every result."""
        p = self._params
        return {
            "id": p.model_id,
            "version": p.version,
            "type": "embedded",
            "labels": list(p.labels),
            "feature_names": list(p.feature_names),
            "num_classes": len(p.labels),
            "num_features": len(p.feature_names),
        }

    def validate(self) -> bool:
        """Re-check dimensional consistency and numeric sanity."""
        p = self._params
        if _dimension_error(p.labels, p.feature_names, p.weights, p.biases) is not None:
            return False
        return _all_finite(p.weights, p.biases)

    def __repr__(self) -> str:
        return f"LinearClassifier(model_id={self.model_id!r}, version={self.version!r})"


# ── Default model ─────────────────────────────────────────────


def create_default_model() -> LinearClassifier:
    """Return the built-in ``wesad_emotion_v1_0`` model.

    .. warning::
       The weights are placeholders for demonstration only.  They are not
       trained on real biosignal data and must not be used in production or
       clinical settings.  Supply a trained :class:`ModelParameters` instead.
    """
    return LinearClassifier(
        ModelParameters(
            model_id="wesad_emotion_v1_0",
            version="1.0",
            labels=("Amused", "Calm", "Stressed"),
            feature_names=CORE_FEATURES,
            weights=(
                (0.12, 0.5, 0.3),  # Amused: higher HR, higher HRV
                (-0.21, -0.4, -0.3),  # Calm: lower HR, lower HRV
                (0.02, 0.2, 0.1),  # Stressed: slightly higher HR, moderate HRV
            ),
            biases=(-0.2, 0.3, 0.1),
            mu={"hr_mean": 72.5, "sdnn": 45.3, "rmssd": 32.1},
            sigma={"hr_mean": 12.0, "sdnn": 18.7, "rmssd": 12.4},
        )
    )
