"""Streaming inference engine — ingestion, windowing, throttled emission.

All buffer and last-emission state is owned by a single-worker thread pool,
which acts as the serialising execution context:

- :meth:`InferenceEngine.push` and :meth:`InferenceEngine.clear` are
  fire-and-forget; they are queued in FIFO order and return immediately.
- :meth:`InferenceEngine.consume_ready` and
  :meth:`InferenceEngine.get_buffer_stats` are queued behind every earlier
  mutation and block until their result is ready, so they always see a
  consistent snapshot.

Steady-state problems (bad samples, too little data, classifier rejection)
are logged and resolved to "no result"; only construction raises.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
from datetime import datetime, timezone
from typing import Callable, Mapping, Sequence

from pydantic import ValidationError

from wearable_emotion.affect.classifier import LinearClassifier, create_default_model
from wearable_emotion.affect.cleaning import MAX_VALID_HR, MIN_VALID_HR, is_valid_hr
from wearable_emotion.affect.features import CORE_FEATURES, FEATURE_HR_MEAN, extract_features
from wearable_emotion.config import Settings, get_settings
from wearable_emotion.exceptions import ModelIncompatibleError
from wearable_emotion.logger import LogCallback, LogEmitter
from wearable_emotion.models import BufferStats, EmotionResult, EngineConfig, Sample
from wearable_emotion.streaming.buffer import SlidingWindowBuffer

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InferenceEngine:
    """Sliding-window emotion inference over streaming HR / RR data.

    Use :meth:`from_pretrained` rather than the constructor so the model is
    checked for compatibility.

    Parameters
    ----------
    config : EngineConfig
        Immutable engine configuration.
    model : LinearClassifier
        Validated classifier; read-only for the engine's lifetime.
    on_log : LogCallback | None
        Host callback receiving ``(level, message, context)``.
    clock : Callable[[], datetime] | None
        Source of the evaluation instant.  Defaults to the UTC wall clock.
    """

    EXPECTED_FEATURE_COUNT = len(CORE_FEATURES)

    def __init__(
        self,
        config: EngineConfig,
        model: LinearClassifier,
        on_log: LogCallback | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.config = config
        self._model = model
        self._buffer = SlidingWindowBuffer(config.window_seconds)
        self._log = LogEmitter(__name__, on_log)
        self._clock = clock or _utcnow
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix="emotion-engine-",
        )
        self._closed = False

    @classmethod
    def from_pretrained(
        cls,
        config: EngineConfig | None = None,
        model: LinearClassifier | None = None,
        on_log: LogCallback | None = None,
        clock: Clock | None = None,
    ) -> InferenceEngine:
        """Create an engine, falling back to the built-in placeholder model.

        Raises
        ------
        ModelIncompatibleError
            If the model does not expose exactly ``hr_mean``, ``sdnn`` and
            ``rmssd``, or fails its own integrity check.
        """
        if config is None:
            config = EngineConfig()
        if model is None:
            model = create_default_model()

        names = model.feature_names
        compatible = len(names) == cls.EXPECTED_FEATURE_COUNT and set(names) == set(CORE_FEATURES)
        if not compatible or not model.validate():
            raise ModelIncompatibleError(cls.EXPECTED_FEATURE_COUNT, len(names))

        return cls(config=config, model=model, on_log=on_log, clock=clock)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        model: LinearClassifier | None = None,
        on_log: LogCallback | None = None,
        clock: Clock | None = None,
    ) -> InferenceEngine:
        """Create an engine configured from environment settings."""
        settings = settings if settings is not None else get_settings()
        return cls.from_pretrained(settings.to_engine_config(), model=model, on_log=on_log, clock=clock)

    # ── Properties ────────────────────────────────────────────

    @property
    def model(self) -> LinearClassifier:
        return self._model

    @property
    def on_log(self) -> LogCallback | None:
        return self._log.callback

    @on_log.setter
    def on_log(self, callback: LogCallback | None) -> None:
        self._log.callback = callback

    # ── Producer side ─────────────────────────────────────────

    def push(
        self,
        hr: float,
        rr_intervals_ms: Sequence[float],
        timestamp: datetime,
        motion: Mapping[str, float] | None = None,
    ) -> None:
        """Queue a sample for ingestion.  Never raises.

        Samples with HR outside [30, 300] BPM or without RR intervals are
        dropped with a ``warn`` log.
        """
        # Copy now so later caller mutations cannot leak into the queued sample.
        try:
            hr = float(hr)
            rr = tuple(rr_intervals_ms)
            motion = dict(motion) if motion is not None else None
        except (TypeError, ValueError) as exc:
            self._log.warn("engine.sample_rejected", f"Malformed sample: {exc}")
            return
        self._submit(self._apply_push, hr, rr, timestamp, motion)

    def clear(self) -> None:
        """Queue a reset of the buffer and the throttle marker."""
        self._submit(self._apply_clear)

    # ── Consumer side ─────────────────────────────────────────

    def consume_ready(self) -> list[EmotionResult]:
        """Return zero or one result, honouring the step throttle."""
        if self._closed:
            self._log.warn("engine.closed", "consume_ready called on a closed engine")
            return []
        try:
            future = self._executor.submit(self._evaluate)
        except RuntimeError:
            self._log.warn("engine.closed", "consume_ready called on a closed engine")
            return []
        return future.result()

    async def aconsume_ready(self) -> list[EmotionResult]:
        """Awaitable :meth:`consume_ready` for asyncio hosts."""
        if self._closed:
            self._log.warn("engine.closed", "consume_ready called on a closed engine")
            return []
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(self._executor, self._evaluate)
        except RuntimeError:
            self._log.warn("engine.closed", "consume_ready called on a closed engine")
            return []

    def get_buffer_stats(self) -> BufferStats:
        """Point-in-time buffer summary, ordered after pending pushes."""
        if self._closed:
            return self._buffer.stats()
        try:
            future = self._executor.submit(self._buffer.stats)
        except RuntimeError:
            return self._buffer.stats()
        return future.result()

    # ── Lifecycle ─────────────────────────────────────────────

    def flush(self) -> None:
        """Block until every queued mutation has been applied."""
        if self._closed:
            return
        try:
            future = self._executor.submit(lambda: None)
        except RuntimeError:
            # Shut down by another thread; shutdown(wait=True) drains the queue.
            return
        future.result()

    def close(self) -> None:
        """Apply pending mutations and stop the worker thread."""
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=True)

    def __enter__(self) -> InferenceEngine:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ── Internals (run on the engine worker) ──────────────────

    def _now(self) -> datetime:
        now = self._clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now

    def _submit(self, fn: Callable[..., None], *args: object) -> None:
        if self._closed:
            self._log.warn("engine.closed", "Mutation dropped: engine is closed")
            return
        try:
            self._executor.submit(self._guarded, fn, *args)
        except RuntimeError:
            # Closed by another thread between the check and the submit.
            self._log.warn("engine.closed", "Mutation dropped: engine is closed")

    def _guarded(self, fn: Callable[..., None], *args: object) -> None:
        # Fire-and-forget futures are never awaited, so surface failures here.
        try:
            fn(*args)
        except Exception as exc:
            self._log.error("engine.task_error", f"Engine task failed: {exc}", task=fn.__name__)

    def _apply_push(
        self,
        hr: float,
        rr: tuple[float, ...],
        timestamp: datetime,
        motion: dict[str, float] | None,
    ) -> None:
        if not is_valid_hr(hr):
            self._log.warn(
                "engine.sample_rejected",
                f"Invalid HR value: {hr} (valid range: {MIN_VALID_HR:g}-{MAX_VALID_HR:g} BPM)",
                hr=hr,
            )
            return
        if not rr:
            self._log.warn("engine.sample_rejected", "Empty RR intervals", hr=hr)
            return

        try:
            sample = Sample(timestamp=timestamp, hr=hr, rr_intervals_ms=rr, motion=motion)
        except ValidationError as exc:
            self._log.warn("engine.sample_rejected", f"Malformed sample: {exc.error_count()} errors")
            return

        evicted = self._buffer.push(sample, self._now())
        self._log.debug(
            "engine.sample_pushed",
            f"Pushed data point: HR={hr}, RR count={len(rr)}",
            evicted=evicted,
            buffered=len(self._buffer),
        )

    def _apply_clear(self) -> None:
        self._buffer.clear()
        self._log.info("engine.buffer_cleared", "Buffer cleared")

    def _evaluate(self) -> list[EmotionResult]:
        now = self._now()

        last = self._buffer.last_emission
        if last is not None and (now - last).total_seconds() < self.config.step_seconds:
            return []

        self._buffer.trim(now)
        samples = self._buffer.snapshot()
        if len(samples) < 2:
            return []

        try:
            features = self._extract_window_features(samples)
            if features is None:
                return []
            probabilities = self._apply_priors(self._model.predict(features))
            if not self.config.return_all_probabilities:
                top = max(probabilities.items(), key=lambda kv: kv[1])
                probabilities = dict([top])

            result = EmotionResult.from_inference(
                timestamp=now,
                probabilities=probabilities,
                features=features,
                model=self._model.get_metadata(),
            )
        except Exception as exc:
            self._log.error("engine.inference_error", f"Error during inference: {exc}")
            return []

        self._buffer.last_emission = now
        self._log.info(
            "engine.result_emitted",
            f"Emitted result: {result.emotion} ({result.confidence * 100:.1f}%)",
            emotion=result.emotion,
            confidence=result.confidence,
        )
        return [result]

    def _extract_window_features(self, samples: Sequence[Sample]) -> dict[str, float] | None:
        hr_values: list[float] = []
        rr_all: list[float] = []
        motion: dict[str, float] = {}

        for s in samples:
            hr_values.append(s.hr)
            rr_all.extend(s.rr_intervals_ms)
            if s.motion:
                for key, value in s.motion.items():
                    motion[key] = motion.get(key, 0.0) + value

        # Raw (pre-cleaning) count; cleaning may reduce usable beats further.
        if len(rr_all) < self.config.min_rr_count:
            self._log.warn(
                "engine.too_few_rr",
                f"Too few RR intervals: {len(rr_all)} < {self.config.min_rr_count}",
                rr_count=len(rr_all),
                min_rr_count=self.config.min_rr_count,
            )
            return None

        features = extract_features(hr_values, rr_all, motion or None)
        if self.config.hr_baseline is not None:
            features[FEATURE_HR_MEAN] -= self.config.hr_baseline
        return features

    def _apply_priors(self, probabilities: dict[str, float]) -> dict[str, float]:
        priors = self.config.priors
        if not priors:
            return probabilities
        weighted = {label: p * priors.get(label, 1.0) for label, p in probabilities.items()}
        total = sum(weighted.values())
        if total <= 0:
            return probabilities
        return {label: w / total for label, w in weighted.items()}
