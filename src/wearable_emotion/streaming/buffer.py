"""Time-evicting sliding window of biosignal samples."""

from __future__ import annotations

from collections import deque
from datetime import datetime, timedelta

from wearable_emotion.models import BufferStats, Sample


class SlidingWindowBuffer:
    """Append-only store that drops samples older than the window.

    Eviction is driven by the evaluation instant passed to :meth:`push` /
    :meth:`trim`, not by the newest sample's timestamp.  Whole samples are
    evicted; an RR sequence is never split.

    The buffer is not thread-safe; :class:`InferenceEngine` serialises
    access to it.
    """

    def __init__(self, window_seconds: float) -> None:
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        self._window = timedelta(seconds=window_seconds)
        self._samples: deque[Sample] = deque()
        # Evaluation instant of the most recent emission; None = never emitted.
        self.last_emission: datetime | None = None

    @property
    def window(self) -> timedelta:
        return self._window

    def push(self, sample: Sample, now: datetime) -> int:
        """Append *sample* then evict expired ones.  Returns evicted count."""
        self._samples.append(sample)
        return self.trim(now)

    def trim(self, now: datetime) -> int:
        """Remove every sample with ``timestamp < now - window``."""
        cutoff = now - self._window
        before = len(self._samples)
        # Insertion order is not guaranteed to be time order, so scan all.
        if any(s.timestamp < cutoff for s in self._samples):
            self._samples = deque(s for s in self._samples if s.timestamp >= cutoff)
        return before - len(self._samples)

    def snapshot(self) -> list[Sample]:
        """Current samples in insertion order, without mutation."""
        return list(self._samples)

    def clear(self) -> None:
        """Drop every sample and reset the last-emission marker."""
        self._samples.clear()
        self.last_emission = None

    def stats(self) -> BufferStats:
        if not self._samples:
            return BufferStats()
        hr_values = [s.hr for s in self._samples]
        span = self._samples[-1].timestamp - self._samples[0].timestamp
        return BufferStats(
            count=len(self._samples),
            duration_ms=int(span.total_seconds() * 1000),
            hr_range=(min(hr_values), max(hr_values)),
            rr_count=sum(len(s.rr_intervals_ms) for s in self._samples),
        )

    def __len__(self) -> int:
        return len(self._samples)
