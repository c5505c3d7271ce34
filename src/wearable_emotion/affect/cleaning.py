"""RR-interval cleaning — physiological bounds and artifact rejection.

Downstream HRV statistics are computed only on the output of
:func:`clean_rr_intervals`.
"""

from __future__ import annotations

import math
from typing import Iterable

# ── Physiological constants ──────────────────────────────────

MIN_VALID_RR_MS = 300.0  # 200 BPM
MAX_VALID_RR_MS = 2000.0  # 30 BPM
MAX_RR_JUMP_MS = 250.0  # successive jump beyond this is treated as an artifact

MIN_VALID_HR = 30.0
MAX_VALID_HR = 300.0


def is_valid_rr(rr_ms: float) -> bool:
    """Return True if *rr_ms* lies within the physiological range."""
    return math.isfinite(rr_ms) and MIN_VALID_RR_MS <= rr_ms <= MAX_VALID_RR_MS


def is_valid_hr(hr: float) -> bool:
    """Return True if *hr* lies within the accepted BPM range."""
    return math.isfinite(hr) and MIN_VALID_HR <= hr <= MAX_VALID_HR


def clean_rr_intervals(rr_intervals_ms: Iterable[float]) -> list[float]:
    """Drop out-of-range values and abrupt jumps from an RR sequence.

    The jump check compares against the last *accepted* interval, not the
    previous raw one, so a single spike does not also knock out the beat
    that follows it.

    Parameters
    ----------
    rr_intervals_ms : Iterable[float]
        Raw RR intervals in milliseconds, in arrival order.

    Returns
    -------
    list[float]
        Accepted intervals, in original order.
    """
    cleaned: list[float] = []
    prev: float | None = None

    for rr in rr_intervals_ms:
        if not is_valid_rr(rr):
            continue
        if prev is not None and abs(rr - prev) > MAX_RR_JUMP_MS:
            continue
        cleaned.append(rr)
        prev = rr

    return cleaned
