"""
Mean-crossing beat detector.

Algorithm
---------
1. Compute the arithmetic mean brightness of the whole sample window.
2. Walk the samples in order and report every sample where the signal
   drops from above the mean to below it.  Each such falling crossing
   marks one pulse.

The mean is recomputed from scratch on every frame, so slow drifts of the
baseline brightness (ambient light, pressure changes) shift the threshold
along with the signal instead of needing a separate adaptive filter.
"""

from __future__ import annotations

from typing import List, NamedTuple, Sequence

import numpy as np

from hrv_monitor.frame import Sample


class WindowStats(NamedTuple):
    mean: float
    minimum: float
    maximum: float
    range: float
    crossings: List[Sample]


def find_crossings(samples: Sequence[Sample], mean: float) -> List[Sample]:
    """
    Return the samples at which the signal fell from above *mean* to below it.
    """
    if len(samples) < 2:
        return []
    values = np.fromiter((s.value for s in samples), dtype=np.float64, count=len(samples))
    falling = (values[:-1] > mean) & (values[1:] < mean)
    return [samples[i + 1] for i in np.flatnonzero(falling)]


def analyze_window(samples: Sequence[Sample]) -> WindowStats:
    """
    Compute the window statistics and the beat crossings of *samples*.

    The range (max − min) is a rough signal-quality hint: with a finger
    firmly on the lens it sits around 0.002 – 0.02.
    """
    if not samples:
        return WindowStats(0.0, 0.0, 0.0, 0.0, [])

    values = np.fromiter((s.value for s in samples), dtype=np.float64, count=len(samples))
    mean = float(values.mean())
    lo = float(values.min())
    hi = float(values.max())
    return WindowStats(mean, lo, hi, hi - lo, find_crossings(samples, mean))
