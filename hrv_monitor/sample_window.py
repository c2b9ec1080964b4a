"""
Fixed-capacity, time-ordered window of brightness samples.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, Tuple

from hrv_monitor.frame import Sample


class SampleWindow:
    """
    FIFO buffer of :class:`~hrv_monitor.frame.Sample`; the oldest sample is
    evicted once ``capacity`` is exceeded.
    """

    def __init__(self, capacity: int = 300) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1.")
        self._samples: Deque[Sample] = deque(maxlen=capacity)

    def push(self, sample: Sample) -> None:
        self._samples.append(sample)

    def reset(self) -> None:
        """Drop every sample."""
        self._samples.clear()

    def snapshot(self) -> Tuple[Sample, ...]:
        """Return the current samples, oldest first, as an immutable tuple."""
        return tuple(self._samples)

    @property
    def capacity(self) -> int:
        return self._samples.maxlen

    @property
    def fill_ratio(self) -> float:
        """How full the window is (0 – 1)."""
        return len(self._samples) / self.capacity

    def __len__(self) -> int:
        return len(self._samples)
