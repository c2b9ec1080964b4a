"""
RR-interval tracker.

Turns the beat crossings reported for each frame into RR intervals and
keeps three pieces of state:

* the last plausible RR processed (so the same beat pair, which stays the
  newest pair for many frames, is handled only once);
* the baseline, a rolling window of recent distinct RR intervals whose
  average drives the BPM readout;
* the validated batch, the intervals that passed the outlier and pacing
  filter, handed to the HRV analyzer once it reaches its target size.

The baseline average is recomputed *after* the new interval is appended,
over every interval currently held (1 … ``baseline_size``).
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, NamedTuple, Optional, Sequence, Tuple

from hrv_monitor.config import BATCH_MODES, BATCH_ONESHOT, BATCH_SLIDING
from hrv_monitor.frame import Sample

logger = logging.getLogger(__name__)

STATUS_CALIBRATING = "calibrating"

MIN_EVENTS = 3


class RRUpdate(NamedTuple):
    """
    Outcome of one :meth:`RRTracker.update` call.

    ``bpm_ready`` is *True* when the frame produced a usable interval and a
    BPM may be shown from ``baseline_average``.  ``batch`` is set only on
    the frame the validated batch reached its target size.
    """

    status: Optional[str]
    calibrating: bool
    bpm_ready: bool
    baseline_average: float
    accepted: bool
    batch: Optional[Tuple[int, ...]]


class RRTracker:
    """
    Parameters
    ----------
    rr_min_ms, rr_max_ms:
        Inclusive plausibility range for an RR interval.
    baseline_size:
        Maximum number of intervals kept in the baseline.
    batch_size:
        Validated-batch size that triggers HRV analysis.
    outlier_tolerance_ms:
        An interval joins the batch only if it is closer than this to the
        baseline average.
    batch_mode:
        ``"oneshot"`` or ``"sliding"``; see :class:`~hrv_monitor.config.MonitorConfig`.
    """

    def __init__(
        self,
        rr_min_ms: int = 250,
        rr_max_ms: int = 2000,
        baseline_size: int = 20,
        batch_size: int = 50,
        outlier_tolerance_ms: float = 150.0,
        batch_mode: str = BATCH_ONESHOT,
    ) -> None:
        if batch_mode not in BATCH_MODES:
            raise ValueError(f"Unknown batch mode {batch_mode!r}.")
        self.rr_min_ms = rr_min_ms
        self.rr_max_ms = rr_max_ms
        self.batch_size = batch_size
        self.outlier_tolerance_ms = outlier_tolerance_ms
        self.batch_mode = batch_mode

        self._baseline: Deque[int] = deque(maxlen=baseline_size)
        self._batch: Deque[int] = deque(
            maxlen=batch_size if batch_mode == BATCH_SLIDING else None
        )
        self._baseline_average: float = 0.0
        self._last_rr: Optional[int] = None
        self._last_accept_ms: Optional[int] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def update(self, beats: Sequence[Sample], now_ms: int) -> RRUpdate:
        """
        Process the beat crossings of the current frame.

        Parameters
        ----------
        beats:
            Crossing samples of the current window, oldest first.
        now_ms:
            Timestamp of the current frame, used for the pacing guard.
        """
        if len(beats) < MIN_EVENTS:
            return RRUpdate(STATUS_CALIBRATING, True, False, self._baseline_average, False, None)

        rr = int(beats[-1].timestamp - beats[-2].timestamp)
        if not self.is_plausible(rr):
            logger.debug("Discarding implausible RR interval %d ms", rr)
            return RRUpdate(None, False, False, self._baseline_average, False, None)

        if rr == self._last_rr:
            return self._result(None, False, None)
        self._last_rr = rr

        self._baseline.append(rr)
        self._baseline_average = sum(self._baseline) / len(self._baseline)

        if not self._passes_filter(rr, now_ms):
            logger.debug(
                "RR %d ms rejected (baseline %.1f ms)", rr, self._baseline_average
            )
            return self._result(None, False, None)

        self._batch.append(rr)
        self._last_accept_ms = now_ms
        status = f"{len(self._batch)}/{self.batch_size}"

        batch = None
        if len(self._batch) >= self.batch_size:
            batch = tuple(self._batch)
            if self.batch_mode == BATCH_ONESHOT:
                self._batch.clear()
            logger.info("Validated batch of %d RR intervals complete", len(batch))
        return self._result(status, True, batch)

    def is_plausible(self, rr: int) -> bool:
        return self.rr_min_ms <= rr <= self.rr_max_ms

    def reset(self) -> None:
        """Return to the initial, empty state."""
        self._baseline.clear()
        self._batch.clear()
        self._baseline_average = 0.0
        self._last_rr = None
        self._last_accept_ms = None

    @property
    def baseline(self) -> Tuple[int, ...]:
        return tuple(self._baseline)

    @property
    def baseline_average(self) -> float:
        return self._baseline_average

    @property
    def batch(self) -> Tuple[int, ...]:
        return tuple(self._batch)

    @property
    def batch_length(self) -> int:
        return len(self._batch)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _passes_filter(self, rr: int, now_ms: int) -> bool:
        """Outlier test against the baseline plus the pacing guard."""
        if abs(rr - self._baseline_average) >= self.outlier_tolerance_ms:
            return False
        if self._last_accept_ms is None:
            return True
        return now_ms - self._last_accept_ms > self._baseline_average / 2

    def _result(
        self, status: Optional[str], accepted: bool, batch: Optional[Tuple[int, ...]]
    ) -> RRUpdate:
        return RRUpdate(
            status,
            False,
            self._baseline_average > 0,
            self._baseline_average,
            accepted,
            batch,
        )
