"""
Output sinks for pipeline results.

A sink stands in for the display: it receives the BPM readout, the status
line and the HRV metrics of each completed batch.
"""

from __future__ import annotations

import json
import logging
from typing import Optional, Protocol

from hrv_monitor.hrv import HrvMetrics

logger = logging.getLogger(__name__)


class MonitorSink(Protocol):
    def on_bpm_change(self, bpm: Optional[int]) -> None: ...

    def on_bpm_status_change(self, status: str) -> None: ...

    def on_hrv_metrics_ready(self, metrics: HrvMetrics) -> None: ...


class LoggingSink:
    """
    Report results through :mod:`logging`, skipping repeats so a steady
    readout does not flood the log at frame rate.
    """

    def __init__(self, log: logging.Logger = logger) -> None:
        self._log = log
        self._bpm: Optional[int] = None
        self._status: Optional[str] = None

    def on_bpm_change(self, bpm: Optional[int]) -> None:
        if bpm != self._bpm:
            self._bpm = bpm
            if bpm is not None:
                self._log.info("BPM=%d", bpm)

    def on_bpm_status_change(self, status: str) -> None:
        if status != self._status:
            self._status = status
            if status:
                self._log.info("Status: %s", status)

    def on_hrv_metrics_ready(self, metrics: HrvMetrics) -> None:
        self._log.info("HRV metrics:\n%s", json.dumps(metrics.as_dict(), indent=2))
