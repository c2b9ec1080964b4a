"""
Frame-driven heart-rate / HRV pipeline.

Each call to :meth:`HeartRatePipeline.process_frame` runs one full step:

    Frame → FrameGate → SampleWindow → beat crossings → RRTracker
          → BPM estimate  [→ HRV metrics when a batch completes]

The pipeline owns every piece of mutable state (window, baseline, batch,
timestamp tracking), so independent sessions are independent objects.
It is not thread-safe; frames from several producers must be serialised
by the caller.
"""

from __future__ import annotations

import logging
from typing import NamedTuple, Optional

import numpy as np

from hrv_monitor.beat_detector import analyze_window
from hrv_monitor.bpm import estimate_bpm
from hrv_monitor.config import MonitorConfig
from hrv_monitor.errors import ComputationError, InputError, InsufficientDataError
from hrv_monitor.frame import Frame, Sample, average_brightness
from hrv_monitor.frame_gate import FrameGate
from hrv_monitor.hrv import HrvMetrics, compute_hrv_metrics
from hrv_monitor.rr_tracker import RRTracker
from hrv_monitor.sample_window import SampleWindow
from hrv_monitor.sink import MonitorSink

logger = logging.getLogger(__name__)

STATUS_AWAITING_CONTACT = "awaiting contact"
STATUS_HRV_UNAVAILABLE = "hrv unavailable"
STATUS_NEUTRAL = ""


class FrameResult(NamedTuple):
    """
    Outcome of one processed frame.

    ``status`` is *None* when the frame does not change the status line.
    ``metrics`` is set only on the frame that completed a batch.
    """

    contact: bool
    bpm: Optional[int]
    status: Optional[str]
    metrics: Optional[HrvMetrics]
    sample: Optional[Sample]


class HeartRatePipeline:
    """
    Parameters
    ----------
    config:
        Pipeline tunables; defaults to :class:`MonitorConfig()`.
    sink:
        Optional receiver for BPM, status and metrics updates.  Results are
        returned from :meth:`process_frame` either way.
    """

    def __init__(
        self,
        config: Optional[MonitorConfig] = None,
        sink: Optional[MonitorSink] = None,
    ) -> None:
        self.config = config or MonitorConfig()
        self.sink = sink

        self.gate = FrameGate(
            variance_threshold=self.config.variance_threshold,
            bright_pixel_threshold=self.config.bright_pixel_threshold,
            bright_level=self.config.bright_level,
        )
        self.window = SampleWindow(self.config.window_capacity)
        self.tracker = RRTracker(
            rr_min_ms=self.config.rr_min_ms,
            rr_max_ms=self.config.rr_max_ms,
            baseline_size=self.config.baseline_size,
            batch_size=self.config.batch_size,
            outlier_tolerance_ms=self.config.outlier_tolerance_ms,
            batch_mode=self.config.batch_mode,
        )

        self._running = False
        self._last_timestamp: Optional[int] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Begin a fresh monitoring session."""
        self.reset()
        self._running = True
        logger.info("Monitoring started.")
        if self.sink is not None:
            self.sink.on_bpm_change(None)
            self.sink.on_bpm_status_change(STATUS_NEUTRAL)

    def stop(self) -> None:
        """Halt intake and clear all state.  Safe to call repeatedly."""
        if self._running:
            logger.info("Monitoring stopped.")
        self._running = False
        self.reset()

    def reset(self) -> None:
        """Clear the sample window, baseline, batch and timestamp tracking."""
        self.window.reset()
        self.tracker.reset()
        self._last_timestamp = None

    @property
    def running(self) -> bool:
        return self._running

    def __enter__(self) -> "HeartRatePipeline":
        self.start()
        return self

    def __exit__(self, *_) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Frame processing
    # ------------------------------------------------------------------

    def process_frame(self, frame: Frame) -> FrameResult:
        """
        Run one pipeline step for *frame*.

        Raises
        ------
        InputError
            *frame* is malformed; no state was changed.
        RuntimeError
            The pipeline is not running.
        """
        if not self._running:
            raise RuntimeError("Pipeline is not running.  Call start() first.")
        self._validate(frame)
        self._last_timestamp = frame.timestamp

        if not self.gate.is_finger(frame.pixels):
            result = FrameResult(False, None, STATUS_AWAITING_CONTACT, None, None)
            self._notify(result)
            return result

        sample = Sample(average_brightness(frame.pixels), frame.timestamp)
        self.window.push(sample)

        stats = analyze_window(self.window.snapshot())
        update = self.tracker.update(stats.crossings, frame.timestamp)

        bpm = estimate_bpm(update.baseline_average) if update.bpm_ready else None
        status = update.status
        metrics = None

        if update.batch is not None:
            try:
                metrics = compute_hrv_metrics(
                    update.batch, self.config.lf_band, self.config.hf_band
                )
            except (InsufficientDataError, ComputationError) as exc:
                logger.warning("HRV computation failed: %s", exc)
                status = STATUS_HRV_UNAVAILABLE
            else:
                logger.info(
                    "HRV ready: rmssd=%.1f meanRR=%.1f stress=%.2f",
                    metrics.rmssd, metrics.mean_rr, metrics.stress,
                )

        if update.accepted:
            logger.debug(
                "Window fill=%.2f range=%.4f baseline=%.1f ms",
                self.window.fill_ratio, stats.range, update.baseline_average,
            )

        result = FrameResult(True, bpm, status, metrics, sample)
        self._notify(result, clear_bpm=update.calibrating)
        return result

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _validate(self, frame: Frame) -> None:
        pixels = frame.pixels
        expected = (self.config.sample_height, self.config.sample_width, 3)
        if not isinstance(pixels, np.ndarray) or pixels.shape != expected:
            shape = getattr(pixels, "shape", None)
            raise InputError(f"Expected pixels of shape {expected}, got {shape}.")
        if not np.issubdtype(pixels.dtype, np.integer):
            raise InputError(f"Pixels must be integer 0 – 255, got dtype {pixels.dtype}.")
        if pixels.min() < 0 or pixels.max() > 255:
            raise InputError(
                f"Pixel values out of range 0 – 255 ({pixels.min()} – {pixels.max()})."
            )

        ts = frame.timestamp
        if ts is None:
            raise InputError("Frame has no timestamp.")
        if isinstance(ts, bool) or not isinstance(ts, (int, np.integer)):
            raise InputError(f"Timestamp must be an integer (ms), got {ts!r}.")
        if self._last_timestamp is not None and ts <= self._last_timestamp:
            raise InputError(
                f"Non-monotonic timestamp {ts} (previous {self._last_timestamp})."
            )

    def _notify(self, result: FrameResult, clear_bpm: bool = False) -> None:
        if self.sink is None:
            return
        if result.bpm is not None:
            self.sink.on_bpm_change(result.bpm)
        elif clear_bpm:
            self.sink.on_bpm_change(None)
        if result.status is not None:
            self.sink.on_bpm_status_change(result.status)
        if result.metrics is not None:
            self.sink.on_hrv_metrics_ready(result.metrics)
