"""
Monitor configuration.

A single frozen :class:`MonitorConfig` carries every tunable of the
pipeline.  The defaults reproduce the reference behaviour: a 30 × 30
sampling image, ~5 s of samples at 60 frames/s, a 20-interval baseline
and 50-interval HRV batches.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

BATCH_ONESHOT = "oneshot"
BATCH_SLIDING = "sliding"
BATCH_MODES = (BATCH_ONESHOT, BATCH_SLIDING)


@dataclass(frozen=True)
class MonitorConfig:
    """
    Tunables for :class:`~hrv_monitor.pipeline.HeartRatePipeline`.

    Parameters
    ----------
    sample_width, sample_height:
        Size of the sampling image every frame must have.
    window_capacity:
        Maximum number of brightness samples kept in the sliding window.
    variance_threshold:
        A frame passes the contact gate only if its grayscale variance is
        strictly below this value.
    bright_pixel_threshold:
        Maximum number of pixels at or above ``bright_level`` a covered
        sensor may show.
    bright_level:
        Grayscale level (0 – 255) from which a pixel counts as bright.
    rr_min_ms, rr_max_ms:
        Inclusive plausibility range for RR intervals (24 – 240 BPM).
    baseline_size:
        Number of recent distinct RR intervals averaged into the baseline.
    batch_size:
        Number of validated RR intervals that triggers an HRV computation.
    outlier_tolerance_ms:
        Maximum distance from the baseline average for an RR interval to
        join the validated batch.
    lf_band, hf_band:
        Half-open ``[low, high)`` normalised frequency bands.
    batch_mode:
        ``"oneshot"`` clears the batch after metrics are emitted,
        ``"sliding"`` keeps the newest ``batch_size`` intervals and emits
        on every further acceptance.
    """

    sample_width: int = 30
    sample_height: int = 30
    window_capacity: int = 300
    variance_threshold: float = 300.0
    bright_pixel_threshold: int = 20
    bright_level: int = 200
    rr_min_ms: int = 250
    rr_max_ms: int = 2000
    baseline_size: int = 20
    batch_size: int = 50
    outlier_tolerance_ms: float = 150.0
    lf_band: Tuple[float, float] = (0.04, 0.15)
    hf_band: Tuple[float, float] = (0.15, 0.4)
    batch_mode: str = BATCH_ONESHOT

    def __post_init__(self) -> None:
        if self.sample_width < 1 or self.sample_height < 1:
            raise ValueError("Sample size must be at least 1x1.")
        if self.window_capacity < 2:
            raise ValueError("window_capacity must be >= 2.")
        if self.variance_threshold <= 0:
            raise ValueError("variance_threshold must be positive.")
        if self.bright_pixel_threshold < 0:
            raise ValueError("bright_pixel_threshold must be >= 0.")
        if not 0 <= self.bright_level <= 255:
            raise ValueError("bright_level must be within 0 – 255.")
        if not 0 < self.rr_min_ms < self.rr_max_ms:
            raise ValueError(
                f"Invalid RR range [{self.rr_min_ms}, {self.rr_max_ms}]."
            )
        if self.baseline_size < 1:
            raise ValueError("baseline_size must be >= 1.")
        if self.batch_size < 2:
            raise ValueError("batch_size must be >= 2.")
        if self.outlier_tolerance_ms <= 0:
            raise ValueError("outlier_tolerance_ms must be positive.")
        for name, (low, high) in (("lf_band", self.lf_band), ("hf_band", self.hf_band)):
            if not 0 <= low < high:
                raise ValueError(f"Invalid {name} ({low}, {high}).")
        if self.batch_mode not in BATCH_MODES:
            raise ValueError(
                f"batch_mode must be one of {BATCH_MODES}, got {self.batch_mode!r}."
            )

    @property
    def sample_size(self) -> Tuple[int, int]:
        """``(width, height)`` of the sampling image."""
        return self.sample_width, self.sample_height
