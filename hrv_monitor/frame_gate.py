"""
Finger-on-sensor gate.

When a finger covers the camera, the sampling image becomes:
  - Nearly uniform (low spatial variance of grayscale intensity).
  - Free of bright spots (almost no pixels near white).

A frame that fails either test most likely shows an open scene or a
saturated sensor, so its brightness must not reach the beat detector.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

import numpy as np

logger = logging.getLogger(__name__)

# ITU-R BT.601 luma weights for R, G, B.
_LUMA = np.array([0.299, 0.587, 0.114])


class GateResult(NamedTuple):
    present: bool
    variance: float
    bright_pixels: int


def grayscale(pixels: np.ndarray) -> np.ndarray:
    """Return integer grayscale buckets (0 – 255) for an RGB image."""
    luma = pixels[:, :, :3].astype(np.float64) @ _LUMA
    # Half-up rounding into the 256 histogram buckets.
    return np.clip(np.floor(luma + 0.5), 0, 255).astype(np.int64)


def histogram(gray: np.ndarray) -> np.ndarray:
    """256-bucket histogram of grayscale values."""
    return np.bincount(gray.ravel(), minlength=256)


class FrameGate:
    """
    Heuristic detector: is the sensor covered by a finger?

    Parameters
    ----------
    variance_threshold:
        The grayscale variance must be strictly below this value.
        Default: 300.
    bright_pixel_threshold:
        Maximum number of pixels with grayscale ≥ ``bright_level``.
        Default: 20.
    bright_level:
        Grayscale level from which a pixel counts as bright.  Default: 200.
    """

    def __init__(
        self,
        variance_threshold: float = 300.0,
        bright_pixel_threshold: int = 20,
        bright_level: int = 200,
    ) -> None:
        self.variance_threshold = variance_threshold
        self.bright_pixel_threshold = bright_pixel_threshold
        self.bright_level = bright_level

    def check(self, pixels: np.ndarray) -> GateResult:
        """
        Classify *pixels* (RGB, H × W × 3, uint8) as contact present or not.
        """
        gray = grayscale(pixels)
        variance = float(gray.var())
        bright = int(histogram(gray)[self.bright_level:].sum())

        uniform_enough = variance < self.variance_threshold
        no_highlights  = bright <= self.bright_pixel_threshold

        present = uniform_enough and no_highlights
        if not present:
            logger.debug(
                "No contact: variance=%.1f bright_pixels=%d", variance, bright
            )
        return GateResult(present, variance, bright)

    def is_finger(self, pixels: np.ndarray) -> bool:
        """Return *True* if *pixels* looks like a finger covering the sensor."""
        return self.check(pixels).present
