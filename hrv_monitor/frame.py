"""
Frame and sample types exchanged between the acquisition side and the core.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

import numpy as np


@dataclass(frozen=True)
class Frame:
    """
    One downsampled sensor image.

    Parameters
    ----------
    pixels:
        RGB image array (H × W × 3, uint8).
    timestamp:
        Capture time in integer milliseconds, strictly increasing.
    """

    pixels: np.ndarray
    timestamp: int


class Sample(NamedTuple):
    """Brightness of one accepted frame, scaled to 0 – 1."""

    value: float
    timestamp: int


def average_brightness(pixels: np.ndarray) -> float:
    """
    Mean of the red and green channels of *pixels*, scaled to 0 – 1.

    Red and green together give the strongest pulse modulation for a
    finger lit by the torch; blue is ignored.
    """
    rg = pixels[:, :, :2].astype(np.float64)
    return float(rg.mean() / 255.0)
