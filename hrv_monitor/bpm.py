"""
Instantaneous heart rate from the RR baseline.
"""

from __future__ import annotations

import math
from typing import Optional

MS_PER_MINUTE = 60_000


def estimate_bpm(baseline_average: float) -> Optional[int]:
    """
    Convert the rolling baseline RR interval (ms) to beats per minute.

    Returns *None* while no baseline is established (average ≤ 0).
    """
    if baseline_average <= 0:
        return None
    # Half-up rounding for display.
    return int(math.floor(MS_PER_MINUTE / baseline_average + 0.5))
