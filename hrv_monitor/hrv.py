"""
Heart-rate-variability metrics from a batch of validated RR intervals.

Time domain
-----------
- meanRR: arithmetic mean of the intervals.
- RMSSD: root mean square of successive differences.
- pNN50: percentage of successive differences larger than 50 ms.

Frequency domain
----------------
- LF / HF power: spectral power of the RR series in the low (0.04 – 0.15)
  and high (0.15 – 0.4) normalised bands, see :mod:`hrv_monitor.spectrum`.

Derived indices
---------------
- energy  = 1000 / RMSSD
- stress  = LF / HF
- tension = (1000 / RMSSD) × (1000 / meanRR)

Undefined results (too few intervals, division by zero) raise instead of
returning NaN or infinity.

Notes
-----
These are trend indicators, not clinical measurements.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Sequence, Tuple

import numpy as np

from hrv_monitor.errors import ComputationError, InsufficientDataError
from hrv_monitor.spectrum import band_power, rr_power_spectrum

NN50_THRESHOLD_MS = 50.0

LF_BAND = (0.04, 0.15)
HF_BAND = (0.15, 0.4)


@dataclass(frozen=True)
class HrvMetrics:
    rmssd: float
    mean_rr: float
    lf_power: float
    hf_power: float
    energy: float
    stress: float
    tension: float
    pnn50: float

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


def _as_array(rr_intervals: Sequence[float], minimum: int) -> np.ndarray:
    rr = np.asarray(rr_intervals, dtype=np.float64)
    if rr.size < minimum:
        raise InsufficientDataError(
            f"Need at least {minimum} RR intervals, got {rr.size}."
        )
    return rr


def mean_rr(rr_intervals: Sequence[float]) -> float:
    return float(_as_array(rr_intervals, 1).mean())


def successive_differences(rr_intervals: Sequence[float]) -> np.ndarray:
    """``RR[i+1] − RR[i]`` for every adjacent pair."""
    return np.diff(_as_array(rr_intervals, 2))


def rmssd(rr_intervals: Sequence[float]) -> float:
    diffs = successive_differences(rr_intervals)
    return float(np.sqrt(np.mean(diffs ** 2)))


def pnn50(rr_intervals: Sequence[float]) -> float:
    diffs = successive_differences(rr_intervals)
    nn50 = int(np.count_nonzero(np.abs(diffs) > NN50_THRESHOLD_MS))
    return 100.0 * nn50 / diffs.size


def lf_hf_power(
    rr_intervals: Sequence[float],
    lf_band: Tuple[float, float] = LF_BAND,
    hf_band: Tuple[float, float] = HF_BAND,
) -> Tuple[float, float]:
    """Return ``(lf_power, hf_power)`` of the RR series."""
    freqs, power = rr_power_spectrum(_as_array(rr_intervals, 2))
    return band_power(freqs, power, lf_band), band_power(freqs, power, hf_band)


def compute_hrv_metrics(
    rr_intervals: Sequence[float],
    lf_band: Tuple[float, float] = LF_BAND,
    hf_band: Tuple[float, float] = HF_BAND,
) -> HrvMetrics:
    """
    Compute every HRV metric for one batch.

    Raises
    ------
    InsufficientDataError
        Fewer than two intervals.
    ComputationError
        RMSSD, meanRR or HF power is zero, which leaves energy, tension or
        stress undefined.
    """
    rr = _as_array(rr_intervals, 2)

    mean = mean_rr(rr)
    root = rmssd(rr)
    lf, hf = lf_hf_power(rr, lf_band, hf_band)

    if root == 0:
        raise ComputationError("RMSSD is zero; energy and tension are undefined.")
    if mean == 0:
        raise ComputationError("Mean RR is zero; tension is undefined.")
    if hf == 0:
        raise ComputationError("HF power is zero; stress is undefined.")

    return HrvMetrics(
        rmssd=root,
        mean_rr=mean,
        lf_power=lf,
        hf_power=hf,
        energy=1000.0 / root,
        stress=lf / hf,
        tension=(1000.0 / root) * (1000.0 / mean),
        pnn50=pnn50(rr),
    )
