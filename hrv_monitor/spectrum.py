"""
Power spectrum of an RR-interval series.

Algorithm
---------
1. Zero-pad the series to the next power of two ``N``.
2. Subtract the mean of the padded array (pad region included).
3. Radix-2 Cooley–Tukey FFT of the result.
4. Power of bin ``i`` (``0 ≤ i < N/2``) is ``|X[i]|² / N``; its
   normalised frequency is ``i / (N/2)``.

RR intervals are not sampled on a uniform time grid, so the frequency
axis is an index proxy rather than Hz.  The estimate is intentionally this
simple and should be compared only against itself.
"""

from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from hrv_monitor.errors import InsufficientDataError


def next_power_of_two(n: int) -> int:
    """Smallest power of two ≥ *n* (``n ≥ 1``)."""
    if n < 1:
        raise ValueError("n must be >= 1.")
    return 1 << (n - 1).bit_length()


def pad_to_power_of_two(values: Sequence[float]) -> np.ndarray:
    """Return *values* followed by trailing zeros up to a power-of-two length."""
    arr = np.asarray(values, dtype=np.float64)
    if arr.size == 0:
        raise InsufficientDataError("Cannot pad an empty series.")
    padded = np.zeros(next_power_of_two(arr.size), dtype=np.float64)
    padded[:arr.size] = arr
    return padded


def fft(values: Sequence[complex]) -> np.ndarray:
    """
    Recursive radix-2 discrete Fourier transform.

    The length of *values* must be a power of two.  A sequence of length
    ≤ 1 is returned unchanged.  Recursion depth is ``log2(N)``.
    """
    x = np.asarray(values, dtype=np.complex128)
    n = x.shape[0]
    if n <= 1:
        return x
    if n & (n - 1):
        raise ValueError(f"FFT length must be a power of two, got {n}.")

    even = fft(x[0::2])
    odd = fft(x[1::2])
    twiddled = np.exp(-2j * np.pi * np.arange(n // 2) / n) * odd
    return np.concatenate([even + twiddled, even - twiddled])


def periodogram(values: Sequence[float]) -> np.ndarray:
    """``|X[i]|² / N`` for the first ``N/2`` bins of ``fft(values)``."""
    spectrum = fft(values)
    n = spectrum.shape[0]
    half = spectrum[: n // 2]
    return (half.real ** 2 + half.imag ** 2) / n


def rr_power_spectrum(rr_intervals: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Return ``(freqs, power)`` of an RR series.

    Frequencies are normalised bin indices ``i / (N/2)`` in ``[0, 1)``.
    """
    padded = pad_to_power_of_two(rr_intervals)
    n = padded.shape[0]
    centred = padded - padded.mean()
    power = periodogram(centred)
    freqs = np.arange(n // 2) / (n / 2)
    return freqs, power


def band_power(freqs: np.ndarray, power: np.ndarray, band: Tuple[float, float]) -> float:
    """Sum of *power* over bins with ``band[0] ≤ freq < band[1]``."""
    low, high = band
    mask = (freqs >= low) & (freqs < high)
    return float(power[mask].sum())
