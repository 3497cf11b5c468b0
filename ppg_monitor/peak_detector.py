"""
Peak detection for pulse counting.

Algorithm
---------
1. Candidates are the local maxima of the series, found with
   :func:`scipy.signal.find_peaks`.  A maximum must rise strictly from its
   left neighbour and fall strictly after it; a flat top (plateau) counts
   once, at its first index.  The first and last samples are never peaks,
   and a fully flat series has none.
2. Candidates are accepted greedily from left to right: one that lies
   closer than ``min_distance`` samples to the last *accepted* peak is
   dropped, even when it is higher.

The greedy rule differs from ``find_peaks(distance=...)``, which keeps the
tallest peak of a cluster.  Keep it: BPM counts depend on it.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from scipy.signal import find_peaks

MIN_PEAK_DISTANCE = 1.75


def find_candidates(series: "Sequence[float] | np.ndarray") -> np.ndarray:
    """Return the indices of all local maxima (plateaus at their first index)."""
    x = np.asarray(series, dtype=np.float64).ravel()
    if len(x) < 3:
        return np.empty(0, dtype=np.intp)
    _, props = find_peaks(x, plateau_size=1)
    return props["left_edges"].astype(np.intp)


def detect_peaks(
    series: "Sequence[float] | np.ndarray",
    min_distance: float = MIN_PEAK_DISTANCE,
) -> np.ndarray:
    """
    Return the indices of accepted peaks in *series*, in increasing order.

    Parameters
    ----------
    series:
        1-D sequence of numbers.  NaN values never become peaks.
    min_distance:
        Smallest allowed index gap between two accepted peaks.

    Returns an empty array for series shorter than three samples.
    """
    if min_distance < 0:
        raise ValueError(f"min_distance must be non-negative, got {min_distance}")

    accepted: list[int] = []
    for idx in find_candidates(series):
        if accepted and idx - accepted[-1] < min_distance:
            continue
        accepted.append(int(idx))
    return np.asarray(accepted, dtype=np.intp)


def count_peaks(
    series: "Sequence[float] | np.ndarray",
    min_distance: float = MIN_PEAK_DISTANCE,
) -> int:
    return len(detect_peaks(series, min_distance))
