"""
Peak-count heart-rate estimator.

The sensor is polled every 0.25 s, so a trailing window of 41 samples
spans 10 s and one of 121 samples spans 30 s.  Counting pulse peaks in a
window and scaling by ``60 / window_seconds`` gives beats per minute:

* 10 s window: ``count × 6``, reacts quickly to changes.
* 30 s window: ``count × 2``, steadier.

The two estimates are computed independently and are never averaged; a
gap between them is itself informative.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .peak_detector import MIN_PEAK_DISTANCE, count_peaks
from .sample import Channel
from .sample_buffer import SampleBuffer

logger = logging.getLogger(__name__)

SHORT_WINDOW = 41
LONG_WINDOW = 121
SHORT_MULTIPLIER = 6.0
LONG_MULTIPLIER = 2.0


@dataclass(frozen=True)
class RateEstimate:
    bpm_10s: float = 0.0
    bpm_30s: float = 0.0


class RateEstimator:
    """
    Turns peak counts over two trailing windows into BPM.

    Parameters
    ----------
    short_window / long_window:
        Sample counts of the two windows (default 41 / 121).
    short_multiplier / long_multiplier:
        Factors that extrapolate a window's peak count to one minute
        (default 6 / 2).
    min_distance:
        Minimum gap between accepted peaks, in samples (default 1.75).
    channel:
        Channel to count pulses on (default IR).
    """

    def __init__(
        self,
        short_window: int = SHORT_WINDOW,
        long_window: int = LONG_WINDOW,
        short_multiplier: float = SHORT_MULTIPLIER,
        long_multiplier: float = LONG_MULTIPLIER,
        min_distance: float = MIN_PEAK_DISTANCE,
        channel: Channel = Channel.IR,
    ) -> None:
        self.short_window = short_window
        self.long_window = long_window
        self.short_multiplier = short_multiplier
        self.long_multiplier = long_multiplier
        self.min_distance = min_distance
        self.channel = channel

    def estimate(self, buffer: SampleBuffer) -> RateEstimate:
        """Recompute both estimates from the current contents of *buffer*."""
        short_peaks = count_peaks(buffer.tail(self.channel, self.short_window), self.min_distance)
        long_peaks = count_peaks(buffer.tail(self.channel, self.long_window), self.min_distance)
        estimate = RateEstimate(
            bpm_10s=short_peaks * self.short_multiplier,
            bpm_30s=long_peaks * self.long_multiplier,
        )
        logger.debug(
            "peaks short=%d long=%d -> %.1f / %.1f BPM",
            short_peaks, long_peaks, estimate.bpm_10s, estimate.bpm_30s,
        )
        return estimate
