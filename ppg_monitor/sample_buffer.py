"""
Sliding window of the most recent sensor readings.

Each channel keeps exactly ``capacity`` values, oldest first.  The window
starts out filled with zeros, so consumers always see a full-length window;
the price is that the first real windows contain synthetic zeros.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, Dict, Iterable

import numpy as np

from .sample import Channel

CAPACITY = 241        # 60 s at 4 ticks per second, plus the current tick


class SampleBuffer:
    """
    Fixed-capacity FIFO ring per channel.

    Parameters
    ----------
    capacity:
        Number of values retained per channel (default 241).
    channels:
        Channels to track (default: IR and SPO2).
    fill_value:
        Value used to pre-fill the window (default 0.0).
    """

    def __init__(
        self,
        capacity: int = CAPACITY,
        channels: Iterable[Channel] = tuple(Channel),
        fill_value: float = 0.0,
    ) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.fill_value = fill_value
        self._channels: Dict[Channel, Deque[float]] = {
            ch: self._new_window() for ch in channels
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def push(self, channel: Channel, value: float) -> None:
        """Append *value*; the oldest entry falls off once the window is full."""
        self._channels[channel].append(value)

    def tail(self, channel: Channel, n: int) -> np.ndarray:
        """
        Return the most recent *n* values of *channel*, oldest first.

        The result always has length *n*: missing history is covered by the
        window's own zero pre-fill.
        """
        if not 0 < n <= self.capacity:
            raise ValueError(f"n must be in 1..{self.capacity}, got {n}")
        window = self._channels[channel]
        values = np.fromiter(window, dtype=np.float64, count=len(window))
        if len(values) < n:
            pad = np.full(n - len(values), self.fill_value, dtype=np.float64)
            values = np.concatenate([pad, values])
        return values[-n:]

    def latest(self, channel: Channel) -> float:
        return self._channels[channel][-1]

    def reset(self) -> None:
        """Discard all readings and restore the zero-filled window."""
        for ch in self._channels:
            self._channels[ch] = self._new_window()

    def __len__(self) -> int:
        return len(next(iter(self._channels.values())))

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _new_window(self) -> Deque[float]:
        return deque([self.fill_value] * self.capacity, maxlen=self.capacity)
