"""
Unit tests for RateEstimator.
Run with:  pytest tests/
"""

from __future__ import annotations

import numpy as np

from ppg_monitor.rate_estimator import RateEstimate, RateEstimator
from ppg_monitor.sample import Channel
from ppg_monitor.sample_buffer import CAPACITY, SampleBuffer


def _pulse_wave(n: int = CAPACITY, period: int = 20, phase: int = 10) -> np.ndarray:
    """IR wave with a crest at every index ≡ *phase* (mod *period*)."""
    k = np.arange(n)
    return 150_000 + 1_000 * np.cos(2 * np.pi * (k - phase) / period)


def _fill(values: np.ndarray) -> SampleBuffer:
    buf = SampleBuffer()
    for v in values:
        buf.push(Channel.IR, float(v))
    return buf


class TestRateEstimator:

    def test_all_zero_buffer(self):
        assert RateEstimator().estimate(SampleBuffer()) == RateEstimate(bpm_10s=0, bpm_30s=0)

    def test_consistent_rate_windows_agree(self):
        # Crests at 130, 150, ..., 230: 2 in the last 41 samples, 6 in the last 121
        est = RateEstimator().estimate(_fill(_pulse_wave()))
        assert est.bpm_10s == 12
        assert est.bpm_30s == 12

    def test_noise_burst_moves_short_window_more(self):
        clean = RateEstimator().estimate(_fill(_pulse_wave()))

        noisy_wave = _pulse_wave()
        noisy_wave[234] += 5_000          # two spikes within the last 10 samples
        noisy_wave[237] += 5_000
        noisy = RateEstimator().estimate(_fill(noisy_wave))

        assert noisy.bpm_10s == 24        # 4 peaks × 6
        assert noisy.bpm_30s == 16        # 8 peaks × 2
        assert noisy.bpm_10s - clean.bpm_10s > noisy.bpm_30s - clean.bpm_30s

    def test_startup_underfill_gives_low_estimate(self):
        buf = SampleBuffer()
        buf.push(Channel.IR, 150_000.0)
        assert RateEstimator().estimate(buf) == RateEstimate(0, 0)
        buf.push(Channel.IR, 149_000.0)
        est = RateEstimator().estimate(buf)
        assert est.bpm_10s == 6
        assert est.bpm_30s == 2

    def test_only_ir_channel_counted(self):
        buf = SampleBuffer()
        for v in _pulse_wave():
            buf.push(Channel.SPO2, float(v))
        assert RateEstimator().estimate(buf) == RateEstimate(0, 0)

    def test_estimates_not_rounded(self):
        est = RateEstimator(short_multiplier=6.5, long_multiplier=0.25).estimate(_fill(_pulse_wave()))
        assert est.bpm_10s == 13.0
        assert est.bpm_30s == 1.5

    def test_custom_windows(self):
        # Crests every 4 samples: 10 in 41, 30 in 121 → 60 BPM
        wave = _pulse_wave(period=4, phase=1)
        est = RateEstimator().estimate(_fill(wave))
        assert est == RateEstimate(60, 60)
        short_only = RateEstimator(short_window=9, short_multiplier=1).estimate(_fill(wave))
        assert short_only.bpm_10s == 2
