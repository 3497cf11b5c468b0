"""
Per-sample validity check.

The thresholds are calibrated to the pulse-oximeter board: below them the
reading is noise floor (no finger on the sensor, or poor coupling).
"""

from __future__ import annotations

from typing import Dict

from .sample import Channel, Sample

IR_THRESHOLD   = 100_000
SPO2_THRESHOLD = 50

_THRESHOLDS = {
    Channel.IR:   IR_THRESHOLD,
    Channel.SPO2: SPO2_THRESHOLD,
}


def classify(channel: Channel, value: float) -> bool:
    """Return *True* if *value* is above the noise floor of *channel*."""
    return value > _THRESHOLDS[channel]


def classify_sample(sample: Sample) -> Dict[Channel, bool]:
    return {ch: classify(ch, sample.value(ch)) for ch in Channel}
