"""
Sensor reading types.

A :class:`Sample` is one synchronized reading pair delivered per polling
tick.  The sensor serves it as JSON::

    [{"type": "IR", "value": 123456}, {"type": "SPO2", "value": 97}]
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from numbers import Real
from typing import Any


class Channel(str, Enum):
    IR   = "IR"
    SPO2 = "SPO2"


class MalformedSample(ValueError):
    """A tick with a missing or non-numeric channel value."""


def _coerce_value(channel: Channel, raw: Any) -> float:
    # bool is an int subclass; a sensor never sends one on purpose
    if raw is None or isinstance(raw, bool):
        raise MalformedSample(f"{channel.value} value missing or invalid: {raw!r}")
    if isinstance(raw, Real):
        try:
            return float(raw)
        except OverflowError:
            raise MalformedSample(
                f"{channel.value} value out of range: {raw!r}"
            ) from None
    if isinstance(raw, str):
        try:
            return float(raw.strip())
        except ValueError:
            raise MalformedSample(
                f"{channel.value} value is not numeric: {raw!r}"
            ) from None
    raise MalformedSample(f"{channel.value} value has unsupported type {type(raw).__name__}")


@dataclass(frozen=True)
class Sample:
    ir_value: float
    spo2_value: float
    timestamp: float = field(default_factory=time.time)

    def value(self, channel: Channel) -> float:
        return self.ir_value if channel is Channel.IR else self.spo2_value

    @classmethod
    def coerce(cls, ir_value: Any, spo2_value: Any, timestamp: float | None = None) -> "Sample":
        """
        Build a sample from loosely-typed readings.

        Numeric strings are accepted (the sensor firmware sometimes sends
        them).  Raises :class:`MalformedSample` for anything else.
        """
        ir = _coerce_value(Channel.IR, ir_value)
        spo2 = _coerce_value(Channel.SPO2, spo2_value)
        if timestamp is None:
            return cls(ir, spo2)
        return cls(ir, spo2, timestamp)

    @classmethod
    def from_payload(cls, payload: Any, timestamp: float | None = None) -> "Sample":
        """
        Parse the sensor's JSON payload.

        The IR reading is the first entry and the SPO2 reading the second;
        entries carrying a ``type`` field are matched by that field instead,
        so a reordered payload still parses.
        """
        if not isinstance(payload, (list, tuple)) or len(payload) < 2:
            raise MalformedSample(f"Expected a list of two readings, got {payload!r}")

        readings: dict[Channel, Any] = {}
        for position, entry in enumerate(payload[:2]):
            if not isinstance(entry, dict):
                raise MalformedSample(f"Reading #{position} is not an object: {entry!r}")
            if "value" not in entry:
                raise MalformedSample(f"Reading #{position} has no value")
            try:
                channel = Channel(str(entry.get("type", "")).upper())
            except ValueError:
                channel = (Channel.IR, Channel.SPO2)[position]
            readings.setdefault(channel, entry["value"])

        if len(readings) != 2:
            raise MalformedSample(f"Payload lacks one of the IR/SPO2 readings: {payload!r}")
        return cls.coerce(readings[Channel.IR], readings[Channel.SPO2], timestamp)
