"""
Pipeline controller.

Owns the sample buffer and, for every tick received while streaming:

1. pushes the IR and SPO2 readings into the buffer,
2. classifies the validity of the latest readings,
3. recomputes both BPM estimates from the updated buffer,
4. publishes a :class:`DerivedState` snapshot for the presentation layer.

The controller performs no I/O; a transport drives it tick by tick.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Any, Optional

import numpy as np

from .rate_estimator import RateEstimate, RateEstimator
from .sample import Channel, MalformedSample, Sample
from .sample_buffer import SampleBuffer
from .validity import classify

logger = logging.getLogger(__name__)


class PipelineState(Enum):
    IDLE      = auto()   # no ticks accepted
    STREAMING = auto()


@dataclass(frozen=True)
class DerivedState:
    """Everything the presentation layer reads after a tick."""
    ir_value: float = 0.0
    spo2_value: float = 0.0
    ir_valid: bool = False
    spo2_valid: bool = False
    rate: RateEstimate = field(default_factory=RateEstimate)
    ir_tail: np.ndarray = field(default_factory=lambda: np.zeros(0))
    spo2_tail: np.ndarray = field(default_factory=lambda: np.zeros(0))
    ticks: int = 0
    rejected: int = 0
    last_error: Optional[str] = None

    @property
    def bpm_10s(self) -> float:
        return self.rate.bpm_10s

    @property
    def bpm_30s(self) -> float:
        return self.rate.bpm_30s


class PipelineController:
    """
    Drives buffering, validity classification and rate estimation.

    Parameters
    ----------
    buffer:
        Sample buffer to own.  A new zero-filled one is created by default.
    estimator:
        Rate estimator.  Defaults to the 10 s / 30 s configuration.
    """

    def __init__(
        self,
        buffer: SampleBuffer | None = None,
        estimator: RateEstimator | None = None,
    ) -> None:
        self._buffer = buffer if buffer is not None else SampleBuffer()
        self._estimator = estimator if estimator is not None else RateEstimator()
        self._pipeline_state = PipelineState.IDLE
        self._state = self._snapshot(DerivedState())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Begin accepting ticks.  The buffer carries over from before."""
        if self._pipeline_state is PipelineState.STREAMING:
            return
        self._pipeline_state = PipelineState.STREAMING
        self._state = replace(self._state, last_error=None)
        logger.info("Pipeline streaming.")

    def stop(self) -> None:
        """Stop accepting ticks.  The last derived state is kept."""
        if self._pipeline_state is PipelineState.IDLE:
            return
        self._pipeline_state = PipelineState.IDLE
        logger.info("Pipeline idle.")

    def reset(self) -> None:
        """Restore the zero-filled buffer and zero estimates."""
        self._buffer.reset()
        self._state = self._snapshot(DerivedState())
        logger.info("Signal buffer reset.")

    @property
    def pipeline_state(self) -> PipelineState:
        return self._pipeline_state

    @property
    def is_streaming(self) -> bool:
        return self._pipeline_state is PipelineState.STREAMING

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------

    def ingest(self, sample: Sample) -> DerivedState:
        """
        Process one tick and return the new derived state.

        Ticks arriving while idle are ignored.  A sample with a missing or
        non-numeric value is dropped before it reaches the buffer.
        """
        if not self.is_streaming:
            logger.debug("Ignoring tick while idle.")
            return self._state

        try:
            sample = Sample.coerce(sample.ir_value, sample.spo2_value, sample.timestamp)
        except MalformedSample as exc:
            return self._reject(exc)

        # The chart never shows a negative oxygen reading; validity is
        # still judged on the raw value.
        spo2_stored = sample.spo2_value if sample.spo2_value > 0 else 0.0
        self._buffer.push(Channel.IR, sample.ir_value)
        self._buffer.push(Channel.SPO2, spo2_stored)

        self._state = self._snapshot(
            replace(
                self._state,
                ir_value=sample.ir_value,
                spo2_value=sample.spo2_value,
                ir_valid=classify(Channel.IR, sample.ir_value),
                spo2_valid=classify(Channel.SPO2, sample.spo2_value),
                ticks=self._state.ticks + 1,
            )
        )
        return self._state

    def ingest_payload(self, payload: Any, timestamp: float | None = None) -> DerivedState:
        """
        Parse a raw sensor payload and ingest it.

        A malformed payload is dropped: the buffer is left untouched and the
        previous derived state is returned.  Payloads arriving while idle
        are ignored without being parsed.
        """
        if not self.is_streaming:
            logger.debug("Ignoring payload while idle.")
            return self._state
        try:
            sample = Sample.from_payload(payload, timestamp)
        except MalformedSample as exc:
            return self._reject(exc)
        return self.ingest(sample)

    def record_dropout(self, reason: str) -> DerivedState:
        """
        Handle a failed poll: a zero enters both channels and the pipeline
        goes idle until the transport reconnects.
        """
        logger.warning("Sensor dropout: %s", reason)
        if self.is_streaming:
            self._buffer.push(Channel.IR, 0.0)
            self._buffer.push(Channel.SPO2, 0.0)
            self._state = self._snapshot(self._state)
        self._state = replace(self._state, last_error=reason)
        self.stop()
        return self._state

    @property
    def state(self) -> DerivedState:
        return self._state

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _reject(self, exc: MalformedSample) -> DerivedState:
        logger.warning("Rejected tick: %s", exc)
        self._state = replace(self._state, rejected=self._state.rejected + 1)
        return self._state

    def _snapshot(self, base: DerivedState) -> DerivedState:
        """Recompute the estimate and chart tails on top of *base*."""
        cap = self._buffer.capacity
        return replace(
            base,
            rate=self._estimator.estimate(self._buffer),
            ir_tail=self._buffer.tail(Channel.IR, cap),
            spo2_tail=self._buffer.tail(Channel.SPO2, cap),
        )
