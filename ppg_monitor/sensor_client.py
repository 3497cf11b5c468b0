"""
Sensor transport.

Polls the pulse-oximeter board's HTTP endpoint (``GET http://<host>/data``)
at a fixed cadence and yields the raw JSON payloads.  Parsing and all signal
work happen in :mod:`ppg_monitor.pipeline`; this module only moves bytes.

:class:`SyntheticSensor` offers the same interface without hardware, which
is handy for development and demos.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Generator, Optional

import numpy as np
import requests

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 0.25     # seconds between polls
DEFAULT_TIMEOUT = 2.0


class SensorConnectionError(RuntimeError):
    """The sensor endpoint could not be reached or answered nonsense."""


def sanitize_url(url: str) -> str:
    """
    Turn a host, IP or URL into the sensor's data endpoint.

    >>> sanitize_url("192.168.0.103")
    'http://192.168.0.103/data'
    """
    url = url.strip().rstrip("/")
    if not (url.startswith("http://") or url.startswith("https://")):
        url = f"http://{url}"
    return f"{url}/data"


class SensorClient:
    """
    HTTP poller for the sensor board.

    Parameters
    ----------
    url:
        Host, IP or base URL of the board.  ``/data`` is appended.
    interval:
        Seconds between polls (default 0.25).
    timeout:
        Per-request timeout in seconds.
    session:
        Optional :class:`requests.Session` (injected in tests).
    """

    def __init__(
        self,
        url: str,
        interval: float = DEFAULT_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.endpoint = sanitize_url(url)
        self.interval = interval
        self.timeout = timeout
        self._session = session
        self._connected = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> None:
        """Probe the endpoint; the first reading must be of type ``IR``."""
        if self._session is None:
            self._session = requests.Session()
        payload = self.fetch_payload()
        try:
            kind = payload[0]["type"]
        except (LookupError, TypeError):
            kind = None
        if kind != "IR":
            raise SensorConnectionError(
                f"{self.endpoint} does not look like a PPG sensor (payload={payload!r})"
            )
        self._connected = True
        logger.info("Connected to sensor at %s", self.endpoint)

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None
        if self._connected:
            logger.info("Sensor connection closed.")
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    def __enter__(self) -> "SensorClient":
        self.connect()
        return self

    def __exit__(self, *_) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def fetch_payload(self) -> Any:
        """Perform one poll and return the decoded JSON body."""
        if self._session is None:
            raise RuntimeError("Sensor is not connected.  Call connect() first.")
        try:
            resp = self._session.get(self.endpoint, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as exc:
            self._connected = False
            raise SensorConnectionError(str(exc) or type(exc).__name__) from exc

    def ticks(self) -> Generator[Any, None, None]:
        """
        Yield one payload per interval until the client is closed.

        Raises :class:`SensorConnectionError` when a poll fails; no retry is
        attempted.

        Usage::

            with SensorClient("192.168.0.103") as sensor:
                for payload in sensor.ticks():
                    controller.ingest_payload(payload)
        """
        while self._connected:
            started = time.monotonic()
            yield self.fetch_payload()
            time.sleep(max(0.0, self.interval - (time.monotonic() - started)))


class SyntheticSensor:
    """
    Offline stand-in for :class:`SensorClient`.

    Produces a sinusoidal IR pulse wave around a finger-on-sensor baseline
    and a steady oxygen reading, in the board's payload format.

    Parameters
    ----------
    bpm:
        Pulse rate of the generated wave.
    interval:
        Seconds between ticks; also the sampling period of the wave.
    realtime:
        Sleep between ticks like the real poller (default *True*).
    max_ticks:
        Stop after this many ticks (default: never).
    """

    def __init__(
        self,
        bpm: float = 72.0,
        interval: float = DEFAULT_INTERVAL,
        ir_baseline: float = 150_000.0,
        ir_amplitude: float = 2_000.0,
        spo2: float = 97.0,
        noise: float = 0.0,
        realtime: bool = True,
        max_ticks: int | None = None,
        seed: int = 0,
    ) -> None:
        self.bpm = bpm
        self.interval = interval
        self.ir_baseline = ir_baseline
        self.ir_amplitude = ir_amplitude
        self.spo2 = spo2
        self.noise = noise
        self.realtime = realtime
        self.max_ticks = max_ticks
        self._rng = np.random.default_rng(seed)
        self._connected = False
        self._tick = 0

    def connect(self) -> None:
        self._connected = True
        logger.info("Synthetic sensor started – %.0f BPM", self.bpm)

    def close(self) -> None:
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    def __enter__(self) -> "SyntheticSensor":
        self.connect()
        return self

    def __exit__(self, *_) -> None:
        self.close()

    def fetch_payload(self) -> list[dict[str, Any]]:
        t = self._tick * self.interval
        self._tick += 1
        ir = self.ir_baseline + self.ir_amplitude * np.sin(2 * np.pi * (self.bpm / 60.0) * t)
        if self.noise > 0:
            ir += self._rng.normal(0.0, self.noise)
        return [
            {"type": "IR", "value": round(float(ir))},
            {"type": "SPO2", "value": self.spo2},
        ]

    def ticks(self) -> Generator[list[dict[str, Any]], None, None]:
        while self._connected:
            if self.max_ticks is not None and self._tick >= self.max_ticks:
                break
            yield self.fetch_payload()
            if self.realtime:
                time.sleep(self.interval)
