"""
Unit tests for the sensor transport and the dashboard renderer.
Run with:  pytest tests/
"""

from __future__ import annotations

from unittest import mock

import numpy as np
import pytest
import requests

from ppg_monitor.pipeline import DerivedState, PipelineController
from ppg_monitor.sample import Sample
from ppg_monitor.sensor_client import (
    SensorClient,
    SensorConnectionError,
    SyntheticSensor,
    sanitize_url,
)
from ppg_monitor.visualizer import Dashboard

GOOD_PAYLOAD = [{"type": "IR", "value": 150000}, {"type": "SPO2", "value": 97}]


def _session(*payloads) -> mock.MagicMock:
    """Fake requests.Session whose GETs return *payloads* in order."""
    session = mock.MagicMock(spec=requests.Session)
    responses = []
    for p in payloads:
        if isinstance(p, Exception):
            responses.append(p)
            continue
        resp = mock.MagicMock()
        resp.json.return_value = p
        responses.append(resp)
    session.get.side_effect = responses
    return session


# ---------------------------------------------------------------------------
# URL handling
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("url, expected", [
    ("192.168.0.103", "http://192.168.0.103/data"),
    ("http://sensor.local", "http://sensor.local/data"),
    ("https://sensor.local/", "https://sensor.local/data"),
    ("  10.0.0.2 ", "http://10.0.0.2/data"),
])
def test_sanitize_url(url, expected):
    assert sanitize_url(url) == expected


# ---------------------------------------------------------------------------
# SensorClient tests
# ---------------------------------------------------------------------------

class TestSensorClient:

    def test_connect_accepts_ir_first(self):
        session = _session(GOOD_PAYLOAD)
        client = SensorClient("192.168.0.103", session=session)
        client.connect()
        assert client.connected
        session.get.assert_called_once_with("http://192.168.0.103/data", timeout=client.timeout)

    def test_connect_rejects_foreign_payload(self):
        client = SensorClient("host", session=_session([{"type": "TEMP", "value": 20}]))
        with pytest.raises(SensorConnectionError):
            client.connect()
        assert not client.connected

    def test_connect_wraps_request_errors(self):
        client = SensorClient("host", session=_session(requests.ConnectionError("refused")))
        with pytest.raises(SensorConnectionError, match="refused"):
            client.connect()

    def test_fetch_requires_session(self):
        client = SensorClient("host")
        with pytest.raises(RuntimeError):
            client.fetch_payload()

    def test_ticks_until_closed(self):
        client = SensorClient("host", interval=0.0, session=_session(GOOD_PAYLOAD, GOOD_PAYLOAD, GOOD_PAYLOAD))
        client.connect()
        received = []
        with mock.patch("ppg_monitor.sensor_client.time.sleep"):
            for payload in client.ticks():
                received.append(payload)
                if len(received) == 2:
                    client.close()
        assert received == [GOOD_PAYLOAD, GOOD_PAYLOAD]
        assert not client.connected

    def test_ticks_raise_on_failed_poll(self):
        client = SensorClient(
            "host", interval=0.0,
            session=_session(GOOD_PAYLOAD, GOOD_PAYLOAD, requests.Timeout("timed out")),
        )
        ctl = PipelineController()
        with mock.patch("ppg_monitor.sensor_client.time.sleep"):
            with client:
                ctl.start()
                with pytest.raises(SensorConnectionError) as excinfo:
                    for payload in client.ticks():
                        ctl.ingest_payload(payload)
                state = ctl.record_dropout(str(excinfo.value))
        assert state.ticks == 1
        assert state.ir_tail[-1] == 0.0
        assert state.last_error == "timed out"
        assert not client.connected


class TestSyntheticSensor:

    def test_payload_format(self):
        sensor = SyntheticSensor(realtime=False)
        sample = Sample.from_payload(sensor.fetch_payload())
        assert sample.ir_value == 150000.0
        assert sample.spo2_value == 97.0

    def test_max_ticks(self):
        with SyntheticSensor(realtime=False, max_ticks=5) as sensor:
            assert len(list(sensor.ticks())) == 5

    def test_nothing_yielded_when_not_connected(self):
        assert list(SyntheticSensor(realtime=False, max_ticks=5).ticks()) == []


# ---------------------------------------------------------------------------
# Dashboard tests
# ---------------------------------------------------------------------------

class TestDashboard:

    def test_render_shape(self):
        img = Dashboard(resolution=(640, 480)).render(PipelineController().state, connected=True)
        assert img.shape == (480, 640, 3)
        assert img.dtype == np.uint8

    def test_render_empty_state(self):
        img = Dashboard().render(DerivedState(), connected=False, error="Connection Error")
        assert img.shape == (600, 800, 3)

    def test_render_draws_something(self):
        ctl = PipelineController()
        ctl.start()
        with SyntheticSensor(realtime=False, max_ticks=60) as sensor:
            for payload in sensor.ticks():
                ctl.ingest_payload(payload)
        img = Dashboard().render(ctl.state, connected=True)
        assert len(np.unique(img.reshape(-1, 3), axis=0)) > 3
