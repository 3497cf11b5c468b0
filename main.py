#!/usr/bin/env python3
"""
PPG Monitor – main entry point.

Usage
-----
    python main.py [OPTIONS]

Options
-------
    --url HOST           Sensor host, IP or URL (default: 192.168.0.103)
    --interval FLOAT     Seconds between polls (default: 0.25)
    --timeout FLOAT      HTTP timeout per poll in seconds (default: 2)
    --demo               Use a synthetic sensor instead of the board
    --demo-bpm FLOAT     Pulse rate of the synthetic sensor (default: 72)
    --save PATH          Write the last rendered dashboard to this PNG
    --headless           Run without display window (log BPM to stdout)

Keyboard shortcuts (when a window is open)
------------------------------------------
    q / ESC  – quit
    r        – reset signal buffer
    s        – save a single dashboard snapshot as PNG
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

# Must be set before cv2 is imported so Qt5 uses X11/XWayland instead of
# looking for a Wayland plugin that is not bundled with pip-installed opencv.
import os
os.environ.setdefault("QT_QPA_PLATFORM", "xcb")

import cv2

from ppg_monitor.pipeline import PipelineController
from ppg_monitor.sensor_client import (
    DEFAULT_INTERVAL,
    DEFAULT_TIMEOUT,
    SensorClient,
    SensorConnectionError,
    SyntheticSensor,
)
from ppg_monitor.visualizer import Dashboard

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s – %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("ppg_monitor")

WINDOW_NAME = "PPG Monitor"


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Live heart rate from a PPG sensor board",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--url", default="192.168.0.103",
                        help="Sensor host, IP or URL")
    parser.add_argument("--interval", type=float, default=DEFAULT_INTERVAL,
                        help="Seconds between polls")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT,
                        help="HTTP timeout per poll in seconds")
    parser.add_argument("--demo", action="store_true",
                        help="Use a synthetic sensor instead of the board")
    parser.add_argument("--demo-bpm", type=float, default=72.0,
                        help="Pulse rate of the synthetic sensor")
    parser.add_argument("--save", type=Path, default=None,
                        help="Write the last rendered dashboard to this PNG")
    parser.add_argument("--headless", action="store_true",
                        help="No display window; log BPM to stdout only")
    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# Main loop
# ---------------------------------------------------------------------------

def run(args: argparse.Namespace) -> int:
    if args.demo:
        sensor = SyntheticSensor(bpm=args.demo_bpm, interval=args.interval)
    else:
        sensor = SensorClient(args.url, interval=args.interval, timeout=args.timeout)

    controller = PipelineController()
    dashboard  = Dashboard()
    log_every  = max(1, int(round(1.0 / args.interval)))  # ~once per second
    annotated  = None

    try:
        sensor.connect()
    except SensorConnectionError as exc:
        logger.error("Failed to connect: %s", exc)
        return 1

    logger.info("Starting PPG monitor.  Press 'q' or ESC to quit.")
    if not args.headless:
        cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_NORMAL)

    controller.start()
    exit_code = 0
    try:
        for payload in sensor.ticks():
            state = controller.ingest_payload(payload)

            if args.headless:
                if state.ticks % log_every == 0:
                    ts = time.strftime("%H:%M:%S")
                    print(
                        f"[{ts}] HR10s={state.bpm_10s:.0f}  HR30s={state.bpm_30s:.0f}  "
                        f"IR={'ok' if state.ir_valid else '--'}  "
                        f"SPO2={'ok' if state.spo2_valid else '--'}"
                    )
                continue

            annotated = dashboard.render(state, connected=True)
            cv2.imshow(WINDOW_NAME, annotated)
            key = cv2.waitKey(1) & 0xFF
            if key in (ord("q"), 27):          # q or ESC
                logger.info("Quit requested by user.")
                break
            elif key == ord("r"):
                controller.reset()
            elif key == ord("s"):
                fname = f"snapshot_{int(time.time())}.png"
                cv2.imwrite(fname, annotated)
                logger.info("Saved snapshot: %s", fname)

    except SensorConnectionError as exc:
        state = controller.record_dropout(str(exc))
        annotated = dashboard.render(state, connected=False)
        logger.error("Connection error: %s", exc)
        exit_code = 2
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    finally:
        controller.stop()
        sensor.close()
        if args.save is not None:
            if annotated is None:
                annotated = dashboard.render(controller.state, connected=False)
            cv2.imwrite(str(args.save), annotated)
            logger.info("Saved dashboard to %s", args.save)
        if not args.headless:
            cv2.destroyAllWindows()

    return exit_code


def cli() -> int:
    return run(parse_args())


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(cli())
