"""
Dashboard renderer.

Draws the following onto an OpenCV canvas:
  • Connection status line (with the last error, if any).
  • Both heart-rate readouts: 10 s window and 30 s window.
  • IR and SPO2 validity indicators.
  • One chart per channel showing the whole buffered window.
"""

from __future__ import annotations

from typing import Optional, Tuple

import cv2
import numpy as np

from .pipeline import DerivedState


# ---------------------------------------------------------------------------
# Colour palette (BGR)
# ---------------------------------------------------------------------------
_GREEN  = (0, 220,  80)
_RED    = (0,  50, 220)
_YELLOW = (0, 210, 210)
_WHITE  = (255, 255, 255)
_BLACK  = (0, 0, 0)
_CYAN   = (220, 200,  0)
_PURPLE = (150, 100, 180)
_DARK   = (30, 30, 30)
_SLATE  = (42, 23, 15)

_HEADER_HEIGHT = 130


class Dashboard:
    """
    Renders a :class:`DerivedState` into a BGR image.

    Parameters
    ----------
    resolution:
        (width, height) of the canvas.
    chart_gap:
        Vertical pixels between the two charts.
    """

    def __init__(
        self,
        resolution: Tuple[int, int] = (800, 600),
        chart_gap: int = 12,
    ) -> None:
        self.w, self.h = resolution
        self.chart_gap = chart_gap
        self._chart_height = (self.h - _HEADER_HEIGHT - 3 * chart_gap) // 2

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def render(
        self,
        state: DerivedState,
        connected: bool,
        error: Optional[str] = None,
    ) -> np.ndarray:
        """Return a freshly drawn dashboard image for *state*."""
        canvas = np.full((self.h, self.w, 3), _SLATE, dtype=np.uint8)

        self._draw_status(canvas, connected, error or state.last_error)
        self._draw_bpm(canvas, state)
        self._draw_validity(canvas, state)

        top = _HEADER_HEIGHT + self.chart_gap
        self._draw_chart(canvas, state.ir_tail, top, "IR", _RED)
        top += self._chart_height + self.chart_gap
        self._draw_chart(canvas, state.spo2_tail, top, "SPO2", _CYAN)
        return canvas

    # ------------------------------------------------------------------
    # Private drawing helpers
    # ------------------------------------------------------------------

    def _draw_status(self, canvas: np.ndarray, connected: bool, error: Optional[str]) -> None:
        cv2.putText(
            canvas, "PPG Monitor",
            (16, 28), cv2.FONT_HERSHEY_SIMPLEX, 0.8, _WHITE, 2, cv2.LINE_AA,
        )
        status, col = ("Connected", _GREEN) if connected else ("Disconnected", _YELLOW)
        cv2.circle(canvas, (self.w - 150, 22), 6, col, -1, cv2.LINE_AA)
        cv2.putText(
            canvas, status,
            (self.w - 136, 28), cv2.FONT_HERSHEY_SIMPLEX, 0.5, col, 1, cv2.LINE_AA,
        )
        if error and not connected:
            cv2.putText(
                canvas, error[:80],
                (16, 52), cv2.FONT_HERSHEY_SIMPLEX, 0.4, _RED, 1, cv2.LINE_AA,
            )

    def _draw_bpm(self, canvas: np.ndarray, state: DerivedState) -> None:
        # Rounded for display only
        for x, label, bpm in (
            (16, "HR (10s)", state.bpm_10s),
            (260, "HR (30s)", state.bpm_30s),
        ):
            col = _GREEN if state.ir_valid and bpm > 0 else _YELLOW
            cv2.putText(
                canvas, label,
                (x, 76), cv2.FONT_HERSHEY_SIMPLEX, 0.45, _WHITE, 1, cv2.LINE_AA,
            )
            cv2.putText(
                canvas, f"{bpm:.0f} BPM",
                (x, 114), cv2.FONT_HERSHEY_SIMPLEX, 1.2, _BLACK, 5, cv2.LINE_AA,
            )
            cv2.putText(
                canvas, f"{bpm:.0f} BPM",
                (x, 114), cv2.FONT_HERSHEY_SIMPLEX, 1.2, col, 2, cv2.LINE_AA,
            )

    def _draw_validity(self, canvas: np.ndarray, state: DerivedState) -> None:
        for row, (label, valid) in enumerate((
            ("IR", state.ir_valid),
            ("SPO2", state.spo2_valid),
        )):
            y = 80 + row * 26
            col = _GREEN if valid else _RED
            cv2.rectangle(canvas, (self.w - 150, y - 12), (self.w - 138, y), col, -1)
            cv2.putText(
                canvas, f"{label} {'valid' if valid else 'invalid'}",
                (self.w - 130, y), cv2.FONT_HERSHEY_SIMPLEX, 0.45, col, 1, cv2.LINE_AA,
            )

    def _draw_chart(
        self,
        canvas: np.ndarray,
        values: np.ndarray,
        top: int,
        label: str,
        color: Tuple[int, int, int],
    ) -> None:
        """Plot *values* as a polyline in a dark panel starting at *top*."""
        left, right = 16, self.w - 16
        bottom = top + self._chart_height
        cv2.rectangle(canvas, (left, top), (right, bottom), _DARK, -1)
        cv2.putText(
            canvas, label,
            (left + 4, top + 14), cv2.FONT_HERSHEY_SIMPLEX, 0.4, _WHITE, 1, cv2.LINE_AA,
        )

        sig = np.nan_to_num(np.asarray(values, dtype=np.float64))
        if len(sig) < 2:
            return

        # Normalise to [0, 1]
        mn, mx = sig.min(), sig.max()
        rng = mx - mn if mx != mn else 1.0
        norm = (sig - mn) / rng

        margin = 6
        plot_h = self._chart_height - 2 * margin
        xs = np.linspace(left, right, len(norm)).astype(int)
        ys = (top + margin + (1.0 - norm) * plot_h).astype(int)

        pts = np.column_stack([xs, ys]).astype(np.int32)
        cv2.polylines(canvas, [pts[:, None, :]], False, color, 1, cv2.LINE_AA)

        cv2.putText(
            canvas, f"{sig[-1]:.0f}",
            (right - 90, top + 14), cv2.FONT_HERSHEY_SIMPLEX, 0.4, _PURPLE, 1, cv2.LINE_AA,
        )
