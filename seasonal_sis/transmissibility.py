"""Periodic two-phase transmissibility schedule.

The per-contact transmission rate repeats with period t2:

    λ(t) = λ            for  t mod t2 <  t1
    λ(t) = λ + Δλ       for  t mod t2 >= t1

Its running integral Λ(t) = ∫₀ᵗ λ(s) ds is piecewise linear and is
computed in closed form from the per-period totals

    Λ(t1) = λ t1
    Λ(t2) = Λ(t1) + (λ + Δλ)(t2 − t1)

so there is no drift over long horizons. Λ⁻¹ is the matching piecewise
linear inverse, used to sample event times on the rescaled clock
(non-homogeneous Poisson process via time rescaling).

All evaluation methods accept Python floats or NumPy arrays.
"""

from __future__ import annotations

from typing import TextIO, Tuple

import numpy as np

from seasonal_sis.types import InvalidParameter


def _as_output(value):
    """Return a plain float for 0-d results, arrays unchanged."""
    if np.ndim(value) == 0:
        return float(value)
    return value


class TransmissibilitySchedule:
    """Seasonal transmission rate with closed-form integral and inverse.

    Args:
        t1: Phase boundary within each period (0 < t1 < t2).
        t2: Period length.
        lam: Base rate during the first phase (>= 0).
        d_lam: Increment applied during the second phase
            (lam + d_lam >= 0; may be zero or negative).

    Raises:
        InvalidParameter: On non-monotonic phase boundaries or a negative
            rate in either phase.
    """

    def __init__(self, t1: float, t2: float, lam: float, d_lam: float):
        if t1 <= 0:
            raise InvalidParameter(f"t1 must be > 0, got {t1}")
        if t2 <= t1:
            raise InvalidParameter(f"t2 ({t2}) must be > t1 ({t1})")
        if lam < 0:
            raise InvalidParameter(f"lam must be >= 0, got {lam}")
        if lam + d_lam < 0:
            raise InvalidParameter(
                f"lam + d_lam must be >= 0, got {lam} + {d_lam} = {lam + d_lam}"
            )
        self._t1 = float(t1)
        self._t2 = float(t2)
        self._lam = float(lam)
        self._d_lam = float(d_lam)
        self._Lt1 = self._lam * self._t1
        self._Lt2 = self._Lt1 + self.high_rate * (self._t2 - self._t1)

    def __repr__(self) -> str:
        return (
            f"TransmissibilitySchedule(t1={self._t1}, t2={self._t2}, "
            f"lam={self._lam}, d_lam={self._d_lam})"
        )

    # ── Parameters ────────────────────────────────────────────────────

    @property
    def t1(self) -> float:
        return self._t1

    @property
    def t2(self) -> float:
        return self._t2

    @property
    def lam(self) -> float:
        return self._lam

    @property
    def d_lam(self) -> float:
        return self._d_lam

    @property
    def high_rate(self) -> float:
        """Rate during the second phase of each period."""
        return self._lam + self._d_lam

    @property
    def Lt1(self) -> float:
        """Λ(t1): integral over the first phase of one period."""
        return self._Lt1

    @property
    def Lt2(self) -> float:
        """Λ(t2): integral over one full period."""
        return self._Lt2

    # ── Evaluation ────────────────────────────────────────────────────

    def _reduce(self, t):
        t = np.asarray(t, dtype=np.float64)
        period = np.floor(t / self._t2)
        return period, t - period * self._t2

    def evaluate(self, t):
        """λ(t)."""
        _, dt = self._reduce(t)
        return _as_output(np.where(dt < self._t1, self._lam, self.high_rate))

    def evaluate_integral(self, t):
        """Λ(t) = ∫₀ᵗ λ(s) ds, exact per period."""
        period, dt = self._reduce(t)
        first = self._lam * dt
        second = self._Lt1 + self.high_rate * (dt - self._t1)
        return _as_output(
            period * self._Lt2 + np.where(dt < self._t1, first, second)
        )

    def evaluate_integral_inverse(self, L):
        """Λ⁻¹(L): the time t >= 0 at which Λ(t) = L.

        Inside a zero-rate phase Λ is flat; the inverse then returns the
        end of the flat stretch, i.e. the first time Λ exceeds L.

        Raises:
            InvalidParameter: If L < 0 or the schedule is identically zero.
        """
        if self._Lt2 <= 0:
            raise InvalidParameter(
                "schedule integral is identically zero; inverse undefined"
            )
        L_arr = np.asarray(L, dtype=np.float64)
        if np.any(L_arr < 0):
            raise InvalidParameter(f"L must be >= 0, got {L}")

        period = np.floor(L_arr / self._Lt2)
        dL = L_arr - period * self._Lt2
        first = self._invert(dL, self._lam)
        second = self._t1 + self._invert(dL - self._Lt1, self.high_rate)
        return _as_output(
            period * self._t2 + np.where(dL < self._Lt1, first, second)
        )

    @staticmethod
    def _invert(dL, rate: float):
        if rate > 0:
            return dL / rate
        return np.zeros_like(dL)

    # ── Diagnostics ───────────────────────────────────────────────────

    def trace(self, t_end: float = 10.0,
              dt: float = 0.01) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Sample (t, λ(t), Λ(t)) on a regular grid over [0, t_end)."""
        times = np.arange(0.0, t_end, dt)
        return (
            times,
            np.asarray(self.evaluate(times), dtype=np.float64),
            np.asarray(self.evaluate_integral(times), dtype=np.float64),
        )


def write_schedule_trace(schedule: TransmissibilitySchedule,
                         stream: TextIO,
                         t_end: float = 10.0,
                         dt: float = 0.01) -> int:
    """Write a tab-separated schedule trace to an open text stream.

    Header ``t\\tl\\tL`` followed by one row per grid point.

    Returns:
        Number of rows written (header excluded).
    """
    times, rates, integrals = schedule.trace(t_end=t_end, dt=dt)
    stream.write("t\tl\tL\n")
    for t, rate, integral in zip(times, rates, integrals):
        stream.write(f"{t:1.3f}\t{rate:1.3f}\t{integral:1.3f}\n")
    return len(times)
