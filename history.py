"""
Delay history for the DDE integrators.

A History answers "what was component c at time s?" for any s up to the
last recorded time. Before t0 it returns the caller's initial history; after
t0 it evaluates the segment covering s. Segments are appended in time order
and never revised, so a query gives the same answer however far the
integration has advanced.
"""
from bisect import bisect_left
from typing import Callable, List, Union

import numpy as np
from state import N_STATES, component_index

Interpolant = Callable[[float], np.ndarray]


class HistoryError(LookupError):
    """Query past the recorded end, or a non-monotone extension."""


class History:
    def __init__(self, t0: float, initial: Union[Callable[[float], np.ndarray], np.ndarray], x0=None):
        self.t0 = float(t0)
        # value at exactly t0; defaults to the initial history there
        self._x0 = None if x0 is None else np.array(x0, dtype=float)
        if callable(initial):
            self._initial = initial
        else:
            x = np.array(initial, dtype=float)
            if x.shape != (N_STATES,):
                raise ValueError(f"initial history must have {N_STATES} components, got shape {x.shape}")
            x.setflags(write=False)
            self._initial = lambda t: x
        self._t_ends: List[float] = []
        self._segments: List[Interpolant] = []

    @property
    def t_end(self) -> float:
        return self._t_ends[-1] if self._t_ends else self.t0

    def extend(self, t_end: float, interpolant: Interpolant) -> None:
        """Record the trajectory on (self.t_end, t_end]."""
        t_end = float(t_end)
        if t_end <= self.t_end:
            raise HistoryError(f"history must grow: {t_end} <= {self.t_end}")
        self._t_ends.append(t_end)
        self._segments.append(interpolant)

    def state_at(self, time: float) -> np.ndarray:
        if time < self.t0:
            return np.array(self._initial(time), dtype=float)
        t_end = self.t_end
        if time > t_end:
            # lag arithmetic can land a few ulps past the last node
            if time - t_end > 1e-9*max(1.0, abs(t_end)):
                raise HistoryError(f"history requested at t={time}, recorded only up to {t_end}")
            time = t_end
        if time == self.t0:
            if self._x0 is not None:
                return self._x0.copy()
            return np.array(self._initial(time), dtype=float)
        i = bisect_left(self._t_ends, time)
        return np.asarray(self._segments[i](time), dtype=float)

    def value_at(self, component, time: float) -> float:
        return float(self.state_at(time)[component_index(component)])


def hermite_segment(t0, y0, f0, t1, y1, f1) -> Interpolant:
    """Cubic Hermite interpolant between two RK4 nodes."""
    h = t1 - t0
    y0 = np.array(y0, dtype=float); y1 = np.array(y1, dtype=float)
    f0 = np.array(f0, dtype=float); f1 = np.array(f1, dtype=float)

    def interp(t):
        s = (t - t0)/h
        h00 = (1 + 2*s)*(1 - s)**2
        h10 = s*(1 - s)**2
        h01 = s**2*(3 - 2*s)
        h11 = s**2*(s - 1)
        return h00*y0 + h10*h*f0 + h01*y1 + h11*h*f1
    return interp
