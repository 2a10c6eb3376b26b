import numpy as np
from typing import Dict
from scipy.integrate import trapezoid

from params import Params
from processes import isr

def auc_trapz(T, y):
    return float(trapezoid(y, T))

def time_of_peak(T, y):
    i = int(np.argmax(y))
    return float(T[i]), float(y[i])

def secreted_amount(T, ISR, t_start: float, t_stop: float) -> float:
    """Insulin secreted between t_start and t_stop (Eq. A4), trapezoid rule."""
    T = np.asarray(T, dtype=float); ISR = np.asarray(ISR, dtype=float)
    if t_stop <= t_start:
        raise ValueError("t_stop must be after t_start")
    mask = (T >= t_start) & (T <= t_stop)
    if mask.sum() < 2:
        raise ValueError(f"fewer than two samples in [{t_start}, {t_stop}]")
    return auc_trapz(T[mask], ISR[mask])

def series_dict(traj, P: Params) -> Dict[str, np.ndarray]:
    """State series by name plus the derived insulin secretion rate."""
    y = traj.as_dict()
    del y["t"]
    y["ISR"] = isr(y["F"], P)
    return y

def quick_metrics(T, y: Dict[str, np.ndarray], t_on: float = 0.0, first_phase: float = 10.0):
    """A few handy metrics for tables/legends."""
    T = np.asarray(T)
    first = (T >= t_on) & (T <= t_on + first_phase)
    t_pk, pk = time_of_peak(T[first], y["ISR"][first])
    return {
        "ISR_basal": float(y["ISR"][0]),
        "ISR_peak_first_phase": pk, "t_peak_first_phase": t_pk,
        "IS_first_phase": secreted_amount(T, y["ISR"], t_on, t_on + first_phase),
        "AUC_ISR": auc_trapz(T, y["ISR"]),
        "ISR_end": float(y["ISR"][-1]),
        "gamma_end": float(y["gamma"][-1]),
        "rho_end": float(y["rho"][-1]),
    }
