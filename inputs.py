import math
from typing import Callable

Profile = Callable[[float], float]

def _with_breakpoints(G: Profile, *times) -> Profile:
    # times where the profile jumps or kinks; the integrators put nodes there
    G.breakpoints = tuple(float(t) for t in times)
    return G

#  glucose G(t) in mmol/l
def constant_glucose(Gc: float = 30.0) -> Profile:
    """Constant glucose; 30 mmol/l is the model's default stimulus."""
    def G(t: float) -> float:
        return Gc
    return G

def step_glucose(G_basal: float, G_step: float, t_on: float = 0.0) -> Profile:
    """Square step from G_basal to G_step at t_on."""
    def G(t: float) -> float:
        return G_step if t >= t_on else G_basal
    return _with_breakpoints(G, t_on) if G_step != G_basal else G

def ramp_glucose(G_start: float, G_end: float, t_start: float, t_end: float) -> Profile:
    """Linear ramp between t_start and t_end, flat outside."""
    if t_end <= t_start:
        raise ValueError("ramp needs t_end > t_start")
    def G(t: float) -> float:
        if t <= t_start:
            return G_start
        if t >= t_end:
            return G_end
        return G_start + (G_end - G_start)*(t - t_start)/(t_end - t_start)
    return _with_breakpoints(G, t_start, t_end)

def clamp_glucose(G_basal: float, G_target: float, t_on: float = 0.0,
                  rise_time: float = 2.0) -> Profile:
    """Hyperglycemic clamp: linear rise over rise_time, then held at G_target."""
    if rise_time <= 0.0:
        return step_glucose(G_basal, G_target, t_on)
    return ramp_glucose(G_basal, G_target, t_on, t_on + rise_time)

def oscillatory_glucose(G_mean: float, amplitude: float, period: float,
                        t_on: float = 0.0) -> Profile:
    """Sinusoidal glucose around G_mean starting at t_on."""
    if period <= 0.0:
        raise ValueError("period must be positive")
    def G(t: float) -> float:
        if t < t_on:
            return G_mean
        return G_mean + amplitude*math.sin(2.0*math.pi*(t - t_on)/period)
    return _with_breakpoints(G, t_on) if amplitude != 0.0 else G

#  oscillation events psi(t) in min^-1
def sinusoidal_psi(amplitude: float, period: float) -> Profile:
    """Oscillatory perturbation of gamma."""
    if period <= 0.0:
        raise ValueError("period must be positive")
    def psi(t: float) -> float:
        return amplitude*math.sin(2.0*math.pi*t/period)
    return psi
