# state.py
import numpy as np
from params import Params
from processes import h_gamma, h_rho

STATE_NAMES = ("I", "V", "R", "D", "DIR", "F", "gamma", "rho")
IDX = {name: i for i, name in enumerate(STATE_NAMES)}
N_STATES = len(STATE_NAMES)

def component_index(component) -> int:
    if isinstance(component, str):
        try:
            return IDX[component]
        except KeyError:
            raise ValueError(f"unknown state component {component!r}") from None
    i = int(component)
    if not 0 <= i < N_STATES:
        raise ValueError(f"state index out of range: {component!r}")
    return i

def zero_state(P: Params):
    """Empty pools, rate coefficients at their basal values."""
    x = np.zeros(N_STATES, dtype=float)
    x[IDX["gamma"]] = P.gamma_b
    x[IDX["rho"]] = P.rho_b
    return x

def steady_state(P: Params, Gc: float):
    """Fixed point of the model under constant glucose Gc and psi = 0.

    At equilibrium the granule flux J = k*I*V passes unchanged through
    R, D/DIR and F, and the recycled membrane sigma*F equals J, which
    decouples V from the rest of the chain.
    """
    gamma = P.gamma_b + h_gamma(Gc, P)
    rho = P.rho_b + h_rho(gamma, P)
    V = P.bV / P.alpha_V
    I = P.bI / (P.k*V + P.alpha_I)
    J = P.k * I * V
    R = J / gamma
    DIR = J / rho
    F = J / P.sigma
    if DIR >= P.CT:
        raise ValueError(f"no physical steady state at G={Gc}: DIR={DIR:.4g} >= CT")
    D = (P.k1m + rho) * DIR / (P.k1p * (P.CT - DIR))
    return np.array([I, V, R, D, DIR, F, gamma, rho], dtype=float)
