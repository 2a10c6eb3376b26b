import numpy as np
from params import Params

#  responding fraction (Eq. A5)
def f(G: float, P: Params) -> float:
    """Fraction of beta-cells responding to glucose.

    Kept for completeness with the paper; nothing in the granule model or
    the ISR helper consumes it.
    """
    if G < P.G_star:
        return P.fb
    return P.fb + (1.0 - P.fb)*(G - P.G_star)/(P.Kf + G - P.G_star)

#  activation laws
def h_gamma(G: float, P: Params) -> float:
    """Activatory action of glucose on gamma (min^-1), Eq. 8."""
    if G <= P.G_star:
        return 0.0
    elif G <= P.G_hat:
        return P.h_hat*(G - P.G_star)/(P.G_hat - P.G_star)
    return P.h_hat

def h_rho(gamma: float, P: Params) -> float:
    """Activatory action of gamma on rho (min^-1), Eq. 10."""
    if gamma < P.gamma_b:
        return 0.0
    return P.k_rho*(gamma - P.gamma_b)

def psi_zero(t: float) -> float:
    """No oscillation events injected into gamma."""
    return 0.0

#  secretion
def isr(F, P: Params):
    # population factors Nc*Ni*f(G) omitted
    return np.asarray(F, dtype=float) * P.I0 * P.sigma
