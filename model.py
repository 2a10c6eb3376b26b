import logging
import math
from dataclasses import dataclass, field, replace
from typing import Callable, Optional

import numpy as np
from scipy.integrate import solve_ivp

from params import Params
from processes import h_gamma, h_rho, psi_zero
from inputs import constant_glucose
from state import IDX, N_STATES, STATE_NAMES
from history import History, hermite_segment

logger = logging.getLogger(__name__)


class ModelDomainError(ValueError):
    """Non-finite state, delayed value, input or derivative."""


class SimulationError(RuntimeError):
    """The numerical solver gave up."""


def rhs(t, s, F_delayed, P: Params,
        G: Callable[[float], float] = constant_glucose(30.0),
        psi: Callable[[float], float] = psi_zero):
    """Granule trafficking derivatives (Eqs. 1-9).

    F_delayed is F(t - tau_V) resolved by the caller; glucose enters with
    its own lag as G(t - tau_G).
    """
    I, V, R, D, DIR, F, gamma, rho = s
    if not all(math.isfinite(v) for v in s):
        raise ModelDomainError(f"non-finite state at t={t}: {list(s)}")
    if not math.isfinite(F_delayed):
        raise ModelDomainError(f"non-finite F(t - tau_V) at t={t}: {F_delayed}")
    Gd = G(t - P.tau_G)
    if not math.isfinite(Gd):
        raise ModelDomainError(f"non-finite glucose G({t - P.tau_G})")

    J = P.k*I*V
    bind = P.k1p*(P.CT - DIR)*D

    dI     = -J - P.alpha_I*I + P.bI
    dV     = -J - P.alpha_V*V + P.bV + P.sigma*F_delayed
    dR     =  J - gamma*R
    dD     =  gamma*R - bind + P.k1m*DIR
    dDIR   =  bind - P.k1m*DIR - rho*DIR
    dF     =  rho*DIR - P.sigma*F
    dgamma =  P.eta*(-gamma + P.gamma_b + psi(t) + h_gamma(Gd, P))
    drho   =  P.zeta*(-rho + P.rho_b + h_rho(gamma, P))

    out = np.array([dI, dV, dR, dD, dDIR, dF, dgamma, drho], dtype=float)
    if not np.all(np.isfinite(out)):
        raise ModelDomainError(f"non-finite derivative at t={t}: {out}")
    return out


@dataclass(frozen=True)
class Model:
    """Parameter set plus the two forcing functions of one experiment."""
    P: Params = field(default_factory=Params)
    G: Callable[[float], float] = field(default_factory=lambda: constant_glucose(30.0))
    psi: Callable[[float], float] = psi_zero

    def derivatives(self, t, s, history: History):
        F_delayed = history.value_at(IDX["F"], t - self.P.tau_V)
        return rhs(t, s, F_delayed, self.P, self.G, self.psi)

    def breakpoints(self, t0, tf):
        """Times in [t0, tf] where the lagged input G(t - tau_G) jumps or kinks."""
        lag = self.P.tau_G
        return sorted({b + lag for b in getattr(self.G, "breakpoints", ()) if t0 <= b + lag <= tf})

    def held_within(self, a, b):
        """Copy whose glucose lookups stay strictly inside (a, b).

        On a step that starts or ends on a breakpoint every stage then sees
        the input from the step's own side of the jump.
        """
        G, lag = self.G, self.P.tau_G
        d = 1e-6*(b - a)
        lo, hi = a - lag + d, b - lag - d
        return replace(self, G=lambda u: G(min(max(u, lo), hi)))


@dataclass(frozen=True)
class SolverOptions:
    method: str = "RK45"      # "RK4" (fixed step) or any solve_ivp method
    dt: float = 0.05          # min, RK4 step
    sample_dt: float = 0.1    # min, output grid
    rtol: float = 1e-6
    atol: float = 1e-9
    max_step: float = 0.5     # min, solve_ivp

    def __post_init__(self):
        if self.dt <= 0.0 or self.sample_dt <= 0.0 or self.max_step <= 0.0:
            raise ValueError("dt, sample_dt and max_step must be positive")


@dataclass(frozen=True)
class Trajectory:
    """Sampled solution: t has shape (n,), y has shape (n, 8)."""
    t: np.ndarray
    y: np.ndarray

    def __post_init__(self):
        t = np.array(self.t, dtype=float)
        y = np.array(self.y, dtype=float)
        if t.ndim != 1 or y.shape != (t.size, N_STATES):
            raise ValueError(f"trajectory shapes do not match: t{t.shape}, y{y.shape}")
        if t.size > 1 and np.any(np.diff(t) <= 0.0):
            raise ValueError("trajectory times must be strictly increasing")
        t.setflags(write=False); y.setflags(write=False)
        object.__setattr__(self, "t", t)
        object.__setattr__(self, "y", y)

    def __getattr__(self, name):
        if name in IDX:
            return self.component(name)
        raise AttributeError(name)

    def __len__(self):
        return self.t.size

    def component(self, name):
        return self.y[:, IDX[name]]

    def as_dict(self):
        d = {"t": self.t}
        d.update({name: self.y[:, i] for i, name in enumerate(STATE_NAMES)})
        return d


def make_history(t0, x0, history=None) -> History:
    """Constant x0 before t0 unless an explicit initial history is given."""
    return History(t0, x0 if history is None else history, x0=x0)


def _sample(hist: History, t_eval):
    return np.array([hist.state_at(t) for t in t_eval])


def _rk4_grid(t0, tf, dt, breaks):
    # uniform within each stretch between breakpoints, steps never above dt
    nodes = [t0] + [b for b in breaks if t0 < b < tf] + [tf]
    pieces = [np.array([t0])]
    for p, q in zip(nodes[:-1], nodes[1:]):
        n = int(np.ceil((q - p)/dt)) + 1
        pieces.append(np.linspace(p, q, n)[1:])
    return np.concatenate(pieces)


def integrate_rk4(model: Model, t0, tf, dt, x0, hist: History):
    """Fixed-step RK4; each step is stored as a cubic Hermite segment.

    Glucose breakpoints become grid nodes and the steps touching them use
    one-sided inputs, which keeps fourth order across input jumps.
    """
    if dt > model.P.tau_V:
        raise ValueError(f"RK4 step dt={dt} must not exceed tau_V={model.P.tau_V}")
    breaks = model.breakpoints(t0, tf)
    T = _rk4_grid(t0, tf, dt, breaks)
    n = T.size
    Y = np.zeros((n, N_STATES))
    Y[0] = x0
    fk = model.derivatives(T[0], Y[0], hist)
    for i in range(1, n):
        t = T[i-1]; h = T[i]-T[i-1]
        if any(t <= b <= T[i] for b in breaks):
            f = model.held_within(t, T[i]).derivatives
            k1 = f(t, Y[i-1], hist)
        else:
            f = model.derivatives
            k1 = fk
        k2 = f(t+0.5*h,   Y[i-1]+0.5*h*k1,   hist)
        k3 = f(t+0.5*h,   Y[i-1]+0.5*h*k2,   hist)
        k4 = f(t+h,       Y[i-1]+h*k3,       hist)
        Y[i] = Y[i-1] + (h/6.0)*(k1 + 2*k2 + 2*k3 + k4)
        # h <= tau_V, so F(T[i] - tau_V) is already recorded
        fk = model.derivatives(T[i], Y[i], hist)
        hist.extend(T[i], hermite_segment(T[i-1], Y[i-1], k1, T[i], Y[i], fk))
    return T, Y


def integrate_ivp(model: Model, t0, tf, x0, hist: History, options: SolverOptions):
    """Method of steps: each chunk is at most tau_V long, so every delayed
    lookup inside it lands on history that is already recorded. Chunks
    also end on glucose breakpoints."""
    tau = model.P.tau_V
    breaks = model.breakpoints(t0, tf)
    n_chunks = int(np.ceil((tf - t0)/tau))
    ends = {min(t0 + (k + 1)*tau, tf) for k in range(n_chunks)}
    ends = sorted(ends.union(b for b in breaks if t0 < b < tf))
    x = np.array(x0, dtype=float)
    for k, tb in enumerate(ends):
        ta = hist.t_end
        if tb <= ta:
            continue
        m = model.held_within(ta, tb) if any(ta <= b <= tb for b in breaks) else model
        fun = lambda t, s, m=m: m.derivatives(t, s, hist)
        sol = solve_ivp(fun, (ta, tb), x, method=options.method, dense_output=True,
                        rtol=options.rtol, atol=options.atol, max_step=options.max_step)
        if not sol.success:
            raise SimulationError(f"{options.method} failed on [{ta}, {tb}]: {sol.message}")
        hist.extend(tb, sol.sol)
        x = sol.y[:, -1]
        logger.debug("chunk %d/%d [%.3f, %.3f] done in %d steps", k + 1, len(ends), ta, tb, sol.t.size - 1)
    return x


def simulate(model: Model, t_span, x0, history=None,
             options: Optional[SolverOptions] = None, t_eval=None) -> Trajectory:
    """Integrate the model over t_span and sample the result.

    history is the state before t_span[0]: an 8-vector or a callable of
    time; by default x0 is held constant into the past.
    """
    options = options or SolverOptions()
    t0, tf = map(float, t_span)
    if tf <= t0:
        raise ValueError(f"empty time span {t_span}")
    x0 = np.array(x0, dtype=float)
    if x0.shape != (N_STATES,):
        raise ValueError(f"x0 must have {N_STATES} components, got shape {x0.shape}")
    if t_eval is None:
        n = int(round((tf - t0)/options.sample_dt)) + 1
        t_eval = np.linspace(t0, tf, n)
    t_eval = np.asarray(t_eval, dtype=float)
    if t_eval.ndim != 1 or t_eval.size == 0 or t_eval[0] < t0 or t_eval[-1] > tf:
        raise ValueError("t_eval must be a non-empty grid within t_span")
    hist = make_history(t0, x0, history)

    logger.info("simulating [%g, %g] min with %s", t0, tf, options.method)
    if options.method.upper() == "RK4":
        integrate_rk4(model, t0, tf, options.dt, x0, hist)
    else:
        integrate_ivp(model, t0, tf, x0, hist, options)

    traj = Trajectory(t_eval, _sample(hist, t_eval))
    logger.info("done: %d samples, F(end)=%.4g", len(traj), traj.F[-1])
    return traj
