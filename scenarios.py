from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple

import numpy as np

from params import Params
from processes import psi_zero
from inputs import (constant_glucose, step_glucose, ramp_glucose, clamp_glucose,
                    oscillatory_glucose)
from state import steady_state
from model import Model, SolverOptions, Trajectory, simulate

G_BASAL = 5.0  # mmol/l


@dataclass(frozen=True)
class Experiment:
    name: str
    P: Params
    G: Callable[[float], float]
    psi: Callable[[float], float] = psi_zero
    t_span: Tuple[float, float] = (0.0, 60.0)
    x0: Optional[np.ndarray] = None
    # state before t_span[0]; None holds x0 constant into the past
    history: Optional[object] = None
    meta: Dict[str, float] = field(default_factory=dict)

    @property
    def model(self) -> Model:
        return Model(self.P, self.G, self.psi)


def build_constant(P: Params = None, Gc: float = 30.0, t_end: float = 60.0) -> Experiment:
    """Constant 30 mmol/l from a basal start, 0-60 min."""
    P = P or Params()
    return Experiment("constant", P, constant_glucose(Gc), t_span=(0.0, t_end),
                      x0=steady_state(P, G_BASAL), meta={"G": Gc})

def build_step(P: Params = None, G_step: float = 16.7, t_on: float = 0.0,
               t_end: float = 60.0) -> Experiment:
    P = P or Params()
    return Experiment("step", P, step_glucose(G_BASAL, G_step, t_on), t_span=(0.0, t_end),
                      x0=steady_state(P, G_BASAL), meta={"G": G_step, "t_on": t_on})

def build_ramp(P: Params = None, G_end: float = 20.0, ramp_min: float = 60.0,
               t_end: float = 90.0) -> Experiment:
    P = P or Params()
    return Experiment("ramp", P, ramp_glucose(G_BASAL, G_end, 0.0, ramp_min), t_span=(0.0, t_end),
                      x0=steady_state(P, G_BASAL), meta={"G": G_end, "t_on": 0.0})

def build_clamp(P: Params = None, G_target: float = 12.0, rise_time: float = 2.0,
                t_end: float = 120.0) -> Experiment:
    """Hyperglycemic clamp: biphasic secretion expected."""
    P = P or Params()
    return Experiment("clamp", P, clamp_glucose(G_BASAL, G_target, 0.0, rise_time),
                      t_span=(0.0, t_end), x0=steady_state(P, G_BASAL),
                      meta={"G": G_target, "t_on": 0.0})

def build_oscillatory(P: Params = None, G_mean: float = 10.0, amplitude: float = 3.0,
                      period: float = 10.0, t_end: float = 120.0) -> Experiment:
    P = P or Params()
    return Experiment("oscillatory", P, oscillatory_glucose(G_mean, amplitude, period),
                      t_span=(0.0, t_end), x0=steady_state(P, G_mean),
                      meta={"G": G_mean, "t_on": 0.0})

EXPERIMENTS = {
    "constant": build_constant,
    "step": build_step,
    "ramp": build_ramp,
    "clamp": build_clamp,
    "oscillatory": build_oscillatory,
}

def run_experiment(exp: Experiment, options: SolverOptions = None, t_eval=None) -> Trajectory:
    x0 = exp.x0 if exp.x0 is not None else steady_state(exp.P, G_BASAL)
    return simulate(exp.model, exp.t_span, x0, history=exp.history,
                    options=options, t_eval=t_eval)
