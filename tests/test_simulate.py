# Tests for the delay-aware integrators in model.simulate

import math

import numpy as np
import pytest

from params import Params
from inputs import constant_glucose, step_glucose
from state import IDX, N_STATES, steady_state
from model import Model, SolverOptions, Trajectory, ModelDomainError, simulate


@pytest.fixture
def P():
    return Params()


@pytest.mark.parametrize("method", ["RK45", "RK4"])
def test_steady_state_is_preserved(P, method):
    x0 = steady_state(P, 8.0)
    traj = simulate(Model(P, constant_glucose(8.0)), (0.0, 15.0), x0,
                    options=SolverOptions(method=method, dt=0.05, sample_dt=0.5))
    np.testing.assert_allclose(traj.y[-1], x0, rtol=1e-5)
    assert traj.t[0] == 0.0 and traj.t[-1] == 15.0
    np.testing.assert_array_equal(traj.y[0], x0)


def test_rk4_and_adaptive_solver_agree(P):
    x0 = steady_state(P, 5.0)
    model = Model(P, step_glucose(5.0, 16.7, 0.0))
    t_eval = np.linspace(0.0, 20.0, 81)
    a = simulate(model, (0.0, 20.0), x0, options=SolverOptions(method="RK4", dt=0.01), t_eval=t_eval)
    b = simulate(model, (0.0, 20.0), x0, options=SolverOptions(method="RK45", rtol=1e-8, atol=1e-10),
                 t_eval=t_eval)
    np.testing.assert_allclose(a.F, b.F, rtol=1e-3, atol=1e-6)
    np.testing.assert_allclose(a.gamma, b.gamma, rtol=1e-3, atol=1e-8)


@pytest.mark.parametrize("t_on", [0.0, 0.333])
def test_rk4_keeps_fourth_order_across_glucose_step(P, t_on):
    # the lagged step lands on a grid node (t_on=0) or between nodes (t_on=0.333)
    x0 = steady_state(P, 5.0)
    model = Model(P, step_glucose(5.0, 16.7, t_on))
    t_eval = np.linspace(0.0, 10.0, 201)
    a = simulate(model, (0.0, 10.0), x0, options=SolverOptions(method="RK4", dt=0.01), t_eval=t_eval)
    b = simulate(model, (0.0, 10.0), x0, options=SolverOptions(method="RK45", rtol=1e-10, atol=1e-13),
                 t_eval=t_eval)
    np.testing.assert_allclose(a.F, b.F, rtol=1e-4)
    np.testing.assert_allclose(a.DIR, b.DIR, rtol=1e-4)
    i = int(np.argmin(np.abs(t_eval - (t_on + P.tau_G + 0.25))))
    assert a.F[i] == pytest.approx(b.F[i], rel=1e-4)


def test_breakpoints_follow_the_glucose_lag(P):
    assert Model(P, step_glucose(5.0, 16.7, 2.0)).breakpoints(0.0, 60.0) == [3.0]
    assert Model(P, step_glucose(5.0, 16.7, 80.0)).breakpoints(0.0, 60.0) == []
    assert Model(P, constant_glucose(8.0)).breakpoints(0.0, 60.0) == []


def test_held_within_gives_one_sided_glucose(P):
    model = Model(P, step_glucose(5.0, 16.7, 2.0))
    # the jump in G(t - tau_G) sits at t = 3
    before = model.held_within(2.9, 3.0)
    after = model.held_within(3.0, 3.1)
    assert before.G(3.0 - P.tau_G) == 5.0
    assert after.G(3.0 - P.tau_G) == 16.7
    assert before.P is P and before.psi is model.psi


def test_glucose_step_triggers_secretion(P):
    x0 = steady_state(P, 5.0)
    traj = simulate(Model(P, step_glucose(5.0, 16.7, 0.0)), (0.0, 30.0), x0)
    F = traj.F
    assert F.max() > 2.0*F[0]
    # nothing happens before the glucose lag has elapsed
    early = traj.t < P.tau_G
    np.testing.assert_allclose(traj.gamma[early], x0[IDX["gamma"]], rtol=1e-9)
    # gamma approaches its stimulated level
    assert traj.gamma[-1] == pytest.approx(P.gamma_b + P.h_hat, rel=1e-3)


def test_explicit_initial_history_is_used(P):
    x0 = steady_state(P, 5.0)
    past = x0.copy()
    past[IDX["F"]] = 0.0
    model = Model(P, constant_glucose(5.0))
    with_hist = simulate(model, (0.0, 4.0), x0, history=past)
    held = simulate(model, (0.0, 4.0), x0)
    # no recycled membrane from the past lowers V
    assert with_hist.V[-1] < held.V[-1]


def test_rk4_step_longer_than_delay_rejected(P):
    x0 = steady_state(P, 5.0)
    with pytest.raises(ValueError):
        simulate(Model(P), (0.0, 20.0), x0, options=SolverOptions(method="RK4", dt=6.0))


def test_non_finite_input_aborts_run(P):
    x0 = steady_state(P, 5.0)
    G = lambda t: math.nan if t > 2.0 else 5.0
    with pytest.raises(ModelDomainError):
        simulate(Model(P, G), (0.0, 10.0), x0)


def test_invalid_span_and_state(P):
    x0 = steady_state(P, 5.0)
    with pytest.raises(ValueError):
        simulate(Model(P), (5.0, 5.0), x0)
    with pytest.raises(ValueError):
        simulate(Model(P), (0.0, 5.0), x0[:4])
    with pytest.raises(ValueError):
        simulate(Model(P), (0.0, 5.0), x0, t_eval=[0.0, 6.0])


def test_solver_options_validated():
    with pytest.raises(ValueError):
        SolverOptions(dt=0.0)
    with pytest.raises(ValueError):
        SolverOptions(sample_dt=-1.0)


def test_trajectory_exposes_components_read_only():
    t = np.array([0.0, 1.0, 2.0])
    y = np.arange(3*N_STATES, dtype=float).reshape(3, N_STATES)
    traj = Trajectory(t, y)
    np.testing.assert_array_equal(traj.F, y[:, IDX["F"]])
    np.testing.assert_array_equal(traj.component("DIR"), y[:, IDX["DIR"]])
    assert len(traj) == 3
    assert set(traj.as_dict()) == {"t", "I", "V", "R", "D", "DIR", "F", "gamma", "rho"}
    with pytest.raises(ValueError):
        traj.F[0] = 1.0
    with pytest.raises(AttributeError):
        traj.insulin


def test_trajectory_shape_checks():
    with pytest.raises(ValueError):
        Trajectory(np.array([0.0, 1.0]), np.zeros((3, N_STATES)))
    with pytest.raises(ValueError):
        Trajectory(np.array([0.0, 0.0]), np.zeros((2, N_STATES)))
