# Tests for model.rhs and model.Model

import math

import numpy as np
import pytest

from params import Params
from processes import h_gamma
from inputs import constant_glucose, step_glucose, sinusoidal_psi
from state import IDX, zero_state, steady_state
from history import History
from model import rhs, Model, ModelDomainError


@pytest.fixture
def P():
    return Params()


def test_empty_pools_at_basal_rates(P):
    x = zero_state(P)
    dx = rhs(0.0, x, 0.0, P, constant_glucose(30.0))
    dI, dV, dR, dD, dDIR, dF, dgamma, drho = dx
    assert dI == 4.0
    assert dV == 6.0
    assert (dR, dD, dDIR, dF) == (0.0, 0.0, 0.0, 0.0)
    assert dgamma == pytest.approx(P.eta*P.h_hat)
    assert drho == 0.0


def test_default_input_is_constant_30(P):
    x = zero_state(P)
    np.testing.assert_array_equal(rhs(7.0, x, 0.0, P), rhs(7.0, x, 0.0, P, constant_glucose(30.0)))


@pytest.mark.parametrize("Gc", [3.0, 4.58, 5.0, 8.0, 12.0, 30.0])
def test_steady_state_is_a_fixed_point(P, Gc):
    x = steady_state(P, Gc)
    dx = rhs(50.0, x, x[IDX["F"]], P, constant_glucose(Gc))
    scale = np.maximum(np.abs(x), 1.0)
    np.testing.assert_allclose(dx/scale, 0.0, atol=1e-10)
    assert x[IDX["gamma"]] == P.gamma_b + h_gamma(Gc, P)


def test_rhs_does_not_mutate_state(P):
    x = steady_state(P, 8.0)
    before = x.copy()
    rhs(1.0, x, 0.1, P, constant_glucose(12.0))
    np.testing.assert_array_equal(x, before)


def test_delayed_F_feeds_membrane_recycling(P):
    x = zero_state(P)
    dV0 = rhs(0.0, x, 0.0, P)[IDX["V"]]
    dV1 = rhs(0.0, x, 0.2, P)[IDX["V"]]
    assert dV1 - dV0 == pytest.approx(P.sigma*0.2)


def test_glucose_enters_with_tau_G_lag(P):
    x = zero_state(P)
    G = step_glucose(3.0, 30.0, t_on=10.0)
    before = rhs(10.5, x, 0.0, P, G)[IDX["gamma"]]
    after = rhs(11.0, x, 0.0, P, G)[IDX["gamma"]]
    assert before == 0.0
    assert after == pytest.approx(P.eta*P.h_hat)


def test_psi_perturbs_gamma(P):
    x = zero_state(P)
    psi = sinusoidal_psi(1e-3, 4.0)
    dgamma = rhs(1.0, x, 0.0, P, constant_glucose(3.0), psi)[IDX["gamma"]]
    assert dgamma == pytest.approx(P.eta*1e-3)


@pytest.mark.parametrize("where", ["state", "delayed", "glucose"])
def test_non_finite_input_raises(P, where):
    x = zero_state(P)
    F_delayed = 0.0
    G = constant_glucose(8.0)
    if where == "state":
        x[IDX["D"]] = math.nan
    elif where == "delayed":
        F_delayed = math.inf
    else:
        G = constant_glucose(math.nan)
    with pytest.raises(ModelDomainError):
        rhs(0.0, x, F_delayed, P, G)


def test_non_finite_derivative_raises(P):
    x = zero_state(P)
    x[IDX["I"]] = 1e200
    x[IDX["V"]] = 1e200
    with pytest.raises(ModelDomainError):
        rhs(0.0, x, 0.0, P)


def test_model_domain_error_is_value_error():
    assert issubclass(ModelDomainError, ValueError)


def test_model_resolves_delay_through_history(P):
    x0 = steady_state(P, 5.0)
    past = x0.copy()
    past[IDX["F"]] = 0.5
    hist = History(0.0, past, x0=x0)
    model = Model(P, constant_glucose(5.0))
    dx = model.derivatives(2.0, x0, hist)
    np.testing.assert_array_equal(dx, rhs(2.0, x0, 0.5, P, constant_glucose(5.0)))
