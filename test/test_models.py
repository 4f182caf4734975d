"""
Tests for gating kinetics, channel currents and the Hodgkin-Huxley rate function.
"""

import warnings

import numpy as np
import pytest
from brian2.units import Hz, mV, uA

from neuronsim import (
    Channel,
    DimensionMismatchError,
    GatingVariable,
    HodgkinHuxleyModel,
    InitValues,
    Stimulus,
    channel_current,
    gating_layout,
    hh_channels,
)
from neuronsim.models import alpha_m, alpha_n, beta_m, beta_n
from neuronsim.units import Quantity

V0 = -0.06
C = 1.0e-6


class TestGatingKinetics:
    """Tests for first-order gating-variable relaxation."""

    def test_rate_formula(self):
        gv = GatingVariable(0.0, lambda v: 200.0, lambda v: 50.0)
        # 200 * (1 - 0.4) - 50 * 0.4
        assert gv.rate(-0.06, 0.4) == pytest.approx(100.0)

    def test_rate_is_zero_at_steady_state(self):
        gv = GatingVariable(0.0, alpha_n, beta_n)
        v = -0.03
        assert gv.rate(v, gv.steady_state(v)) == pytest.approx(0.0, abs=1e-9)

    def test_time_constant(self):
        gv = GatingVariable(0.0, lambda v: 300.0, lambda v: 700.0)
        assert gv.time_constant(0.0) == pytest.approx(1.0e-3)
        assert gv.steady_state(0.0) == pytest.approx(0.3)

    def test_steady_state_undefined_without_kinetics(self):
        with pytest.raises(ValueError, match="vanishes"):
            GatingVariable().steady_state(0.0)

    def test_at_rest(self):
        gv = GatingVariable.at_rest(-60 * mV, alpha_m, beta_m, name='m')
        expected = alpha_m(-0.06) / (alpha_m(-0.06) + beta_m(-0.06))
        assert gv.n0 == pytest.approx(expected)
        assert gv.name == 'm'

    def test_no_clamping(self):
        """Values outside [0, 1] are used as given."""
        gv = GatingVariable(0.0, lambda v: 10.0, lambda v: 10.0)
        assert gv.rate(0.0, 2.0) == pytest.approx(10.0 * (1 - 2.0) - 10.0 * 2.0)

    def test_rates_accept_quantities(self):
        gv = GatingVariable(0.0, lambda v: 200 * Hz, lambda v: 50 * Hz)
        assert gv.rate(0.0, 0.4) == pytest.approx(100.0)

    def test_rates_with_wrong_dimensions_rejected(self):
        gv = GatingVariable(0.0, lambda v: 200 * mV, lambda v: 50 * Hz)
        with pytest.raises(DimensionMismatchError):
            gv.rate(0.0, 0.4)

    @pytest.mark.numerical
    @pytest.mark.parametrize("func, v_singular", [(alpha_m, 0.025), (alpha_n, 0.01)])
    def test_removable_singularities(self, func, v_singular):
        """The reference alpha functions are continuous at their 0/0 points."""
        at = func(v_singular)
        near = func(v_singular + 1e-7)
        assert np.isfinite(at)
        assert at == pytest.approx(near, rel=1e-4)


class TestChannelCurrent:
    """Tests for the current through a single channel."""

    def test_sodium_current(self):
        """g * m^3 * h * (Vi - V) for any state and the correct offsets."""
        channels = hh_channels()
        sodium = channels[0]
        model = HodgkinHuxleyModel(channels, InitValues(V0, C))
        _, offsets = gating_layout(model)

        rng = np.random.default_rng(0)
        for _ in range(5):
            u = np.concatenate([[rng.uniform(-0.08, 0.05)], rng.uniform(0, 1, 3)])
            i_m = offsets[sodium]
            i_h = i_m + 1
            expected = 0.04 * u[i_m] ** 3 * u[i_h] * (0.055 - u[0])
            assert channel_current(sodium, u, offsets) == pytest.approx(expected)

    def test_channel_without_gating_vars_gets_empty_sequence(self):
        seen = []

        def mult(gvs):
            seen.append(len(gvs))
            return 1.0

        leak = Channel(-0.065, 0.0003, [], mult)
        model = HodgkinHuxleyModel([leak], InitValues(V0, C))
        _, offsets = gating_layout(model)

        current = channel_current(leak, np.array([-0.06]), offsets)

        assert seen == [0]
        assert current == pytest.approx(0.0003 * (-0.065 + 0.06))

    def test_gating_values_passed_in_declaration_order(self):
        a = GatingVariable(0.2)
        b = GatingVariable(0.7)
        received = []

        def mult(gvs):
            received.append(list(gvs))
            return 1.0

        other = Channel(0.0, 1.0, [GatingVariable(0.9)], lambda gvs: gvs[0])
        chan = Channel(0.0, 1.0, [a, b], mult)
        model = HodgkinHuxleyModel([other, chan], InitValues(V0, C))
        _, offsets = gating_layout(model)

        channel_current(chan, model.initial_state(), offsets)

        assert received == [[0.2, 0.7]]


class TestRateFunction:
    """Tests for the Hodgkin-Huxley rate function."""

    def test_zero_channels(self):
        model = HodgkinHuxleyModel([], InitValues(V0, C, Stimulus.constant(2.7e-5)))
        f = model.rate_function()

        du = f(np.array([0.01]), 0.0)

        assert du.shape == (1,)
        assert du[0] == pytest.approx(2.7e-5 / C)

    def test_zero_channels_time_dependent_current(self):
        model = HodgkinHuxleyModel([], InitValues(V0, C, lambda t: 1.0e-6 * t))
        f = model.rate_function()

        for t in (0.0, 0.5, 2.0):
            assert f(np.array([V0]), t)[0] == pytest.approx(1.0e-6 * t / C)

    def test_no_current_anywhere_means_zero_input(self):
        model = HodgkinHuxleyModel([], InitValues(V0, C))
        assert model.rate_function()(np.array([V0]), 0.0)[0] == 0.0

    def test_forcing_current_replaces_model_current(self):
        model = HodgkinHuxleyModel([], InitValues(V0, C, Stimulus.constant(2.7e-5)))
        f = model.rate_function()

        du = f(np.array([V0]), 0.0, Stimulus.constant(-1.0e-6))

        assert du[0] == pytest.approx(-1.0)

    def test_current_as_quantity(self):
        model = HodgkinHuxleyModel([], InitValues(V0, C, lambda t: 27 * uA))
        assert model.rate_function()(np.array([V0]), 0.0)[0] == pytest.approx(27.0)

    def test_current_with_wrong_dimensions_rejected(self):
        model = HodgkinHuxleyModel([], InitValues(V0, C, lambda t: 27 * mV))
        with pytest.raises(DimensionMismatchError):
            model.rate_function()(np.array([V0]), 0.0)

    def test_full_hh_derivative(self, hh_model):
        """Compare against the hand-written HH equations."""
        f = hh_model.rate_function()
        u = np.array([-0.055, 0.1, 0.6, 0.3])
        v, m, h, n = u

        I_na = 0.04 * m ** 3 * h * (0.055 - v)
        I_k = 0.035 * n ** 4 * (-0.077 - v)
        I_l = 0.0003 * (-0.065 - v)
        dV = (2.7e-5 + I_na + I_k + I_l) / C

        du = f(u, 0.0)

        assert du[0] == pytest.approx(dV)
        sodium, potassium, _ = hh_model.channels
        m_gv, h_gv = sodium.gating_vars
        (n_gv,) = potassium.gating_vars
        assert du[1] == pytest.approx(m_gv.alpha(v) * (1 - m) - m_gv.beta(v) * m)
        assert du[2] == pytest.approx(h_gv.alpha(v) * (1 - h) - h_gv.beta(v) * h)
        assert du[3] == pytest.approx(n_gv.alpha(v) * (1 - n) - n_gv.beta(v) * n)

    def test_idempotent(self, hh_model):
        """Two built rate functions agree, and repeated calls agree."""
        f1 = hh_model.rate_function()
        f2 = hh_model.rate_function()
        u = np.array([-0.05, 0.2, 0.5, 0.4])

        first = f1(u, 0.003)
        assert np.array_equal(first, f2(u, 0.003))
        assert np.array_equal(first, f1(u, 0.003))
        # Input not modified
        assert np.array_equal(u, [-0.05, 0.2, 0.5, 0.4])

    def test_wrong_state_length_rejected(self, hh_model):
        f = hh_model.rate_function()
        with pytest.raises(ValueError, match="shape"):
            f(np.zeros(3), 0.0)

    def test_layout_fixed_when_built(self, hh_model):
        f = hh_model.rate_function()
        hh_model.channels.pop(0)
        # Still expects the four-component state it was built with
        assert f(np.array([-0.06, 0.0, 1.0, 0.0]), 0.0).shape == (4,)

    def test_callbacks_receive_plain_floats(self):
        """Rate and current functions get SI floats, never quantities."""
        voltages = []
        times = []

        def alpha(v):
            voltages.append(v)
            return 100.0

        def current(t):
            times.append(t)
            return 1.0e-6

        gv = GatingVariable(0.5, alpha, lambda v: 100.0)
        chan = Channel(0.0, 1.0e-3, [gv], lambda gvs: gvs[0])
        model = HodgkinHuxleyModel([chan], InitValues(-60 * mV, C, current))

        model.rate_function()(model.initial_state(), 0.001)

        assert len(voltages) == 1
        assert voltages[0] == pytest.approx(-0.06)
        assert times == [0.001]
        assert all(isinstance(x, float) and not isinstance(x, Quantity)
                   for x in voltages + times)

    @pytest.mark.numerical
    def test_extreme_voltage_saturates_quietly(self, hh_model):
        """Far outside the physiological range the kinetics saturate without warnings."""
        f = hh_model.rate_function()
        u = np.array([-50.0, 0.5, 1.0, 0.5])

        with warnings.catch_warnings():
            warnings.simplefilter('error', RuntimeWarning)
            assert beta_m(-50.0) == np.inf
            assert alpha_m(-50.0) == 0.0
            du = f(u, 0.0)

        assert du[1] == -np.inf
        assert np.isnan(du[2])
