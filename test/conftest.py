"""
Pytest fixtures and configuration for neuronsim tests.
"""

import pytest

from neuronsim import (
    Channel,
    GatingVariable,
    HodgkinHuxleyModel,
    InitValues,
    SimulationParams,
    Stimulus,
    hh_channels,
)

# Reference scenario values (SI units)
V0 = -0.06
C = 1.0e-6
I_CONST = 2.7e-5
T_END = 0.02


@pytest.fixture
def constant_current():
    """Fixture providing the reference constant input current."""
    return Stimulus.constant(I_CONST)


@pytest.fixture
def hh_model(constant_current):
    """Fixture providing the three-channel Hodgkin-Huxley model."""
    return HodgkinHuxleyModel(hh_channels(), InitValues(V0, C, constant_current))


@pytest.fixture
def leak_model(constant_current):
    """Fixture providing a model with a single leak channel."""
    leak = Channel(-0.065, 0.0003, [], lambda gvs: 1.0, name='leak')
    return HodgkinHuxleyModel([leak], InitValues(V0, C, constant_current))


@pytest.fixture
def frozen_gate_model(constant_current):
    """Fixture providing a model whose only gating variable has zero rates."""
    gate = GatingVariable(0.3, name='x')
    chan = Channel(-0.065, 0.0003, [gate], lambda gvs: gvs[0], name='frozen')
    return HodgkinHuxleyModel([chan], InitValues(V0, C, constant_current))


@pytest.fixture
def short_params():
    """Fixture providing the reference 20 ms timespan."""
    return SimulationParams((0.0, T_END))


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "physiological: mark test as checking physiological behavior"
    )
    config.addinivalue_line(
        "markers", "numerical: mark test as checking numerical properties"
    )
    config.addinivalue_line(
        "markers", "scipy: mark test as comparing against a scipy reference"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
