"""
neuronsim - Single-neuron biophysical models and their numerical integration.
"""

from .base import (
    NeuronModel,
    ModelBase,
    initial_state,
    rate_function,
)

from .models import (
    GatingVariable,
    Channel,
    InitValues,
    HodgkinHuxleyModel,
    gating_layout,
    channel_current,
    hh_channels,
)

from .integrators import (
    SolverOptions,
    SimulationParams,
    Trajectory,
    simulate,
)

from .exceptions import (
    ModelContractError,
    IntegrationError,
    IntegrationLimitExceeded,
)

from .units import DimensionMismatchError

from .utils import Stimulus

from .plotting import (
    plot_voltage,
    plot_all,
    plot_gvs,
)

__all__ = [
    # Model contract
    'NeuronModel',
    'ModelBase',
    'initial_state',
    'rate_function',

    # Models
    'GatingVariable',
    'Channel',
    'InitValues',
    'HodgkinHuxleyModel',
    'gating_layout',
    'channel_current',
    'hh_channels',

    # Simulation
    'SolverOptions',
    'SimulationParams',
    'Trajectory',
    'simulate',

    # Errors
    'ModelContractError',
    'IntegrationError',
    'IntegrationLimitExceeded',
    'DimensionMismatchError',

    # Utils
    'Stimulus',

    # Plotting
    'plot_voltage',
    'plot_all',
    'plot_gvs',
]
