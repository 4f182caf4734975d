"""
Model contract shared by all neuron models.

A neuron model is anything that can report its initial state vector and build
a rate function for that vector. `simulate` only relies on these two
operations, so new model types plug in without subclassing anything.
"""

from typing import Callable, Protocol, runtime_checkable

import numpy as np

# I(t): seconds -> amps
CurrentFunction = Callable[[float], float]

# f(u, t, current=None) -> du/dt
RateFunction = Callable[..., np.ndarray]


@runtime_checkable
class NeuronModel(Protocol):
    """
    Capability interface for neuron models.

    `initial_state()` returns the state vector at the start of a simulation,
    membrane voltage first. `rate_function()` returns a pure function
    ``f(u, t, current=None)`` giving the time derivative of every state
    component, in the same order. `current` is an optional input-current
    function of time that replaces the model's own.
    """

    def initial_state(self) -> np.ndarray:
        ...

    def rate_function(self) -> RateFunction:
        ...


def _not_implemented(operation: str, model) -> NotImplementedError:
    name = type(model).__name__
    return NotImplementedError(
        f"{operation} is not defined for {name}. Ensure that you are calling "
        f"it on a model type which implements {operation}."
    )


class ModelBase:
    """
    Optional base class for neuron models.

    Subclasses override both methods; calling one that was not overridden
    raises NotImplementedError.
    """

    def initial_state(self) -> np.ndarray:
        raise _not_implemented('initial_state', self)

    def rate_function(self) -> RateFunction:
        raise _not_implemented('rate_function', self)


def initial_state(model) -> np.ndarray:
    """Initial state vector of `model` as a float array."""
    operation = getattr(model, 'initial_state', None)
    if operation is None:
        raise _not_implemented('initial_state', model)
    return np.array(operation(), dtype=float)


def rate_function(model) -> RateFunction:
    """Rate function of `model`."""
    operation = getattr(model, 'rate_function', None)
    if operation is None:
        raise _not_implemented('rate_function', model)
    return operation()

