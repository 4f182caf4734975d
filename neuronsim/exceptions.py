"""
Errors raised by the simulator.

Precondition failures use ValueError, and dimension errors come from brian2
(DimensionMismatchError). The classes here cover the remaining cases.
"""

from typing import Optional


class ModelContractError(TypeError):
    """Raised when an object that is not a neuron model is simulated."""


class IntegrationError(RuntimeError):
    """Raised when the ODE solver cannot complete the integration."""

    def __init__(self, message: str, t: Optional[float] = None):
        super().__init__(message)
        self.t = t


class IntegrationLimitExceeded(IntegrationError):
    """Raised when a simulation hits its step cap or wall-clock timeout."""
