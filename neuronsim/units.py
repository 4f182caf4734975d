"""
Unit handling at the boundary of the simulator.

Internally every magnitude is a plain float in SI units (volts, amps,
siemens, farads, seconds, hertz). Callers may pass brian2 quantities
instead; these are dimension-checked and converted here.
"""

from brian2.units import amp, farad, hertz, second, siemens, volt
from brian2.units.fundamentalunits import (
    DimensionMismatchError,
    Quantity,
    fail_for_dimension_mismatch,
)


def as_si(value, unit: Quantity, name: str = "value") -> float:
    """
    Convert a magnitude to a float in the SI unit `unit`.

    Args:
        value: brian2 quantity or plain number (taken to be SI already)
        unit: Expected brian2 unit, e.g. ``volt``
        name: Name used in the error message

    Returns:
        Magnitude as a float

    Raises:
        DimensionMismatchError: If `value` carries the wrong dimensions
    """
    if isinstance(value, Quantity):
        fail_for_dimension_mismatch(
            value, unit, f"{name} must have the dimensions of {unit!r}"
        )
        return float(value / unit)
    return float(value)


__all__ = [
    'as_si',
    'amp',
    'farad',
    'hertz',
    'second',
    'siemens',
    'volt',
    'Quantity',
    'DimensionMismatchError',
]
