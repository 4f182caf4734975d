"""
Input-current generators.

Every generator returns a pure function of time ``I(t)`` (t in seconds,
result in amps) suitable for `InitValues.I` or `SimulationParams.input_current`.
Amplitudes and times may be given as brian2 quantities.
"""

import numpy as np

from .base import CurrentFunction
from .units import amp, as_si, second


class Stimulus:
    """
    Stimulus generator for neuron simulations.

    Provides various types of current injection patterns.
    """

    @staticmethod
    def constant(amplitude) -> CurrentFunction:
        """
        Constant current injection.

        Args:
            amplitude: Current amplitude (A)
        """
        amplitude = as_si(amplitude, amp, 'amplitude')

        def current(t: float) -> float:
            return amplitude
        return current

    @staticmethod
    def step(amplitude, t_start, t_end, baseline=0.0) -> CurrentFunction:
        """
        Step current: `baseline`, then `amplitude` on [t_start, t_end), then `baseline`.

        Args:
            amplitude: Current amplitude during the step (A)
            t_start: Time when the step starts (s)
            t_end: Time when the step ends (s)
            baseline: Current outside the step (A)
        """
        amplitude = as_si(amplitude, amp, 'amplitude')
        baseline = as_si(baseline, amp, 'baseline')
        t_start = as_si(t_start, second, 't_start')
        t_end = as_si(t_end, second, 't_end')
        if t_end < t_start:
            raise ValueError(f"t_end ({t_end} s) is before t_start ({t_start} s)")

        def current(t: float) -> float:
            return amplitude if t_start <= t < t_end else baseline
        return current

    @staticmethod
    def pulse_train(high, low, period, width, t_start=0.0) -> CurrentFunction:
        """
        Periodic rectangular pulses.

        The current is `high` for the first `width` seconds of every
        `period` counted from `t_start`, and `low` otherwise (including
        before `t_start`).

        Args:
            high: Current during a pulse (A)
            low: Current between pulses (A)
            period: Pulse period (s)
            width: Pulse duration (s), at most `period`
            t_start: Time of the first pulse onset (s)
        """
        high = as_si(high, amp, 'high')
        low = as_si(low, amp, 'low')
        period = as_si(period, second, 'period')
        width = as_si(width, second, 'width')
        t_start = as_si(t_start, second, 't_start')
        if period <= 0:
            raise ValueError(f"period must be positive, got {period} s")
        if not 0 <= width <= period:
            raise ValueError(f"width must lie in [0, period], got {width} s")

        def current(t: float) -> float:
            if t < t_start:
                return low
            return high if np.mod(t - t_start, period) < width else low
        return current

    @staticmethod
    def ramp(start_amplitude, end_amplitude, t_start, t_end) -> CurrentFunction:
        """
        Linearly ramping current, held constant outside [t_start, t_end].

        Args:
            start_amplitude: Current up to `t_start` (A)
            end_amplitude: Current from `t_end` on (A)
            t_start: Ramp start (s)
            t_end: Ramp end (s), after `t_start`
        """
        start_amplitude = as_si(start_amplitude, amp, 'start_amplitude')
        end_amplitude = as_si(end_amplitude, amp, 'end_amplitude')
        t_start = as_si(t_start, second, 't_start')
        t_end = as_si(t_end, second, 't_end')
        if t_end <= t_start:
            raise ValueError(f"t_end ({t_end} s) must be after t_start ({t_start} s)")

        def current(t: float) -> float:
            return float(np.interp(t, [t_start, t_end], [start_amplitude, end_amplitude]))
        return current
