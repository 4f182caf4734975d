"""
Hodgkin-Huxley model built from channels and gating variables.

All magnitudes are stored as SI floats. Construction arguments accept brian2
quantities as well, which are dimension-checked and converted.
"""

import warnings
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .base import CurrentFunction, RateFunction
from .units import amp, as_si, farad, hertz, siemens, volt

# Exponentials in the kinetics saturate to 0 or inf without warning
_SATURATE = dict(over='ignore', invalid='ignore')


def _zero_rate(v: float) -> float:
    return 0.0


def _unit_multiplier(values: Sequence[float]) -> float:
    return 1.0


@dataclass(frozen=True, eq=False)
class GatingVariable:
    """
    One activation or inactivation variable of a channel.

    `alpha` and `beta` are the forward and backward rates as functions of the
    membrane voltage. The voltage they receive is always a plain float in
    volts, never a brian2 quantity, so write them with SI constants. They
    return a rate in 1/s, either as a float or as a brian2 quantity. The
    variable relaxes according to

        dn/dt = alpha(V) * (1 - n) - beta(V) * n

    Example:
        >>> h = GatingVariable(1.0,
        ...                    lambda v: 70.0 * np.exp(-v / 0.02),
        ...                    lambda v: 1000.0 / (np.exp((0.03 - v) / 0.01) + 1))
    """
    n0: float = 0.0
    alpha: Callable[[float], float] = _zero_rate
    beta: Callable[[float], float] = _zero_rate
    name: str = ''

    def __post_init__(self):
        n0 = float(self.n0)
        object.__setattr__(self, 'n0', n0)
        if not 0.0 <= n0 <= 1.0:
            warnings.warn(
                f"Initial gating value {n0} of {self.name or 'gating variable'} "
                f"is outside [0, 1]; it will not be clamped.",
                UserWarning
            )

    def rates(self, v: float) -> Tuple[float, float]:
        """Forward and backward rates (1/s) at voltage `v` (V)."""
        return (as_si(self.alpha(v), hertz, 'alpha'),
                as_si(self.beta(v), hertz, 'beta'))

    def rate(self, v: float, n: float) -> float:
        """dn/dt (1/s) at voltage `v` for present value `n`."""
        a, b = self.rates(v)
        return a * (1.0 - n) - b * n

    def steady_state(self, v: float) -> float:
        """Value the variable relaxes to at a fixed voltage: alpha / (alpha + beta)."""
        a, b = self.rates(v)
        return a / self._total_rate(v, a, b)

    def time_constant(self, v: float) -> float:
        """Relaxation time constant (s) at a fixed voltage: 1 / (alpha + beta)."""
        a, b = self.rates(v)
        return 1.0 / self._total_rate(v, a, b)

    @staticmethod
    def _total_rate(v: float, a: float, b: float) -> float:
        if a + b == 0.0:
            raise ValueError(f"alpha + beta vanishes at V = {v} V")
        return a + b

    @classmethod
    def at_rest(cls, v_rest, alpha: Callable, beta: Callable,
                name: str = '') -> 'GatingVariable':
        """Create a gating variable starting at its steady state for `v_rest`."""
        v = as_si(v_rest, volt, 'v_rest')
        probe = cls(0.0, alpha, beta, name)
        return cls(probe.steady_state(v), alpha, beta, name)


@dataclass(frozen=True, eq=False)
class Channel:
    """
    One ionic conductance.

    Args:
        Vi: Reversal voltage (V)
        g: Maximum conductance (S)
        gating_vars: Gating variables owned by the channel, possibly empty
        gv_mult: Combines the present gating values, given in the order of
            `gating_vars`, into a dimensionless multiplier, e.g.
            ``lambda gvs: gvs[0] ** 3 * gvs[1]`` for m^3 h. Channels without
            gating variables get an empty sequence.
        name: Label used in plots and messages

    The current through the channel is ``g * gv_mult(gvs) * (Vi - V)``.
    Channels compare and hash by identity.
    """
    Vi: float = 0.0
    g: float = 0.0
    gating_vars: Sequence[GatingVariable] = ()
    gv_mult: Callable[[Sequence[float]], float] = _unit_multiplier
    name: str = ''

    def __post_init__(self):
        object.__setattr__(self, 'Vi', as_si(self.Vi, volt, 'Vi'))
        object.__setattr__(self, 'g', as_si(self.g, siemens, 'g'))
        gating_vars = tuple(self.gating_vars)
        for gv in gating_vars:
            if not isinstance(gv, GatingVariable):
                raise TypeError(
                    f"gating_vars must contain GatingVariable instances, got {type(gv).__name__}"
                )
        object.__setattr__(self, 'gating_vars', gating_vars)

    def current(self, v: float, values: Sequence[float]) -> float:
        """Current (A) at membrane voltage `v` for the given gating values."""
        return self.g * float(self.gv_mult(values)) * (self.Vi - v)


@dataclass(frozen=True)
class InitValues:
    """
    Initial configuration of a Hodgkin-Huxley model.

    Args:
        V0: Starting membrane voltage (V)
        C: Membrane capacitance (F), must be nonzero
        I: Input current as a function of time, ``I(t)`` with t in seconds
            returning amps. None means no input unless the simulation
            parameters supply one. `t` is passed as a plain float, not a
            brian2 quantity; the returned current may be either.
    """
    V0: float
    C: float
    I: Optional[CurrentFunction] = None

    def __post_init__(self):
        object.__setattr__(self, 'V0', as_si(self.V0, volt, 'V0'))
        C = as_si(self.C, farad, 'C')
        if C == 0.0 or not np.isfinite(C):
            raise ValueError(f"Membrane capacitance must be finite and nonzero, got {C} F")
        object.__setattr__(self, 'C', C)


def gating_layout(model: 'HodgkinHuxleyModel') -> Tuple[List[GatingVariable], Dict[Channel, int]]:
    """
    Lay out the gating variables of `model` in the state vector.

    Returns:
        (gating_vars, offsets) where `gating_vars` lists every gating variable
        in channel-then-declaration order, and `offsets` maps each channel that
        owns at least one gating variable to the index of its first one in the
        state vector. Index 0 is the membrane voltage.

    Raises:
        ValueError: If a channel appears more than once, or a gating variable
            is owned by more than one channel
    """
    gating_vars = []
    offsets = {}
    seen_channels = set()
    seen_gvs = set()
    x = 1
    for chan in model.channels:
        if chan in seen_channels:
            raise ValueError(f"Channel {chan.name or chan!r} appears more than once in the model")
        seen_channels.add(chan)
        for gv in chan.gating_vars:
            if gv in seen_gvs:
                raise ValueError(
                    f"Gating variable {gv.name or gv!r} is owned by more than one channel"
                )
            seen_gvs.add(gv)
        if chan.gating_vars:
            offsets[chan] = x
            gating_vars.extend(chan.gating_vars)
            x += len(chan.gating_vars)
    return gating_vars, offsets


def channel_current(chan: Channel, u: np.ndarray, offsets: Dict[Channel, int]) -> float:
    """
    Current (A) through `chan` for state vector `u`.

    `offsets` is the lookup table from `gating_layout`.
    """
    n = len(chan.gating_vars)
    if n:
        start = offsets[chan]
        values = u[start:start + n]
    else:
        values = u[:0]
    return chan.current(u[0], values)


@dataclass(eq=False)
class HodgkinHuxleyModel:
    """
    Hodgkin-Huxley neuron: a list of channels plus initial values.

    The state vector is ``[V, gating values...]`` with the gating values in
    the order of `channels` and, within a channel, of its `gating_vars`.
    """
    channels: Sequence[Channel]
    init_values: InitValues

    def __post_init__(self):
        self.channels = list(self.channels)
        # Ownership is checked again whenever the layout is rebuilt
        gating_layout(self)

    @property
    def labels(self) -> List[str]:
        """Names of the state components, 'V' first."""
        labels = ['V']
        for chan in self.channels:
            for i, gv in enumerate(chan.gating_vars):
                labels.append(gv.name or f"{chan.name or 'chan'}[{i}]")
        return labels

    def initial_state(self) -> np.ndarray:
        gating_vars, _ = gating_layout(self)
        return np.array([self.init_values.V0] + [gv.n0 for gv in gating_vars], dtype=float)

    def rate_function(self) -> RateFunction:
        """
        Build the Hodgkin-Huxley rate function for this model.

        The layout of the state vector is fixed when this is called; later
        edits to `channels` do not affect an already built function.
        """
        gating_vars, offsets = gating_layout(self)
        channels = tuple(self.channels)
        n_state = 1 + len(gating_vars)
        C = self.init_values.C
        own_current = self.init_values.I

        def f(u, t: float, current: Optional[CurrentFunction] = None) -> np.ndarray:
            u = np.asarray(u, dtype=float)
            if u.shape != (n_state,):
                raise ValueError(f"State vector must have shape ({n_state},), got {u.shape}")

            input_current = current if current is not None else own_current
            I_ext = 0.0
            if input_current is not None:
                I_ext = as_si(input_current(t), amp, 'input current')

            du = np.empty(n_state)
            with np.errstate(**_SATURATE):
                I_ion = sum(channel_current(chan, u, offsets) for chan in channels)
                du[0] = (I_ext + I_ion) / C

                v = u[0]
                for i, gv in enumerate(gating_vars, start=1):
                    du[i] = gv.rate(v, u[i])
            return du

        return f


# Reference kinetics (voltages in V, rates in 1/s), HH 1952 written with
# the depolarisation-positive voltage convention. Trial stages of the solver
# can probe extreme voltages; the exponentials then saturate to 0 or inf
# silently and the step is rejected by the error control.

def _exprel_inv(x: float, scale: float) -> float:
    """x / (exp(x / scale) - 1), with its limit `scale` at x = 0."""
    y = x / scale
    if abs(y) < 1e-9:
        return scale
    with np.errstate(**_SATURATE):
        return x / np.expm1(y)


def alpha_m(v: float) -> float:
    return 1.0e5 * _exprel_inv(0.025 - v, 0.01)


def beta_m(v: float) -> float:
    with np.errstate(**_SATURATE):
        return 4.0e3 * np.exp(-v / 0.018)


def alpha_h(v: float) -> float:
    with np.errstate(**_SATURATE):
        return 70.0 * np.exp(-v / 0.02)


def beta_h(v: float) -> float:
    with np.errstate(**_SATURATE):
        return 1.0e3 / (np.exp((0.03 - v) / 0.01) + 1.0)


def alpha_n(v: float) -> float:
    return 1.0e4 * _exprel_inv(0.01 - v, 0.01)


def beta_n(v: float) -> float:
    with np.errstate(**_SATURATE):
        return 125.0 * np.exp(-v / 0.08)


def hh_channels(m0: float = 0.0, h0: float = 1.0, n0: float = 0.0) -> List[Channel]:
    """
    Create the classic sodium, potassium and leak channels.

    Each call returns fresh channel objects, so the result can be used in
    exactly one model.

    Returns:
        [sodium (m^3 h), potassium (n^4), leak]
    """
    m = GatingVariable(m0, alpha_m, beta_m, name='m')
    h = GatingVariable(h0, alpha_h, beta_h, name='h')
    n = GatingVariable(n0, alpha_n, beta_n, name='n')
    sodium = Channel(0.055, 0.04, [m, h], lambda gvs: gvs[0] ** 3 * gvs[1], name='Na')
    potassium = Channel(-0.077, 0.035, [n], lambda gvs: gvs[0] ** 4, name='K')
    leak = Channel(-0.065, 0.0003, [], lambda gvs: 1.0, name='leak')
    return [sodium, potassium, leak]
