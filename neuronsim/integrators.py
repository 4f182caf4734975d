"""
Numerical integration of neuron models.

`simulate` takes any object satisfying the `NeuronModel` contract, steps one
of scipy's adaptive explicit Runge-Kutta solvers across the requested
timespan and returns the accepted steps as a `Trajectory` with dense output.
"""

import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np
from scipy.integrate import DOP853, RK23, RK45, OdeSolution

from .base import CurrentFunction, NeuronModel, initial_state, rate_function
from .exceptions import IntegrationError, IntegrationLimitExceeded, ModelContractError
from .units import as_si, second

logger = logging.getLogger(__name__)

# Explicit embedded Runge-Kutta pairs; RK45 is Dormand-Prince 5(4).
SOLVERS = {
    'RK45': RK45,
    'RK23': RK23,
    'DOP853': DOP853,
}


@dataclass
class SolverOptions:
    """
    Options for the ODE solver.

    Defaults are scipy's own (rtol=1e-3, atol=1e-6, unbounded step size).
    `max_steps` caps the number of accepted steps and `timeout` the wall-clock
    time in seconds; exceeding either raises IntegrationLimitExceeded.
    """
    method: str = 'RK45'
    rtol: float = 1e-3
    atol: float = 1e-6
    max_step: float = np.inf
    first_step: Optional[float] = None
    max_steps: Optional[int] = None
    timeout: Optional[float] = None

    def __post_init__(self):
        if self.method not in SOLVERS:
            raise ValueError(
                f"Unknown solver method: '{self.method}'. "
                f"Valid options are {', '.join(repr(m) for m in SOLVERS)}."
            )
        if self.rtol <= 0 or self.atol < 0:
            raise ValueError(f"Tolerances must satisfy rtol > 0 and atol >= 0, got {self.rtol}, {self.atol}")
        if self.max_step <= 0:
            raise ValueError(f"max_step must be positive, got {self.max_step}")
        if self.first_step is not None and self.first_step <= 0:
            raise ValueError(f"first_step must be positive, got {self.first_step}")
        if self.max_steps is not None and self.max_steps < 1:
            raise ValueError(f"max_steps must be at least 1, got {self.max_steps}")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert options to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'SolverOptions':
        """Create options from dictionary."""
        return cls(**d)


@dataclass(frozen=True)
class SimulationParams:
    """
    Parameters of one simulation.

    Args:
        tspan: (start, end) in seconds, or brian2 time quantities
        input_current: Input current ``I(t)`` in amps. When given it replaces
            the model's own input current.
        solver: Solver options

    Example:
        >>> params = SimulationParams((0.0, 0.02), Stimulus.constant(2.7e-5))
    """
    tspan: Tuple[float, float]
    input_current: Optional[CurrentFunction] = None
    solver: SolverOptions = field(default_factory=SolverOptions)

    def __post_init__(self):
        if len(self.tspan) != 2:
            raise ValueError(f"tspan must be a (start, end) pair, got {self.tspan!r}")
        start, end = self.tspan
        object.__setattr__(self, 'tspan', (as_si(start, second, 'tspan start'),
                                           as_si(end, second, 'tspan end')))


class Trajectory:
    """
    Result of a simulation.

    Holds the state at every accepted solver step, the first sample being the
    initial state, together with the solver's dense interpolant. Arrays are
    read-only.
    """

    def __init__(self, t: Sequence[float], u: Sequence[np.ndarray],
                 solution: OdeSolution, labels: Optional[List[str]] = None,
                 nfev: int = 0, method: str = 'RK45'):
        self._t = np.array(t, dtype=float)
        self._u = np.array(u, dtype=float)
        self._t.setflags(write=False)
        self._u.setflags(write=False)
        self._solution = solution
        n_state = self._u.shape[1]
        if labels is None or len(labels) != n_state:
            labels = ['V'] + [f"u[{i}]" for i in range(1, n_state)]
        self.labels = list(labels)
        self.nfev = nfev
        self.method = method

    @property
    def t(self) -> np.ndarray:
        """Sample times (s)."""
        return self._t

    @property
    def u(self) -> np.ndarray:
        """State vectors, shape (n_samples, n_state)."""
        return self._u

    @property
    def V(self) -> np.ndarray:
        """Membrane voltage trace (V)."""
        return self._u[:, 0]

    voltage = V

    @property
    def gating(self) -> np.ndarray:
        """Gating-variable traces, shape (n_samples, n_state - 1)."""
        return self._u[:, 1:]

    @property
    def n_steps(self) -> int:
        """Number of accepted solver steps."""
        return len(self._t) - 1

    @property
    def tspan(self) -> Tuple[float, float]:
        return float(self._t[0]), float(self._t[-1])

    def __call__(self, t) -> np.ndarray:
        """
        Interpolate the state at time(s) `t`.

        Returns:
            Shape (n_state,) for a scalar time, (len(t), n_state) for an array
        """
        t = np.asarray(t, dtype=float)
        if t.size == 0:
            return np.empty(t.shape + (self._u.shape[1],))
        start, end = self.tspan
        if np.any(t < start) or np.any(t > end):
            raise ValueError(f"Requested times lie outside the simulated span [{start}, {end}] s")
        return self._solution(t).T

    def __len__(self) -> int:
        return len(self._t)

    def __iter__(self) -> Iterator[Tuple[float, np.ndarray]]:
        return zip(self._t, self._u)

    def __getitem__(self, i) -> Tuple[float, np.ndarray]:
        return self._t[i], self._u[i]

    def summary(self) -> str:
        """
        Get text summary of simulation results.

        Returns:
            Summary string
        """
        lines = ["Simulation Results Summary"]
        lines.append("=" * 40)
        lines.append(f"Time span: {self._t[0]:.6g} to {self._t[-1]:.6g} s")
        lines.append(f"Solver: {self.method}")
        lines.append(f"Accepted steps: {self.n_steps}")
        lines.append(f"Function evaluations: {self.nfev}")
        lines.append(f"State variables: {', '.join(self.labels)}")
        lines.append(f"V range: [{self.V.min() * 1e3:.2f}, {self.V.max() * 1e3:.2f}] mV")
        return "\n".join(lines)


def simulate(model: NeuronModel, params: SimulationParams) -> Trajectory:
    """
    Integrate `model` over `params.tspan`.

    Args:
        model: Any object satisfying the NeuronModel contract
        params: Timespan, optional forcing current and solver options

    Returns:
        Trajectory of every accepted step, starting with the initial state

    Raises:
        ModelContractError: If `model` is not a neuron model
        NotImplementedError: If the model lacks a contract operation
        ValueError: If the timespan is empty or inverted, or the initial
            state is not finite
        IntegrationError: If the solver fails
        IntegrationLimitExceeded: If `max_steps` or `timeout` is exceeded

    Example:
        >>> model = HodgkinHuxleyModel(hh_channels(), InitValues(-0.06, 1.0e-6))
        >>> traj = simulate(model, SimulationParams((0.0, 0.02), Stimulus.constant(2.7e-5)))
        >>> traj.V[-1]
    """
    if not isinstance(model, NeuronModel):
        raise ModelContractError(
            f"{type(model).__name__} does not satisfy the NeuronModel contract "
            f"(it needs initial_state() and rate_function())."
        )
    if not isinstance(params, SimulationParams):
        raise TypeError(f"params must be SimulationParams, got {type(params).__name__}")

    t0, t1 = params.tspan
    if not t1 > t0:
        raise ValueError(f"tspan end must be after its start, got ({t0}, {t1}) s")

    f = rate_function(model)
    u0 = initial_state(model)
    if u0.ndim != 1 or u0.size == 0:
        raise ValueError(f"Initial state must be a non-empty vector, got shape {u0.shape}")
    if not np.all(np.isfinite(u0)):
        raise ValueError(f"Initial state is not finite: {u0}")

    current = params.input_current
    options = params.solver

    def fun(t: float, y: np.ndarray) -> np.ndarray:
        return f(y, t, current)

    solver_kwargs = dict(rtol=options.rtol, atol=options.atol, max_step=options.max_step)
    if options.first_step is not None:
        solver_kwargs['first_step'] = options.first_step
    solver = SOLVERS[options.method](fun, t0, u0, t1, **solver_kwargs)

    ts = [t0]
    ys = [u0.copy()]
    interpolants = []
    started = time.perf_counter()

    while solver.status == 'running':
        message = solver.step()
        if solver.status == 'failed':
            raise IntegrationError(
                f"{options.method} failed at t = {solver.t} s: {message}", t=solver.t
            )
        ts.append(solver.t)
        ys.append(solver.y.copy())
        interpolants.append(solver.dense_output())

        if solver.status != 'running':
            break
        if options.max_steps is not None and len(interpolants) >= options.max_steps:
            raise IntegrationLimitExceeded(
                f"Reached max_steps={options.max_steps} at t = {solver.t} s "
                f"before the end of the span ({t1} s)", t=solver.t
            )
        if options.timeout is not None and time.perf_counter() - started > options.timeout:
            raise IntegrationLimitExceeded(
                f"Exceeded timeout of {options.timeout} s at t = {solver.t} s", t=solver.t
            )

    logger.debug("%s finished %s in %d steps (%d evaluations, %.3f s)",
                 options.method, (t0, t1), len(interpolants), solver.nfev,
                 time.perf_counter() - started)

    labels = getattr(model, 'labels', None)
    return Trajectory(ts, ys, OdeSolution(ts, interpolants), labels=labels,
                      nfev=solver.nfev, method=options.method)
