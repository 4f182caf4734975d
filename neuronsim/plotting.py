"""
Convenience plots of a simulation trajectory.

Each function draws line charts with time on the x axis and returns the
matplotlib figure and axes. Pass `ax` to draw into an existing axes.
"""

from typing import Optional, Sequence

import numpy as np

from .integrators import Trajectory


def _axes(ax, figsize):
    if ax is not None:
        return ax.figure, ax
    # pyplot is imported on first use so a backend can be chosen beforehand
    import matplotlib.pyplot as plt
    fig, ax = plt.subplots(figsize=figsize)
    return fig, ax


def plot_voltage(traj: Trajectory, ax=None, figsize=(10, 4)):
    """Plot the membrane voltage (mV) against time (ms)."""
    fig, ax = _axes(ax, figsize)
    ax.plot(traj.t * 1e3, traj.V * 1e3, label='V')
    ax.set_xlabel('Time (ms)')
    ax.set_ylabel('Voltage (mV)')
    ax.grid(True, alpha=0.3)
    return fig, ax


def plot_all(traj: Trajectory, labels: Optional[Sequence[str]] = None,
             ax=None, figsize=(10, 4)):
    """
    Plot every state component on one axes.

    The voltage is plotted in volts so it shares a scale with the
    dimensionless gating variables.
    """
    labels = list(labels) if labels is not None else traj.labels
    fig, ax = _axes(ax, figsize)
    ax.plot(traj.t * 1e3, np.asarray(traj.u))
    ax.legend(labels)
    ax.set_xlabel('Time (ms)')
    ax.set_ylabel('Value')
    ax.grid(True, alpha=0.3)
    return fig, ax


def plot_gvs(traj: Trajectory, labels: Optional[Sequence[str]] = None,
             ax=None, figsize=(10, 4)):
    """Plot the gating variables without the voltage."""
    if traj.gating.shape[1] == 0:
        raise ValueError("Trajectory has no gating variables to plot")
    labels = list(labels) if labels is not None else traj.labels[1:]
    fig, ax = _axes(ax, figsize)
    ax.plot(traj.t * 1e3, traj.gating)
    ax.legend(labels)
    ax.set_xlabel('Time (ms)')
    ax.set_ylabel('Gating value')
    ax.set_ylim(-0.05, 1.05)
    ax.grid(True, alpha=0.3)
    return fig, ax
