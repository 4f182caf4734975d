"""
Example: Basic Hodgkin-Huxley simulation

Simulates the classic three-channel neuron with either a constant input
current or a pulsed one, prints a summary and saves voltage and state plots.
"""

import argparse
import os

import matplotlib.pyplot as plt

from neuronsim import (
    HodgkinHuxleyModel,
    InitValues,
    SimulationParams,
    SolverOptions,
    Stimulus,
    hh_channels,
    plot_all,
    plot_voltage,
    simulate,
)


def make_stimulus(scenario: str):
    if scenario == 'constant':
        return Stimulus.constant(2.7e-5)
    # 30 uA for the first 7.5 ms of every 50 ms, 5 uA otherwise
    return Stimulus.pulse_train(high=3.0e-5, low=5.0e-6, period=0.05, width=0.0075)


def run(scenario: str, T: float, method: str, rtol: float, atol: float):
    model = HodgkinHuxleyModel(hh_channels(), InitValues(V0=-0.06, C=1.0e-6))
    params = SimulationParams(
        tspan=(0.0, T),
        input_current=make_stimulus(scenario),
        solver=SolverOptions(method=method, rtol=rtol, atol=atol),
    )
    return simulate(model, params)


def main():
    parser = argparse.ArgumentParser(description='Hodgkin-Huxley neuron demo')
    parser.add_argument('--scenario', choices=['constant', 'pulsed'], default='constant')
    parser.add_argument('--T', type=float, default=None,
                        help='Duration in seconds (default: 0.02 constant, 0.2 pulsed)')
    parser.add_argument('--method', choices=['RK45', 'RK23', 'DOP853'], default='RK45')
    parser.add_argument('--rtol', type=float, default=1e-3)
    parser.add_argument('--atol', type=float, default=1e-6)
    parser.add_argument('--out', default='plots', help='Directory for the saved plots')
    parser.add_argument('--show', action='store_true', help='Show the plots interactively')
    args = parser.parse_args()

    T = args.T if args.T is not None else (0.02 if args.scenario == 'constant' else 0.2)

    print(f"Running scenario={args.scenario}, T={T} s, method={args.method}")
    traj = run(args.scenario, T, args.method, args.rtol, args.atol)
    print(traj.summary())

    os.makedirs(args.out, exist_ok=True)

    fig, _ = plot_voltage(traj)
    fig.suptitle(f'Hodgkin-Huxley membrane voltage ({args.scenario} input)')
    png = os.path.join(args.out, f'hh_{args.scenario}_voltage.png')
    fig.savefig(png, dpi=150, bbox_inches='tight')
    print('Saved plot to', png)

    fig, _ = plot_all(traj)
    fig.suptitle(f'Hodgkin-Huxley state ({args.scenario} input)')
    png = os.path.join(args.out, f'hh_{args.scenario}_state.png')
    fig.savefig(png, dpi=150, bbox_inches='tight')
    print('Saved plot to', png)

    if args.show:
        plt.show()


if __name__ == '__main__':
    main()
