#!/usr/bin/env python3
"""
Example 01: Open-loop manoeuvres and a linear altitude controller

Demonstrates fundamental quaddyn usage:
- Driving DynamicsModel with constant rotor commands
- Linearizing about hover with LinearizationEngine
- Closing the loop with a gain designed on (Ad, Bd)
- Using visualization utilities

Outputs saved to: examples/outputs/
"""

import logging
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

import quaddyn as qd
from quaddyn.systems.quadrotor import PZ
from quaddyn.visualization import plot_controls, plot_states, plot_trajectory_3d

# Output directory
OUTPUT_DIR = Path(__file__).parent / "outputs"


def discrete_lqr(Ad, Bd, Q, R, n_iter=2000):
    """Steady-state LQR gain by iterating the discrete Riccati recursion."""
    P = Q.copy()
    for _ in range(n_iter):
        K = np.linalg.solve(R + Bd.T @ P @ Bd, Bd.T @ P @ Ad)
        P = Q + Ad.T @ P @ (Ad - Bd @ K)
    return K


def open_loop_example():
    """Constant-command manoeuvres from rest."""
    print("=" * 60)
    print("Open-loop manoeuvres")
    print("=" * 60)

    manoeuvres = {
        "hover": ([0.55, 0.55, 0.55, 0.55], 500),
        "ascent": ([0.80, 0.80, 0.80, 0.80], 500),
        "yaw": ([0.65, 0.45, 0.65, 0.45], 500),
        "roll": ([0.55, 0.45, 0.55, 0.65], 100),
    }

    for name, (cmds, n_steps) in manoeuvres.items():
        model = qd.DynamicsModel()
        traj = model.run(cmds, n_steps)
        print(f"{name:>7s}: t={model.time:.2f}s  altitude={traj[-1, PZ]:+.6f}")

    model = qd.DynamicsModel()
    traj = model.run([0.55, 0.45, 0.55, 0.65], 100)
    t = model.dt * np.arange(len(traj))

    fig, _ = plot_states(t, traj, title="Roll manoeuvre")
    fig.savefig(OUTPUT_DIR / "01a_roll_states.png", dpi=150)
    print("Saved: 01a_roll_states.png")

    plt.close("all")


def closed_loop_example():
    """Climb to 1 m with an LQR gain on the hover linearization."""
    print("\n" + "=" * 60)
    print("Closed-loop altitude step")
    print("=" * 60)

    engine = qd.LinearizationEngine()
    lin = engine.relinearize(np.zeros(qd.STATE_SIZE))

    Q = np.diag([10.0, 10.0, 10.0, 1.0, 1.0, 1.0, 5.0, 5.0, 5.0, 0.5, 0.5, 0.5])
    R = 10.0 * np.eye(qd.INPUT_SIZE)
    engine.set_gain(discrete_lqr(lin.Ad, lin.Bd, Q, R))

    setpoint = np.zeros(qd.STATE_SIZE)
    setpoint[PZ] = 1.0
    engine.set_setpoint(setpoint)

    model = qd.DynamicsModel()
    steps_per_control = int(round(engine.dt / model.dt))
    n_control = 400

    states = [model.get_states()]
    commands = []
    for _ in range(n_control):
        u = engine.calculate_control(model.get_states())
        for _ in range(steps_per_control):
            model.send_motor_cmds(u)
        states.append(model.get_states())
        commands.append(u)

    x = np.array(states)
    u = np.array(commands)
    t = engine.dt * np.arange(len(x))

    print(f"Final altitude after {t[-1]:.1f}s: {x[-1, PZ]:.4f}")

    fig1, _ = plot_states(t, x, title="Altitude step states")
    fig1.savefig(OUTPUT_DIR / "01b_step_states.png", dpi=150)
    print("Saved: 01b_step_states.png")

    lb, ub = model.system.get_control_bounds()
    fig2, _ = plot_controls(t, u, bounds=(lb, ub))
    fig2.savefig(OUTPUT_DIR / "01b_step_controls.png", dpi=150)
    print("Saved: 01b_step_controls.png")

    fig3, _ = plot_trajectory_3d(x, title="Altitude step", show_ground_track=True)
    fig3.savefig(OUTPUT_DIR / "01b_step_path.png", dpi=150)
    print("Saved: 01b_step_path.png")

    plt.close("all")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    OUTPUT_DIR.mkdir(exist_ok=True)

    open_loop_example()
    closed_loop_example()
