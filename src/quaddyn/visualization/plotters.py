"""
Plotting utilities for quadrotor simulation output.

- Time series of states and rotor commands
- 3D flight path (altitude up)
"""

from typing import List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.axes import Axes
from matplotlib.figure import Figure

from quaddyn.systems.quadrotor import PX, PY, PZ

STATE_LABELS = [
    "p_x",
    "p_y",
    "altitude",
    "v_x (body)",
    "v_y (body)",
    "v_z (body)",
    "roll [rad]",
    "pitch [rad]",
    "yaw [rad]",
    "p [rad/s]",
    "q [rad/s]",
    "r [rad/s]",
]


def _grid_of_series(
    t: np.ndarray,
    series: np.ndarray,
    names: List[str],
    title: str,
    figsize: Tuple[float, float],
    n_cols: int,
) -> Tuple[Figure, np.ndarray]:
    n_series = series.shape[1]
    n_cols = min(n_cols, n_series)
    n_rows = int(np.ceil(n_series / n_cols))

    fig, axes = plt.subplots(n_rows, n_cols, figsize=figsize, sharex=True)
    axes = np.atleast_1d(axes).flatten()

    for i in range(n_series):
        axes[i].plot(t, series[:, i], linewidth=1.5)
        axes[i].set_ylabel(names[i])
        axes[i].grid(True, alpha=0.3)

    for i in range(n_series, len(axes)):
        axes[i].set_visible(False)

    for ax in axes[-n_cols:]:
        ax.set_xlabel("Time [s]")

    fig.suptitle(title)
    fig.tight_layout()

    return fig, axes


def plot_states(
    t: np.ndarray,
    x: np.ndarray,
    state_names: Optional[List[str]] = None,
    title: str = "Quadrotor States",
    figsize: Tuple[float, float] = (12, 9),
) -> Tuple[Figure, np.ndarray]:
    """
    Plot state trajectories, one subplot per state, grouped three per row.

    Parameters
    ----------
    t : np.ndarray, shape (N,)
        Time array.
    x : np.ndarray, shape (N, n_state)
        State trajectory.
    state_names : list of str, optional
        Labels. Defaults to the quadrotor state labels for 12 states,
        x_0, x_1, ... otherwise.

    Returns
    -------
    fig : Figure
    axes : ndarray of Axes
    """
    x = np.asarray(x)
    if state_names is None:
        state_names = STATE_LABELS if x.shape[1] == len(STATE_LABELS) else [f"x_{i}" for i in range(x.shape[1])]

    return _grid_of_series(t, x, state_names, title, figsize, n_cols=3)


def plot_controls(
    t: np.ndarray,
    u: np.ndarray,
    control_names: Optional[List[str]] = None,
    title: str = "Rotor Commands",
    figsize: Tuple[float, float] = (10, 6),
    bounds: Optional[Tuple[np.ndarray, np.ndarray]] = None,
) -> Tuple[Figure, np.ndarray]:
    """
    Plot rotor commands over time.

    `t` may be one element longer than `u` (as returned by
    DynamicalSystem.simulate); the last time is then dropped. `bounds`
    (lower, upper) are drawn as dashed lines where finite.
    """
    u = np.asarray(u)
    t_u = t[: len(u)]

    if control_names is None:
        control_names = [f"u_{i + 1}" for i in range(u.shape[1])]

    fig, axes = _grid_of_series(t_u, u, control_names, title, figsize, n_cols=2)

    if bounds is not None:
        lb, ub = bounds
        for i in range(u.shape[1]):
            for limit in (lb[i], ub[i]):
                if np.isfinite(limit):
                    axes[i].axhline(limit, color="r", linestyle="--", alpha=0.7)

    return fig, axes


def plot_trajectory_3d(
    x: np.ndarray,
    title: str = "Flight Path",
    figsize: Tuple[float, float] = (9, 8),
    ax: Optional[Axes] = None,
    show_ground_track: bool = False,
    **plot_kwargs,
) -> Tuple[Figure, Axes]:
    """
    Plot the world-frame position of a state trajectory in 3D.

    Parameters
    ----------
    x : np.ndarray, shape (N, 12)
        State trajectory; columns PX, PY, PZ are used (PZ is altitude).
    ax : Axes3D, optional
        Existing 3D axes to draw into.
    show_ground_track : bool
        Also draw the path projected onto zero altitude.
    **plot_kwargs
        Passed to ax.plot().
    """
    x = np.asarray(x)

    if ax is None:
        fig = plt.figure(figsize=figsize)
        ax = fig.add_subplot(111, projection="3d")
    else:
        fig = ax.figure

    plot_kwargs.setdefault("linewidth", 2)
    ax.plot(x[:, PX], x[:, PY], x[:, PZ], **plot_kwargs)

    ax.scatter([x[0, PX]], [x[0, PY]], [x[0, PZ]], c="green", s=60, label="Start")
    ax.scatter([x[-1, PX]], [x[-1, PY]], [x[-1, PZ]], c="red", s=60, label="End")

    if show_ground_track:
        ax.plot(x[:, PX], x[:, PY], np.zeros(len(x)), "k--", alpha=0.3, linewidth=1)

    ax.set_xlabel("x")
    ax.set_ylabel("y")
    ax.set_zlabel("altitude")
    ax.set_title(title)
    ax.legend()

    return fig, ax
