"""
Visualization utilities for quaddyn (requires matplotlib).

- plot_states: Time series of the 12 states
- plot_controls: Time series of rotor commands
- plot_trajectory_3d: 3D flight path

Example
-------
>>> import numpy as np
>>> from quaddyn import DynamicsModel
>>> from quaddyn.visualization import plot_states
>>> model = DynamicsModel()
>>> traj = model.run([0.6, 0.6, 0.6, 0.6], 500)
>>> t = model.dt * np.arange(len(traj))
>>> fig, axes = plot_states(t, traj)
"""

from quaddyn.visualization.plotters import (
    STATE_LABELS,
    plot_controls,
    plot_states,
    plot_trajectory_3d,
)

__all__ = [
    "STATE_LABELS",
    "plot_controls",
    "plot_states",
    "plot_trajectory_3d",
]
