from __future__ import annotations
import os
import csv
from typing import Dict, Tuple, List, Iterable, Sequence
import numpy as np
import matplotlib.pyplot as plt
from matplotlib.figure import Figure
from mpl_toolkits.mplot3d import Axes3D  # noqa: F401  (registers 3D projection)
from mpl_toolkits.mplot3d.art3d import Poly3DCollection

from kinelab.dynamics.body import RigidBody
from kinelab.dynamics.frame import Frame3


def _load_csv(filepath: str) -> Tuple[np.ndarray, Dict[str, np.ndarray], List[str]]:
    """
    Load a CSV produced by CSVLogger.

    Returns
    -------
    t : (N,) array
        Time vector.
    cols : dict[str, np.ndarray]
        Mapping column_name -> (N,) array.
    headers : list[str]
        Column headers in order (first one should be 't').
    """
    with open(filepath, "r", newline="") as f:
        reader = csv.reader(f)
        headers = next(reader)
    data = np.loadtxt(filepath, delimiter=",", skiprows=1, dtype=float)
    if data.ndim == 1:  # single row edge case
        data = data[None, :]
    if headers[0] != "t":
        raise ValueError("First column must be time 't'.")
    cols: Dict[str, np.ndarray] = {}
    for j, name in enumerate(headers):
        cols[name] = data[:, j]
    return cols["t"], cols, headers


def _body_fields(prefix: str) -> Dict[str, str]:
    """
    For body 'box', build expected header names used by CSVLogger.
    """
    base = prefix
    return dict(
        p_x=f"{base}.p_x", p_y=f"{base}.p_y", p_z=f"{base}.p_z",
        q_w=f"{base}.q_w", q_x=f"{base}.q_x", q_y=f"{base}.q_y", q_z=f"{base}.q_z",
        v_x=f"{base}.v_x", v_y=f"{base}.v_y", v_z=f"{base}.v_z",
        w_x=f"{base}.w_x", w_y=f"{base}.w_y", w_z=f"{base}.w_z",
        ke=f"{base}.ke",
    )


def _get_components(cols: Dict[str, np.ndarray], names: Iterable[str]) -> List[np.ndarray]:
    out = []
    for name in names:
        if name not in cols:
            raise KeyError(f"Column '{name}' not found in CSV.")
        out.append(cols[name])
    return out


def _finish(fig: Figure, save_path: str | None, show: bool) -> Figure:
    fig.tight_layout()
    if save_path:
        os.makedirs(os.path.dirname(save_path) or ".", exist_ok=True)
        fig.savefig(save_path, dpi=180, bbox_inches="tight")
    if show:
        plt.show()
    return fig


def plot_trajectory_3d(
    csv_path: str,
    body_name: str,
    save_path: str | None = None,
    show: bool = True,
) -> Figure:
    """
    Plot 3D trajectory (x,y,z) of a given body and z(t) subplot.

    Parameters
    ----------
    csv_path : str
        Path to logger CSV.
    body_name : str
        The 'name' used when creating the body (e.g., 'box').
    save_path : str | None
        If given, save the figure to this path (png/svg).
    show : bool
        Whether to call plt.show().

    Returns
    -------
    fig : Figure
    """
    t, cols, _ = _load_csv(csv_path)
    f = _body_fields(body_name)
    px, py, pz = _get_components(cols, [f["p_x"], f["p_y"], f["p_z"]])

    fig = plt.figure(figsize=(10, 6))
    gs = fig.add_gridspec(2, 2, height_ratios=[2.0, 1.0])
    ax3d = fig.add_subplot(gs[0, :], projection="3d")
    axz = fig.add_subplot(gs[1, :])

    # 3D path
    ax3d.plot(px, py, pz, lw=2.0, color="#1a73e8")
    ax3d.scatter(px[0], py[0], pz[0], color="#34a853", s=40, label="start")
    ax3d.scatter(px[-1], py[-1], pz[-1], color="#ea4335", s=40, label="end")
    ax3d.set_xlabel("x [m]"); ax3d.set_ylabel("y [m]"); ax3d.set_zlabel("z [m]")
    ax3d.set_title(f"3D trajectory: {body_name}")
    ax3d.legend(loc="best")

    # z(t)
    axz.plot(t, pz, color="#1a73e8", lw=2)
    axz.set_xlabel("t [s]"); axz.set_ylabel("z [m]")
    axz.grid(True, alpha=0.3)
    axz.set_title("Height vs time")

    return _finish(fig, save_path, show)


def plot_velocity_and_omega(
    csv_path: str,
    body_name: str,
    save_path: str | None = None,
    show: bool = True,
    magnitude: bool = True,
) -> Figure:
    """
    Plot linear velocity and angular velocity components with magnitudes.

    Parameters
    ----------
    csv_path : str
    body_name : str
    save_path : str | None
    show : bool
    magnitude : bool
        Also draw |v| and |w|.

    Returns
    -------
    fig : Figure
    """
    t, cols, _ = _load_csv(csv_path)
    f = _body_fields(body_name)
    vx, vy, vz = _get_components(cols, [f["v_x"], f["v_y"], f["v_z"]])
    wx, wy, wz = _get_components(cols, [f["w_x"], f["w_y"], f["w_z"]])
    speed = np.linalg.norm(np.column_stack([vx, vy, vz]), axis=1)
    rate = np.linalg.norm(np.column_stack([wx, wy, wz]), axis=1)

    fig, axes = plt.subplots(2, 1, figsize=(10, 7), sharex=True)

    axes[0].plot(t, vx, label="v_x", color="#1a73e8")
    axes[0].plot(t, vy, label="v_y", color="#34a853")
    axes[0].plot(t, vz, label="v_z", color="#fbbc05")
    if magnitude:
        axes[0].plot(t, speed, label="|v|", color="#ea4335", lw=2.0, alpha=0.8)
    axes[0].set_ylabel("velocity [m/s]")
    axes[0].grid(True, alpha=0.3)
    axes[0].legend(loc="best")
    axes[0].set_title(f"Velocity: {body_name}")

    axes[1].plot(t, wx, label="w_x", color="#1a73e8")
    axes[1].plot(t, wy, label="w_y", color="#34a853")
    axes[1].plot(t, wz, label="w_z", color="#fbbc05")
    if magnitude:
        axes[1].plot(t, rate, label="|w|", color="#ea4335", lw=2.0, alpha=0.8)
    axes[1].set_xlabel("t [s]"); axes[1].set_ylabel("angular velocity [rad/s]")
    axes[1].grid(True, alpha=0.3)
    axes[1].legend(loc="best")
    axes[1].set_title("Angular velocity (world frame)")

    return _finish(fig, save_path, show)


def plot_energy(
    csv_path: str,
    body_names: Sequence[str],
    save_path: str | None = None,
    show: bool = True,
) -> Figure:
    """
    Plot logged kinetic energy per body and their sum.

    Requires the logger to record the ``ke`` field.
    """
    t, cols, _ = _load_csv(csv_path)
    series = _get_components(cols, [_body_fields(name)["ke"] for name in body_names])

    fig, ax = plt.subplots(1, 1, figsize=(10, 4))
    for name, ke in zip(body_names, series):
        ax.plot(t, ke, label=name)
    if len(series) > 1:
        ax.plot(t, np.sum(series, axis=0), label="total", color="#ea4335", lw=2.0, alpha=0.8)
    ax.set_xlabel("t [s]"); ax.set_ylabel("kinetic energy [J]")
    ax.grid(True, alpha=0.3)
    ax.legend(loc="best")
    ax.set_title("Kinetic energy")

    return _finish(fig, save_path, show)


def plot_mesh_projection(
    bodies: Sequence[RigidBody],
    frame: Frame3,
    save_path: str | None = None,
    show: bool = True,
    alpha: float = 0.6,
) -> Figure:
    """
    Draw every body's meshes, placed by ``frame``, as shaded 3D polygons.

    Parameters
    ----------
    bodies : sequence of RigidBody
        Bodies in frame order; each is drawn in its ``color``.
    frame : Frame3
        Frame providing the body states.
    save_path : str | None
    show : bool
    alpha : float
        Face transparency.

    Returns
    -------
    fig : Figure

    Raises
    ------
    ValueError
        If the frame and body counts differ.
    """
    if frame.count != len(bodies):
        raise ValueError(
            f"Frame holds {frame.count} states but {len(bodies)} bodies were given"
        )

    fig = plt.figure(figsize=(8, 8))
    ax = fig.add_subplot(111, projection="3d")

    points = []
    for body, state in zip(bodies, frame.states):
        for faces in body.get_shape(state):
            polys = [[p.to_array() for p in face] for face in faces]
            if not polys:
                continue
            ax.add_collection3d(Poly3DCollection(
                polys, facecolors=body.color, edgecolors="k", linewidths=0.5, alpha=alpha
            ))
            points.extend(p for poly in polys for p in poly)
        ax.scatter(*state.position.to_array(), color=body.color, s=20, label=body.name)

    if points:
        pts = np.asarray(points)
        center = 0.5 * (pts.max(axis=0) + pts.min(axis=0))
        half = 0.5 * max(float(np.ptp(pts, axis=0).max()), 1e-9)
        ax.set_xlim(center[0] - half, center[0] + half)
        ax.set_ylim(center[1] - half, center[1] + half)
        ax.set_zlim(center[2] - half, center[2] + half)

    ax.set_xlabel("x [m]"); ax.set_ylabel("y [m]"); ax.set_zlabel("z [m]")
    ax.set_title(f"Scene at t={frame.time:.3f}s")
    if bodies:
        ax.legend(loc="best")

    return _finish(fig, save_path, show)
