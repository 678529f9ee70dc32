"""
Tabular export and import of frame histories with pandas.

Column names follow :class:`kinelab.logger.CSVLogger`: ``t`` followed by
``<body>.p_x .. <body>.w_z`` per body, so files written by either path can
be read back with :func:`load_simulation_history`.
"""
from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import numpy as np
import pandas as pd

from kinelab.dynamics.frame import Frame3
from kinelab.dynamics.state import ObjState

STATE_COLUMNS = [
    "p_x", "p_y", "p_z",
    "q_x", "q_y", "q_z", "q_w",
    "v_x", "v_y", "v_z",
    "w_x", "w_y", "w_z",
]


def state_columns(name: str) -> list[str]:
    return [f"{name}.{c}" for c in STATE_COLUMNS]


def history_to_dataframe(frames: Sequence[Frame3], names: Sequence[str]) -> pd.DataFrame:
    """
    Flatten a frame history into a DataFrame, one row per frame.

    Parameters
    ----------
    frames : sequence of Frame3
        History, e.g. ``scene.history``.
    names : sequence of str
        Body names in frame order.

    Raises
    ------
    ValueError
        If the history is empty or a frame has the wrong body count.
    """
    if not frames:
        raise ValueError("Simulation history is empty. Nothing to save.")
    columns = ["t"] + [c for name in names for c in state_columns(name)]
    rows = []
    for frame in frames:
        if frame.count != len(names):
            raise ValueError(
                f"Frame at t={frame.time} holds {frame.count} states, expected {len(names)}"
            )
        rows.append(np.concatenate([[frame.time], *(s.to_array() for s in frame.states)]))
    return pd.DataFrame(np.vstack(rows), columns=columns)


def body_names(df: pd.DataFrame) -> list[str]:
    """Body names found in the ``<name>.p_x`` columns, in column order."""
    return [col[: -len(".p_x")] for col in df.columns if col.endswith(".p_x")]


def dataframe_to_history(df: pd.DataFrame, names: Sequence[str] | None = None) -> list[Frame3]:
    """
    Rebuild frames from a table written by :func:`save_simulation_history` or the CSV logger.

    Raises
    ------
    KeyError
        If a required column is missing.
    """
    names = body_names(df) if names is None else list(names)
    missing = [c for name in names for c in state_columns(name) if c not in df.columns]
    if "t" not in df.columns:
        missing.insert(0, "t")
    if missing:
        raise KeyError(f"Missing columns: {missing}")

    blocks = [df[state_columns(name)].to_numpy(dtype=np.float64) for name in names]
    times = df["t"].to_numpy(dtype=np.float64)
    return [
        Frame3(float(t), tuple(ObjState.from_array(block[i]) for block in blocks))
        for i, t in enumerate(times)
    ]


def save_simulation_history(frames: Sequence[Frame3], names: Sequence[str], filepath: str | Path) -> Path:
    """
    Save a frame history to CSV.

    Returns
    -------
    Path
        The written file.
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    history_to_dataframe(frames, names).to_csv(path, index=False)
    print(f"Simulation results saved to {path.absolute()}")
    return path


def load_simulation_history(filepath: str | Path) -> pd.DataFrame:
    """Read a history CSV into a DataFrame."""
    df = pd.read_csv(filepath)
    if df.columns[0] != "t":
        raise ValueError("First column must be time 't'.")
    return df
