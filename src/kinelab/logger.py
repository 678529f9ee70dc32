"""
CSV logging of frame histories.

Buffers rows in memory and writes in batches to minimize I/O overhead.
Implements context manager protocol for safe resource handling.
"""
from __future__ import annotations

import csv
from collections.abc import Sequence
from pathlib import Path
from typing import Any, TextIO

from kinelab.dynamics.body import RigidBody
from kinelab.dynamics.frame import Frame3
from kinelab.dynamics.state import ObjState
from kinelab.spatial.quaternion import QuaternionLayout

FIELD_COMPONENTS = {
    "p": ["x", "y", "z"],
    "q": ["x", "y", "z", "w"],
    "v": ["x", "y", "z"],
    "w": ["x", "y", "z"],
    "ke": [],
}
DEFAULT_FIELDS = ["p", "q", "v", "w"]


class CSVLogger:
    """
    Buffered CSV logger for :class:`~kinelab.dynamics.frame.Frame3` snapshots.

    Parameters
    ----------
    filepath : str | Path
        Output CSV file path
    buffer_size : int
        Number of rows to buffer before writing. Recommended: 100-1000.
    fields : list[str] | None
        State fields to log per body. Default: ["p", "q", "v", "w"]
        Options: "p" (position), "q" (quaternion x, y, z, w),
                 "v" (velocity), "w" (angular velocity),
                 "ke" (kinetic energy)

    Notes
    -----
    The header is ``t`` followed by ``<body>.<field>_<component>`` columns,
    e.g. ``box.p_x`` or ``box.q_w``; scalar fields have no suffix.

    Examples
    --------
    >>> with CSVLogger("run.csv", fields=["p", "v"]) as logger:
    ...     for frame in scene.history:
    ...         logger.log(frame, scene.bodies)
    """

    def __init__(
        self,
        filepath: str | Path,
        buffer_size: int = 1000,
        fields: list[str] | None = None
    ) -> None:
        self.filepath = Path(filepath)
        self.buffer_size = buffer_size
        self.fields = fields if fields is not None else list(DEFAULT_FIELDS)

        invalid = set(self.fields) - set(FIELD_COMPONENTS)
        if invalid:
            raise ValueError(
                f"Invalid fields: {invalid}. Valid options: {set(FIELD_COMPONENTS)}"
            )
        if buffer_size < 1:
            raise ValueError(f"buffer_size must be at least 1, got {buffer_size}")

        self._buffer: list[list[str]] = []
        self._file: TextIO | None = None
        self._writer: Any = None  # csv.writer is a function, not a type
        self._header_written = False
        self._body_names: list[str] | None = None
        self.rows_written = 0

        self.filepath.parent.mkdir(parents=True, exist_ok=True)

    def __enter__(self) -> CSVLogger:
        """Open file for writing."""
        self._file = open(self.filepath, "w", newline="", encoding="utf-8")
        self._writer = csv.writer(self._file)
        self._header_written = False
        self._body_names = None
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Close file, flushing any remaining data."""
        self.close()

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def header(self, bodies: Sequence[RigidBody]) -> list[str]:
        hdr = ["t"]
        for b in bodies:
            for field in self.fields:
                components = FIELD_COMPONENTS[field]
                if components:
                    hdr.extend(f"{b.name}.{field}_{c}" for c in components)
                else:
                    hdr.append(f"{b.name}.{field}")
        return hdr

    def _values(self, body: RigidBody, state: ObjState, field: str) -> list[float]:
        if field == "p":
            return list(state.position)
        if field == "q":
            return state.orientation.to_array(QuaternionLayout.VECTOR_SCALAR).tolist()
        if field == "v":
            return list(state.velocity)
        if field == "w":
            return list(state.omega)
        return [body.kinetic_energy(state)]

    def _write_header(self, bodies: Sequence[RigidBody]) -> None:
        if self._writer:
            self._writer.writerow(self.header(bodies))
            if self._file:
                self._file.flush()  # Ensure header written immediately
        self._header_written = True
        self._body_names = [b.name for b in bodies]

    def log(self, frame: Frame3, bodies: Sequence[RigidBody]) -> None:
        """
        Append one frame to the buffer.

        Parameters
        ----------
        frame : Frame3
            Snapshot to record.
        bodies : sequence of RigidBody
            Bodies in frame order; provide column names and masses.

        Raises
        ------
        ValueError
            If the frame and body counts differ, or the bodies differ from
            those the header was written for.

        Notes
        -----
        Opens the file on first call if not used as a context manager.
        Writes to disk when the buffer is full.
        """
        if frame.count != len(bodies):
            raise ValueError(
                f"Frame holds {frame.count} states but {len(bodies)} bodies were given"
            )
        if self._file is None:
            self.__enter__()

        if not self._header_written:
            self._write_header(bodies)
        elif [b.name for b in bodies] != self._body_names:
            raise ValueError(
                f"Header was written for bodies {self._body_names}, got {[b.name for b in bodies]}"
            )

        row = [f"{frame.time:.10f}"]
        for body, state in zip(bodies, frame.states):
            for field in self.fields:
                row.extend(f"{v:.10e}" for v in self._values(body, state, field))

        self._buffer.append(row)
        if len(self._buffer) >= self.buffer_size:
            self.flush()

    def flush(self) -> None:
        """Write buffered data to disk and clear buffer."""
        if self._writer and self._buffer:
            self._writer.writerows(self._buffer)
            if self._file:
                self._file.flush()
            self.rows_written += len(self._buffer)
            self._buffer.clear()

    def close(self) -> None:
        """Flush remaining data and close file."""
        self.flush()
        if self._file:
            self._file.close()
            self._file = None
            self._writer = None
