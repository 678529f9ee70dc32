"""
Elementary rotation matrices and Euler-sequence composition.

All matrices are *active*: ``R @ v`` rotates the vector ``v`` by the given
angle (right-hand rule) in a fixed frame. The same convention is used by
:meth:`kinelab.spatial.quaternion.Quaternion.to_rotation_matrix`, so a
quaternion built with ``from_axis_angle(axis, angle)`` and the matrix from
:func:`from_axis_rotation` describe the same rotation.

Examples
--------
>>> import math
>>> R = rotate_z(math.pi / 2)
>>> R @ Vector3.UNIT_X
Vector3(x=6.123233995736766e-17, y=1.0, z=0.0)
"""
from __future__ import annotations

import math
from enum import Enum

from .matrix3 import Matrix3
from .vector3 import Vector3


class AxisName(str, Enum):
    """Coordinate axis key. Accepts ``"x"``/``"X"`` style strings."""

    X = "x"
    Y = "y"
    Z = "z"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str) and value.lower() in ("x", "y", "z"):
            return cls(value.lower())
        return None


class RotationSequence(str, Enum):
    """The twelve Euler-angle axis sequences."""

    XYX = "xyx"
    XYZ = "xyz"
    XZX = "xzx"
    XZY = "xzy"
    YXY = "yxy"
    YXZ = "yxz"
    YZX = "yzx"
    YZY = "yzy"
    ZXY = "zxy"
    ZXZ = "zxz"
    ZYX = "zyx"
    ZYZ = "zyz"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str) and value.lower() in cls._value2member_map_:
            return cls(value.lower())
        return None

    @property
    def axes(self) -> tuple[AxisName, AxisName, AxisName]:
        return tuple(AxisName(ch) for ch in self.value)


def rotate_x(angle: float) -> Matrix3:
    s, c = math.sin(angle), math.cos(angle)
    return Matrix3(
        1.0, 0.0, 0.0,
        0.0, c, -s,
        0.0, s, c,
    )


def rotate_y(angle: float) -> Matrix3:
    s, c = math.sin(angle), math.cos(angle)
    return Matrix3(
        c, 0.0, s,
        0.0, 1.0, 0.0,
        -s, 0.0, c,
    )


def rotate_z(angle: float) -> Matrix3:
    s, c = math.sin(angle), math.cos(angle)
    return Matrix3(
        c, -s, 0.0,
        s, c, 0.0,
        0.0, 0.0, 1.0,
    )


_ELEMENTARY = {
    AxisName.X: rotate_x,
    AxisName.Y: rotate_y,
    AxisName.Z: rotate_z,
}


def from_axis_rotation(axis: Vector3 | AxisName | str, angle: float) -> Matrix3:
    """
    Rotation matrix about an axis through the origin.

    Parameters
    ----------
    axis : Vector3 or AxisName
        Rotation axis. Vectors need not be unit length.
    angle : float
        Rotation angle [rad].

    Returns
    -------
    Matrix3
        Rodrigues form ``cos(a) I + sin(a) [e x] + (1 - cos(a)) e e^T``.

    Raises
    ------
    ValueError
        If ``axis`` is the zero vector.
    """
    if not isinstance(axis, Vector3):
        return _ELEMENTARY[AxisName(axis)](angle)

    if axis.is_zero:
        raise ValueError("Rotation axis must be non-zero")
    e = axis.column().unit_vector()
    c, s = math.cos(angle), math.sin(angle)
    return (
        Matrix3.scalar(c)
        .add(e.cross_operator().scale(s))
        .add(e.outer(e).scale(1.0 - c))
    )


def _padded_angles(angles: tuple[float, ...]) -> tuple[float, float, float]:
    if len(angles) > 3:
        raise ValueError(f"At most 3 Euler angles are accepted, got {len(angles)}")
    padded = tuple(float(a) for a in angles) + (0.0,) * (3 - len(angles))
    return padded  # type: ignore[return-value]


def body_sequence(sequence: RotationSequence | str, *angles: float) -> Matrix3:
    """
    Compose rotations about successive *body-fixed* axes.

    ``body_sequence("zyx", a, b, c) == rotate_z(a) @ rotate_y(b) @ rotate_x(c)``.
    Missing angles default to zero. Matches scipy's intrinsic convention
    ``Rotation.from_euler("ZYX", ...)``.
    """
    seq = RotationSequence(sequence)
    a1, a2, a3 = _padded_angles(angles)
    ax1, ax2, ax3 = seq.axes
    return _ELEMENTARY[ax1](a1) @ _ELEMENTARY[ax2](a2) @ _ELEMENTARY[ax3](a3)


def world_sequence(sequence: RotationSequence | str, *angles: float) -> Matrix3:
    """
    Compose rotations about the fixed *world* axes, applied in sequence order.

    Equivalent to scipy's extrinsic convention ``Rotation.from_euler("zyx", ...)``.
    """
    seq = RotationSequence(sequence)
    a1, a2, a3 = _padded_angles(angles)
    ax1, ax2, ax3 = seq.axes
    return _ELEMENTARY[ax3](a3) @ _ELEMENTARY[ax2](a2) @ _ELEMENTARY[ax1](a1)


def is_rotation(matrix: Matrix3, tol: float = 1e-9) -> bool:
    """True when ``matrix`` is orthonormal with determinant +1."""
    return (
        matrix.transpose().multiply(matrix).is_close(Matrix3.IDENTITY, tol)
        and abs(matrix.determinant - 1.0) <= tol
    )
