"""
Engineer-friendly orientation utilities.

Simple ways to specify a body orientation without writing quaternions by
hand. All functions return :class:`~kinelab.spatial.quaternion.Quaternion`
values; Euler-angle conversions are delegated to
``scipy.spatial.transform.Rotation``, whose ``[x, y, z, w]`` quaternion
order matches ``QuaternionLayout.VECTOR_SCALAR``.

Common Use Cases
----------------
- Point a body's axis in a direction: use `orientation_from_direction()`
- Specify roll/pitch/yaw angles: use `orientation_from_euler()`
- Rotate around an axis: use `orientation_from_axis_angle()`

Examples
--------
>>> from kinelab.utils.orientation import orientation_from_euler
>>> q = orientation_from_euler(yaw=90)
>>> describe_orientation(q)
'Roll: 0.0°, Pitch: 0.0°, Yaw: 90.0°'
"""
from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray
from scipy.spatial.transform import Rotation as R

from kinelab.spatial.quaternion import Quaternion, QuaternionLayout
from kinelab.spatial.vector3 import Vector3

PARALLEL_TOLERANCE = 1e-12


# =============================================================================
# scipy interop
# =============================================================================

def to_scipy(q: Quaternion) -> R:
    """Convert to a scipy ``Rotation`` (normalizes the quaternion)."""
    return R.from_quat(q.to_array(QuaternionLayout.VECTOR_SCALAR))


def from_scipy(rotation: R) -> Quaternion:
    return Quaternion.from_array(rotation.as_quat(), QuaternionLayout.VECTOR_SCALAR)


# =============================================================================
# Euler Angles (Roll, Pitch, Yaw)
# =============================================================================

def orientation_from_euler(
    roll: float = 0.0,
    pitch: float = 0.0,
    yaw: float = 0.0,
    degrees: bool = True,
    order: str = "xyz"
) -> Quaternion:
    """
    Create orientation quaternion from Euler angles.

    Parameters
    ----------
    roll : float
        Rotation about X axis [degrees or radians]
    pitch : float
        Rotation about Y axis [degrees or radians]
    yaw : float
        Rotation about Z axis [degrees or radians]
    degrees : bool
        If True (default), angles are in degrees. If False, radians.
    order : str
        scipy Euler sequence. Lower case is extrinsic (fixed world axes),
        upper case intrinsic (body axes). Default "xyz".

    Returns
    -------
    Quaternion
        Unit orientation quaternion.

    Examples
    --------
    >>> q = orientation_from_euler(roll=10, pitch=-5, yaw=45)
    """
    rot = R.from_euler(order, [roll, pitch, yaw], degrees=degrees)
    return from_scipy(rot)


def quaternion_to_euler(
    q: Quaternion,
    order: str = "xyz",
    degrees: bool = True
) -> tuple[float, float, float]:
    """
    Convert quaternion to Euler angles for inspection.

    Returns
    -------
    tuple[float, float, float]
        Angles in the order of ``order``.
    """
    angles = to_scipy(q).as_euler(order, degrees=degrees)
    return tuple(float(a) for a in angles)


def describe_orientation(q: Quaternion) -> str:
    """
    Human-readable roll/pitch/yaw description.

    Examples
    --------
    >>> describe_orientation(Quaternion.IDENTITY)
    'Roll: 0.0°, Pitch: 0.0°, Yaw: 0.0°'
    """
    roll, pitch, yaw = quaternion_to_euler(q, degrees=True)
    # avoid "-0.0" in the output
    roll, pitch, yaw = (a + 0.0 for a in (roll, pitch, yaw))
    return f"Roll: {roll:.1f}°, Pitch: {pitch:.1f}°, Yaw: {yaw:.1f}°"


# =============================================================================
# Axis-Angle Rotation
# =============================================================================

def orientation_from_axis_angle(
    axis: Vector3 | tuple[float, float, float] | list[float] | NDArray,
    angle: float,
    degrees: bool = True
) -> Quaternion:
    """
    Create orientation from axis-angle representation.

    Parameters
    ----------
    axis : Vector3 or array-like
        Rotation axis [x, y, z]. Will be normalized.
    angle : float
        Rotation angle [degrees or radians]
    degrees : bool
        If True (default), angle is in degrees.

    Examples
    --------
    >>> q = orientation_from_axis_angle([0, 0, 1], 45)
    """
    if not isinstance(axis, Vector3):
        axis = Vector3.from_array(axis)
    if degrees:
        angle = math.radians(angle)
    return Quaternion.from_axis_angle(axis, angle)


# =============================================================================
# Direction-based orientation
# =============================================================================

def orientation_from_direction(
    body_axis: str = "z",
    toward: Vector3 | tuple[float, float, float] | list[float] | NDArray = (0, 0, 1),
) -> Quaternion:
    """
    Shortest rotation that points a body axis toward a world direction.

    Parameters
    ----------
    body_axis : str
        Which body axis to align: 'x', 'y', or 'z' (or '+x', '-x', etc.)
    toward : Vector3 or array-like
        Target direction in the world frame. Will be normalized.

    Raises
    ------
    ValueError
        If ``body_axis`` is unknown or ``toward`` is the zero vector.

    Examples
    --------
    >>> # Point body's +X axis downward (-Z global)
    >>> q = orientation_from_direction('x', toward=[0, 0, -1])
    """
    axis = body_axis.lower().strip()
    sign = 1.0
    if axis.startswith('-'):
        sign = -1.0
        axis = axis[1:]
    elif axis.startswith('+'):
        axis = axis[1:]

    axis_map = {'x': Vector3.UNIT_X, 'y': Vector3.UNIT_Y, 'z': Vector3.UNIT_Z}
    if axis not in axis_map:
        raise ValueError(f"body_axis must be 'x', 'y', or 'z', got '{body_axis}'")

    target = toward if isinstance(toward, Vector3) else Vector3.from_array(toward)
    if target.is_zero:
        raise ValueError("Target direction must be non-zero")
    target = target.column().unit_vector()
    body_vec = axis_map[axis].scale(sign)

    rot_axis = body_vec.cross(target)
    sin_angle = rot_axis.magnitude
    cos_angle = body_vec.dot(target)
    if sin_angle < PARALLEL_TOLERANCE:
        if cos_angle > 0:
            return Quaternion.IDENTITY
        # Opposite directions: half turn about any perpendicular axis
        return Quaternion.from_axis_angle(body_vec.nullspace()[0], math.pi)
    return Quaternion.from_axis_angle(rot_axis, math.atan2(sin_angle, cos_angle))


def random_orientation(seed: int | None = None) -> Quaternion:
    """Uniformly distributed random orientation (scipy ``Rotation.random``)."""
    return from_scipy(R.random(None, seed))


def rotation_matrices(q: Quaternion) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Return ``(own, scipy)`` rotation matrices, for cross-checking conventions."""
    return q.to_rotation_matrix().to_array(), to_scipy(q).as_matrix()
