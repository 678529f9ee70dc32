"""
Rigid-body state and state-rate values.

All quantities are in the world frame and SI units:

- Position: meters [m]
- Orientation: unit quaternion, body -> world
- Velocity: meters per second [m/s]
- Angular velocity: radians per second [rad/s]
"""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import ClassVar

import numpy as np
from numpy.typing import NDArray

from ..spatial.matrix3 import Matrix3
from ..spatial.quaternion import Quaternion, QuaternionLayout
from ..spatial.vector3 import Vector3

# position(3) + quaternion xyzw(4) + velocity(3) + omega(3)
STATE_SIZE = 13


@dataclass(frozen=True, slots=True)
class ObjState:
    """
    Kinematic state of one rigid body.

    Parameters
    ----------
    position : Vector3
        Body origin in the world frame [m].
    orientation : Quaternion
        Body-to-world rotation.
    velocity : Vector3
        Linear velocity [m/s].
    omega : Vector3
        Angular velocity [rad/s].
    """

    position: Vector3 = Vector3.ZERO
    orientation: Quaternion = Quaternion.IDENTITY
    velocity: Vector3 = Vector3.ZERO
    omega: Vector3 = Vector3.ZERO

    __array_ufunc__ = None

    @classmethod
    def at(cls, position: Vector3) -> ObjState:
        """State at rest at ``position`` with identity orientation."""
        return cls(position=position)

    @classmethod
    def oriented(cls, orientation: Quaternion) -> ObjState:
        """State at rest at the origin with the given orientation."""
        return cls(orientation=orientation)

    @property
    def rotation(self) -> Matrix3:
        """Body-to-world rotation matrix."""
        return self.orientation.to_rotation_matrix()

    @property
    def inverse_rotation(self) -> Matrix3:
        return self.orientation.to_rotation_matrix(inverse=True)

    # ------------------------------------------------------------------
    # Time stepping
    # ------------------------------------------------------------------

    def step(self, dt: float, rate: ObjRate) -> ObjState:
        """
        Explicit step along ``rate``.

        The orientation is advanced by the exact rotation increment of
        ``rate.omega`` held over ``dt``, pre-multiplied onto the current
        orientation.
        """
        return ObjState(
            self.position.add(rate.velocity.scale(dt)),
            Quaternion.from_rot_velocity_and_time(rate.omega, dt).product(self.orientation),
            self.velocity.add(rate.acceleration.scale(dt)),
            self.omega.add(rate.alpha.scale(dt)),
        )

    def step_with(self, dt: float, acceleration: Vector3, alpha: Vector3) -> ObjState:
        """Step using this state's own velocities and the given accelerations."""
        return self.step(dt, ObjRate.from_state(self, acceleration, alpha))

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def transform(self, points: Iterable[Vector3]) -> list[Vector3]:
        """Map body-frame points into the world frame, ``p + R x``."""
        R = self.rotation
        p = self.position
        return [p.add(R.multiply(node)) for node in points]

    def transform_faces(self, faces: Iterable[Iterable[Vector3]]) -> list[list[Vector3]]:
        R = self.rotation
        p = self.position
        return [[p.add(R.multiply(node)) for node in face] for face in faces]

    def inverse_transform(self, points: Iterable[Vector3]) -> list[Vector3]:
        """Map world-frame points into the body frame, ``R^T (x - p)``."""
        Rt = self.inverse_rotation
        p = self.position
        return [Rt.multiply(node.subtract(p)) for node in points]

    # ------------------------------------------------------------------
    # Array interop
    # ------------------------------------------------------------------

    def to_array(self) -> NDArray[np.float64]:
        """Flat ``[p(3), q_xyzw(4), v(3), w(3)]`` array."""
        return np.concatenate([
            self.position.to_array(),
            self.orientation.to_array(QuaternionLayout.VECTOR_SCALAR),
            self.velocity.to_array(),
            self.omega.to_array(),
        ])

    @classmethod
    def from_array(cls, values: NDArray[np.float64]) -> ObjState:
        arr = np.asarray(values, dtype=np.float64).ravel()
        if arr.shape != (STATE_SIZE,):
            raise ValueError(f"ObjState needs {STATE_SIZE} elements, got shape {arr.shape}")
        return cls(
            Vector3.from_array(arr[0:3]),
            Quaternion.from_array(arr[3:7]),
            Vector3.from_array(arr[7:10]),
            Vector3.from_array(arr[10:13]),
        )


@dataclass(frozen=True, slots=True)
class ObjRate:
    """
    Time derivative of an :class:`ObjState`.

    Rates form a vector space so that RK4 can average them.
    """

    velocity: Vector3 = Vector3.ZERO
    omega: Vector3 = Vector3.ZERO
    acceleration: Vector3 = Vector3.ZERO
    alpha: Vector3 = Vector3.ZERO

    ZERO: ClassVar[ObjRate]

    __array_ufunc__ = None

    @classmethod
    def from_state(
        cls,
        state: ObjState,
        acceleration: Vector3 = Vector3.ZERO,
        alpha: Vector3 = Vector3.ZERO,
    ) -> ObjRate:
        """Rate whose kinematic part is the state's own velocities."""
        return cls(state.velocity, state.omega, acceleration, alpha)

    @classmethod
    def zero(cls) -> ObjRate:
        return cls.ZERO

    def add(self, other: ObjRate) -> ObjRate:
        return ObjRate(
            self.velocity.add(other.velocity),
            self.omega.add(other.omega),
            self.acceleration.add(other.acceleration),
            self.alpha.add(other.alpha),
        )

    def subtract(self, other: ObjRate) -> ObjRate:
        return self.add(other.scale(-1.0))

    def scale(self, factor: float) -> ObjRate:
        return ObjRate(
            self.velocity.scale(factor),
            self.omega.scale(factor),
            self.acceleration.scale(factor),
            self.alpha.scale(factor),
        )

    def divide(self, divisor: float) -> ObjRate:
        return self.scale(1.0 / divisor)

    def is_close(self, other: ObjRate, tol: float = 1e-12) -> bool:
        return (
            self.velocity.is_close(other.velocity, tol)
            and self.omega.is_close(other.omega, tol)
            and self.acceleration.is_close(other.acceleration, tol)
            and self.alpha.is_close(other.alpha, tol)
        )

    def __add__(self, other: ObjRate) -> ObjRate:
        return self.add(other)

    def __sub__(self, other: ObjRate) -> ObjRate:
        return self.subtract(other)

    def __neg__(self) -> ObjRate:
        return self.scale(-1.0)

    def __mul__(self, factor: float) -> ObjRate:
        if isinstance(factor, ObjRate):
            return NotImplemented
        return self.scale(factor)

    __rmul__ = __mul__

    def __truediv__(self, divisor: float) -> ObjRate:
        return self.divide(divisor)


ObjRate.ZERO = ObjRate()
