"""
Fixed-size 3-component vectors.

Vectors carry an ``is_transposed`` tag that marks them as row vectors.
The tag is an algebraic marker used to tell left from right multiplication
against a :class:`~kinelab.spatial.matrix3.Matrix3`; it is not a storage
format and does not take part in equality.
"""
from __future__ import annotations

import math
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from .matrix3 import Matrix3
    from .rotations import AxisName

NORMALIZE_EPSILON = 1e-8


@dataclass(frozen=True, slots=True)
class Vector3:
    """
    Immutable 3D vector.

    Parameters
    ----------
    x, y, z : float
        Components.
    is_transposed : bool
        True for a row vector. Dot and cross products require both
        operands to carry the same tag.

    Examples
    --------
    >>> a = Vector3(1.0, 0.0, 0.0)
    >>> b = Vector3(0.0, 1.0, 0.0)
    >>> a.cross(b)
    Vector3(x=0.0, y=0.0, z=1.0)
    """

    x: float
    y: float
    z: float
    is_transposed: bool = field(default=False, compare=False, repr=False)

    ZERO: ClassVar[Vector3]
    UNIT_X: ClassVar[Vector3]
    UNIT_Y: ClassVar[Vector3]
    UNIT_Z: ClassVar[Vector3]

    # numpy scalars defer to the reflected operators instead of broadcasting
    __array_ufunc__ = None

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def cartesian(cls, x: float, y: float, z: float) -> Vector3:
        return cls(float(x), float(y), float(z))

    @classmethod
    def from_array(cls, values: Sequence[float] | NDArray, transpose: bool = False) -> Vector3:
        """Build from any 3-element sequence or numpy array."""
        arr = np.asarray(values, dtype=np.float64).ravel()
        if arr.shape != (3,):
            raise ValueError(f"Vector3 needs exactly 3 elements, got shape {arr.shape}")
        return cls(float(arr[0]), float(arr[1]), float(arr[2]), transpose)

    @classmethod
    def from_axis(cls, axis: AxisName) -> Vector3:
        from .rotations import AxisName

        return {
            AxisName.X: cls.UNIT_X,
            AxisName.Y: cls.UNIT_Y,
            AxisName.Z: cls.UNIT_Z,
        }[AxisName(axis)]

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def sum_squares(self) -> float:
        return self.x * self.x + self.y * self.y + self.z * self.z

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.sum_squares)

    @property
    def is_zero(self) -> bool:
        return self.x == 0 and self.y == 0 and self.z == 0

    def __getitem__(self, index: int) -> float:
        if index == 0:
            return self.x
        if index == 1:
            return self.y
        if index == 2:
            return self.z
        raise IndexError(f"Vector3 index out of range: {index}")

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def __len__(self) -> int:
        return 3

    def to_array(self) -> NDArray[np.float64]:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    # ------------------------------------------------------------------
    # Vector space
    # ------------------------------------------------------------------

    def add(self, other: Vector3) -> Vector3:
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z, self.is_transposed)

    def subtract(self, other: Vector3) -> Vector3:
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z, self.is_transposed)

    def negative(self) -> Vector3:
        return Vector3(-self.x, -self.y, -self.z, self.is_transposed)

    def scale(self, factor: float) -> Vector3:
        f = float(factor)
        return Vector3(f * self.x, f * self.y, f * self.z, self.is_transposed)

    def divide(self, divisor: float) -> Vector3:
        return Vector3(self.x / divisor, self.y / divisor, self.z / divisor, self.is_transposed)

    def transpose(self) -> Vector3:
        return Vector3(self.x, self.y, self.z, not self.is_transposed)

    def column(self) -> Vector3:
        """Same components tagged as a column vector."""
        if not self.is_transposed:
            return self
        return Vector3(self.x, self.y, self.z, False)

    def _check_tags(self, other: Vector3, operation: str) -> None:
        if self.is_transposed != other.is_transposed:
            raise ValueError(f"Cannot {operation} vectors with mismatched transposition")

    def dot(self, other: Vector3) -> float:
        self._check_tags(other, "dot")
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: Vector3) -> Vector3:
        self._check_tags(other, "cross")
        return Vector3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
            self.is_transposed,
        )

    def cross_operator(self) -> Matrix3:
        """
        Skew-symmetric matrix ``[v x]`` such that ``v.cross_operator() @ w == v.cross(w)``.
        """
        from .matrix3 import Matrix3

        return Matrix3.skew_symmetric(-self.z, self.y, -self.x)

    def outer(self, other: Vector3) -> Matrix3:
        from .matrix3 import Matrix3

        return Matrix3(
            self.x * other.x, self.x * other.y, self.x * other.z,
            self.y * other.x, self.y * other.y, self.y * other.z,
            self.z * other.x, self.z * other.y, self.z * other.z,
        )

    def parallel(self, factor: float = 1.0) -> Matrix3:
        """
        Parallel-axis tensor ``factor * (|v|^2 I - v v^T)``.

        This is the moment of inertia contribution of a point of mass
        ``factor`` located at this vector.
        """
        from .matrix3 import Matrix3

        x, y, z = self.x, self.y, self.z
        return Matrix3(
            factor * (y * y + z * z), -factor * x * y, -factor * x * z,
            -factor * x * y, factor * (x * x + z * z), -factor * y * z,
            -factor * x * z, -factor * y * z, factor * (x * x + y * y),
        )

    def multiply(self, matrix: Matrix3) -> Vector3:
        """Row vector times matrix, ``v^T M``. Requires a row vector."""
        if not self.is_transposed:
            raise ValueError("Vector must be transposed to multiply a matrix from the left")
        m = matrix
        return Vector3(
            m.a11 * self.x + m.a21 * self.y + m.a31 * self.z,
            m.a12 * self.x + m.a22 * self.y + m.a32 * self.z,
            m.a13 * self.x + m.a23 * self.y + m.a33 * self.z,
            True,
        )

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def normalized(self) -> Vector3:
        """Unit vector, or the vector unchanged when its length is tiny."""
        m = self.magnitude
        if m != 1.0 and m > NORMALIZE_EPSILON:
            return self.divide(m)
        return self

    def unit_vector(self) -> Vector3:
        m = self.magnitude
        if m > 0:
            return self.divide(m)
        return self

    def max_abs(self) -> float:
        return max(abs(self.x), abs(self.y), abs(self.z))

    def distance(self, other: Vector3) -> float:
        return other.subtract(self).magnitude

    def nullspace(self) -> list[Vector3]:
        """Orthonormal basis of the plane normal to this vector."""
        if self.magnitude == 0:
            return [Vector3.UNIT_X, Vector3.UNIT_Y, Vector3.UNIT_Z]
        if self.x != 0 or self.y != 0:
            return [
                Vector3(self.x * self.z, self.y * self.z, -self.x * self.x - self.y * self.y).normalized(),
                Vector3(-self.y, self.x, 0.0).normalized(),
            ]
        return [Vector3.UNIT_X, Vector3.UNIT_Y]

    def rotate_x(self, angle: float) -> Vector3:
        c, s = math.cos(angle), math.sin(angle)
        return Vector3(self.x, c * self.y - s * self.z, s * self.y + c * self.z)

    def rotate_y(self, angle: float) -> Vector3:
        c, s = math.cos(angle), math.sin(angle)
        return Vector3(c * self.x + s * self.z, self.y, -s * self.x + c * self.z)

    def rotate_z(self, angle: float) -> Vector3:
        c, s = math.cos(angle), math.sin(angle)
        return Vector3(c * self.x - s * self.y, s * self.x + c * self.y, self.z)

    def rotate(self, axis: Vector3, angle: float) -> Vector3:
        """Rotate about an arbitrary axis through the origin."""
        from .rotations import from_axis_rotation

        return from_axis_rotation(axis, angle).multiply(self.column())

    def is_close(self, other: Vector3, tol: float = 1e-12) -> bool:
        return (
            abs(self.x - other.x) <= tol
            and abs(self.y - other.y) <= tol
            and abs(self.z - other.z) <= tol
        )

    @staticmethod
    def lerp(start: Vector3, end: Vector3, bias: float) -> Vector3:
        """Linear interpolation ``start + bias*(end - start)``."""
        return start.add(end.subtract(start).scale(bias))

    @staticmethod
    def barycentric(a: Vector3, b: Vector3, c: Vector3, bias_ab: float, bias_ac: float) -> Vector3:
        return a.add(b.subtract(a).scale(bias_ab)).add(c.subtract(a).scale(bias_ac))

    @staticmethod
    def slerp(a: Vector3, b: Vector3, t: float) -> Vector3:
        """Spherical interpolation between two unit directions."""
        cos_angle = a.dot(b)
        if cos_angle < 0:
            a = a.negative()
            cos_angle = -cos_angle
        angle = math.acos(min(1.0, cos_angle))
        if angle == 0:
            return a
        s = math.sin(angle)
        return a.scale(math.sin((1 - t) * angle) / s).add(b.scale(math.sin(t * angle) / s))

    @staticmethod
    def closest_to_line(origin: Vector3, point_on_line: Vector3, direction: Vector3) -> Vector3:
        """Offset from ``origin`` to the closest point of the line, projected normal to it."""
        p = point_on_line.subtract(origin)
        e = direction.normalized()
        return p.subtract(e.scale(e.dot(p)))

    @staticmethod
    def included_angle(a: Vector3, b: Vector3) -> float:
        return math.atan2(a.cross(b).magnitude, a.dot(b))

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------

    def __add__(self, other: Vector3) -> Vector3:
        return self.add(other)

    def __sub__(self, other: Vector3) -> Vector3:
        return self.subtract(other)

    def __neg__(self) -> Vector3:
        return self.negative()

    def __mul__(self, factor: float) -> Vector3:
        if isinstance(factor, Vector3):
            return NotImplemented
        return self.scale(factor)

    __rmul__ = __mul__

    def __truediv__(self, divisor: float) -> Vector3:
        return self.divide(divisor)

    def __matmul__(self, other):
        from .matrix3 import Matrix3

        if isinstance(other, Vector3):
            return self.dot(other)
        if isinstance(other, Matrix3):
            return self.multiply(other)
        return NotImplemented

    def __str__(self) -> str:
        return f"[{self.x:g},{self.y:g},{self.z:g}]"


Vector3.ZERO = Vector3(0.0, 0.0, 0.0)
Vector3.UNIT_X = Vector3(1.0, 0.0, 0.0)
Vector3.UNIT_Y = Vector3(0.0, 1.0, 0.0)
Vector3.UNIT_Z = Vector3(0.0, 0.0, 1.0)
