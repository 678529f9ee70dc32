"""
Quaternion algebra for rigid-body orientation.

A quaternion is held as a vector part and a scalar part. The
``layout`` tag decides only the element order used by ``to_array``,
``from_array``, indexing and ``str``; the algebra never looks at it.

Conventions
-----------
- Rotations are active: ``q.rotate(v)`` is ``q (v, 0) q^-1``.
- ``q.to_rotation_matrix()`` equals :func:`kinelab.spatial.rotations.from_axis_rotation`
  for ``q = Quaternion.from_axis_angle(axis, angle)``.
- Angular velocities are expressed in the world frame, so the kinematic
  equation is ``dq/dt = 0.5 (omega, 0) * q``.

Examples
--------
>>> import math
>>> q = Quaternion.from_axis_angle(Vector3.UNIT_Z, math.pi / 2)
>>> q.rotate(Vector3.UNIT_X).is_close(Vector3.UNIT_Y)
True
"""
from __future__ import annotations

import math
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar

import numpy as np
from numpy.typing import NDArray

from ..utils.validation import validate_quaternion
from .block import Matrix31, Vector31
from .matrix3 import Matrix3
from .rotations import AxisName
from .vector3 import Vector3

# Rotation increments below this angle are treated as the identity.
ROTATION_EPSILON = 2.98023223876953e-08

# exp/log switch to a series expansion at or below this vector magnitude.
SERIES_THRESHOLD = 0.001


class QuaternionLayout(str, Enum):
    """Element order used when a quaternion is flattened to four numbers."""

    VECTOR_SCALAR = "vector_scalar"
    SCALAR_VECTOR = "scalar_vector"


DEFAULT_LAYOUT = QuaternionLayout.VECTOR_SCALAR


@dataclass(frozen=True, slots=True)
class Quaternion:
    """
    Immutable quaternion ``(vector, scalar)``.

    Parameters
    ----------
    vector : Vector3
        Imaginary part.
    scalar : float
        Real part.
    layout : QuaternionLayout
        Serialization order. Excluded from equality.

    Raises
    ------
    ValueError
        If ``layout`` is not a known :class:`QuaternionLayout`.
    """

    vector: Vector3
    scalar: float
    layout: QuaternionLayout = field(default=DEFAULT_LAYOUT, compare=False, repr=False)

    IDENTITY: ClassVar[Quaternion]

    __array_ufunc__ = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "layout", QuaternionLayout(self.layout))
        object.__setattr__(self, "scalar", float(self.scalar))

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def from_array(
        cls,
        values: Sequence[float] | NDArray,
        layout: QuaternionLayout | str = DEFAULT_LAYOUT,
    ) -> Quaternion:
        arr = np.asarray(values, dtype=np.float64).ravel()
        if arr.shape != (4,):
            raise ValueError(f"Quaternion needs exactly 4 elements, got shape {arr.shape}")
        layout = QuaternionLayout(layout)
        if layout is QuaternionLayout.VECTOR_SCALAR:
            return cls(Vector3.from_array(arr[:3]), float(arr[3]), layout)
        return cls(Vector3.from_array(arr[1:]), float(arr[0]), layout)

    @classmethod
    def from_vector(cls, vector: Vector3) -> Quaternion:
        """Pure quaternion ``(vector, 0)``."""
        return cls(vector.column(), 0.0)

    @classmethod
    def from_scalar(cls, scalar: float) -> Quaternion:
        return cls(Vector3.ZERO, scalar)

    @classmethod
    def from_axis_angle(cls, axis: Vector3 | AxisName | str, angle: float) -> Quaternion:
        """
        Unit quaternion for a rotation of ``angle`` [rad] about ``axis``.

        Raises
        ------
        ValueError
            If ``axis`` is the zero vector.
        """
        if not isinstance(axis, Vector3):
            axis = Vector3.from_axis(AxisName(axis))
        if axis.is_zero:
            raise ValueError("Rotation axis must be non-zero")
        e = axis.column().unit_vector()
        half = 0.5 * angle
        return cls(e.scale(math.sin(half)), math.cos(half))

    @classmethod
    def rotate_x(cls, angle: float) -> Quaternion:
        return cls.from_axis_angle(AxisName.X, angle)

    @classmethod
    def rotate_y(cls, angle: float) -> Quaternion:
        return cls.from_axis_angle(AxisName.Y, angle)

    @classmethod
    def rotate_z(cls, angle: float) -> Quaternion:
        return cls.from_axis_angle(AxisName.Z, angle)

    @classmethod
    def from_rot_velocity_and_time(cls, omega: Vector3, dt: float) -> Quaternion:
        """
        Rotation increment for constant angular velocity held over ``dt``.

        Returns the identity when ``|omega| * |dt|`` does not exceed
        ``ROTATION_EPSILON``, so the axis is never normalized from a
        vanishing magnitude.
        """
        magnitude = omega.magnitude
        theta = magnitude * dt
        if abs(theta) > ROTATION_EPSILON:
            return cls.from_axis_angle(omega.divide(magnitude), theta)
        return cls.IDENTITY

    @classmethod
    def from_rotation_matrix(cls, R: Matrix3) -> Quaternion:
        """
        Unit quaternion of a rotation matrix.

        Uses the trace formula when the trace is positive and otherwise
        solves for the component belonging to the largest diagonal entry,
        which keeps every division away from zero.
        """
        trace = R.trace
        if trace > 0:
            s = 0.5 * math.sqrt(1.0 + trace)
            f = 0.25 / s
            return cls(
                Vector3((R.a32 - R.a23) * f, (R.a13 - R.a31) * f, (R.a21 - R.a12) * f),
                s,
            )
        if R.a11 >= R.a22 and R.a11 >= R.a33:
            x = 0.5 * math.sqrt(max(0.0, 1.0 + R.a11 - R.a22 - R.a33))
            f = 0.25 / x
            return cls(
                Vector3(x, (R.a12 + R.a21) * f, (R.a13 + R.a31) * f),
                (R.a32 - R.a23) * f,
            )
        if R.a22 >= R.a33:
            y = 0.5 * math.sqrt(max(0.0, 1.0 - R.a11 + R.a22 - R.a33))
            f = 0.25 / y
            return cls(
                Vector3((R.a12 + R.a21) * f, y, (R.a23 + R.a32) * f),
                (R.a13 - R.a31) * f,
            )
        z = 0.5 * math.sqrt(max(0.0, 1.0 - R.a11 - R.a22 + R.a33))
        f = 0.25 / z
        return cls(
            Vector3((R.a13 + R.a31) * f, (R.a23 + R.a32) * f, z),
            (R.a21 - R.a12) * f,
        )

    def with_layout(self, layout: QuaternionLayout | str) -> Quaternion:
        return Quaternion(self.vector, self.scalar, layout)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def sum_squares(self) -> float:
        return self.vector.sum_squares + self.scalar * self.scalar

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.sum_squares)

    @property
    def axis(self) -> Vector3:
        """Unit rotation axis, or zero for a pure scalar."""
        return self.vector.unit_vector()

    @property
    def phase(self) -> float:
        """Half the rotation angle, ``atan2(|v|, s)``."""
        return math.atan2(self.vector.magnitude, self.scalar)

    @property
    def angle(self) -> float:
        return 2.0 * self.phase

    @property
    def is_pure(self) -> bool:
        return self.scalar == 0

    @property
    def is_zero(self) -> bool:
        return self.scalar == 0 and self.vector.is_zero

    @property
    def is_identity(self) -> bool:
        return self.scalar == 1 and self.vector.is_zero

    def is_unit(self, tol: float = 1e-12) -> bool:
        return abs(self.sum_squares - 1.0) <= tol

    def check_unit(self, tol: float = 1e-6) -> Quaternion:
        """Warn (``RuntimeWarning``) if not unit length. Never renormalizes."""
        validate_quaternion(self.to_array(QuaternionLayout.VECTOR_SCALAR), tol)
        return self

    def is_close(self, other: Quaternion, tol: float = 1e-12) -> bool:
        return self.vector.is_close(other.vector, tol) and abs(self.scalar - other.scalar) <= tol

    def same_rotation(self, other: Quaternion, tol: float = 1e-12) -> bool:
        """True if both represent the same rotation (``q`` and ``-q`` match)."""
        return self.is_close(other, tol) or self.is_close(other.negate(), tol)

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def to_array(self, layout: QuaternionLayout | str | None = None) -> NDArray[np.float64]:
        layout = self.layout if layout is None else QuaternionLayout(layout)
        v = self.vector
        if layout is QuaternionLayout.VECTOR_SCALAR:
            return np.array([v.x, v.y, v.z, self.scalar], dtype=np.float64)
        return np.array([self.scalar, v.x, v.y, v.z], dtype=np.float64)

    def __getitem__(self, index: int) -> float:
        if not 0 <= index < 4:
            raise IndexError(f"Quaternion index out of range: {index}")
        return float(self.to_array()[index])

    def __iter__(self) -> Iterator[float]:
        return iter(self.to_array().tolist())

    def __len__(self) -> int:
        return 4

    def __str__(self) -> str:
        v, s = self.vector, self.scalar
        if self.layout is QuaternionLayout.VECTOR_SCALAR:
            return f"[{v.x:g},{v.y:g},{v.z:g}|{s:g}]"
        return f"[{s:g}|{v.x:g},{v.y:g},{v.z:g}]"

    # ------------------------------------------------------------------
    # Algebra
    # ------------------------------------------------------------------

    def add(self, other: Quaternion) -> Quaternion:
        return Quaternion(self.vector.add(other.vector), self.scalar + other.scalar, self.layout)

    def subtract(self, other: Quaternion) -> Quaternion:
        return Quaternion(self.vector.subtract(other.vector), self.scalar - other.scalar, self.layout)

    def negate(self) -> Quaternion:
        return Quaternion(self.vector.negative(), -self.scalar, self.layout)

    def scale(self, factor: float) -> Quaternion:
        return Quaternion(self.vector.scale(factor), float(factor) * self.scalar, self.layout)

    def divide(self, divisor: float) -> Quaternion:
        return Quaternion(self.vector.divide(divisor), self.scalar / divisor, self.layout)

    def product(self, other: Quaternion) -> Quaternion:
        """
        Hamilton product ``self * other``.

        ``(v1, s1)(v2, s2) = (v1 x v2 + s1 v2 + s2 v1, s1 s2 - v1 . v2)``
        """
        v1, s1 = self.vector, self.scalar
        v2, s2 = other.vector, other.scalar
        return Quaternion(
            v1.cross(v2).add(v2.scale(s1)).add(v1.scale(s2)),
            s1 * s2 - v1.dot(v2),
            self.layout,
        )

    def inner(self, other: Quaternion) -> float:
        return self.vector.dot(other.vector) + self.scalar * other.scalar

    def conjugate(self) -> Quaternion:
        return Quaternion(self.vector.negative(), self.scalar, self.layout)

    def inverse(self) -> Quaternion:
        """
        Multiplicative inverse ``conj(q) / |q|^2``.

        Raises
        ------
        ZeroDivisionError
            For the zero quaternion.
        """
        m2 = self.sum_squares
        if m2 == 0:
            raise ZeroDivisionError("Cannot invert a zero quaternion")
        return self.conjugate().divide(m2)

    def reciprocal(self, numerator: float = 1.0) -> Quaternion:
        """``numerator * q^-1``."""
        return self.inverse().scale(numerator)

    def unit(self) -> Quaternion:
        """Normalized copy; the zero quaternion is returned unchanged."""
        m2 = self.sum_squares
        if m2 > 0:
            return self.divide(math.sqrt(m2))
        return self

    def exp(self) -> Quaternion:
        """
        Exponential map.

        ``exp(v, s) = e^s (sin|v| v/|v|, cos|v|)``. At or below
        ``SERIES_THRESHOLD`` the ``sin(x)/x`` and ``cos(x)`` factors are
        replaced by their 4th order Taylor series.
        """
        es = math.exp(self.scalar)
        vm = self.vector.magnitude
        if vm > SERIES_THRESHOLD:
            return Quaternion(
                self.vector.scale(es * math.sin(vm) / vm),
                es * math.cos(vm),
                self.layout,
            )
        vm2 = vm * vm
        return Quaternion(
            self.vector.scale(es * (1.0 - vm2 / 6.0 + vm2 * vm2 / 120.0)),
            es * (1.0 - vm2 / 2.0 + vm2 * vm2 / 24.0),
            self.layout,
        )

    def log(self) -> Quaternion:
        """
        Logarithm map, the inverse of :meth:`exp`.

        ``log(q) = (phase * v/|v|, ln|q|)`` with ``phase = atan2(|v|, s)``.
        For ``|v|`` at or below ``SERIES_THRESHOLD`` and a positive scalar,
        ``phase / |v|`` is evaluated as ``(1 + t^2/6 + 7 t^4/360) / |q|``
        where ``t`` is the phase.

        Raises
        ------
        ValueError
            For the zero quaternion.
        """
        qm = self.magnitude
        if qm == 0:
            raise ValueError("Logarithm of the zero quaternion is undefined")
        scalar = math.log(qm)
        vm = self.vector.magnitude
        if vm == 0:
            return Quaternion(Vector3.ZERO, scalar, self.layout)
        phase = math.atan2(vm, self.scalar)
        if vm > SERIES_THRESHOLD or self.scalar < 0:
            return Quaternion(self.vector.scale(phase / vm), scalar, self.layout)
        t2 = phase * phase
        factor = (1.0 + t2 / 6.0 + 7.0 * t2 * t2 / 360.0) / qm
        return Quaternion(self.vector.scale(factor), scalar, self.layout)

    def pow(self, exponent: float) -> Quaternion:
        """Real power ``exp(exponent * log(q))``."""
        return self.log().scale(exponent).exp()

    def derivative(self, omega: Vector3) -> Quaternion:
        """
        Time derivative under world angular velocity ``omega``.

        ``dq/dt = 0.5 (omega, 0) * q = (0.5 (omega x v + s omega), -0.5 omega . v)``
        """
        v, s = self.vector, self.scalar
        w = omega.column()
        return Quaternion(
            w.cross(v).add(w.scale(s)).scale(0.5),
            -0.5 * w.dot(v),
            self.layout,
        )

    def fixed_step(self, h: float, omega: Vector3) -> Quaternion:
        """Exact update for constant ``omega`` held over ``h``."""
        m = omega.magnitude
        if m > 0 and h != 0:
            return Quaternion.from_axis_angle(omega.divide(m), h * m).product(self)
        return self

    # ------------------------------------------------------------------
    # Rotation
    # ------------------------------------------------------------------

    def to_rotation_matrix(self, inverse: bool = False) -> Matrix3:
        """
        Rotation matrix ``I + 2 s [v x] + 2 [v x]^2`` of a unit quaternion.

        With ``inverse=True`` the transpose is returned.
        """
        vx = self.vector.column().cross_operator()
        sign = -1.0 if inverse else 1.0
        return (
            Matrix3.IDENTITY
            .add(vx.scale(2.0 * sign * self.scalar))
            .add(vx.multiply(vx).scale(2.0))
        )

    def rotate(self, vector: Vector3) -> Vector3:
        """Rotate a vector without forming the matrix."""
        v = self.vector
        p = vector.column()
        vxp = v.cross(p)
        return p.add(vxp.scale(2.0 * self.scalar)).add(v.cross(vxp).scale(2.0))

    def inv_rotate(self, vector: Vector3) -> Vector3:
        v = self.vector
        p = vector.column()
        vxp = v.cross(p)
        return p.add(vxp.scale(-2.0 * self.scalar)).add(v.cross(vxp).scale(2.0))

    def rotate_matrix(self, matrix: Matrix3, inverse: bool = False) -> Matrix3:
        """Congruence ``R M R^T`` (``R^T M R`` when ``inverse``)."""
        R = self.to_rotation_matrix(inverse)
        return R.multiply(matrix).multiply(R.transpose())

    # ------------------------------------------------------------------
    # Interpolation
    # ------------------------------------------------------------------

    def slerp(self, target: Quaternion, t: float) -> Quaternion:
        """
        Spherical linear interpolation ``q1 (q1^-1 q2)^t`` along the shorter arc.

        ``t = 0`` returns ``self`` and ``t = 1`` returns ``target`` (possibly
        with the opposite sign, which is the same rotation).
        """
        if self.inner(target) < 0:
            target = target.negate()
        return self.product(self.inverse().product(target).pow(t))

    def spline(
        self,
        target: Quaternion,
        omega1: Vector3,
        omega2: Vector3,
        h: float,
        t: float,
        normalize: bool = True,
    ) -> Quaternion:
        """
        Cubic Hermite blend between two orientations.

        Parameters
        ----------
        target : Quaternion
            Orientation at ``t = 1``.
        omega1, omega2 : Vector3
            Angular velocities at the two ends.
        h : float
            Time span between the end points; scales the end derivatives.
        t : float
            Blend ratio in ``[0, 1]``.
        normalize : bool
            Return a unit quaternion.
        """
        qp1 = self.derivative(omega1)
        qp2 = target.derivative(omega2)
        t2 = t * t
        t3 = t2 * t
        h00 = 2 * t3 - 3 * t2 + 1
        h10 = t3 - 2 * t2 + t
        h01 = -2 * t3 + 3 * t2
        h11 = t3 - t2
        q = (
            self.scale(h00)
            .add(qp1.scale(h * h10))
            .add(target.scale(h01))
            .add(qp2.scale(h * h11))
        )
        return q.unit() if normalize else q

    # ------------------------------------------------------------------
    # Operator form
    # ------------------------------------------------------------------

    def to_vector31(self) -> Vector31:
        return Vector31(self.vector.column(), self.scalar)

    @classmethod
    def from_vector31(cls, value: Vector31, layout: QuaternionLayout | str = DEFAULT_LAYOUT) -> Quaternion:
        return cls(value.vector, value.scalar, layout)

    def product_operator(self) -> Matrix31:
        """
        Left-product operator ``L(q)`` with ``L(q) @ p == q * p``.

        ``[[s I + [v x], v], [-v^T, s]]``
        """
        v, s = self.vector.column(), self.scalar
        return Matrix31(v.cross_operator().add_scalar(s), v, v.negative(), s)

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------

    def __add__(self, other: Quaternion) -> Quaternion:
        if isinstance(other, Quaternion):
            return self.add(other)
        return NotImplemented

    def __sub__(self, other: Quaternion) -> Quaternion:
        if isinstance(other, Quaternion):
            return self.subtract(other)
        return NotImplemented

    def __neg__(self) -> Quaternion:
        return self.negate()

    def __mul__(self, other):
        if isinstance(other, Quaternion):
            return self.product(other)
        if isinstance(other, (int, float, np.floating, np.integer)):
            return self.scale(other)
        return NotImplemented

    def __rmul__(self, other):
        if isinstance(other, (int, float, np.floating, np.integer)):
            return self.scale(other)
        if isinstance(other, Matrix31):
            return apply_operator(other, self)
        return NotImplemented

    def __rmatmul__(self, operator):
        if isinstance(operator, Matrix31):
            return apply_operator(operator, self)
        return NotImplemented

    def __truediv__(self, divisor: float) -> Quaternion:
        return self.divide(divisor)

    def __pow__(self, exponent: float) -> Quaternion:
        return self.pow(exponent)

    def __invert__(self) -> Quaternion:
        return self.conjugate()


Quaternion.IDENTITY = Quaternion(Vector3.ZERO, 1.0)


def omega_operator(omega: Vector3) -> Matrix31:
    """
    Left-product operator of the pure quaternion ``(omega, 0)``.

    ``0.5 * apply_operator(omega_operator(w), q) == q.derivative(w)``.
    The 3x3 block ``[omega x]`` is always singular, so the operator
    cannot be inverted with the block solve.
    """
    w = omega.column()
    return Matrix31(w.cross_operator(), w, w.negative(), 0.0)


def apply_operator(operator: Matrix31, q: Quaternion) -> Quaternion:
    """Multiply a 4x4 block operator into a quaternion in ``(vector, scalar)`` order."""
    result = operator.multiply(q.to_vector31())
    return Quaternion(result.vector, result.scalar, q.layout)
