"""
Partitioned 4x4 matrices and 4-vectors.

A :class:`Matrix31` is the block matrix::

    | a11      vector1 |
    | vector2^T scalar |

with a 3x3 block, a 3-vector column, a 3-vector row and a scalar. A
:class:`Vector31` is the matching ``(vector, scalar)`` 4-vector. The pair is
the natural shape of quaternion product operators.

Inversion and solves eliminate the 3x3 block first and then the scalar
Schur complement ``scalar - vector2 . a11^-1 vector1``. Both steps raise
:class:`~kinelab.spatial.matrix3.SingularMatrixError` on a singular pivot.
"""
from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import ClassVar

import numpy as np
from numpy.typing import NDArray

from .matrix3 import Matrix3, SingularMatrixError
from .vector3 import Vector3


@dataclass(frozen=True, slots=True)
class Vector31:
    """4-vector partitioned as a 3-vector and a trailing scalar."""

    vector: Vector3
    scalar: float

    ZERO: ClassVar[Vector31]

    __array_ufunc__ = None

    @classmethod
    def from_array(cls, values: Sequence[float] | NDArray) -> Vector31:
        arr = np.asarray(values, dtype=np.float64).ravel()
        if arr.shape != (4,):
            raise ValueError(f"Vector31 needs exactly 4 elements, got shape {arr.shape}")
        return cls(Vector3.from_array(arr[:3]), float(arr[3]))

    def to_array(self) -> NDArray[np.float64]:
        v = self.vector
        return np.array([v.x, v.y, v.z, self.scalar], dtype=np.float64)

    def __getitem__(self, index: int) -> float:
        if index == 3:
            return self.scalar
        if 0 <= index < 3:
            return self.vector[index]
        raise IndexError(f"Vector31 index out of range: {index}")

    def __len__(self) -> int:
        return 4

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.inner(self))

    def add(self, other: Vector31) -> Vector31:
        return Vector31(self.vector.add(other.vector), self.scalar + other.scalar)

    def subtract(self, other: Vector31) -> Vector31:
        return Vector31(self.vector.subtract(other.vector), self.scalar - other.scalar)

    def scale(self, factor: float) -> Vector31:
        return Vector31(self.vector.scale(factor), float(factor) * self.scalar)

    def divide(self, divisor: float) -> Vector31:
        return Vector31(self.vector.divide(divisor), self.scalar / divisor)

    def inner(self, other: Vector31) -> float:
        return self.vector.dot(other.vector) + self.scalar * other.scalar

    def normalized(self) -> Vector31:
        m = self.magnitude
        if m > 0:
            return self.divide(m)
        return self

    def max_abs(self) -> float:
        return max(self.vector.max_abs(), abs(self.scalar))

    def is_close(self, other: Vector31, tol: float = 1e-12) -> bool:
        return self.subtract(other).max_abs() <= tol

    def __add__(self, other: Vector31) -> Vector31:
        return self.add(other)

    def __sub__(self, other: Vector31) -> Vector31:
        return self.subtract(other)

    def __neg__(self) -> Vector31:
        return self.scale(-1.0)

    def __mul__(self, factor: float) -> Vector31:
        if isinstance(factor, (Vector31, Matrix31)):
            return NotImplemented
        return self.scale(factor)

    __rmul__ = __mul__

    def __truediv__(self, divisor: float) -> Vector31:
        return self.divide(divisor)


@dataclass(frozen=True, slots=True)
class Matrix31:
    """
    Partitioned 4x4 matrix.

    Parameters
    ----------
    a11 : Matrix3
        Upper-left 3x3 block.
    vector1 : Vector3
        Upper-right column.
    vector2 : Vector3
        Lower-left row.
    scalar : float
        Lower-right entry.
    """

    a11: Matrix3
    vector1: Vector3
    vector2: Vector3
    scalar: float

    ZERO: ClassVar[Matrix31]
    IDENTITY: ClassVar[Matrix31]

    __array_ufunc__ = None

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[float]] | NDArray) -> Matrix31:
        arr = np.asarray(rows, dtype=np.float64)
        if arr.shape != (4, 4):
            raise ValueError(f"Matrix31 needs shape (4, 4), got {arr.shape}")
        return cls(
            Matrix3.from_rows(arr[:3, :3]),
            Vector3.from_array(arr[:3, 3]),
            Vector3.from_array(arr[3, :3]),
            float(arr[3, 3]),
        )

    from_array = from_rows

    def to_array(self) -> NDArray[np.float64]:
        out = np.empty((4, 4), dtype=np.float64)
        out[:3, :3] = self.a11.to_array()
        out[:3, 3] = self.vector1.to_array()
        out[3, :3] = self.vector2.to_array()
        out[3, 3] = self.scalar
        return out

    def __getitem__(self, index: tuple[int, int]) -> float:
        i, j = index
        if not (0 <= i < 4 and 0 <= j < 4):
            raise IndexError(f"Matrix31 index out of range: {index}")
        if i < 3 and j < 3:
            return self.a11[i, j]
        if i < 3:
            return self.vector1[i]
        if j < 3:
            return self.vector2[j]
        return self.scalar

    def transpose(self) -> Matrix31:
        return Matrix31(self.a11.transpose(), self.vector2, self.vector1, self.scalar)

    def add(self, other: Matrix31) -> Matrix31:
        return Matrix31(
            self.a11.add(other.a11),
            self.vector1.add(other.vector1),
            self.vector2.add(other.vector2),
            self.scalar + other.scalar,
        )

    def subtract(self, other: Matrix31) -> Matrix31:
        return Matrix31(
            self.a11.subtract(other.a11),
            self.vector1.subtract(other.vector1),
            self.vector2.subtract(other.vector2),
            self.scalar - other.scalar,
        )

    def scale(self, factor: float) -> Matrix31:
        return Matrix31(
            self.a11.scale(factor),
            self.vector1.scale(factor),
            self.vector2.scale(factor),
            float(factor) * self.scalar,
        )

    def divide(self, divisor: float) -> Matrix31:
        return self.scale(1.0 / divisor)

    def multiply(self, other: Matrix31 | Vector31) -> Matrix31 | Vector31:
        A, b, c, d = self.a11, self.vector1.column(), self.vector2.column(), self.scalar
        if isinstance(other, Vector31):
            x, y = other.vector.column(), other.scalar
            return Vector31(A.multiply(x).add(b.scale(y)), c.dot(x) + d * y)
        E, f, g, h = other.a11, other.vector1.column(), other.vector2.column(), other.scalar
        return Matrix31(
            A.multiply(E).add(b.outer(g)),
            A.multiply(f).add(b.scale(h)),
            E.transpose().multiply(c).add(g.scale(d)),
            c.dot(f) + d * h,
        )

    def _schur(self) -> tuple[Matrix3, Vector3, Vector3, float]:
        """Return ``a11^-1``, ``a11^-1 vector1``, ``a11^-T vector2`` and the complement."""
        a_inv = self.a11.inverse()
        a_inv_b = a_inv.multiply(self.vector1.column())
        c_a_inv = a_inv.transpose().multiply(self.vector2.column())
        s = self.scalar - self.vector2.column().dot(a_inv_b)
        if s == 0 or not math.isfinite(s):
            raise SingularMatrixError(f"Matrix31 Schur complement is singular (s={s})")
        return a_inv, a_inv_b, c_a_inv, s

    def inverse(self) -> Matrix31:
        """
        Block inverse through the Schur complement of ``a11``.

        Raises
        ------
        SingularMatrixError
            If ``a11`` or the scalar complement is singular.
        """
        a_inv, a_inv_b, c_a_inv, s = self._schur()
        return Matrix31(
            a_inv.add(a_inv_b.outer(c_a_inv).divide(s)),
            a_inv_b.divide(-s),
            c_a_inv.divide(-s),
            1.0 / s,
        )

    def solve(self, rhs: Vector31 | Matrix31) -> Vector31 | Matrix31:
        """
        Solve ``M x = rhs`` by block elimination.

        Raises
        ------
        SingularMatrixError
            If ``a11`` or the scalar complement is singular.
        """
        if isinstance(rhs, Matrix31):
            return self.inverse().multiply(rhs)
        a_inv, _, c_a_inv, s = self._schur()
        r1 = rhs.vector.column()
        x2 = (rhs.scalar - c_a_inv.dot(r1)) / s
        x1 = a_inv.multiply(r1.subtract(self.vector1.column().scale(x2)))
        return Vector31(x1, x2)

    def max_abs(self) -> float:
        return max(
            self.a11.max_abs(),
            self.vector1.max_abs(),
            self.vector2.max_abs(),
            abs(self.scalar),
        )

    def is_close(self, other: Matrix31, tol: float = 1e-12) -> bool:
        return self.subtract(other).max_abs() <= tol

    def __add__(self, other: Matrix31) -> Matrix31:
        return self.add(other)

    def __sub__(self, other: Matrix31) -> Matrix31:
        return self.subtract(other)

    def __neg__(self) -> Matrix31:
        return self.scale(-1.0)

    def __mul__(self, factor: float) -> Matrix31:
        if isinstance(factor, (int, float, np.floating, np.integer)):
            return self.scale(factor)
        return NotImplemented

    __rmul__ = __mul__

    def __truediv__(self, divisor: float) -> Matrix31:
        return self.divide(divisor)

    def __matmul__(self, other):
        if isinstance(other, (Matrix31, Vector31)):
            return self.multiply(other)
        return NotImplemented


Vector31.ZERO = Vector31(Vector3.ZERO, 0.0)
Matrix31.ZERO = Matrix31(Matrix3.ZERO, Vector3.ZERO, Vector3.ZERO, 0.0)
Matrix31.IDENTITY = Matrix31(Matrix3.IDENTITY, Vector3.ZERO, Vector3.ZERO, 1.0)
