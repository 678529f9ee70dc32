"""
Fixed-size 3x3 matrices with closed-form determinant, inverse and solve.

Entries are addressed row-major as ``a11 .. a33``. All operations are pure
and return new values. Inversion of a singular matrix raises
:class:`SingularMatrixError` instead of returning a zero matrix.
"""
from __future__ import annotations

import math
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import ClassVar

import numpy as np
from numpy.typing import NDArray

from .vector3 import Vector3


class SingularMatrixError(np.linalg.LinAlgError):
    """Raised when a closed-form inverse or solve meets a singular matrix."""


@dataclass(frozen=True, slots=True)
class Matrix3:
    """
    Immutable 3x3 matrix.

    Examples
    --------
    >>> A = Matrix3.diagonal(1.0, 2.0, 4.0)
    >>> A.solve(Vector3(1.0, 1.0, 1.0))
    Vector3(x=1.0, y=0.5, z=0.25)
    """

    a11: float
    a12: float
    a13: float
    a21: float
    a22: float
    a23: float
    a31: float
    a32: float
    a33: float

    ZERO: ClassVar[Matrix3]
    IDENTITY: ClassVar[Matrix3]

    __array_ufunc__ = None

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[float]] | NDArray) -> Matrix3:
        arr = np.asarray(rows, dtype=np.float64)
        if arr.shape != (3, 3):
            raise ValueError(f"Matrix3 needs shape (3, 3), got {arr.shape}")
        return cls(*(float(v) for v in arr.ravel()))

    from_array = from_rows

    @classmethod
    def from_columns(cls, ux: Vector3, uy: Vector3, uz: Vector3) -> Matrix3:
        return cls(
            ux.x, uy.x, uz.x,
            ux.y, uy.y, uz.y,
            ux.z, uy.z, uz.z,
        )

    @classmethod
    def scalar(cls, value: float) -> Matrix3:
        return cls.diagonal(value, value, value)

    @classmethod
    def diagonal(cls, a11: float, a22: float, a33: float) -> Matrix3:
        return cls(a11, 0.0, 0.0, 0.0, a22, 0.0, 0.0, 0.0, a33)

    @classmethod
    def symmetric(cls, a11: float, a22: float, a33: float, a12: float, a13: float, a23: float) -> Matrix3:
        return cls(a11, a12, a13, a12, a22, a23, a13, a23, a33)

    @classmethod
    def skew_symmetric(cls, a12: float, a13: float, a23: float) -> Matrix3:
        return cls(0.0, a12, a13, -a12, 0.0, a23, -a13, -a23, 0.0)

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def _entries(self) -> tuple[float, ...]:
        return (
            self.a11, self.a12, self.a13,
            self.a21, self.a22, self.a23,
            self.a31, self.a32, self.a33,
        )

    def __getitem__(self, index: tuple[int, int]) -> float:
        i, j = index
        if not (0 <= i < 3 and 0 <= j < 3):
            raise IndexError(f"Matrix3 index out of range: {index}")
        return self._entries()[3 * i + j]

    def __iter__(self) -> Iterator[float]:
        """Row-major iteration over the nine entries."""
        return iter(self._entries())

    def row(self, index: int) -> Vector3:
        """Row ``index`` as a row-tagged vector."""
        if index == 0:
            return Vector3(self.a11, self.a12, self.a13, True)
        if index == 1:
            return Vector3(self.a21, self.a22, self.a23, True)
        if index == 2:
            return Vector3(self.a31, self.a32, self.a33, True)
        raise IndexError(f"Matrix3 row out of range: {index}")

    def column(self, index: int) -> Vector3:
        if index == 0:
            return Vector3(self.a11, self.a21, self.a31)
        if index == 1:
            return Vector3(self.a12, self.a22, self.a32)
        if index == 2:
            return Vector3(self.a13, self.a23, self.a33)
        raise IndexError(f"Matrix3 column out of range: {index}")

    def to_array(self) -> NDArray[np.float64]:
        return np.array(self._entries(), dtype=np.float64).reshape(3, 3)

    @property
    def determinant(self) -> float:
        return (
            self.a11 * (self.a22 * self.a33 - self.a23 * self.a32)
            + self.a12 * (self.a23 * self.a31 - self.a21 * self.a33)
            + self.a13 * (self.a21 * self.a32 - self.a22 * self.a31)
        )

    @property
    def trace(self) -> float:
        return self.a11 + self.a22 + self.a33

    @property
    def diagonal_vector(self) -> Vector3:
        return Vector3(self.a11, self.a22, self.a33)

    def max_abs(self) -> float:
        return max(abs(v) for v in self._entries())

    def is_close(self, other: Matrix3, tol: float = 1e-12) -> bool:
        return self.subtract(other).max_abs() <= tol

    def is_symmetric(self, tol: float = 1e-12) -> bool:
        return self.is_close(self.transpose(), tol)

    # ------------------------------------------------------------------
    # Algebra
    # ------------------------------------------------------------------

    def add(self, other: Matrix3) -> Matrix3:
        return Matrix3(*(a + b for a, b in zip(self._entries(), other._entries())))

    def subtract(self, other: Matrix3) -> Matrix3:
        return Matrix3(*(a - b for a, b in zip(self._entries(), other._entries())))

    def negate(self) -> Matrix3:
        return Matrix3(*(-a for a in self._entries()))

    def scale(self, factor: float) -> Matrix3:
        f = float(factor)
        return Matrix3(*(f * a for a in self._entries()))

    def divide(self, divisor: float) -> Matrix3:
        return Matrix3(*(a / divisor for a in self._entries()))

    def add_scalar(self, value: float) -> Matrix3:
        """``value*I + self``."""
        return self.add(Matrix3.scalar(value))

    def transpose(self) -> Matrix3:
        return Matrix3(
            self.a11, self.a21, self.a31,
            self.a12, self.a22, self.a32,
            self.a13, self.a23, self.a33,
        )

    def multiply(self, other: Matrix3 | Vector3) -> Matrix3 | Vector3:
        """
        Matrix product with another matrix or with a column vector.

        Raises
        ------
        ValueError
            If ``other`` is a row (transposed) vector. Use
            ``vector.multiply(matrix)`` for row-vector products.
        """
        if isinstance(other, Vector3):
            if other.is_transposed:
                raise ValueError("Vector must not be transposed for matrix-vector product")
            x, y, z = other.x, other.y, other.z
            return Vector3(
                self.a11 * x + self.a12 * y + self.a13 * z,
                self.a21 * x + self.a22 * y + self.a23 * z,
                self.a31 * x + self.a32 * y + self.a33 * z,
            )
        a, b = self, other
        return Matrix3(
            a.a11 * b.a11 + a.a12 * b.a21 + a.a13 * b.a31,
            a.a11 * b.a12 + a.a12 * b.a22 + a.a13 * b.a32,
            a.a11 * b.a13 + a.a12 * b.a23 + a.a13 * b.a33,
            a.a21 * b.a11 + a.a22 * b.a21 + a.a23 * b.a31,
            a.a21 * b.a12 + a.a22 * b.a22 + a.a23 * b.a32,
            a.a21 * b.a13 + a.a22 * b.a23 + a.a23 * b.a33,
            a.a31 * b.a11 + a.a32 * b.a21 + a.a33 * b.a31,
            a.a31 * b.a12 + a.a32 * b.a22 + a.a33 * b.a32,
            a.a31 * b.a13 + a.a32 * b.a23 + a.a33 * b.a33,
        )

    def _checked_determinant(self) -> float:
        d = self.determinant
        if d == 0 or not math.isfinite(d):
            raise SingularMatrixError(f"Matrix3 is singular (determinant={d})")
        return d

    def _adjugate(self) -> Matrix3:
        return Matrix3(
            self.a22 * self.a33 - self.a23 * self.a32,
            self.a13 * self.a32 - self.a12 * self.a33,
            self.a12 * self.a23 - self.a13 * self.a22,
            self.a23 * self.a31 - self.a21 * self.a33,
            self.a11 * self.a33 - self.a13 * self.a31,
            self.a13 * self.a21 - self.a11 * self.a23,
            self.a21 * self.a32 - self.a22 * self.a31,
            self.a12 * self.a31 - self.a11 * self.a32,
            self.a11 * self.a22 - self.a12 * self.a21,
        )

    def inverse(self) -> Matrix3:
        """
        Closed-form inverse ``adj(A) / det(A)``.

        Raises
        ------
        SingularMatrixError
            If the determinant is zero or not finite.
        """
        d = self._checked_determinant()
        return self._adjugate().divide(d)

    def solve(self, rhs: Vector3 | Matrix3) -> Vector3 | Matrix3:
        """
        Solve ``A x = rhs`` for a vector or matrix right-hand side.

        Uses the adjugate directly (Cramer's rule), no elimination.

        Raises
        ------
        SingularMatrixError
            If the determinant is zero or not finite.
        """
        d = self._checked_determinant()
        adj = self._adjugate()
        if isinstance(rhs, Vector3):
            return adj.multiply(rhs.column()).divide(d)
        return adj.multiply(rhs).divide(d)

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------

    def __add__(self, other: Matrix3) -> Matrix3:
        if isinstance(other, Matrix3):
            return self.add(other)
        return NotImplemented

    def __sub__(self, other: Matrix3) -> Matrix3:
        if isinstance(other, Matrix3):
            return self.subtract(other)
        return NotImplemented

    def __neg__(self) -> Matrix3:
        return self.negate()

    def __mul__(self, factor: float) -> Matrix3:
        if isinstance(factor, (Matrix3, Vector3)):
            return NotImplemented
        return self.scale(factor)

    __rmul__ = __mul__

    def __truediv__(self, divisor: float) -> Matrix3:
        return self.divide(divisor)

    def __matmul__(self, other):
        if isinstance(other, (Matrix3, Vector3)):
            return self.multiply(other)
        return NotImplemented

    def __str__(self) -> str:
        return (
            f"[{self.a11:g},{self.a12:g},{self.a13:g}|"
            f"{self.a21:g},{self.a22:g},{self.a23:g}|"
            f"{self.a31:g},{self.a32:g},{self.a33:g}]"
        )


Matrix3.ZERO = Matrix3(0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
Matrix3.IDENTITY = Matrix3(1.0, 0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0, 1.0)
