"""
Tests for Matrix3 closed-form algebra.
"""
import numpy as np
import pytest

from kinelab.spatial.matrix3 import Matrix3, SingularMatrixError
from kinelab.spatial.vector3 import Vector3


@pytest.fixture
def A():
    return Matrix3.from_rows([[4.0, -2.0, 1.0], [3.0, 6.0, -4.0], [2.0, 1.0, 8.0]])


def test_factories():
    assert Matrix3.diagonal(1.0, 2.0, 3.0).diagonal_vector == Vector3(1.0, 2.0, 3.0)
    assert Matrix3.scalar(2.0) == Matrix3.diagonal(2.0, 2.0, 2.0)
    S = Matrix3.symmetric(1.0, 2.0, 3.0, 4.0, 5.0, 6.0)
    np.testing.assert_array_equal(S.to_array(), [[1, 4, 5], [4, 2, 6], [5, 6, 3]])
    assert S.is_symmetric()
    K = Matrix3.skew_symmetric(1.0, 2.0, 3.0)
    np.testing.assert_array_equal(K.to_array(), [[0, 1, 2], [-1, 0, 3], [-2, -3, 0]])
    C = Matrix3.from_columns(Vector3(1, 2, 3), Vector3(4, 5, 6), Vector3(7, 8, 9))
    assert C.column(1) == Vector3(4.0, 5.0, 6.0)
    assert C.row(0) == Vector3(1.0, 4.0, 7.0)
    assert C.row(0).is_transposed
    with pytest.raises(ValueError, match="shape"):
        Matrix3.from_rows([[1.0, 2.0], [3.0, 4.0]])


def test_indexing_and_iteration(A):
    assert A[1, 2] == -4.0
    assert list(A)[3] == 3.0
    with pytest.raises(IndexError):
        A[3, 0]


def test_determinant_and_trace(A):
    assert A.determinant == pytest.approx(np.linalg.det(A.to_array()))
    assert A.trace == 18.0


def test_products_match_numpy(A):
    B = Matrix3.from_rows([[1.0, 0.5, 0.0], [0.0, 2.0, 1.0], [-1.0, 0.0, 3.0]])
    np.testing.assert_allclose((A @ B).to_array(), A.to_array() @ B.to_array())
    v = Vector3(1.0, -2.0, 0.5)
    np.testing.assert_allclose((A @ v).to_array(), A.to_array() @ v.to_array())
    np.testing.assert_allclose(A.transpose().to_array(), A.to_array().T)


def test_matrix_vector_rejects_row_vector(A):
    with pytest.raises(ValueError, match="transposed"):
        A.multiply(Vector3(1.0, 2.0, 3.0, True))


def test_arithmetic(A):
    assert (A + A).is_close(A.scale(2.0))
    assert (A - A) == Matrix3.ZERO
    assert (-A).is_close(A.scale(-1.0))
    assert (A * 2).is_close(2 * A)
    assert (A / 2).is_close(A.scale(0.5))
    assert Matrix3.ZERO.add_scalar(3.0) == Matrix3.scalar(3.0)
    assert A.max_abs() == 8.0


def test_inverse(A):
    assert (A @ A.inverse()).is_close(Matrix3.IDENTITY, 1e-12)
    np.testing.assert_allclose(A.inverse().to_array(), np.linalg.inv(A.to_array()))


def test_solve_vector_and_matrix(A):
    b = Vector3(1.0, 2.0, 3.0)
    x = A.solve(b)
    assert (A @ x).is_close(b, 1e-12)
    np.testing.assert_allclose(x.to_array(), np.linalg.solve(A.to_array(), b.to_array()))

    B = Matrix3.from_rows([[1.0, 2.0, 0.0], [0.0, 1.0, 0.0], [3.0, 0.0, 1.0]])
    X = A.solve(B)
    assert (A @ X).is_close(B, 1e-12)


def test_solve_accepts_row_tagged_rhs(A):
    b = Vector3(1.0, 2.0, 3.0, True)
    assert (A @ A.solve(b)).is_close(b, 1e-12)


def test_singular_matrix_raises():
    S = Matrix3.from_rows([[1.0, 2.0, 3.0], [2.0, 4.0, 6.0], [0.0, 1.0, 1.0]])
    assert S.determinant == 0.0
    with pytest.raises(SingularMatrixError):
        S.inverse()
    with pytest.raises(SingularMatrixError):
        S.solve(Vector3(1.0, 1.0, 1.0))
    # subclass of numpy's error type
    with pytest.raises(np.linalg.LinAlgError):
        Matrix3.ZERO.inverse()


def test_non_finite_determinant_raises():
    with pytest.raises(SingularMatrixError):
        Matrix3.scalar(float("inf")).inverse()


def test_str():
    assert str(Matrix3.IDENTITY) == "[1,0,0|0,1,0|0,0,1]"
