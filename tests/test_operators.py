import numpy as np
import pytest

from convex_optimization.operators import (
    euclidean_inner_product,
    make_adjoint_operator,
    make_matrix_operator,
    make_scaled_identity,
    make_weighted_inner_product,
)
from convex_optimization.stopwatch import Stopwatch


def test_euclidean_inner_product_matches_dot() -> None:
    u = np.array([1.0, -2.0, 3.0])
    v = np.array([0.5, 4.0, -1.0])
    assert euclidean_inner_product(u, v) == pytest.approx(float(u @ v))
    assert isinstance(euclidean_inner_product(u, v, "ignored"), float)


def test_euclidean_inner_product_flattens_matrices() -> None:
    U = np.arange(6.0).reshape(2, 3)
    assert euclidean_inner_product(U, U) == pytest.approx(float(np.sum(U * U)))


def test_matrix_operator_and_adjoint_identity() -> None:
    rng = np.random.default_rng(3)
    M = rng.normal(size=(4, 3))
    A = make_matrix_operator(M)
    At = make_adjoint_operator(M)
    x = rng.normal(size=3)
    r = rng.normal(size=4)
    assert euclidean_inner_product(A(x, None), r) == pytest.approx(
        euclidean_inner_product(x, At(r, None)))


def test_weighted_inner_product() -> None:
    W = np.diag([1.0, 4.0])
    ip = make_weighted_inner_product(W)
    u = np.array([1.0, 1.0])
    v = np.array([2.0, 3.0])
    assert ip(u, v, None) == pytest.approx(14.0)
    assert ip(u, v, None) == pytest.approx(ip(v, u, None))


def test_weighted_inner_product_on_flattened_matrices() -> None:
    W = 2.0 * np.eye(4)
    ip = make_weighted_inner_product(W)
    U = np.arange(4.0).reshape(2, 2)
    assert ip(U.ravel(), U.ravel(), None) == pytest.approx(2.0 * float(np.sum(U * U)))


def test_matrix_operator_on_dense_array() -> None:
    M = np.array([[1.0, 2.0], [0.0, -1.0]])
    out = make_matrix_operator(M)(np.array([1.0, 1.0]), None)
    assert isinstance(out, np.ndarray)
    assert np.array_equal(out, np.array([3.0, -1.0]))


def test_scaled_identity() -> None:
    neg = make_scaled_identity(-1.0)
    assert np.array_equal(neg(np.array([1.0, -2.0]), None), np.array([-1.0, 2.0]))
    assert make_scaled_identity(3.0)(2.0) == 6.0


def test_stopwatch_is_monotonic() -> None:
    start = Stopwatch.tick()
    first = Stopwatch.tock(start)
    second = Stopwatch.tock(start)
    assert 0.0 <= first <= second
