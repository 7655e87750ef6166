"""
File: operators.py

Description: Factory helpers that build the linear operators and inner
products consumed by the ADMM optimizer for the common case where the
variables are NumPy arrays.

Every returned callable follows the contracts of ``concepts.py``: it takes the
solver's opaque ``context`` as its last argument and ignores it.
"""
import numpy as np

from convex_optimization.concepts import InnerProduct, LinearOperator


def euclidean_inner_product(u: np.ndarray, v: np.ndarray, context=None) -> float:
    """Standard inner product <u, v> = sum_i u_i * v_i (flattened)."""
    return float(np.vdot(u, v).real)


def make_weighted_inner_product(W: np.ndarray) -> InnerProduct:
    """
    Create the inner product <u, v>_W = u^T W v.

    The returned function uses ``np.dot(u, W @ v)`` and is meant for 1-D
    arrays u and v whose length matches W. For matrix-valued variables
    flatten them first.

    Parameters
    ----------
    W : np.ndarray
        Symmetric positive-definite weight matrix.

    Returns
    -------
    callable
        Function with signature ``inner_product(u, v, context) -> float``.
    """
    W = np.asarray(W, dtype=float)

    def inner_product(u: np.ndarray, v: np.ndarray, context=None) -> float:
        return float(np.dot(u, W @ v))
    return inner_product


def make_matrix_operator(M: np.ndarray) -> LinearOperator:
    """
    Create the linear operator v -> M v.

    Parameters
    ----------
    M : np.ndarray
        Matrix representing the operator.

    Returns
    -------
    callable
        Function with signature ``op(v, context) -> np.ndarray``.
    """
    def operator(v: np.ndarray, context=None) -> np.ndarray:
        return M @ v
    return operator


def make_adjoint_operator(M: np.ndarray) -> LinearOperator:
    """
    Create the adjoint r -> M^T r of ``make_matrix_operator(M)`` with respect
    to the Euclidean inner product.
    """
    Mt = M.T

    def operator(r: np.ndarray, context=None) -> np.ndarray:
        return Mt @ r
    return operator


def make_scaled_identity(scale: float = 1.0) -> LinearOperator:
    """Create the operator v -> scale * v (self-adjoint)."""
    def operator(v, context=None):
        return scale * v
    return operator
