"""
File: admm.py

Description: This module implements the Alternating Direction Method of
Multipliers (ADMM) for convex problems split into two blocks coupled by a
linear equality constraint:

    min  f(x) + g(y)
    x,y
    s.t. Ax + By = c

via operator splitting, following Section 3.1 of "Distributed Optimization
and Statistical Learning via the Alternating Direction Method of
Multipliers" by S. Boyd, N. Parikh, E. Chu, B. Peleato and J. Eckstein.

The solver never touches f and g directly.  The caller supplies minimizers of
the augmented Lagrangian

    L_rho(x, y, lam) = f(x) + g(y) + <lam, Ax + By - c>
                       + (rho / 2) * ||Ax + By - c||^2

with respect to x and y, together with the operators A, B, A^t and the inner
products on X and R.  Variables are duck-typed (NumPy arrays, floats, ...).

Algorithm overview (iteration k):
1. x <- argmin_x L_rho(x, y, lam)
2. y <- argmin_y L_rho(x, y, lam)
3. lam <- lam + rho * (Ax + By - c)
4. r = Ax + By - c,  s = rho * A^t B (y - y_prev)
5. Stop if ||r|| < eps_pri and ||s|| < eps_dual
6. Optionally adapt rho (residual balancing or spectral selection)

Penalty adaptation strategies:
    - Residual balancing: "Alternating Direction Method with Self-Adaptive
      Penalty Parameters", B. He, H. Yang and S. Wang.
    - Spectral (Barzilai-Borwein) selection: "Adaptive ADMM with Spectral
      Penalty Parameter Selection", Z. Xu, M.A.T. Figueiredo and
      T. Goldstein.

Module structure:
    - ADMM_PenaltyAdaptation: Penalty adaptation strategy selector
    - ADMM_Status:            Termination reason
    - ADMM_Params:            Immutable solver configuration
    - ADMM_Result:            Telemetry and solution returned by the solver
    - ADMM_Problem:           Bundles the caller-supplied callables
    - ADMM_Optimizer:         Main ADMM loop
    - admm / admm_single_space: functional front ends
    - residual_balance_penalty_parameter_update,
      spectral_penalty_parameter_update: penalty update rules
"""
import logging
import math
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, List, Optional

import numpy as np

from convex_optimization.concepts import (
    AugLagMinX,
    AugLagMinY,
    InnerProduct,
    LinearOperator,
    OptimizerParams,
    OptimizerResult,
)
from convex_optimization.stopwatch import Stopwatch

logger = logging.getLogger(__name__)

# Initial value of the augmented Lagrangian penalty parameter
DEFAULT_RHO: float = 1.0
# Adapt the penalty parameter every this many iterations
DEFAULT_PENALTY_ADAPTATION_PERIOD: int = 2
# Stop adapting the penalty parameter after this many iterations
DEFAULT_PENALTY_ADAPTATION_WINDOW: int = 1000
# Admissible primal/dual residual ratio for residual balancing (mu)
DEFAULT_RESIDUAL_BALANCE_MU: float = 10.0
# Multiplicative penalty change for residual balancing (tau)
DEFAULT_RESIDUAL_BALANCE_TAU: float = 2.0
# Minimum quasi-Newton correlation accepted by the spectral update
DEFAULT_SPECTRAL_PENALTY_MINIMUM_CORRELATION: float = 0.2
# Absolute primal stopping tolerance
DEFAULT_EPS_ABS_PRI: float = 1e-2
# Absolute dual stopping tolerance
DEFAULT_EPS_ABS_DUAL: float = 1e-2
# Relative stopping tolerance
DEFAULT_EPS_REL: float = 1e-3


# ============================================================================
# Enumerations
# ============================================================================
class ADMM_PenaltyAdaptation(Enum):
    """Strategy used to adapt the penalty parameter rho."""
    NONE = auto()
    RESIDUAL_BALANCE = auto()
    SPECTRAL = auto()


class ADMM_Status(Enum):
    """Reason the ADMM solver terminated."""
    # Primal and dual residual tolerances were satisfied
    RESIDUAL_TOLERANCE = auto()
    # Iteration budget exhausted before reaching the tolerances
    ITERATION_LIMIT = auto()
    # Computation-time budget exhausted before reaching the tolerances
    ELAPSED_TIME = auto()


# ============================================================================
# ADMM Params
# ============================================================================
@dataclass(frozen=True)
class ADMM_Params(OptimizerParams):
    """
    Configuration of :class:`ADMM_Optimizer`.

    Termination uses the combined (absolute + relative) tolerances of
    Section 3.3.1 of Boyd et al.:

        eps_pri_k  = eps_abs_pri  + eps_rel * max{||Ax_k||, ||By_k||, ||c||}
        eps_dual_k = eps_abs_dual + eps_rel * ||A^t lam_k||

    and the solver stops once ||r_k|| < eps_pri_k and ||s_k|| < eps_dual_k.

    Attributes
    ----------
    rho : float
        Initial penalty parameter.
    penalty_adaptation_mode : ADMM_PenaltyAdaptation
        Strategy used to adapt rho.
    penalty_adaptation_period : int
        rho is only adapted on iterations that are a multiple of this value.
    penalty_adaptation_window : int
        rho is never adapted at or after this iteration, so that it is
        eventually constant and plain ADMM convergence applies.
    residual_balance_mu : float
        Maximum admissible ratio between primal and dual residuals before rho
        is changed (eq. (3.13) of Boyd et al.).  Should be > 1.
    residual_balance_tau : float
        Factor by which rho is increased or decreased.  Should be > 1.
    spectral_penalty_minimum_correlation : float
        Minimum quality of the quasi-Newton curvature estimate required to
        accept a spectral step (eq. (29) of Xu et al.), in (0, 1).
    eps_abs_pri, eps_abs_dual, eps_rel : float
        Stopping tolerances.
    """
    rho: float = DEFAULT_RHO
    penalty_adaptation_mode: ADMM_PenaltyAdaptation = ADMM_PenaltyAdaptation.NONE
    penalty_adaptation_period: int = DEFAULT_PENALTY_ADAPTATION_PERIOD
    penalty_adaptation_window: int = DEFAULT_PENALTY_ADAPTATION_WINDOW
    residual_balance_mu: float = DEFAULT_RESIDUAL_BALANCE_MU
    residual_balance_tau: float = DEFAULT_RESIDUAL_BALANCE_TAU
    spectral_penalty_minimum_correlation: float = \
        DEFAULT_SPECTRAL_PENALTY_MINIMUM_CORRELATION
    eps_abs_pri: float = DEFAULT_EPS_ABS_PRI
    eps_abs_dual: float = DEFAULT_EPS_ABS_DUAL
    eps_rel: float = DEFAULT_EPS_REL


# ============================================================================
# ADMM Result
# ============================================================================
@dataclass
class ADMM_Result(OptimizerResult):
    """
    Result returned by :meth:`ADMM_Optimizer.solve`.

    Attributes
    ----------
    status : ADMM_Status
        Stopping condition that triggered termination.
    primal_residuals : list of float
        ||r_k|| at the end of each iteration.
    dual_residuals : list of float
        ||s_k|| at the end of each iteration.
    penalty_parameters : list of float
        Penalty parameter used during each iteration.
    """
    status: ADMM_Status = ADMM_Status.ITERATION_LIMIT
    primal_residuals: List[float] = field(default_factory=list)
    dual_residuals: List[float] = field(default_factory=list)
    penalty_parameters: List[float] = field(default_factory=list)

    @property
    def num_iterations(self) -> int:
        """Number of completed iterations."""
        return len(self.primal_residuals)

    def has_converged(self) -> bool:
        """Return True if the residual stopping criteria were satisfied."""
        return self.status == ADMM_Status.RESIDUAL_TOLERANCE


# ============================================================================
# Penalty parameter update rules
# ============================================================================
def residual_balance_penalty_parameter_update(
    primal_residual: float,
    dual_residual: float,
    mu: float,
    tau: float,
    rho: float,
) -> float:
    """
    Residual-balancing penalty update (eq. (3.13) of Boyd et al.).

    Returns ``tau * rho`` if the primal residual exceeds ``mu`` times the dual
    residual, ``rho / tau`` in the opposite case, and ``rho`` otherwise.
    """
    if primal_residual > mu * dual_residual:
        return tau * rho
    elif dual_residual > mu * primal_residual:
        return rho / tau
    else:
        return rho


def spectral_penalty_parameter_update(
    delta_lambda_hat: Any,
    delta_lambda: Any,
    delta_H_hat: Any,
    delta_G_hat: Any,
    inner_product: InnerProduct,
    eps_cor: float,
    rho: float,
    context: Any = None,
) -> float:
    """
    Spectral (Barzilai-Borwein) penalty update of Xu, Figueiredo and
    Goldstein, "Adaptive ADMM with Spectral Penalty Parameter Selection".

    Parameters
    ----------
    delta_lambda_hat : R
        lam_hat - lam_hat_0.
    delta_lambda : R
        lam - lam_0.
    delta_H_hat : R
        -A(x - x_0).
    delta_G_hat : R
        -B(y - y_0).
    inner_product : callable
        Inner product on the constraint space R.
    eps_cor : float
        Minimum correlation for a curvature estimate to be accepted.
    rho : float
        Current penalty, returned when neither estimate is accepted.
    context : Any
        Forwarded to ``inner_product``.

    Returns
    -------
    float
        Updated penalty parameter.

    Notes
    -----
    Denominators are not safeguarded.  Inner products are evaluated as
    ``numpy.float64`` so degenerate differences produce inf/NaN (with a NumPy
    ``RuntimeWarning``) rather than an exception.  A NaN correlation satisfies
    neither ``> eps_cor`` nor ``<= eps_cor``, so an update with a NaN
    correlation keeps the current penalty.
    """
    def ip(u, v) -> np.float64:
        return np.float64(inner_product(u, v, context))

    # Pair-wise inner products for the alphas
    dlh_dlh = ip(delta_lambda_hat, delta_lambda_hat)
    dH_dlh = ip(delta_H_hat, delta_lambda_hat)
    dH_dH = ip(delta_H_hat, delta_H_hat)

    # Pair-wise inner products for the betas
    dl_dl = ip(delta_lambda, delta_lambda)
    dG_dl = ip(delta_G_hat, delta_lambda)
    dG_dG = ip(delta_G_hat, delta_G_hat)

    # Steepest-descent and minimum-gradient stepsizes, eqs. (26)-(28)
    alpha_SD = dlh_dlh / dH_dlh
    alpha_MG = dH_dlh / dH_dH
    beta_SD = dl_dl / dG_dl
    beta_MG = dG_dl / dG_dG

    # Hybrid stepsizes (Zhou, Gao and Dai), eq. (27)
    alpha = alpha_MG if 2.0 * alpha_MG > alpha_SD else alpha_SD - alpha_MG / 2.0
    beta = beta_MG if 2.0 * beta_MG > beta_SD else beta_SD - beta_MG / 2.0

    # Correlations, eq. (29)
    alpha_cor = dH_dlh / (np.sqrt(dH_dH) * np.sqrt(dlh_dlh))
    beta_cor = dG_dl / (np.sqrt(dG_dG) * np.sqrt(dl_dl))

    # Safeguard, eq. (30)
    alpha_ok = alpha_cor > eps_cor
    beta_ok = beta_cor > eps_cor
    if alpha_ok and beta_ok:
        return float(np.sqrt(alpha * beta))
    elif alpha_ok and beta_cor <= eps_cor:
        return float(alpha)
    elif alpha_cor <= eps_cor and beta_ok:
        return float(beta)
    else:
        return rho


# ============================================================================
# ADMM Problem
# ============================================================================
class ADMM_Problem:
    """
    Problem definition for ADMM.

    Parameters
    ----------
    min_lx : callable
        ``min_lx(x, y, lam, rho, context) -> x`` returning a minimizer of the
        augmented Lagrangian with respect to x.
    min_ly : callable
        ``min_ly(x, y, lam, rho, context) -> y`` returning a minimizer of the
        augmented Lagrangian with respect to y (called with the updated x).
    A : callable
        ``A(x, context) -> R``.
    B : callable
        ``B(y, context) -> R``.
    At : callable
        ``At(r, context) -> X``, the adjoint of A.
    inner_product_x : callable
        Inner product on X, ``ip(u, v, context) -> float``.
    inner_product_r : callable
        Inner product on R, ``ip(u, v, context) -> float``.
    c : R
        Right-hand side of the coupling constraint.
    """

    def __init__(
        self,
        min_lx: AugLagMinX,
        min_ly: AugLagMinY,
        A: LinearOperator,
        B: LinearOperator,
        At: LinearOperator,
        inner_product_x: InnerProduct,
        inner_product_r: InnerProduct,
        c: Any,
    ):
        assert callable(min_lx), "min_lx must be callable"
        assert callable(min_ly), "min_ly must be callable"
        assert callable(A) and callable(B) and callable(At), \
            "A, B and At must be callable"
        assert callable(inner_product_x) and callable(inner_product_r), \
            "inner products must be callable"

        self.min_lx = min_lx
        self.min_ly = min_ly
        self.A = A
        self.B = B
        self.At = At
        self.inner_product_x = inner_product_x
        self.inner_product_r = inner_product_r
        self.c = c


# ============================================================================
# ADMM Optimizer
# ============================================================================
class ADMM_Optimizer:
    """
    ADMM solver with optional penalty parameter adaptation.

    Parameters
    ----------
    problem : ADMM_Problem
        Problem definition.
    params : ADMM_Params
        Solver configuration.
    reporter : callable or None
        Sink for verbose output, ``reporter(line: str) -> None``.  ``None``
        sends lines to this module's logger at INFO level.
    stopwatch : object or None
        Timing source exposing ``tick()`` and ``tock(start)``.  ``None`` uses
        :class:`Stopwatch`.

    Example
    -------
    >>> from convex_optimization.operators import (
    ...     euclidean_inner_product, make_scaled_identity)
    >>> a, b = np.array([1.0, 2.0]), np.array([3.0, -1.0])
    >>> problem = ADMM_Problem(
    ...     min_lx=lambda x, y, lam, rho, ctx: (a - lam + rho * y) / (1 + rho),
    ...     min_ly=lambda x, y, lam, rho, ctx: (b + lam + rho * x) / (1 + rho),
    ...     A=make_scaled_identity(1.0), B=make_scaled_identity(-1.0),
    ...     At=make_scaled_identity(1.0),
    ...     inner_product_x=euclidean_inner_product,
    ...     inner_product_r=euclidean_inner_product,
    ...     c=np.zeros(2))
    >>> result = ADMM_Optimizer(problem, ADMM_Params()).solve(
    ...     np.zeros(2), np.zeros(2))
    >>> result.has_converged()
    True
    """

    def __init__(
        self,
        problem: ADMM_Problem,
        params: ADMM_Params,
        reporter: Optional[Callable[[str], None]] = None,
        stopwatch: Any = None,
    ):
        self._problem = problem
        self._params = params
        self._report = reporter if reporter is not None else logger.info
        self._stopwatch = stopwatch if stopwatch is not None else Stopwatch

    @property
    def params(self) -> ADMM_Params:
        return self._params

    # ----------------------------------------------------------------
    #  Main API
    # ----------------------------------------------------------------
    def solve(self, x0: Any, y0: Any, context: Any = None) -> ADMM_Result:
        """
        Run ADMM from the initial pair (x0, y0).

        Parameters
        ----------
        x0 : X
            Initial value of x.  Not modified.
        y0 : Y
            Initial value of y.  Not modified.
        context : Any
            Opaque value forwarded unchanged to every oracle, operator and
            inner product call.

        Returns
        -------
        ADMM_Result
            Final (x, y) pair, termination status and per-iteration telemetry.
        """
        problem = self._problem
        params = self._params
        A, B, At = problem.A, problem.B, problem.At
        c = problem.c

        result = ADMM_Result(status=ADMM_Status.ITERATION_LIMIT)

        # INITIALIZATION
        x = x0
        y = y0
        y_prev = y0
        rho = params.rho
        lam = rho * (A(x, context) + B(y, context) - c)

        c_norm = self._norm_r(c, context)

        spectral = (params.penalty_adaptation_mode
                    == ADMM_PenaltyAdaptation.SPECTRAL)
        lam_hat = None
        if spectral:
            # Checkpoint for the spectral finite differences
            x_k0 = x
            y_k0 = y
            lam_k0 = lam
            lam_hat_k0 = lam

        primal_residual = math.nan
        dual_residual = math.nan

        if params.verbose:
            self._report("ADMM optimization:")

        # ITERATE
        start_time = self._stopwatch.tick()
        for i in range(params.max_iterations):
            # Elapsed time at the START of this iteration
            elapsed_time = self._stopwatch.tock(start_time)
            if elapsed_time > params.max_computation_time:
                result.status = ADMM_Status.ELAPSED_TIME
                break

            adapt = self._adaptation_triggered(i)

            # 1. x-update and y-update
            x = problem.min_lx(x, y, lam, rho, context)
            y = problem.min_ly(x, y, lam, rho, context)

            # 2. Primal residual
            Ax = A(x, context)
            By = B(y, context)
            r = Ax + By - c

            # 3. lam_hat uses the multiplier *before* the dual update
            if spectral and adapt:
                lam_hat = lam + rho * (Ax + B(y_prev, context) - c)

            # 4. Dual update
            lam = lam + rho * r

            # 5. Dual residual
            s = rho * At(B(y - y_prev, context), context)

            primal_residual = self._norm_r(r, context)
            dual_residual = self._norm_x(s, context)

            if params.verbose:
                self._report_iteration(i, elapsed_time, primal_residual,
                                       dual_residual, rho)

            result.time.append(elapsed_time)
            result.primal_residuals.append(primal_residual)
            result.dual_residuals.append(dual_residual)
            result.penalty_parameters.append(rho)
            if params.log_iterates:
                result.iterates.append((x, y))

            # 6. Stopping criteria
            Ax_norm = self._norm_r(Ax, context)
            By_norm = self._norm_r(By, context)
            eps_primal = params.eps_abs_pri + \
                params.eps_rel * max(Ax_norm, By_norm, c_norm)

            At_lam_norm = self._norm_x(At(lam, context), context)
            eps_dual = params.eps_abs_dual + params.eps_rel * At_lam_norm

            if primal_residual < eps_primal and dual_residual < eps_dual:
                result.status = ADMM_Status.RESIDUAL_TOLERANCE
                break

            # 7. Penalty parameter update
            if adapt:
                if (params.penalty_adaptation_mode
                        == ADMM_PenaltyAdaptation.RESIDUAL_BALANCE):
                    rho = residual_balance_penalty_parameter_update(
                        primal_residual, dual_residual,
                        params.residual_balance_mu,
                        params.residual_balance_tau, rho)
                elif spectral:
                    delta_lambda = lam - lam_k0
                    delta_lambda_hat = lam_hat - lam_hat_k0
                    # Xu et al. write the residual with the opposite sign, so
                    # the operator images enter negated
                    delta_H = -1.0 * A(x - x_k0, context)
                    delta_G = -1.0 * B(y - y_k0, context)

                    rho = spectral_penalty_parameter_update(
                        delta_lambda_hat, delta_lambda, delta_H, delta_G,
                        problem.inner_product_r,
                        params.spectral_penalty_minimum_correlation,
                        rho, context)

                    x_k0 = x
                    y_k0 = y
                    lam_k0 = lam
                    lam_hat_k0 = lam_hat

                if not (math.isfinite(rho) and rho > 0.0):
                    logger.warning(
                        "ADMM iteration %d: penalty adaptation produced "
                        "rho = %r", i, rho)

            # 8. Prepare for next iteration
            y_prev = y

        # RECORD FINAL OUTPUT
        result.x = (x, y)
        result.elapsed_time = self._stopwatch.tock(start_time)

        if params.verbose:
            self._report_summary(result, primal_residual, dual_residual)

        return result

    # ----------------------------------------------------------------
    #  Private helper methods
    # ----------------------------------------------------------------
    def _adaptation_triggered(self, i: int) -> bool:
        """Whether rho may be adapted at the end of iteration *i*."""
        params = self._params
        return (params.penalty_adaptation_mode != ADMM_PenaltyAdaptation.NONE
                and i % params.penalty_adaptation_period == 0
                and i < params.penalty_adaptation_window)

    def _norm_x(self, v: Any, context: Any) -> float:
        return float(np.sqrt(self._problem.inner_product_x(v, v, context)))

    def _norm_r(self, v: Any, context: Any) -> float:
        return float(np.sqrt(self._problem.inner_product_r(v, v, context)))

    def _report_iteration(
        self,
        i: int,
        elapsed_time: float,
        primal_residual: float,
        dual_residual: float,
        rho: float,
    ) -> None:
        p = self._params.precision
        iter_width = len(str(self._params.max_iterations))
        w = p + 7
        self._report(
            f"Iter: {i:>{iter_width}d}, time: {elapsed_time:.{p}e}, "
            f"primal residual: {primal_residual:>{w}.{p}e}, "
            f"dual residual: {dual_residual:>{w}.{p}e}, "
            f"penalty: {rho:>{w}.{p}e}")

    def _report_summary(
        self,
        result: ADMM_Result,
        primal_residual: float,
        dual_residual: float,
    ) -> None:
        p = self._params.precision
        self._report("Optimization finished!")
        if result.status == ADMM_Status.RESIDUAL_TOLERANCE:
            self._report("Found minimizer!")
        elif result.status == ADMM_Status.ITERATION_LIMIT:
            self._report(
                "Algorithm exceeded maximum number of outer iterations")
        else:
            self._report(
                "Algorithm exceeded maximum allowed computation time: "
                f"{result.elapsed_time:.{p}e} > "
                f"{self._params.max_computation_time:.{p}e}")
        self._report(
            f"Final primal residual: {primal_residual:.{p}e}, "
            f"final dual residual: {dual_residual:.{p}e}, "
            f"total elapsed computation time: {result.elapsed_time:.{p}e} "
            "seconds")


# ============================================================================
# Functional front ends
# ============================================================================
def admm(
    min_lx: AugLagMinX,
    min_ly: AugLagMinY,
    A: LinearOperator,
    B: LinearOperator,
    At: LinearOperator,
    inner_product_x: InnerProduct,
    inner_product_r: InnerProduct,
    c: Any,
    x0: Any,
    y0: Any,
    params: ADMM_Params,
    context: Any = None,
    reporter: Optional[Callable[[str], None]] = None,
    stopwatch: Any = None,
) -> ADMM_Result:
    """
    Solve ``min f(x) + g(y) s.t. Ax + By = c`` with ADMM.

    Convenience wrapper around :class:`ADMM_Problem` and
    :class:`ADMM_Optimizer`; see those classes for the argument contracts.
    """
    problem = ADMM_Problem(
        min_lx=min_lx,
        min_ly=min_ly,
        A=A,
        B=B,
        At=At,
        inner_product_x=inner_product_x,
        inner_product_r=inner_product_r,
        c=c,
    )
    optimizer = ADMM_Optimizer(problem, params, reporter=reporter,
                               stopwatch=stopwatch)
    return optimizer.solve(x0, y0, context)


def admm_single_space(
    min_lx: AugLagMinX,
    min_ly: AugLagMinY,
    A: LinearOperator,
    B: LinearOperator,
    At: LinearOperator,
    inner_product: InnerProduct,
    c: Any,
    x0: Any,
    y0: Any,
    params: ADMM_Params,
    context: Any = None,
    reporter: Optional[Callable[[str], None]] = None,
    stopwatch: Any = None,
) -> ADMM_Result:
    """
    ADMM for the common case where x, y and the constraint residual share a
    single representation: ``inner_product`` serves as the inner product on
    both X and R.
    """
    return admm(min_lx, min_ly, A, B, At, inner_product, inner_product, c,
                x0, y0, params, context=context, reporter=reporter,
                stopwatch=stopwatch)
