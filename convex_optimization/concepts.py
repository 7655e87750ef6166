"""
File: concepts.py

Description: This module collects the pieces shared by the optimizers in this
package: the callable contracts expected from the caller, and the generic
configuration/result containers that individual solvers extend.

Callable contracts (all take a trailing opaque ``context`` argument that the
solver forwards unchanged on every call):

    LinearOperator   : op(v, context) -> w
    InnerProduct     : ip(u, v, context) -> float
    AugLagMinX / Y   : minimizer(x, y, lam, rho, context) -> x_new / y_new

Variables are duck-typed: any object supporting ``+``, ``-`` and
multiplication by a scalar (NumPy arrays, Python floats, ...) can be used.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Tuple

# Default maximum number of (outer) iterations
DEFAULT_MAX_ITERATIONS: int = 1000
# Default maximum computation time in seconds (unlimited)
DEFAULT_MAX_COMPUTATION_TIME: float = math.inf
# Number of significant digits used when printing verbose output
DEFAULT_PRECISION: int = 3

# ============================================================================
# Callable contracts
# ============================================================================
LinearOperator = Callable[[Any, Any], Any]
InnerProduct = Callable[[Any, Any, Any], float]
AugLagMinX = Callable[[Any, Any, Any, float, Any], Any]
AugLagMinY = Callable[[Any, Any, Any, float, Any], Any]


# ============================================================================
# Generic optimizer parameters
# ============================================================================
@dataclass(frozen=True)
class OptimizerParams:
    """
    Generic budget and reporting controls shared by all optimizers.

    Attributes
    ----------
    max_iterations : int
        Maximum number of iterations.
    max_computation_time : float
        Maximum elapsed computation time in seconds.
    verbose : bool
        If True, per-iteration progress is sent to the solver's reporter.
    precision : int
        Number of digits used for floats in verbose output.
    log_iterates : bool
        If True, the sequence of iterates is stored in the result.
    """
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    max_computation_time: float = DEFAULT_MAX_COMPUTATION_TIME
    verbose: bool = False
    precision: int = DEFAULT_PRECISION
    log_iterates: bool = False


# ============================================================================
# Generic optimizer result
# ============================================================================
@dataclass
class OptimizerResult:
    """
    Generic output of an optimizer run.

    Attributes
    ----------
    x : Any
        Final iterate returned by the optimizer.
    elapsed_time : float
        Total elapsed computation time in seconds.
    time : list of float
        Elapsed time at the start of each iteration.
    iterates : list
        Iterates at the end of each iteration (only filled if requested).
    """
    x: Optional[Tuple[Any, Any]] = None
    elapsed_time: float = 0.0
    time: List[float] = field(default_factory=list)
    iterates: List[Tuple[Any, Any]] = field(default_factory=list)
