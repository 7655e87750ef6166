"""
File: admm_consensus_demo.py

This script demonstrates verbose ADMM output on a two-block averaging
problem with a closed-form solution.

Problem:
    min  0.5 * ||x - a||^2 + 0.5 * ||y - b||^2
    x,y
    s.t. x - y = 0

The minimizer is x = y = (a + b) / 2.
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

import numpy as np

from convex_optimization.admm import (
    ADMM_Params,
    ADMM_PenaltyAdaptation,
    admm_single_space,
)
from convex_optimization.operators import (
    euclidean_inner_product,
    make_scaled_identity,
)

logging.basicConfig(level=logging.INFO, format="%(message)s")

# ============================================================
# 1. Define the problem
# ============================================================
a = np.array([1.0, 2.0])
b = np.array([3.0, -1.0])


def min_lx(x, y, lam, rho, context):
    return (a - lam + rho * y) / (1.0 + rho)


def min_ly(x, y, lam, rho, context):
    return (b + lam + rho * x) / (1.0 + rho)


# ============================================================
# 2. Solve (verbose output is routed through the logging module)
# ============================================================
params = ADMM_Params(
    penalty_adaptation_mode=ADMM_PenaltyAdaptation.SPECTRAL,
    verbose=True,
    precision=4,
    max_iterations=100,
)

result = admm_single_space(
    min_lx, min_ly,
    make_scaled_identity(1.0), make_scaled_identity(-1.0),
    make_scaled_identity(1.0),
    euclidean_inner_product,
    np.zeros(2), np.zeros(2), np.zeros(2), params)

x, y = result.x
print()
print(f"Converged     : {result.has_converged()}")
print(f"Solution x    : {x}")
print(f"Solution y    : {y}")
print(f"Expected      : {(a + b) / 2.0}")
