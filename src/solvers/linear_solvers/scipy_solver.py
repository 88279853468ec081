"""Scipy Krylov solvers with optional PyAMG preconditioning and iteration counting."""

import logging
from dataclasses import dataclass

import numpy as np
import pyamg
import scipy.sparse as sp
from scipy.sparse.linalg import bicgstab, cg

log = logging.getLogger(__name__)

KRYLOV_METHODS = {"cg": cg, "bicgstab": bicgstab}
PRECONDITIONERS = ("none", "diagonal", "smoothed_aggregation")


@dataclass
class SolveInfo:
    """Outcome of one linear solve."""

    iterations: int = 0
    converged: bool = True
    residual: float = 0.0


def build_preconditioner(A_csr: sp.csr_matrix, preconditioner: str = "diagonal"):
    """Return a preconditioner usable as ``M`` by scipy Krylov solvers."""
    preconditioner = preconditioner.lower()
    if preconditioner == "none":
        return None
    if preconditioner == "diagonal":
        diag = A_csr.diagonal()
        inv = np.zeros_like(diag)
        nonzero = diag != 0.0
        inv[nonzero] = 1.0 / diag[nonzero]
        inv[~nonzero] = 1.0
        return sp.diags(inv, format="csr")
    if preconditioner == "smoothed_aggregation":
        ml = pyamg.smoothed_aggregation_solver(A_csr, max_coarse=10)
        return ml.aspreconditioner()
    raise ValueError(
        f"Unknown preconditioner: {preconditioner}. Use one of {PRECONDITIONERS}"
    )


def scipy_solver(
    A_csr: sp.csr_matrix,
    b_np: np.ndarray,
    M=None,
    x0=None,
    method="cg",
    preconditioner="diagonal",
    tolerance=1e-6,
    max_iterations=1000,
    nullspace=None,
):
    """Solve A x = b with a preconditioned Krylov method.

    Parameters
    ----------
    A_csr : csr_matrix
        Sparse matrix in CSR format.
    b_np : np.ndarray
        Right-hand side vector.
    M : LinearOperator or sparse matrix, optional
        Preconditioner. If None, one is built from ``preconditioner``.
    x0 : np.ndarray, optional
        Initial guess (warm start).
    method : str, optional
        "cg" or "bicgstab" (default: "cg").
    preconditioner : str, optional
        "none", "diagonal" or "smoothed_aggregation" (default: "diagonal").
    tolerance : float, optional
        Relative residual tolerance (default: 1e-6).
    max_iterations : int, optional
        Iteration budget (default: 1000).
    nullspace : np.ndarray, optional
        Null-space vector of A. Its component is removed from the
        right-hand side and from the solution.

    Returns
    -------
    x_np : np.ndarray
        Solution vector (best iterate if the budget ran out).
    M : LinearOperator
        Preconditioner for reuse in subsequent solves.
    info : SolveInfo
        Iteration count and convergence flag.
    """
    try:
        krylov = KRYLOV_METHODS[method.lower()]
    except KeyError:
        raise ValueError(f"Unknown Krylov method: {method}. Use one of {sorted(KRYLOV_METHODS)}") from None

    b = b_np
    if nullspace is not None:
        weight = np.dot(nullspace, nullspace)
        b = b_np - (np.dot(b_np, nullspace) / weight) * nullspace

    if M is None:
        M = build_preconditioner(A_csr, preconditioner)

    if x0 is not None:
        x0 = np.array(x0, dtype=np.float64, copy=True)

    iterations = 0

    def count(_xk):
        nonlocal iterations
        iterations += 1

    x, status = krylov(
        A_csr, b, x0=x0, M=M, rtol=tolerance, atol=0.0, maxiter=max_iterations, callback=count
    )

    if status < 0:
        raise RuntimeError(f"{method} failed (info={status})")

    if nullspace is not None:
        x = x - (np.dot(x, nullspace) / weight) * nullspace

    residual = float(np.linalg.norm(b - A_csr @ x))
    # Did not converge but we can still use the result
    converged = status == 0
    return x, M, SolveInfo(iterations=min(iterations, max_iterations), converged=converged, residual=residual)
