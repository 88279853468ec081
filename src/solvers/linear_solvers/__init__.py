"""Linear solvers for the projection method."""

from .scipy_solver import SolveInfo, build_preconditioner, scipy_solver

__all__ = ["SolveInfo", "build_preconditioner", "scipy_solver"]
