"""Fractional-step Navier-Stokes solvers.

Solver Structure:
-----------------
NavierStokesSolver (orchestrator, not subclassed)
└── operator provider (selected by create_solver)
    ├── NavierStokesOperators (pressure projection)
    └── TairaColoniusOperators (pressure + immersed body forces)
"""

from .datastructures import (
    Parameters,
    LinearSolverSettings,
    Metrics,
    Fields,
    TimeSeries,
    StepState,
    SolverFields,
    SolverStatus,
    Operators,
)
from .errors import AssemblyError, DimensionMismatchError
from .integration import IntegrationScheme
from solvers.projection.operators import NavierStokesOperators
from solvers.projection.solver import NavierStokesSolver
from solvers.immersed.taira_colonius import TairaColoniusOperators
from .factory import create_solver


__all__ = [
    # Orchestrator and providers
    "NavierStokesSolver",
    "NavierStokesOperators",
    "TairaColoniusOperators",
    "create_solver",
    # Data structures
    "Parameters",
    "LinearSolverSettings",
    "Metrics",
    "Fields",
    "TimeSeries",
    "StepState",
    "SolverFields",
    "SolverStatus",
    "Operators",
    "IntegrationScheme",
    # Errors
    "AssemblyError",
    "DimensionMismatchError",
]
