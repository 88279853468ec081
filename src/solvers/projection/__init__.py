"""Staggered-grid building blocks of the fractional-step method.

The orchestrating ``NavierStokesSolver`` lives in ``solvers.projection.solver``
and is re-exported by ``solvers``.
"""

from .boundary import (
    SIDE_NAMES,
    BCType,
    BoundaryCondition,
    BoundarySide,
    BoundarySpec,
    Side,
    default_conditions,
)
from .convection import convection_term
from .operators import NavierStokesOperators

__all__ = [
    "SIDE_NAMES",
    "BCType",
    "BoundaryCondition",
    "BoundarySide",
    "BoundarySpec",
    "Side",
    "default_conditions",
    "convection_term",
    "NavierStokesOperators",
]
