"""Solver factory: pick the operator provider from the parameters."""

import logging

from solvers.errors import AssemblyError
from solvers.immersed.taira_colonius import TairaColoniusOperators
from solvers.projection.operators import NavierStokesOperators
from solvers.projection.solver import NavierStokesSolver

log = logging.getLogger(__name__)

PROVIDERS = {
    "navier-stokes": NavierStokesOperators,
    "taira-colonius": TairaColoniusOperators,
}


def create_solver(params, domain, writer=None) -> NavierStokesSolver:
    """Build an uninitialised solver for ``params.solver_type``.

    ``"auto"`` selects the immersed-boundary variant when bodies are given.
    """
    solver_type = params.solver_type.lower()
    if solver_type == "auto":
        solver_type = "taira-colonius" if params.bodies else "navier-stokes"
    if solver_type not in PROVIDERS:
        raise AssemblyError(f"Unknown solver type: {params.solver_type}. Use one of {sorted(PROVIDERS)}")

    try:
        provider = PROVIDERS[solver_type](domain, params)
    except ValueError as exc:
        raise AssemblyError(str(exc)) from exc

    if solver_type == "navier-stokes" and params.bodies:
        log.warning(f"{len(params.bodies)} bodies ignored by the {provider.name} solver")
    return NavierStokesSolver(params, domain, operators=provider, writer=writer)
