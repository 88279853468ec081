"""Boundary conditions on the four sides of the rectangular domain.

Each side stores the velocities the interior stencils see:

- XMINUS / XPLUS: ``u`` normal velocity at the ny face centres,
  ``v`` tangential velocity at the ny+1 nodes of that side.
- YMINUS / YPLUS: ``u`` tangential velocity at the nx+1 nodes,
  ``v`` normal velocity at the nx face centres.

Neumann and convective values are lagged: they are refreshed once per
sub-step from the current fluxes and then treated like Dirichlet data.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import List

import numpy as np


class Side(IntEnum):
    XMINUS = 0
    XPLUS = 1
    YMINUS = 2
    YPLUS = 3


SIDE_NAMES = {
    "xMinus": Side.XMINUS,
    "xPlus": Side.XPLUS,
    "yMinus": Side.YMINUS,
    "yPlus": Side.YPLUS,
}


class BCType(str, Enum):
    DIRICHLET = "dirichlet"
    NEUMANN = "neumann"
    CONVECTIVE = "convective"


@dataclass
class BoundaryCondition:
    """Type and value of one velocity component on one side.

    For convective conditions ``value`` is the advection speed.
    """

    type: BCType = BCType.DIRICHLET
    value: float = 0.0

    def __post_init__(self):
        if not isinstance(self.type, BCType):
            self.type = BCType(str(self.type).lower())
        self.value = float(self.value)


@dataclass
class BoundarySpec:
    """Conditions for both velocity components on one side."""

    u: BoundaryCondition = field(default_factory=BoundaryCondition)
    v: BoundaryCondition = field(default_factory=BoundaryCondition)

    @classmethod
    def from_dict(cls, data) -> "BoundarySpec":
        def parse(entry):
            if entry is None:
                return BoundaryCondition()
            if isinstance(entry, BoundaryCondition):
                return entry
            if isinstance(entry, (list, tuple)):
                return BoundaryCondition(*entry)
            return BoundaryCondition(**entry)

        return cls(u=parse(data.get("u")), v=parse(data.get("v")))


@dataclass
class BoundarySide:
    """Boundary velocities of one side (see module docstring for layout)."""

    u: np.ndarray
    v: np.ndarray


def default_conditions() -> List[BoundarySpec]:
    """No-slip walls on all four sides."""
    return [BoundarySpec() for _ in Side]


def allocate_boundary_arrays(domain) -> List[BoundarySide]:
    nx, ny = domain.nx, domain.ny
    return [
        BoundarySide(u=np.zeros(ny), v=np.zeros(ny + 1)),  # XMINUS
        BoundarySide(u=np.zeros(ny), v=np.zeros(ny + 1)),  # XPLUS
        BoundarySide(u=np.zeros(nx + 1), v=np.zeros(nx)),  # YMINUS
        BoundarySide(u=np.zeros(nx + 1), v=np.zeros(nx)),  # YPLUS
    ]


def initialise_boundary_arrays(bc, conditions, initial_velocity=(0.0, 0.0)):
    """Fill ``bc`` with Dirichlet values, or the initial velocity elsewhere."""
    for side in Side:
        spec = conditions[side]
        for name, condition, start in (("u", spec.u, initial_velocity[0]),
                                       ("v", spec.v, initial_velocity[1])):
            values = getattr(bc[side], name)
            if condition.type == BCType.DIRICHLET:
                values[:] = condition.value
            else:
                values[:] = start


def _interior_velocities(domain, q, side):
    """Velocities adjacent to ``side``: (normal, tangential, normal_gap, tangential_gap)."""
    u, v = domain.flux_to_velocity(q)
    dx, dy = domain.dx, domain.dy
    if side == Side.XMINUS:
        return u[:, 0], v[:, 0], dx[0], 0.5 * dx[0]
    if side == Side.XPLUS:
        return u[:, -1], v[:, -1], dx[-1], 0.5 * dx[-1]
    if side == Side.YMINUS:
        return v[0, :], u[0, :], dy[0], 0.5 * dy[0]
    return v[-1, :], u[-1, :], dy[-1], 0.5 * dy[-1]


def update_boundary_conditions(bc, conditions, domain, q, dt):
    """Refresh Neumann and convective boundary values from the fluxes ``q``.

    After a convective update the outflow normal velocities are shifted
    uniformly so that the net flux through the domain boundary vanishes.
    """
    has_convective = False
    for side in Side:
        spec = conditions[side]
        normal_cond, tangent_cond = (spec.u, spec.v) if side in (Side.XMINUS, Side.XPLUS) else (spec.v, spec.u)
        normal_vals, tangent_vals = (
            (bc[side].u, bc[side].v) if side in (Side.XMINUS, Side.XPLUS) else (bc[side].v, bc[side].u)
        )
        normal_int, tangent_int, normal_gap, tangent_gap = _interior_velocities(domain, q, side)

        # Normal component: all ny (or nx) face values
        if normal_cond.type == BCType.NEUMANN:
            normal_vals[:] = normal_int
        elif normal_cond.type == BCType.CONVECTIVE:
            beta = abs(normal_cond.value) * dt / normal_gap
            normal_vals[:] -= beta * (normal_vals - normal_int)
            has_convective = True

        # Tangential component: interior nodes only, corners stay fixed
        if tangent_cond.type == BCType.NEUMANN:
            tangent_vals[1:-1] = tangent_int
        elif tangent_cond.type == BCType.CONVECTIVE:
            beta = abs(tangent_cond.value) * dt / tangent_gap
            tangent_vals[1:-1] -= beta * (tangent_vals[1:-1] - tangent_int)

    if has_convective:
        _correct_outflow(bc, conditions, domain)


def boundary_outflow(bc, domain) -> float:
    """Net volume flux leaving the domain through its boundary."""
    return (
        np.dot(bc[Side.XPLUS].u, domain.dy)
        - np.dot(bc[Side.XMINUS].u, domain.dy)
        + np.dot(bc[Side.YPLUS].v, domain.dx)
        - np.dot(bc[Side.YMINUS].v, domain.dx)
    )


def _correct_outflow(bc, conditions, domain):
    """Shift convective normal velocities so the boundary flux balances."""
    outward = {Side.XMINUS: -1.0, Side.XPLUS: 1.0, Side.YMINUS: -1.0, Side.YPLUS: 1.0}
    lengths = {Side.XMINUS: domain.dy, Side.XPLUS: domain.dy,
               Side.YMINUS: domain.dx, Side.YPLUS: domain.dx}

    convective_sides = []
    for side in Side:
        normal = conditions[side].u if side in (Side.XMINUS, Side.XPLUS) else conditions[side].v
        if normal.type == BCType.CONVECTIVE:
            convective_sides.append(side)

    total_length = sum(lengths[s].sum() for s in convective_sides)
    shift = -boundary_outflow(bc, domain) / total_length
    for side in convective_sides:
        values = bc[side].u if side in (Side.XMINUS, Side.XPLUS) else bc[side].v
        values += outward[side] * shift
