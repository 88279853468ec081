"""Tests for boundary condition parsing and updates."""

import numpy as np
import pytest

from meshing import create_uniform_domain
from solvers.projection.boundary import (
    BCType,
    BoundaryCondition,
    BoundarySpec,
    Side,
    allocate_boundary_arrays,
    boundary_outflow,
    default_conditions,
    initialise_boundary_arrays,
    update_boundary_conditions,
)


def channel_conditions():
    """Inflow at xMinus, convective outflow at xPlus, slip-free walls."""
    conditions = default_conditions()
    conditions[Side.XMINUS] = BoundarySpec.from_dict({"u": ("dirichlet", 1.0)})
    conditions[Side.XPLUS] = BoundarySpec.from_dict({"u": ("convective", 1.0), "v": ("convective", 1.0)})
    return conditions


class TestBoundaryParsing:

    def test_type_from_string(self):
        condition = BoundaryCondition(type="Neumann", value=2)
        assert condition.type is BCType.NEUMANN
        assert condition.value == 2.0

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            BoundaryCondition(type="periodic")

    def test_spec_from_dict(self):
        spec = BoundarySpec.from_dict({"u": {"type": "convective", "value": 1.5}})
        assert spec.u.type is BCType.CONVECTIVE
        assert spec.u.value == 1.5
        assert spec.v.type is BCType.DIRICHLET
        assert spec.v.value == 0.0

    def test_default_is_no_slip(self):
        conditions = default_conditions()
        assert len(conditions) == 4
        assert all(c.u.type is BCType.DIRICHLET and c.u.value == 0.0 for c in conditions)


class TestBoundaryArrays:

    def test_shapes(self):
        domain = create_uniform_domain(5, 3)
        bc = allocate_boundary_arrays(domain)

        assert bc[Side.XMINUS].u.shape == (3,)
        assert bc[Side.XPLUS].v.shape == (4,)
        assert bc[Side.YMINUS].u.shape == (6,)
        assert bc[Side.YPLUS].v.shape == (5,)

    def test_initialise_uses_dirichlet_values(self):
        domain = create_uniform_domain(4, 4)
        bc = allocate_boundary_arrays(domain)
        initialise_boundary_arrays(bc, channel_conditions(), initial_velocity=(0.7, 0.1))

        assert np.all(bc[Side.XMINUS].u == 1.0)
        assert np.all(bc[Side.XPLUS].u == 0.7)
        assert np.all(bc[Side.XPLUS].v == 0.1)
        assert np.all(bc[Side.YPLUS].v == 0.0)


class TestBoundaryUpdates:

    def test_neumann_copies_interior(self):
        domain = create_uniform_domain(4, 4)
        conditions = default_conditions()
        conditions[Side.XPLUS] = BoundarySpec.from_dict({"u": ("neumann", 0.0)})
        bc = allocate_boundary_arrays(domain)
        initialise_boundary_arrays(bc, conditions)

        q = np.zeros(domain.num_uv)
        u = np.arange(domain.num_u, dtype=float).reshape(domain.ny, domain.nx - 1)
        q[: domain.num_u] = (u * domain.dy[:, None]).ravel()
        update_boundary_conditions(bc, conditions, domain, q, dt=0.1)

        assert np.allclose(bc[Side.XPLUS].u, u[:, -1])
        assert np.all(bc[Side.XMINUS].u == 0.0)

    def test_convective_outflow_balances_inflow(self):
        domain = create_uniform_domain(6, 4, Lx=3.0, Ly=2.0)
        conditions = channel_conditions()
        bc = allocate_boundary_arrays(domain)
        initialise_boundary_arrays(bc, conditions)

        update_boundary_conditions(bc, conditions, domain, np.zeros(domain.num_uv), dt=0.1)

        assert boundary_outflow(bc, domain) == pytest.approx(0.0, abs=1e-12)
        assert np.allclose(bc[Side.XPLUS].u, 1.0)

    def test_convective_advects_towards_interior(self):
        domain = create_uniform_domain(4, 4)
        conditions = default_conditions()
        conditions[Side.XPLUS] = BoundarySpec.from_dict({"v": ("convective", 1.0)})
        bc = allocate_boundary_arrays(domain)
        initialise_boundary_arrays(bc, conditions)

        q = np.zeros(domain.num_uv)
        q[domain.num_u :] = 0.5 * domain.dx[0]  # v = 0.5 everywhere
        update_boundary_conditions(bc, conditions, domain, q, dt=0.05)

        # beta = U dt / (dx / 2) = 0.4
        tangential = bc[Side.XPLUS].v
        assert np.allclose(tangential[1:-1], 0.4 * 0.5)
        assert tangential[0] == 0.0
        assert tangential[-1] == 0.0
