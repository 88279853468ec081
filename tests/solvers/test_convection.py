"""Tests for the explicit convection term."""

import numpy as np

from solvers.projection.boundary import BoundarySpec, allocate_boundary_arrays, initialise_boundary_arrays
from solvers.projection.convection import convection_term


def boundary_arrays(domain, U, V):
    conditions = [BoundarySpec.from_dict({"u": ("dirichlet", U), "v": ("dirichlet", V)}) for _ in range(4)]
    bc = allocate_boundary_arrays(domain)
    initialise_boundary_arrays(bc, conditions)
    return bc


class TestConvectionTerm:

    def test_uniform_flow_has_no_convection(self, stretched_domain):
        d = stretched_domain
        U, V = 1.2, -0.7
        q = np.concatenate([np.repeat(U * d.dy, d.nx - 1), np.tile(V * d.dx, d.ny - 1)])
        H = convection_term(d, q, boundary_arrays(d, U, V))
        assert np.allclose(H, 0.0, atol=1e-12)

    def test_rest_state(self, uniform_domain):
        d = uniform_domain
        H = convection_term(d, np.zeros(d.num_uv), boundary_arrays(d, 0.0, 0.0))
        assert np.all(H == 0.0)

    def test_linear_shear_in_x(self, uniform_domain):
        """u = x, v = -y is divergence free; N_u = d(uu)/dx + d(uv)/dy = x."""
        d = uniform_domain
        u = np.tile(d.x[1:-1], (d.ny, 1))
        v = -np.tile(d.y[1:-1][:, None], (1, d.nx))
        q = np.concatenate([(u * d.dy[:, None]).ravel(), (v * d.dx[None, :]).ravel()])

        bc = allocate_boundary_arrays(d)
        bc[0].u[:] = d.x[0]
        bc[1].u[:] = d.x[-1]
        bc[2].v[:] = -d.y[0]
        bc[3].v[:] = -d.y[-1]
        bc[2].u[:] = d.x           # u on the bottom edge nodes
        bc[3].u[:] = d.x
        bc[0].v[:] = -d.y          # v on the left edge nodes
        bc[1].v[:] = -d.y

        out = np.empty(d.num_uv)
        H = convection_term(d, q, bc, out=out)
        assert H is out

        N_u = H[: d.num_u].reshape(d.ny, d.nx - 1) / d.hx[None, :]
        assert np.allclose(N_u, u, atol=1e-12)
