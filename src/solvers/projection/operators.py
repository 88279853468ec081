"""Operator provider of the plain Navier-Stokes projection solver.

The provider owns everything that differs between solver variants: how the
sparse operators are built, what the boundary right-hand sides contain and
how forces are measured. ``NavierStokesSolver`` calls into it at fixed
points of the step, so variants subclass the provider, never the solver.
"""

import logging

import numpy as np
import scipy.sparse as sp

from .assembly import (
    assemble_divergence,
    assemble_laplacian,
    assemble_mass_matrix,
    boundary_flux,
)

log = logging.getLogger(__name__)


class NavierStokesOperators:
    """Operators of the incompressible Navier-Stokes equations on a MAC grid."""

    name = "Navier-Stokes"

    def __init__(self, domain, params):
        self.domain = domain
        self.params = params

    @property
    def num_lambda(self) -> int:
        """Size of the constraint space (pressures only)."""
        return self.domain.num_p

    def validate(self):
        """Problems with the provider setup on this domain (empty when valid)."""
        return []

    # ------------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------------

    def generate_m(self):
        """Return (M, Minv) as CSR matrices."""
        n = self.domain.num_uv
        row, col, data = assemble_mass_matrix(self.domain, self.params.dt)
        M = sp.csr_matrix((data, (row, col)), shape=(n, n))
        Minv = sp.csr_matrix((1.0 / data, (row, col)), shape=(n, n))
        return M, Minv

    def generate_l(self):
        n = self.domain.num_uv
        row, col, data = assemble_laplacian(self.domain, self.params.nu)
        return sp.csr_matrix((data, (row, col)), shape=(n, n))

    def generate_a(self, M, L, alpha):
        """A = M - alpha L."""
        return (M - alpha * L).tocsr()

    def generate_qt_entries(self):
        """Extra (row, col, data) triplets appended below the pressure rows.

        Returns None when the constraint space holds pressures only.
        """
        return None

    def generate_qt(self):
        """QT (num_lambda x numUV): pressure rows plus any provider rows."""
        row, col, data = assemble_divergence(self.domain)
        extra = self.generate_qt_entries()
        if extra is not None:
            row = np.concatenate([row, extra[0]])
            col = np.concatenate([col, extra[1]])
            data = np.concatenate([data, extra[2]])
        shape = (self.num_lambda, self.domain.num_uv)
        return sp.csr_matrix((data, (row, col)), shape=shape)

    # ------------------------------------------------------------------
    # Stepping hooks
    # ------------------------------------------------------------------

    def generate_rn(self, solver):
        solver.generate_rn_full()

    def generate_bc1(self, solver):
        solver.generate_bc1_full(solver.scheme.alpha_implicit[solver.state.sub_step])

    def generate_bc2(self, solver):
        """Pressure rows: outward boundary flux of each cell. Overwrites bc2."""
        bc2 = solver.fields.bc2
        bc2[:] = 0.0
        boundary_flux(self.domain, solver.bc, out=bc2[: self.domain.num_p])

    def update_solver_state(self, solver):
        pass

    def calculate_force(self, solver):
        solver.state.force_x = 0.0
        solver.state.force_y = 0.0
        solver.state.force1 = 0.0
