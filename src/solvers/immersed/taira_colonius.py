"""Immersed boundary projection method of Taira & Colonius (2007).

The no-slip condition at the body points is one more linear constraint on the
fluxes, so the interpolation operator E is stacked under the divergence in QT
and the body forces join the pressures in lam::

    lam = [p (numP) | f_x (nb) | f_y (nb)]
"""

import copy
import logging

import numpy as np

from solvers.projection.operators import NavierStokesOperators

from .delta import SUPPORT
from .interpolation import assemble_interpolation, points_near_boundary

log = logging.getLogger(__name__)


class TairaColoniusOperators(NavierStokesOperators):
    """Navier-Stokes operators plus body-point constraints."""

    name = "Taira & Colonius"

    def __init__(self, domain, params, bodies=None):
        super().__init__(domain, params)
        # Bodies move in place, so each provider keeps its own copies
        self.bodies = [copy.deepcopy(b) for b in (params.bodies if bodies is None else bodies)]
        if not self.bodies:
            raise ValueError("Taira & Colonius solver needs at least one body")
        start_time = params.start_step * params.dt
        for body in self.bodies:
            body.move_to(start_time)

    @property
    def num_body_points(self) -> int:
        return sum(body.n_points for body in self.bodies)

    @property
    def num_lambda(self) -> int:
        return self.domain.num_p + 2 * self.num_body_points

    def body_coordinates(self):
        xb = np.concatenate([body.x for body in self.bodies])
        yb = np.concatenate([body.y for body in self.bodies])
        return xb, yb

    def validate(self):
        """Body points must keep their interpolation stencil inside the domain."""
        xb, yb = self.body_coordinates()
        near = points_near_boundary(self.domain, xb, yb)
        if np.any(near):
            return [f"{int(near.sum())} body points lie within {SUPPORT} cells of the domain boundary"]
        return []

    def body_velocities(self):
        ub = np.concatenate([body.u for body in self.bodies])
        vb = np.concatenate([body.v for body in self.bodies])
        return ub, vb

    def generate_qt_entries(self):
        """Rows of E below the pressure rows."""
        xb, yb = self.body_coordinates()
        return assemble_interpolation(self.domain, xb, yb, row_offset=self.domain.num_p)

    def generate_bc2(self, solver):
        """Pressure rows as in the base class, body rows hold the body velocities."""
        super().generate_bc2(solver)
        num_p, nb = self.domain.num_p, self.num_body_points
        ub, vb = self.body_velocities()
        solver.fields.bc2[num_p : num_p + nb] = ub
        solver.fields.bc2[num_p + nb :] = vb

    def update_solver_state(self, solver):
        """Move bodies to the end of the sub-step and rebuild E if any moved."""
        moving = [body for body in self.bodies if body.is_moving]
        if not moving:
            return
        state = solver.state
        t = (state.time_step + solver.scheme.time_fraction(state.sub_step)) * self.params.dt
        for body in moving:
            body.move_to(t)
        xb, yb = self.body_coordinates()
        if np.any(points_near_boundary(self.domain, xb, yb)):
            log.warning(f"Body points within {SUPPORT} cells of the domain boundary at t={t:.4f}")
        solver.generate_qt()
        solver.generate_c()
        log.debug(f"Moved {len(moving)} bodies to t={t:.4f}, rebuilt QT and C")

    def calculate_force(self, solver):
        """Force exerted by the fluid on the bodies, from the body multipliers."""
        num_p, nb = self.domain.num_p, self.num_body_points
        lam = solver.fields.lam
        fx = lam[num_p : num_p + nb]
        fy = lam[num_p + nb :]

        solver.state.force_x = float(np.sum(fx))
        solver.state.force_y = float(np.sum(fy))
        solver.state.force1 = float(np.sum(fx[: self.bodies[0].n_points]))
