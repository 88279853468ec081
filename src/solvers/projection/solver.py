"""Fractional-step projection solver (Perot 1993; Taira & Colonius 2007).

Each sub-step of the integration scheme solves

    A q*     = rn + bc1                 (intermediate flux)
    C lam    = QT q* - bc2              (pressure / body forces)
    q        = q* - BN Q lam            (projection)

with A = M - alpha_I L, BN ~ A^-1 and C = QT BN Q. What goes into QT, bc2
and the forces is decided by the operator provider; this class only runs the
algorithm and keeps its bookkeeping.
"""

import logging
import time

import numpy as np

from solvers.datastructures import (
    Fields,
    Metrics,
    Operators,
    SolverFields,
    SolverStatus,
    StepState,
    TimeSeries,
)
from solvers.errors import AssemblyError, require_shape
from solvers.integration import IntegrationScheme
from solvers.linear_solvers import scipy_solver

from .assembly import approximate_inverse, laplacian_boundary_terms, schur_complement
from .boundary import (
    Side,
    allocate_boundary_arrays,
    initialise_boundary_arrays,
    update_boundary_conditions,
)
from .convection import convection_term
from .operators import NavierStokesOperators

log = logging.getLogger(__name__)


class NavierStokesSolver:
    """Time stepper for incompressible flow on a staggered grid.

    Lifecycle: ``initialise()`` -> ``step_time()`` until ``finished()`` ->
    ``shut_down()``. Operator shapes are fixed by ``initialise()``; stepping
    only changes the contents of fields and operators.
    """

    def __init__(self, params, domain, operators=None, writer=None):
        self.params = params
        self.domain = domain
        self.provider = operators if operators is not None else NavierStokesOperators(domain, params)
        self.writer = writer

        self.status = SolverStatus.UNINITIALIZED
        self.scheme = None
        self.operators = Operators()
        self.fields = None
        self.bc = None
        self.state = StepState()
        self.metrics = Metrics()
        self.time_series = TimeSeries()

        self._velocity_preconditioner = None
        self._poisson_preconditioner = None
        self._nullspace = None
        self._boundary_terms = None

    def name(self) -> str:
        return self.provider.name

    @property
    def time(self) -> float:
        return self.state.time_step * self.params.dt

    # ========================================================
    # Lifecycle
    # ========================================================

    def initialise(self):
        """Validate inputs, allocate fields and assemble all operators."""
        self._validate_inputs()
        domain, params = self.domain, self.params

        self.fields = SolverFields.allocate(domain.num_uv, self.provider.num_lambda)
        self._boundary_terms = np.zeros(domain.num_uv)
        self._nullspace = np.zeros(self.provider.num_lambda)
        self._nullspace[: domain.num_p] = 1.0

        self.bc = allocate_boundary_arrays(domain)
        initialise_boundary_arrays(self.bc, params.boundary_conditions, params.initial_velocity)
        self._initialise_flux()

        self.state = StepState(time_step=params.start_step)
        self.metrics = Metrics()
        self.time_series = TimeSeries()

        self.assemble_matrices()
        self._verify_shapes(AssemblyError)

        if self.writer is not None:
            self.writer.open(self)
        self.status = SolverStatus.READY
        log.info(
            f"Initialised {self.name()}: {domain.nx}x{domain.ny} cells, "
            f"numUV={domain.num_uv}, num_lambda={self.provider.num_lambda}, "
            f"scheme={self.scheme.convection}/{self.scheme.diffusion}"
        )

    def _validate_inputs(self):
        problems = self.domain.validate()
        if not problems:
            problems.extend(self.provider.validate())
        params = self.params
        if params.dt <= 0.0:
            problems.append(f"dt must be positive, got {params.dt}")
        if params.nu < 0.0:
            problems.append(f"nu must be non-negative, got {params.nu}")
        if params.nt < 0:
            problems.append(f"nt must be non-negative, got {params.nt}")
        if params.nsave < 1:
            problems.append(f"nsave must be >= 1, got {params.nsave}")
        if params.bn_order < 1:
            problems.append(f"bn_order must be >= 1, got {params.bn_order}")
        if len(params.boundary_conditions) != len(Side):
            problems.append(f"need {len(Side)} boundary specifications, got {len(params.boundary_conditions)}")
        if problems:
            raise AssemblyError("; ".join(problems))

        try:
            self.scheme = IntegrationScheme.from_names(params.convection_scheme, params.diffusion_scheme)
        except ValueError as exc:
            raise AssemblyError(str(exc)) from exc

    def _initialise_flux(self):
        """Uniform initial velocity expressed as fluxes."""
        domain = self.domain
        u0, v0 = self.params.initial_velocity
        q = self.fields.q
        q[: domain.num_u] = np.repeat(u0 * domain.dy, domain.nx - 1)
        q[domain.num_u :] = np.tile(v0 * domain.dx, domain.ny - 1)

    def finished(self) -> bool:
        """True once the configured number of steps has been taken."""
        return self.state.time_step >= self.params.start_step + self.params.nt

    def shut_down(self):
        """Close output, release fields and move to FINISHED.

        The solver cannot step afterwards; ``initialise()`` starts a new run.
        """
        if self.writer is not None:
            self.writer.close()
        self.fields = None
        self.bc = None
        self.operators = Operators()
        self._velocity_preconditioner = None
        self._poisson_preconditioner = None
        self.status = SolverStatus.FINISHED
        log.info(f"{self.name()} shut down after {self.metrics.time_steps} steps")

    # ========================================================
    # Operator assembly
    # ========================================================

    def assemble_matrices(self):
        """Assemble all operators for the first sub-step."""
        t0 = time.perf_counter()
        self.generate_m()
        self.generate_l()
        self.generate_qt()
        self.generate_a(self.scheme.alpha_implicit[0])
        self.generate_bn()
        self.update_q(self.scheme.gamma[0])
        self.generate_c()
        log.debug(f"Assembled operators in {time.perf_counter() - t0:.3f}s")

    def generate_m(self):
        self.operators.M, self.operators.Minv = self.provider.generate_m()

    def generate_l(self):
        self.operators.L = self.provider.generate_l()

    def generate_a(self, alpha):
        """A = M - alpha L; records alpha for BN."""
        self.operators.A = self.provider.generate_a(self.operators.M, self.operators.L, alpha)
        self.state.alpha_implicit = alpha
        self._velocity_preconditioner = None

    def generate_bn(self):
        self.operators.BN = approximate_inverse(
            self.operators.Minv, self.operators.L, self.state.alpha_implicit, self.params.bn_order
        )

    def generate_qt(self):
        """QT from the provider; Q = q_coeff QT^T."""
        self.operators.QT = self.provider.generate_qt()
        self.operators.Q = (self.state.q_coeff * self.operators.QT.T).tocsr()

    def update_q(self, gamma):
        """Rescale Q so that Q = gamma QT^T."""
        if gamma != self.state.q_coeff:
            self.operators.Q = (self.operators.Q * (gamma / self.state.q_coeff)).tocsr()
            self.state.q_coeff = gamma

    def generate_c(self):
        self.operators.C = schur_complement(self.operators.QT, self.operators.BN, self.operators.Q)
        self._poisson_preconditioner = None

    def _verify_shapes(self, error=None):
        """Check every operator against the field sizes."""
        n_uv = self.domain.num_uv
        n_lam = self.provider.num_lambda
        expected = {
            "M": (n_uv, n_uv),
            "Minv": (n_uv, n_uv),
            "L": (n_uv, n_uv),
            "A": (n_uv, n_uv),
            "BN": (n_uv, n_uv),
            "QT": (n_lam, n_uv),
            "Q": (n_uv, n_lam),
            "C": (n_lam, n_lam),
        }
        try:
            for name, shape in expected.items():
                require_shape(name, getattr(self.operators, name), shape)
            require_shape("q", self.fields.q, (n_uv,))
            require_shape("lambda", self.fields.lam, (n_lam,))
        except RuntimeError as exc:
            if error is None:
                raise
            raise error(str(exc)) from exc

    # ========================================================
    # Time stepping
    # ========================================================

    def step_time(self):
        """Advance the solution by one time step (all sub-steps)."""
        if self.fields is None:
            raise RuntimeError(f"{self.name()}: step_time() called before initialise() or after shut_down()")
        if self.status == SolverStatus.READY:
            self.status = SolverStatus.STEPPING

        self._verify_shapes()
        t0 = time.perf_counter()
        self.fields.q_old[:] = self.fields.q
        for sub_step in range(self.scheme.sub_steps):
            self.state.sub_step = sub_step
            self._step_sub(sub_step)

        self.state.time_step += 1
        self.state.residual = float(np.linalg.norm(self.fields.q - self.fields.q_old))
        self.time_series.append(self.state, self.time)
        self._update_metrics(time.perf_counter() - t0)

        if self.state.time_step % self.params.nsave == 0:
            log.info(
                f"Step {self.state.time_step}: residual={self.state.residual:.3e}, "
                f"iterations={self.state.iteration_count1}/{self.state.iteration_count2}, "
                f"force=({self.state.force_x:.4f}, {self.state.force_y:.4f})"
            )

    def _step_sub(self, sub_step):
        self.update_boundary_conditions()
        self._reassemble(sub_step)

        self.generate_rn()
        self.generate_bc1()
        self.assemble_rhs1()
        self.solve_intermediate_velocity()

        self.generate_bc2()
        self.assemble_rhs2()
        self.solve_poisson()
        self.projection_step()

        self.update_solver_state()
        self.calculate_force()

    def _reassemble(self, sub_step):
        """Regenerate the operators whose coefficients change with the sub-step."""
        regenerate_c = False
        alpha = self.scheme.alpha_implicit[sub_step]
        if alpha != self.state.alpha_implicit:
            self.generate_a(alpha)
            self.generate_bn()
            regenerate_c = True
        gamma = self.scheme.gamma[sub_step]
        if gamma != self.state.q_coeff:
            self.update_q(gamma)
            regenerate_c = True
        if regenerate_c:
            self.generate_c()

    def update_boundary_conditions(self):
        update_boundary_conditions(
            self.bc, self.params.boundary_conditions, self.domain, self.fields.q, self.params.dt
        )

    def update_solver_state(self):
        self.provider.update_solver_state(self)

    def calculate_force(self):
        self.provider.calculate_force(self)

    # ========================================================
    # Explicit terms and right-hand sides
    # ========================================================

    def generate_rn(self):
        self.provider.generate_rn(self)

    def generate_rn_full(self):
        self.calculate_explicit_q_terms()
        self.calculate_explicit_lambda_terms()

    def calculate_explicit_q_terms(self):
        """rn = M q - gamma H_new - zeta H + alpha_E (L q + L_bc); H <- H_new.

        Overwrites rn, H, temp1.
        """
        f, ops, k = self.fields, self.operators, self.state.sub_step
        gamma, zeta = self.scheme.gamma[k], self.scheme.zeta[k]
        alpha_e = self.scheme.alpha_explicit[k]

        H_new = convection_term(self.domain, f.q, self.bc, out=f.temp1)
        if not self.state.explicit_history:
            f.H[:] = H_new
            self.state.explicit_history = True

        f.rn[:] = ops.M @ f.q - gamma * H_new - zeta * f.H
        if alpha_e != 0.0:
            lbc = laplacian_boundary_terms(self.domain, self.bc, self.params.nu, out=self._boundary_terms)
            f.rn += alpha_e * (ops.L @ f.q + lbc)
        f.H[:] = H_new

    def calculate_explicit_lambda_terms(self):
        """rn -= zeta QT^T lam (multipliers of the previous sub-step)."""
        zeta = self.scheme.zeta[self.state.sub_step]
        if zeta != 0.0:
            self.fields.rn -= zeta * (self.operators.QT.T @ self.fields.lam)

    def generate_bc1(self):
        self.provider.generate_bc1(self)

    def generate_bc1_full(self, alpha):
        """bc1 = alpha L_bc. Overwrites bc1."""
        lbc = laplacian_boundary_terms(self.domain, self.bc, self.params.nu, out=self._boundary_terms)
        np.multiply(alpha, lbc, out=self.fields.bc1)

    def generate_bc2(self):
        self.provider.generate_bc2(self)

    def assemble_rhs1(self):
        np.add(self.fields.rn, self.fields.bc1, out=self.fields.rhs1)

    def assemble_rhs2(self):
        """rhs2 = QT q_star - bc2. Overwrites rhs2, temp2."""
        f = self.fields
        f.temp2[:] = self.operators.QT @ f.q_star
        np.subtract(f.temp2, f.bc2, out=f.rhs2)

    # ========================================================
    # Linear solves
    # ========================================================

    def solve_intermediate_velocity(self):
        """A q_star = rhs1, warm-started from q."""
        settings = self.params.velocity_solver
        x, self._velocity_preconditioner, info = scipy_solver(
            self.operators.A,
            self.fields.rhs1,
            M=self._velocity_preconditioner,
            x0=self.fields.q,
            method=settings.method,
            preconditioner=settings.preconditioner,
            tolerance=settings.tolerance,
            max_iterations=settings.max_iterations,
        )
        self.fields.q_star[:] = x
        self.state.iteration_count1 = info.iterations
        self.state.converged1 = info.converged
        if not info.converged:
            self.metrics.unconverged_velocity_solves += 1
            log.warning(
                f"Velocity solve did not converge at step {self.state.time_step}: "
                f"{info.iterations} iterations, residual={info.residual:.3e}"
            )

    def solve_poisson(self):
        """C lam = rhs2 with the constant-pressure mode removed."""
        settings = self.params.poisson_solver
        x, self._poisson_preconditioner, info = scipy_solver(
            self.operators.C,
            self.fields.rhs2,
            M=self._poisson_preconditioner,
            x0=self.fields.lam,
            method=settings.method,
            preconditioner=settings.preconditioner,
            tolerance=settings.tolerance,
            max_iterations=settings.max_iterations,
            nullspace=self._nullspace,
        )
        self.fields.lam[:] = x
        self.state.iteration_count2 = info.iterations
        self.state.converged2 = info.converged
        if not info.converged:
            self.metrics.unconverged_poisson_solves += 1
            log.warning(
                f"Poisson solve did not converge at step {self.state.time_step}: "
                f"{info.iterations} iterations, residual={info.residual:.3e}"
            )

    def projection_step(self):
        """q = q_star - BN Q lam. Overwrites q, temp1."""
        f, ops = self.fields, self.operators
        f.temp1[:] = ops.BN @ (ops.Q @ f.lam)
        np.subtract(f.q_star, f.temp1, out=f.q)

    # ========================================================
    # Diagnostics and output
    # ========================================================

    def _update_metrics(self, elapsed):
        ts, m = self.time_series, self.metrics
        m.time_steps = len(ts)
        m.wall_time_seconds += elapsed
        m.mean_iterations_velocity = float(np.mean(ts.iterations_velocity))
        m.max_iterations_velocity = int(np.max(ts.iterations_velocity))
        m.mean_iterations_poisson = float(np.mean(ts.iterations_poisson))
        m.max_iterations_poisson = int(np.max(ts.iterations_poisson))
        m.final_residual = self.state.residual
        m.force_x = self.state.force_x
        m.force_y = self.state.force_y

    def fields_snapshot(self) -> Fields:
        """Cell-centred velocity and pressure of the current solution."""
        domain, bc = self.domain, self.bc
        nx, ny = domain.nx, domain.ny
        u, v = domain.flux_to_velocity(self.fields.q)

        u_full = np.column_stack([bc[Side.XMINUS].u, u, bc[Side.XPLUS].u])
        v_full = np.vstack([bc[Side.YMINUS].v, v, bc[Side.YPLUS].v])
        p = self.fields.lam[: domain.num_p].reshape(ny, nx)
        X, Y = np.meshgrid(domain.xc, domain.yc)
        return Fields(
            u=0.5 * (u_full[:, :-1] + u_full[:, 1:]),
            v=0.5 * (v_full[:-1, :] + v_full[1:, :]),
            p=p - p.mean(),
            x=X,
            y=Y,
        )

    def write_data(self):
        """Append diagnostics; write the solution every nsave steps."""
        if self.writer is None:
            return
        self.writer.write_diagnostics(self.state, self.time)
        if self.state.time_step % self.params.nsave == 0:
            self.writer.write_step(self.state.time_step, self.time, self.fields_snapshot(),
                                   self.fields.q, self.fields.lam)

    def run(self):
        """Step until finished, writing output along the way."""
        if self.fields is None:
            self.initialise()
        while not self.finished():
            self.step_time()
            self.write_data()
        return self.metrics


__all__ = ["NavierStokesSolver"]
