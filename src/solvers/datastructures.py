"""Data structures for solver configuration, state and results.

Structure:
- Parameters: Input configuration (logged to MLflow at start)
- SolverFields / Operators / StepState: Internal solver state
- Metrics: Output results (logged to MLflow at end)
- TimeSeries: Per-step diagnostics history
- Fields: Cell-centred solution snapshot
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd

from solvers.immersed.bodies import Body, body_from_dict
from solvers.projection.boundary import (
    SIDE_NAMES,
    BoundarySpec,
    Side,
    default_conditions,
)


# ========================================================
# Parameters (Input Configuration)
# ========================================================


@dataclass
class LinearSolverSettings:
    """Krylov method, preconditioner and stopping rule of one linear solve."""

    method: str = "cg"
    preconditioner: str = "diagonal"
    tolerance: float = 1e-5
    max_iterations: int = 10000


@dataclass
class Parameters:
    """Simulation parameters shared by all projection solvers."""

    dt: float = 0.01
    nt: int = 100
    nsave: int = 100
    start_step: int = 0
    nu: float = 0.01
    convection_scheme: str = "adams-bashforth-2"
    diffusion_scheme: str = "crank-nicolson"
    bn_order: int = 1
    initial_velocity: Tuple[float, float] = (0.0, 0.0)
    velocity_solver: LinearSolverSettings = field(default_factory=LinearSolverSettings)
    poisson_solver: LinearSolverSettings = field(
        default_factory=lambda: LinearSolverSettings(
            preconditioner="smoothed_aggregation", max_iterations=20000
        )
    )
    boundary_conditions: List[BoundarySpec] = field(default_factory=default_conditions)
    bodies: List[Body] = field(default_factory=list)
    solver_type: str = "navier-stokes"

    @classmethod
    def from_dict(cls, data) -> "Parameters":
        """Build parameters from a plain (e.g. OmegaConf container) mapping.

        ``boundary_conditions`` is keyed by side name (xMinus, xPlus, yMinus,
        yPlus); missing sides are no-slip walls. ``bodies`` is a list of body
        mappings understood by ``body_from_dict``.
        """
        data = dict(data)
        for key in ("velocity_solver", "poisson_solver"):
            if isinstance(data.get(key), dict):
                defaults = asdict(getattr(cls(), key))
                data[key] = LinearSolverSettings(**{**defaults, **data[key]})

        if isinstance(data.get("boundary_conditions"), dict):
            conditions = default_conditions()
            for name, spec in data["boundary_conditions"].items():
                if name not in SIDE_NAMES:
                    raise ValueError(f"Unknown boundary: {name}. Use one of {list(SIDE_NAMES)}")
                conditions[SIDE_NAMES[name]] = BoundarySpec.from_dict(spec)
            data["boundary_conditions"] = conditions

        data["bodies"] = [
            b if isinstance(b, Body) else body_from_dict(b) for b in data.get("bodies") or []
        ]
        if "initial_velocity" in data:
            data["initial_velocity"] = tuple(float(c) for c in data["initial_velocity"])
        return cls(**data)

    def to_mlflow(self) -> dict:
        """Flat dictionary of scalar parameters."""
        flat = {
            "dt": self.dt,
            "nt": self.nt,
            "nsave": self.nsave,
            "start_step": self.start_step,
            "nu": self.nu,
            "convection_scheme": self.convection_scheme,
            "diffusion_scheme": self.diffusion_scheme,
            "bn_order": self.bn_order,
            "u0": self.initial_velocity[0],
            "v0": self.initial_velocity[1],
            "solver_type": self.solver_type,
            "n_bodies": len(self.bodies),
            "n_body_points": sum(b.n_points for b in self.bodies),
        }
        for key in ("velocity_solver", "poisson_solver"):
            for name, value in asdict(getattr(self, key)).items():
                flat[f"{key}.{name}"] = value
        for name, side in SIDE_NAMES.items():
            spec = self.boundary_conditions[side]
            flat[f"bc.{name}.u"] = f"{spec.u.type.value}:{spec.u.value}"
            flat[f"bc.{name}.v"] = f"{spec.v.type.value}:{spec.v.value}"
        return flat

    def to_dataframe(self):
        return pd.DataFrame([self.to_mlflow()])


# ========================================================
# Internal Solver State
# ========================================================


class SolverStatus(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    STEPPING = "stepping"
    FINISHED = "finished"


@dataclass
class StepState:
    """Step bookkeeping.

    Written by the orchestrator: time_step, sub_step, residual.
    Written by the solve stages: iteration_count1/2, converged1/2.
    Written by assembly: q_coeff, alpha_implicit.
    Written by calculate_force: force_x, force_y, force1.
    """

    time_step: int = 0
    sub_step: int = 0
    iteration_count1: int = 0
    iteration_count2: int = 0
    converged1: bool = True
    converged2: bool = True
    force_x: float = 0.0
    force_y: float = 0.0
    force1: float = 0.0
    q_coeff: float = 1.0
    alpha_implicit: Optional[float] = None
    residual: float = 0.0
    explicit_history: bool = False  # H holds a previous convection term


@dataclass
class Operators:
    """Sparse operators (CSR), shapes frozen after initialise()."""

    M: object = None
    Minv: object = None
    L: object = None
    A: object = None
    QT: object = None
    Q: object = None
    BN: object = None
    C: object = None


@dataclass
class SolverFields:
    """Flux/multiplier fields and work buffers.

    Flux space (numUV): q, q_star, q_old, rn, H, rhs1, bc1, temp1.
    Constraint space (num_lambda): lam, rhs2, bc2, temp2.
    temp1/temp2 are scratch and hold no state between routines.
    """

    q: np.ndarray
    q_star: np.ndarray
    q_old: np.ndarray
    lam: np.ndarray
    rn: np.ndarray
    H: np.ndarray
    rhs1: np.ndarray
    rhs2: np.ndarray
    bc1: np.ndarray
    bc2: np.ndarray
    temp1: np.ndarray
    temp2: np.ndarray

    @classmethod
    def allocate(cls, num_uv: int, num_lambda: int):
        """Allocate all arrays with proper sizes."""
        return cls(
            # Flux space
            q=np.zeros(num_uv),
            q_star=np.zeros(num_uv),
            q_old=np.zeros(num_uv),
            rn=np.zeros(num_uv),
            H=np.zeros(num_uv),
            rhs1=np.zeros(num_uv),
            bc1=np.zeros(num_uv),
            temp1=np.zeros(num_uv),
            # Constraint space
            lam=np.zeros(num_lambda),
            rhs2=np.zeros(num_lambda),
            bc2=np.zeros(num_lambda),
            temp2=np.zeros(num_lambda),
        )


# ========================================================
# Metrics (Output Results)
# ========================================================


@dataclass
class Metrics:
    """Solver metrics - output results computed during/after stepping."""

    time_steps: int = 0
    wall_time_seconds: float = 0.0
    mean_iterations_velocity: float = 0.0
    max_iterations_velocity: int = 0
    mean_iterations_poisson: float = 0.0
    max_iterations_poisson: int = 0
    unconverged_velocity_solves: int = 0
    unconverged_poisson_solves: int = 0
    final_residual: float = float("inf")
    force_x: float = 0.0
    force_y: float = 0.0

    def to_mlflow(self) -> dict:
        return {k: float(v) for k, v in asdict(self).items()}

    def to_dataframe(self):
        return pd.DataFrame([asdict(self)])


# ========================================================
# Time Series (Per-Step Diagnostics)
# ========================================================


@dataclass
class TimeSeries:
    """Diagnostics history (one value per time step)."""

    time_step: List[int] = field(default_factory=list)
    time: List[float] = field(default_factory=list)
    residual: List[float] = field(default_factory=list)
    iterations_velocity: List[int] = field(default_factory=list)
    iterations_poisson: List[int] = field(default_factory=list)
    force_x: List[float] = field(default_factory=list)
    force_y: List[float] = field(default_factory=list)

    def append(self, state: StepState, time: float):
        self.time_step.append(state.time_step)
        self.time.append(time)
        self.residual.append(state.residual)
        self.iterations_velocity.append(state.iteration_count1)
        self.iterations_poisson.append(state.iteration_count2)
        self.force_x.append(state.force_x)
        self.force_y.append(state.force_y)

    def __len__(self):
        return len(self.time_step)

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame with one row per time step."""
        return pd.DataFrame(asdict(self))

    def to_mlflow_batch(self):
        """MLflow Metric entities for batch logging (step = time step)."""
        from mlflow.entities import Metric

        metrics = []
        for key in ("residual", "iterations_velocity", "iterations_poisson", "force_x", "force_y"):
            for step, value in zip(self.time_step, getattr(self, key)):
                metrics.append(Metric(key=key, value=float(value), timestamp=0, step=int(step)))
        return metrics


# ========================================================
# Fields (Spatial Solution Data)
# ========================================================


@dataclass
class Fields:
    """Cell-centred solution fields (u, v, p) on grid (x, y)."""

    u: np.ndarray
    v: np.ndarray
    p: np.ndarray
    x: np.ndarray
    y: np.ndarray

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame with one row per cell."""
        return pd.DataFrame({k: np.ravel(v) for k, v in asdict(self).items()})


__all__ = [
    "LinearSolverSettings",
    "Parameters",
    "SolverStatus",
    "StepState",
    "Operators",
    "SolverFields",
    "Metrics",
    "TimeSeries",
    "Fields",
    "Side",
]
