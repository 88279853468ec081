"""Simulation output: HDF5 solution snapshots and tab-separated diagnostics.

Layout of ``output_dir``::

    solution.h5      grid/{x, y, xc, yc}, attrs (solver, nx, ny, dt, nu)
                     steps/<time_step>/{u, v, p, q, lambda}, attrs (time)
    forces.txt       time_step, time, force_x, force_y, force1
    iterations.txt   time_step, iterations_velocity, iterations_poisson
"""

import logging
from pathlib import Path

import h5py
import numpy as np
import pandas as pd

log = logging.getLogger(__name__)

SOLUTION_FILE = "solution.h5"
FORCES_FILE = "forces.txt"
ITERATIONS_FILE = "iterations.txt"

FORCE_COLUMNS = ["time_step", "time", "force_x", "force_y", "force1"]
ITERATION_COLUMNS = ["time_step", "iterations_velocity", "iterations_poisson"]


def ensure_output_dir(path) -> Path:
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


class SimulationWriter:
    """Writes solver output to ``output_dir``.

    ``open`` truncates previous output, so a writer belongs to one run.
    """

    def __init__(self, output_dir):
        self.output_dir = Path(output_dir)
        self._forces = None
        self._iterations = None

    @property
    def solution_path(self) -> Path:
        return self.output_dir / SOLUTION_FILE

    def open(self, solver):
        """Create the output files and store the grid of ``solver``."""
        ensure_output_dir(self.output_dir)
        domain = solver.domain
        with h5py.File(self.solution_path, "w") as f:
            grid = f.create_group("grid")
            for name in ("x", "y", "xc", "yc"):
                grid.create_dataset(name, data=getattr(domain, name))
            f.attrs["solver"] = solver.name()
            f.attrs["nx"] = domain.nx
            f.attrs["ny"] = domain.ny
            f.attrs["dt"] = solver.params.dt
            f.attrs["nu"] = solver.params.nu
            f.create_group("steps")

        self._forces = open(self.output_dir / FORCES_FILE, "w")
        self._iterations = open(self.output_dir / ITERATIONS_FILE, "w")
        self._forces.write("\t".join(FORCE_COLUMNS) + "\n")
        self._iterations.write("\t".join(ITERATION_COLUMNS) + "\n")
        log.info(f"Writing output to {self.output_dir}")

    def write_diagnostics(self, state, time):
        """Append one line to the force and iteration logs."""
        if self._forces is None:
            raise RuntimeError("SimulationWriter.open() must be called before writing")
        self._forces.write(
            f"{state.time_step}\t{time:.8g}\t{state.force_x:.10e}\t{state.force_y:.10e}\t{state.force1:.10e}\n"
        )
        self._iterations.write(
            f"{state.time_step}\t{state.iteration_count1}\t{state.iteration_count2}\n"
        )

    def write_step(self, time_step, time, fields, q, lam):
        """Store the cell-centred fields and raw unknowns of one time step."""
        with h5py.File(self.solution_path, "a") as f:
            steps = f.require_group("steps")
            name = str(time_step)
            if name in steps:
                del steps[name]
            group = steps.create_group(name)
            group.attrs["time"] = time
            group.create_dataset("u", data=fields.u, compression="gzip")
            group.create_dataset("v", data=fields.v, compression="gzip")
            group.create_dataset("p", data=fields.p, compression="gzip")
            group.create_dataset("q", data=q)
            group.create_dataset("lambda", data=lam)
        self._flush()
        log.debug(f"Saved step {time_step} (t={time:.4f})")

    def _flush(self):
        for fh in (self._forces, self._iterations):
            if fh is not None:
                fh.flush()

    def close(self):
        for fh in (self._forces, self._iterations):
            if fh is not None:
                fh.close()
        self._forces = None
        self._iterations = None


def saved_steps(path):
    """Time steps stored in a solution file, ascending."""
    with h5py.File(path, "r") as f:
        return sorted(int(k) for k in f["steps"].keys())


def load_solution(path, time_step=None) -> dict:
    """Read one snapshot (default: the last) from a solution file.

    Returns a dict with the grid (x, y, xc, yc), the fields (u, v, p, q,
    lambda) and ``time_step`` / ``time``.
    """
    path = Path(path)
    if path.is_dir():
        path = path / SOLUTION_FILE
    steps = saved_steps(path)
    if not steps:
        raise ValueError(f"{path} holds no saved steps")
    if time_step is None:
        time_step = steps[-1]
    elif time_step not in steps:
        raise KeyError(f"Step {time_step} not in {path} (saved: {steps})")

    data = {}
    with h5py.File(path, "r") as f:
        for name, dataset in f["grid"].items():
            data[name] = dataset[:]
        group = f["steps"][str(time_step)]
        for name, dataset in group.items():
            data[name] = np.asarray(dataset[:])
        data["time"] = float(group.attrs["time"])
        data["solver"] = str(f.attrs["solver"])
    data["time_step"] = time_step
    return data


def load_time_series(output_dir) -> pd.DataFrame:
    """Forces and iteration counts as one DataFrame indexed by time step."""
    output_dir = Path(output_dir)
    forces = pd.read_csv(output_dir / FORCES_FILE, sep="\t")
    iterations = pd.read_csv(output_dir / ITERATIONS_FILE, sep="\t")
    return forces.merge(iterations, on="time_step").set_index("time_step")
