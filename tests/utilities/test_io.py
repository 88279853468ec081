"""Tests for simulation output (HDF5 snapshots, diagnostics logs)."""

import h5py
import numpy as np
import pytest

from meshing import create_uniform_domain
from solvers import StepState, create_solver
from utilities import SimulationWriter, load_solution, load_time_series, saved_steps


@pytest.fixture
def finished_run(tmp_path, cavity_params):
    """Cavity run of 4 steps saving every 2 steps."""
    writer = SimulationWriter(tmp_path / "run")
    solver = create_solver(cavity_params(nt=4, nsave=2), create_uniform_domain(8, 8), writer=writer)
    solver.run()
    solver.shut_down()
    return solver, tmp_path / "run"


class TestSimulationWriter:

    def test_files_created(self, finished_run):
        _, output_dir = finished_run
        assert (output_dir / "solution.h5").exists()
        assert (output_dir / "forces.txt").exists()
        assert (output_dir / "iterations.txt").exists()

    def test_saved_steps(self, finished_run):
        _, output_dir = finished_run
        assert saved_steps(output_dir / "solution.h5") == [2, 4]

    def test_grid_and_attributes(self, finished_run):
        _, output_dir = finished_run
        with h5py.File(output_dir / "solution.h5", "r") as f:
            assert f.attrs["solver"] == "Navier-Stokes"
            assert f.attrs["nx"] == 8
            assert f["grid/x"].shape == (9,)

    def test_write_requires_open(self, tmp_path):
        writer = SimulationWriter(tmp_path)
        with pytest.raises(RuntimeError, match="open"):
            writer.write_diagnostics(StepState(), 0.0)


class TestLoading:

    def test_load_last_solution(self, finished_run):
        solver, output_dir = finished_run
        data = load_solution(output_dir)

        assert data["time_step"] == 4
        assert data["time"] == pytest.approx(0.04)
        assert data["u"].shape == (8, 8)
        assert data["q"].shape == (solver.domain.num_uv,)
        assert data["lambda"].shape == (solver.domain.num_p,)

    def test_load_given_step(self, finished_run):
        _, output_dir = finished_run
        assert load_solution(output_dir, time_step=2)["time_step"] == 2
        with pytest.raises(KeyError):
            load_solution(output_dir, time_step=3)

    def test_time_series(self, finished_run):
        solver, output_dir = finished_run
        df = load_time_series(output_dir)

        assert list(df.index) == [1, 2, 3, 4]
        assert np.allclose(df["force_x"], 0.0)
        assert list(df["iterations_poisson"]) == solver.time_series.iterations_poisson
