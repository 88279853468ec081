"""Output utilities (HDF5 solution files, diagnostics logs)."""

from utilities.io import (  # noqa: F401
    SimulationWriter,
    ensure_output_dir,
    load_solution,
    load_time_series,
    saved_steps,
)

__all__ = [
    "SimulationWriter",
    "ensure_output_dir",
    "load_solution",
    "load_time_series",
    "saved_steps",
]
