"""Pytest configuration and fixtures for the projection solver tests."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture
def uniform_domain():
    """Uniform 8x8 grid on the unit square."""
    from meshing import create_uniform_domain

    return create_uniform_domain(8, 8)


@pytest.fixture
def stretched_domain():
    """Non-uniform 6x5 grid for symmetry and metric checks."""
    from meshing import Domain

    return Domain(
        x=np.array([0.0, 0.1, 0.25, 0.45, 0.7, 1.0, 1.4]),
        y=np.array([0.0, 0.2, 0.3, 0.5, 0.8, 1.0]),
    )


@pytest.fixture(scope="session")
def cavity_params():
    """Lid-driven cavity at Re = 100: factory for Parameters with overrides."""
    from solvers import Parameters

    def make(**overrides):
        config = {
            "dt": 0.01,
            "nt": 10,
            "nsave": 1000,
            "nu": 0.01,
            "velocity_solver": {"method": "cg", "preconditioner": "diagonal",
                                "tolerance": 1e-8, "max_iterations": 5000},
            "poisson_solver": {"method": "cg", "preconditioner": "diagonal",
                               "tolerance": 1e-8, "max_iterations": 5000},
            "boundary_conditions": {
                "yPlus": {"u": {"type": "dirichlet", "value": 1.0},
                          "v": {"type": "dirichlet", "value": 0.0}},
            },
        }
        config.update(overrides)
        return Parameters.from_dict(config)

    return make


@pytest.fixture(scope="session")
def cylinder_params():
    """Uniform inflow past a circular cylinder of diameter 1 at Re = 40."""
    from solvers import Parameters

    def make(**overrides):
        config = {
            "solver_type": "taira-colonius",
            "dt": 0.02,
            "nt": 100,
            "nsave": 1000,
            "nu": 0.025,
            "initial_velocity": [1.0, 0.0],
            "velocity_solver": {"method": "cg", "preconditioner": "diagonal",
                                "tolerance": 1e-8, "max_iterations": 5000},
            "poisson_solver": {"method": "cg", "preconditioner": "diagonal",
                               "tolerance": 1e-8, "max_iterations": 20000},
            "boundary_conditions": {
                "xMinus": {"u": {"type": "dirichlet", "value": 1.0},
                           "v": {"type": "dirichlet", "value": 0.0}},
                "xPlus": {"u": {"type": "convective", "value": 1.0},
                          "v": {"type": "convective", "value": 1.0}},
                "yMinus": {"u": {"type": "dirichlet", "value": 1.0},
                           "v": {"type": "dirichlet", "value": 0.0}},
                "yPlus": {"u": {"type": "dirichlet", "value": 1.0},
                          "v": {"type": "dirichlet", "value": 0.0}},
            },
            "bodies": [{"type": "circle", "center": [0.0, 0.0], "radius": 0.5, "spacing": 0.15}],
        }
        config.update(overrides)
        return Parameters.from_dict(config)

    return make


@pytest.fixture(scope="session")
def cylinder_domain():
    """Uniform grid with h = 0.15 around the unit-diameter cylinder."""
    from meshing import create_uniform_domain

    return create_uniform_domain(60, 40, Lx=9.0, Ly=6.0, x0=-3.0, y0=-3.0)
