"""Tests for the discrete delta, bodies and the interpolation operator."""

import numpy as np
import pytest
import scipy.sparse as sp

from meshing import create_uniform_domain
from solvers.immersed import (
    Body,
    assemble_interpolation,
    body_from_dict,
    circle,
    delta,
    load_body,
    roma_kernel,
)


class TestRomaKernel:

    def test_peak_value(self):
        assert float(roma_kernel(0.0)) == pytest.approx(2.0 / 3.0)

    def test_support(self):
        assert np.all(roma_kernel([1.5, 1.7, -2.0, 3.0]) == 0.0)
        assert roma_kernel(1.4) > 0.0

    def test_symmetric(self):
        r = np.linspace(0.0, 1.5, 31)
        assert np.allclose(roma_kernel(r), roma_kernel(-r))

    @pytest.mark.parametrize("shift", [0.0, 0.2, 0.5, 0.77])
    def test_partition_of_unity(self, shift):
        samples = roma_kernel(shift - np.arange(-3, 4))
        assert float(samples.sum()) == pytest.approx(1.0)

    def test_delta_scaling(self):
        h = 0.25
        nodes = np.arange(-2.0, 2.0, h)
        assert float(delta(nodes - 0.1, h).sum() * h) == pytest.approx(1.0)


class TestBodies:

    def test_circle_points(self):
        body = circle(center=(1.0, -1.0), radius=0.5, n_points=40)

        assert body.n_points == 40
        assert np.allclose(np.hypot(body.x - 1.0, body.y + 1.0), 0.5)
        assert not body.is_moving

    def test_circle_from_spacing(self):
        body = circle(radius=0.5, spacing=0.1)
        assert body.n_points == 32

    def test_circle_needs_resolution(self):
        with pytest.raises(ValueError):
            circle(radius=0.5)

    def test_translation(self):
        body = Body(x0=[0.0, 1.0], y0=[0.0, 0.0], velocity=(0.5, -1.0))
        body.move_to(2.0)

        assert body.is_moving
        assert np.allclose(body.x, [1.0, 2.0])
        assert np.allclose(body.y, [-2.0, -2.0])
        assert np.allclose(body.u, 0.5)
        assert np.allclose(body.v, -1.0)

    def test_oscillation(self):
        body = Body(x0=[0.0], y0=[0.0], amplitude=(0.0, 0.2), frequency=0.5)
        body.move_to(0.5)  # quarter period

        assert body.y[0] == pytest.approx(0.2)
        assert body.v[0] == pytest.approx(0.0, abs=1e-12)
        body.move_to(0.0)
        assert body.v[0] == pytest.approx(0.2 * np.pi)

    def test_mismatched_points(self):
        with pytest.raises(ValueError):
            Body(x0=[0.0, 1.0], y0=[0.0])

    def test_load_body(self, tmp_path):
        path = tmp_path / "plate.bdy"
        path.write_text("3\n0.0 0.0\n0.5 0.0\n1.0 0.0\n")
        body = load_body(path)

        assert body.name == "plate"
        assert body.n_points == 3
        assert np.allclose(body.x, [0.0, 0.5, 1.0])

    def test_body_from_dict(self):
        body = body_from_dict({"type": "points", "x": [0.1, 0.2], "y": [0.3, 0.4], "name": "pair"})
        assert body.name == "pair"
        assert body.n_points == 2

        with pytest.raises(ValueError, match="Unknown body type"):
            body_from_dict({"type": "ellipse"})


class TestInterpolation:

    @pytest.fixture
    def domain(self):
        return create_uniform_domain(16, 16)

    def test_row_layout(self, domain):
        xb, yb = np.array([0.43, 0.61]), np.array([0.57, 0.38])
        row, col, data = assemble_interpolation(domain, xb, yb, row_offset=10)

        assert set(np.unique(row)) == {10, 11, 12, 13}
        assert np.all(col[row < 12] < domain.num_u)
        assert np.all(col[row >= 12] >= domain.num_u)
        assert np.all(data >= 0.0)

    def test_reproduces_uniform_velocity(self, domain):
        d = domain
        U, V = 0.8, -0.3
        q = np.concatenate([np.repeat(U * d.dy, d.nx - 1), np.tile(V * d.dx, d.ny - 1)])
        xb, yb = np.array([0.43, 0.61, 0.5]), np.array([0.57, 0.38, 0.5])

        row, col, data = assemble_interpolation(d, xb, yb)
        E = sp.csr_matrix((data, (row, col)), shape=(2 * xb.size, d.num_uv))
        velocity = E @ q

        assert np.allclose(velocity[:3], U)
        assert np.allclose(velocity[3:], V)

    def test_point_outside_grid(self, domain):
        row, col, data = assemble_interpolation(domain, np.array([5.0]), np.array([5.0]))
        assert row.size == col.size == data.size == 0
