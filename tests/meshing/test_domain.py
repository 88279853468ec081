"""Tests for staggered grid metrics and index helpers."""

import numpy as np
import pytest

from meshing import Domain, create_stretched_domain, create_uniform_domain, stretched_nodes


class TestDomainSizes:
    """Unknown counts and indexing."""

    def test_counts(self):
        domain = create_uniform_domain(4, 3)

        assert domain.nx == 4
        assert domain.ny == 3
        assert domain.num_u == 9
        assert domain.num_v == 8
        assert domain.num_uv == 17
        assert domain.num_p == 12

    def test_indices(self):
        domain = create_uniform_domain(4, 3)

        assert domain.u_index(1, 0) == 0
        assert domain.u_index(3, 2) == domain.num_u - 1
        assert domain.v_index(0, 1) == domain.num_u
        assert domain.v_index(3, 2) == domain.num_uv - 1
        assert domain.p_index(3, 2) == domain.num_p - 1

    def test_centre_spacings(self, stretched_domain):
        """hx is the distance between neighbouring cell centres."""
        assert np.allclose(stretched_domain.hx, np.diff(stretched_domain.xc))
        assert np.allclose(stretched_domain.hy, np.diff(stretched_domain.yc))

    def test_flux_to_velocity(self, stretched_domain):
        d = stretched_domain
        q = np.concatenate([np.repeat(2.0 * d.dy, d.nx - 1), np.tile(-1.0 * d.dx, d.ny - 1)])
        u, v = d.flux_to_velocity(q)

        assert u.shape == (d.ny, d.nx - 1)
        assert v.shape == (d.ny - 1, d.nx)
        assert np.allclose(u, 2.0)
        assert np.allclose(v, -1.0)


class TestDomainValidation:
    """Malformed metrics are reported, not raised."""

    def test_valid_grid(self, uniform_domain):
        assert uniform_domain.validate() == []

    def test_too_few_cells(self):
        problems = Domain(x=[0.0, 1.0], y=[0.0, 0.5, 1.0]).validate()
        assert any("2x2" in p for p in problems)

    def test_non_increasing_nodes(self):
        problems = Domain(x=[0.0, 0.6, 0.4, 1.0], y=[0.0, 0.5, 1.0]).validate()
        assert any("x nodes" in p for p in problems)

    def test_non_finite_nodes(self):
        problems = Domain(x=[0.0, 0.5, np.inf], y=[0.0, 0.5, 1.0]).validate()
        assert any("finite" in p for p in problems)


class TestStretchedNodes:
    """Segment-based node generation."""

    def test_uniform_segment(self):
        nodes = stretched_nodes(0.0, [{"end": 1.0, "cells": 4}])
        assert np.allclose(nodes, np.linspace(0.0, 1.0, 5))

    def test_geometric_segment(self):
        nodes = stretched_nodes(0.0, [{"end": 7.0, "cells": 3, "stretch_ratio": 2.0}])
        assert np.allclose(nodes, [0.0, 1.0, 3.0, 7.0])

    def test_segments_join(self):
        nodes = stretched_nodes(-2.0, [
            {"end": -0.5, "cells": 5, "stretch_ratio": 0.9},
            {"end": 0.5, "cells": 10},
            {"end": 3.0, "cells": 8, "stretch_ratio": 1.1},
        ])

        assert nodes.size == 24
        assert nodes[0] == -2.0
        assert nodes[-1] == 3.0
        assert np.all(np.diff(nodes) > 0)
        assert np.allclose(np.diff(nodes[5:16]), 0.1)

    def test_invalid_segment(self):
        with pytest.raises(ValueError):
            stretched_nodes(1.0, [{"end": 0.0, "cells": 4}])

    def test_stretched_domain(self):
        domain = create_stretched_domain(
            0.0, [{"end": 1.0, "cells": 4}], 0.0, [{"end": 2.0, "cells": 3, "stretch_ratio": 1.5}]
        )
        assert (domain.nx, domain.ny) == (4, 3)
        assert domain.validate() == []
