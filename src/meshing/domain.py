"""Rectangular staggered (MAC) grid used by the projection solvers.

Indexing Conventions:
- Cells are numbered row-major: p(i, j) = j * nx + i, 0 <= i < nx, 0 <= j < ny.
- x-fluxes live on interior vertical faces x[1..nx-1] at cell-centre heights:
  u(i, j) = j * (nx - 1) + (i - 1), 1 <= i <= nx - 1.
- y-fluxes live on interior horizontal faces y[1..ny-1] at cell-centre abscissae:
  v(i, j) = numU + (j - 1) * nx + i, 1 <= j <= ny - 1.

Boundary faces are not unknowns; their velocities are held by the solver's
boundary arrays.
"""

from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np


@dataclass
class Domain:
    """Node coordinates of a rectangular grid plus derived metrics."""

    x: np.ndarray
    y: np.ndarray

    # Derived metrics (filled in __post_init__)
    dx: np.ndarray = field(init=False, repr=False)
    dy: np.ndarray = field(init=False, repr=False)
    xc: np.ndarray = field(init=False, repr=False)
    yc: np.ndarray = field(init=False, repr=False)

    def __post_init__(self):
        self.x = np.asarray(self.x, dtype=np.float64)
        self.y = np.asarray(self.y, dtype=np.float64)
        self.dx = np.diff(self.x)
        self.dy = np.diff(self.y)
        self.xc = 0.5 * (self.x[:-1] + self.x[1:])
        self.yc = 0.5 * (self.y[:-1] + self.y[1:])

    # --- Sizes ---
    @property
    def nx(self) -> int:
        return self.x.size - 1

    @property
    def ny(self) -> int:
        return self.y.size - 1

    @property
    def num_u(self) -> int:
        return (self.nx - 1) * self.ny

    @property
    def num_v(self) -> int:
        return self.nx * (self.ny - 1)

    @property
    def num_uv(self) -> int:
        return self.num_u + self.num_v

    @property
    def num_p(self) -> int:
        return self.nx * self.ny

    # --- Face-centred spacings ---
    @property
    def hx(self) -> np.ndarray:
        """Distance between neighbouring cell centres across each interior x-face."""
        return 0.5 * (self.dx[:-1] + self.dx[1:])

    @property
    def hy(self) -> np.ndarray:
        """Distance between neighbouring cell centres across each interior y-face."""
        return 0.5 * (self.dy[:-1] + self.dy[1:])

    # --- Index helpers ---
    def u_index(self, i, j):
        return j * (self.nx - 1) + (i - 1)

    def v_index(self, i, j):
        return self.num_u + (j - 1) * self.nx + i

    def p_index(self, i, j):
        return j * self.nx + i

    def validate(self) -> List[str]:
        """Return a list of problems with the grid metrics (empty when valid)."""
        problems = []
        if self.x.ndim != 1 or self.y.ndim != 1:
            problems.append("node coordinates must be one-dimensional")
            return problems
        if self.nx < 2 or self.ny < 2:
            problems.append(f"need at least 2x2 cells, got {self.nx}x{self.ny}")
        if not np.all(np.isfinite(self.x)) or not np.all(np.isfinite(self.y)):
            problems.append("node coordinates must be finite")
        if np.any(self.dx <= 0.0):
            problems.append("x nodes must be strictly increasing")
        if np.any(self.dy <= 0.0):
            problems.append("y nodes must be strictly increasing")
        return problems

    def flux_to_velocity(self, q: np.ndarray):
        """Split a flux vector into face velocities of shape (ny, nx-1) and (ny-1, nx)."""
        u = q[: self.num_u].reshape(self.ny, self.nx - 1) / self.dy[:, None]
        v = q[self.num_u :].reshape(self.ny - 1, self.nx) / self.dx[None, :]
        return u, v


def create_uniform_domain(nx: int, ny: int, Lx: float = 1.0, Ly: float = 1.0,
                          x0: float = 0.0, y0: float = 0.0) -> Domain:
    """Uniform grid of nx x ny cells covering [x0, x0+Lx] x [y0, y0+Ly]."""
    return Domain(
        x=np.linspace(x0, x0 + Lx, nx + 1),
        y=np.linspace(y0, y0 + Ly, ny + 1),
    )


def stretched_nodes(start: float, segments: Sequence[dict]) -> np.ndarray:
    """Build node coordinates from consecutive segments.

    Each segment is a mapping with ``end``, ``cells`` and optional
    ``stretch_ratio`` (default 1). A ratio r gives geometric cell widths
    h, h*r, h*r**2, ... filling the segment exactly.
    """
    nodes = [float(start)]
    for segment in segments:
        end = float(segment["end"])
        cells = int(segment["cells"])
        ratio = float(segment.get("stretch_ratio", 1.0))
        length = end - nodes[-1]
        if cells < 1 or length <= 0.0:
            raise ValueError(f"Invalid segment {dict(segment)} starting at {nodes[-1]}")

        if abs(ratio - 1.0) < 1e-12:
            widths = np.full(cells, length / cells)
        else:
            h0 = length * (ratio - 1.0) / (ratio**cells - 1.0)
            widths = h0 * ratio ** np.arange(cells)

        edges = nodes[-1] + np.cumsum(widths)
        edges[-1] = end  # exact segment end despite round-off
        nodes.extend(edges.tolist())
    return np.asarray(nodes)


def create_stretched_domain(x_start: float, x_segments: Sequence[dict],
                            y_start: float, y_segments: Sequence[dict]) -> Domain:
    """Grid built from per-direction segment lists (see ``stretched_nodes``)."""
    return Domain(
        x=stretched_nodes(x_start, x_segments),
        y=stretched_nodes(y_start, y_segments),
    )
