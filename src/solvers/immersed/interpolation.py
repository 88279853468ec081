"""Interpolation operator E from face fluxes to Lagrangian body points.

Row k of the x-block returns u(X_k) = sum_I phi phi u_I = sum_I (phi phi / dy_j) q_I;
the y-block does the same for v. E^T spreads point forces back onto the grid.

Boundary faces are not unknowns: kernel weight falling on them is dropped,
so rows of E for points within the kernel support of a wall sum to less than
one. ``points_near_boundary`` flags such points.
"""

import numpy as np

from .delta import SUPPORT, roma_kernel


def _local_spacing(nodes, widths, positions):
    """Width of the cell containing each position."""
    cells = np.clip(np.searchsorted(nodes, positions) - 1, 0, widths.size - 1)
    return widths[cells]


def _nearby(coords, centre, h):
    """Indices of ``coords`` within the kernel support around ``centre``."""
    return np.nonzero(np.abs(coords - centre) < SUPPORT * h)[0]


def points_near_boundary(domain, xb, yb):
    """Mask of points whose kernel support reaches the domain boundary."""
    reach_x = SUPPORT * _local_spacing(domain.x, domain.dx, xb)
    reach_y = SUPPORT * _local_spacing(domain.y, domain.dy, yb)
    return (
        (xb - domain.x[0] < reach_x)
        | (domain.x[-1] - xb < reach_x)
        | (yb - domain.y[0] < reach_y)
        | (domain.y[-1] - yb < reach_y)
    )


def assemble_interpolation(domain, xb, yb, row_offset=0):
    """Return (row, col, data) of E for points (xb, yb).

    Rows ``row_offset + k`` hold the x-velocity of point k, rows
    ``row_offset + nb + k`` its y-velocity.
    """
    nb = xb.size
    hx_pts = _local_spacing(domain.x, domain.dx, xb)
    hy_pts = _local_spacing(domain.y, domain.dy, yb)

    x_u = domain.x[1:-1]   # x-faces abscissae (i = 1..nx-1)
    y_v = domain.y[1:-1]   # y-faces ordinates (j = 1..ny-1)
    rows, cols, vals = [], [], []

    for k in range(nb):
        X, Y, hx, hy = xb[k], yb[k], hx_pts[k], hy_pts[k]

        # x-velocity: faces at (x_u[i-1], yc[j])
        ii = _nearby(x_u, X, hx)
        jj = _nearby(domain.yc, Y, hy)
        if ii.size and jj.size:
            J, I = np.meshgrid(jj, ii + 1, indexing="ij")
            w = roma_kernel((domain.x[I] - X) / hx) * roma_kernel((domain.yc[J] - Y) / hy)
            rows.append(np.full(w.size, row_offset + k))
            cols.append(domain.u_index(I, J).ravel())
            vals.append((w / domain.dy[J]).ravel())

        # y-velocity: faces at (xc[i], y_v[j-1])
        ii = _nearby(domain.xc, X, hx)
        jj = _nearby(y_v, Y, hy)
        if ii.size and jj.size:
            J, I = np.meshgrid(jj + 1, ii, indexing="ij")
            w = roma_kernel((domain.xc[I] - X) / hx) * roma_kernel((domain.y[J] - Y) / hy)
            rows.append(np.full(w.size, row_offset + nb + k))
            cols.append(domain.v_index(I, J).ravel())
            vals.append((w / domain.dx[I]).ravel())

    if not rows:
        empty = np.zeros(0, dtype=np.int64)
        return empty, empty.copy(), np.zeros(0)
    return (
        np.concatenate(rows).astype(np.int64),
        np.concatenate(cols).astype(np.int64),
        np.concatenate(vals),
    )
