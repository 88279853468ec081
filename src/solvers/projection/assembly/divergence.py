"""Divergence/gradient pair on the staggered grid.

QT holds minus the discrete divergence over interior faces, so that its
transpose is the pressure gradient: (QT^T p)_u(i,j) = p(i,j) - p(i-1,j).
The incompressibility constraint D_int q + D_bnd = 0 then reads
QT q = D_bnd, with D_bnd the outward boundary flux of each cell.
"""

import numpy as np

from ..boundary import Side


def assemble_divergence(domain):
    """Return (row, col, data) of the pressure rows of QT (numP x numUV)."""
    nx, ny = domain.nx, domain.ny

    # x-fluxes: east face of cell (i-1, j) and west face of cell (i, j)
    j, i = np.meshgrid(np.arange(ny), np.arange(1, nx), indexing="ij")
    col_u = domain.u_index(i, j).ravel()
    west_cell = domain.p_index(i - 1, j).ravel()
    east_cell = domain.p_index(i, j).ravel()

    # y-fluxes: north face of cell (i, j-1) and south face of cell (i, j)
    j, i = np.meshgrid(np.arange(1, ny), np.arange(nx), indexing="ij")
    col_v = domain.v_index(i, j).ravel()
    south_cell = domain.p_index(i, j - 1).ravel()
    north_cell = domain.p_index(i, j).ravel()

    row = np.concatenate([west_cell, east_cell, south_cell, north_cell])
    col = np.concatenate([col_u, col_u, col_v, col_v])
    data = np.concatenate([
        -np.ones(col_u.size), np.ones(col_u.size),
        -np.ones(col_v.size), np.ones(col_v.size),
    ])
    return row.astype(np.int64), col.astype(np.int64), data


def boundary_flux(domain, bc, out=None):
    """Outward boundary flux of every cell (length numP)."""
    nx, ny = domain.nx, domain.ny
    flux = np.zeros((ny, nx))
    flux[:, 0] -= bc[Side.XMINUS].u * domain.dy
    flux[:, -1] += bc[Side.XPLUS].u * domain.dy
    flux[0, :] -= bc[Side.YMINUS].v * domain.dx
    flux[-1, :] += bc[Side.YPLUS].v * domain.dx

    if out is None:
        return flux.ravel()
    out[:] = flux.ravel()
    return out
