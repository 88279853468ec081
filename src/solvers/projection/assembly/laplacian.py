"""Discrete Laplacian on face fluxes for structured staggered grids.

The viscous operator is assembled as L = nu * D^-1 S D^-1, where S is the
area-weighted five-point Laplacian acting on face velocities and
D = diag(dy) for x-fluxes, diag(dx) for y-fluxes. S is symmetric, so L is
symmetric and negative semidefinite on any (stretched) grid.

Couplings to boundary velocities are not part of L; they are returned by
``laplacian_boundary_terms`` and enter the right-hand sides instead.
"""

import numpy as np

from ..boundary import Side


def _u_stencil(domain):
    """Neighbour coefficients of S for x-fluxes, each of shape (ny, nx-1)."""
    nx, ny = domain.nx, domain.ny
    dx, dy = domain.dx, domain.dy
    j, i = np.meshgrid(np.arange(ny), np.arange(1, nx), indexing="ij")

    hx = 0.5 * (dx[i - 1] + dx[i])
    gap_s = np.where(j > 0, 0.5 * (dy[j] + dy[np.maximum(j - 1, 0)]), 0.5 * dy[j])
    gap_n = np.where(j < ny - 1, 0.5 * (dy[j] + dy[np.minimum(j + 1, ny - 1)]), 0.5 * dy[j])

    coeffs = {
        "west": dy[j] / dx[i - 1],
        "east": dy[j] / dx[i],
        "south": hx / gap_s,
        "north": hx / gap_n,
    }
    return i, j, coeffs


def _v_stencil(domain):
    """Neighbour coefficients of S for y-fluxes, each of shape (ny-1, nx)."""
    nx, ny = domain.nx, domain.ny
    dx, dy = domain.dx, domain.dy
    j, i = np.meshgrid(np.arange(1, ny), np.arange(nx), indexing="ij")

    hy = 0.5 * (dy[j - 1] + dy[j])
    gap_w = np.where(i > 0, 0.5 * (dx[i] + dx[np.maximum(i - 1, 0)]), 0.5 * dx[i])
    gap_e = np.where(i < nx - 1, 0.5 * (dx[i] + dx[np.minimum(i + 1, nx - 1)]), 0.5 * dx[i])

    coeffs = {
        "south": dx[i] / dy[j - 1],
        "north": dx[i] / dy[j],
        "west": hy / gap_w,
        "east": hy / gap_e,
    }
    return i, j, coeffs


def assemble_laplacian(domain, nu):
    """Return (row, col, data) of the flux-space Laplacian L."""
    nx, ny = domain.nx, domain.ny
    dx, dy = domain.dx, domain.dy
    rows, cols, vals = [], [], []

    def add(mask, r, c, v):
        rows.append(r[mask])
        cols.append(c[mask])
        vals.append(v[mask])

    # ========== x-fluxes ==========
    i, j, c = _u_stencil(domain)
    row = domain.u_index(i, j)
    everywhere = np.ones_like(row, dtype=bool)
    scale = nu / dy[j] ** 2

    add(everywhere, row, row, -scale * (c["west"] + c["east"] + c["south"] + c["north"]))
    add(i > 1, row, domain.u_index(i - 1, j), scale * c["west"])
    add(i < nx - 1, row, domain.u_index(i + 1, j), scale * c["east"])
    jm = np.maximum(j - 1, 0)
    jp = np.minimum(j + 1, ny - 1)
    add(j > 0, row, domain.u_index(i, jm), nu * c["south"] / (dy[j] * dy[jm]))
    add(j < ny - 1, row, domain.u_index(i, jp), nu * c["north"] / (dy[j] * dy[jp]))

    # ========== y-fluxes ==========
    i, j, c = _v_stencil(domain)
    row = domain.v_index(i, j)
    everywhere = np.ones_like(row, dtype=bool)
    scale = nu / dx[i] ** 2

    add(everywhere, row, row, -scale * (c["west"] + c["east"] + c["south"] + c["north"]))
    add(j > 1, row, domain.v_index(i, j - 1), scale * c["south"])
    add(j < ny - 1, row, domain.v_index(i, j + 1), scale * c["north"])
    im = np.maximum(i - 1, 0)
    ip = np.minimum(i + 1, nx - 1)
    add(i > 0, row, domain.v_index(im, j), nu * c["west"] / (dx[i] * dx[im]))
    add(i < nx - 1, row, domain.v_index(ip, j), nu * c["east"] / (dx[i] * dx[ip]))

    return (
        np.concatenate(rows).astype(np.int64),
        np.concatenate(cols).astype(np.int64),
        np.concatenate(vals),
    )


def laplacian_boundary_terms(domain, bc, nu, out=None):
    """Contribution of the boundary velocities in ``bc`` to L q (length numUV)."""
    nx, ny = domain.nx, domain.ny
    dx, dy = domain.dx, domain.dy
    if out is None:
        out = np.zeros(domain.num_uv)
    else:
        out[:] = 0.0

    # x-fluxes
    i, j, c = _u_stencil(domain)
    terms = np.zeros((ny, nx - 1))
    terms[:, 0] += c["west"][:, 0] * bc[Side.XMINUS].u
    terms[:, -1] += c["east"][:, -1] * bc[Side.XPLUS].u
    terms[0, :] += c["south"][0, :] * bc[Side.YMINUS].u[1:-1]
    terms[-1, :] += c["north"][-1, :] * bc[Side.YPLUS].u[1:-1]
    out[: domain.num_u] = (nu * terms / dy[:, None]).ravel()

    # y-fluxes
    i, j, c = _v_stencil(domain)
    terms = np.zeros((ny - 1, nx))
    terms[0, :] += c["south"][0, :] * bc[Side.YMINUS].v
    terms[-1, :] += c["north"][-1, :] * bc[Side.YPLUS].v
    terms[:, 0] += c["west"][:, 0] * bc[Side.XMINUS].v[1:-1]
    terms[:, -1] += c["east"][:, -1] * bc[Side.XPLUS].v[1:-1]
    out[domain.num_u :] = (nu * terms / dx[None, :]).ravel()

    return out
