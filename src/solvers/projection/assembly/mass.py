"""Diagonal mass operator M acting on face fluxes."""

import numpy as np


def assemble_mass_matrix(domain, dt):
    """Return (row, col, data) of M = diag(h_par / (h_perp * dt)).

    For an x-flux q = u * dy the momentum equation is scaled by the
    centre-to-centre distance hx, so M q = hx * u / dt.
    """
    nx, ny = domain.nx, domain.ny

    # x-fluxes: (ny, nx-1)
    m_u = domain.hx[None, :] / (domain.dy[:, None] * dt) * np.ones((ny, nx - 1))
    # y-fluxes: (ny-1, nx)
    m_v = domain.hy[:, None] / (domain.dx[None, :] * dt) * np.ones((ny - 1, nx))

    data = np.concatenate([m_u.ravel(), m_v.ravel()])
    row = np.arange(domain.num_uv, dtype=np.int64)
    return row, row.copy(), data
