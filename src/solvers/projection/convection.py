"""Explicit convective term on the staggered grid.

Conservative second-order central differences:

    N_u = d(uu)/dx + d(uv)/dy   at x-faces
    N_v = d(uv)/dx + d(vv)/dy   at y-faces

uu and vv are formed at cell centres, uv at grid nodes. Nodes on the domain
boundary take the tangential velocity from the boundary arrays directly.
"""

import numpy as np

from .boundary import Side


def _interp_weights(nodes, positions):
    """Linear weights placing ``nodes`` between consecutive ``positions``."""
    return (nodes - positions[:-1]) / (positions[1:] - positions[:-1])


def convection_term(domain, q, bc, out=None):
    """Return H = h_par * N(q) in flux space (length numUV)."""
    nx, ny = domain.nx, domain.ny
    x, y, dx, dy = domain.x, domain.y, domain.dx, domain.dy
    u, v = domain.flux_to_velocity(q)

    # Face velocities including boundary faces
    u_full = np.empty((ny, nx + 1))
    u_full[:, 0] = bc[Side.XMINUS].u
    u_full[:, 1:-1] = u
    u_full[:, -1] = bc[Side.XPLUS].u

    v_full = np.empty((ny + 1, nx))
    v_full[0, :] = bc[Side.YMINUS].v
    v_full[1:-1, :] = v
    v_full[-1, :] = bc[Side.YPLUS].v

    # Extend with tangential wall values for node interpolation
    u_ext = np.vstack([bc[Side.YMINUS].u, u_full, bc[Side.YPLUS].u])
    v_ext = np.column_stack([bc[Side.XMINUS].v, v_full, bc[Side.XPLUS].v])

    wy = _interp_weights(y, np.concatenate([[y[0]], domain.yc, [y[-1]]]))
    wx = _interp_weights(x, np.concatenate([[x[0]], domain.xc, [x[-1]]]))
    u_nodes = (1.0 - wy)[:, None] * u_ext[:-1] + wy[:, None] * u_ext[1:]
    v_nodes = (1.0 - wx)[None, :] * v_ext[:, :-1] + wx[None, :] * v_ext[:, 1:]
    uv = u_nodes * v_nodes

    uu = (0.5 * (u_full[:, :-1] + u_full[:, 1:])) ** 2
    vv = (0.5 * (v_full[:-1, :] + v_full[1:, :])) ** 2

    hx, hy = domain.hx, domain.hy
    N_u = (uu[:, 1:] - uu[:, :-1]) / hx[None, :] + (uv[1:, 1:-1] - uv[:-1, 1:-1]) / dy[:, None]
    N_v = (uv[1:-1, 1:] - uv[1:-1, :-1]) / dx[None, :] + (vv[1:, :] - vv[:-1, :]) / hy[:, None]

    if out is None:
        out = np.empty(domain.num_uv)
    out[: domain.num_u] = (hx[None, :] * N_u).ravel()
    out[domain.num_u :] = (hy[:, None] * N_v).ravel()
    return out
