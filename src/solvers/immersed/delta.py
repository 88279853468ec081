"""Discrete delta function of Roma, Peskin & Berger (1999).

The kernel has a support of three grid cells and its samples on a uniform
grid sum to one, so interpolation reproduces constants exactly.
"""

import numpy as np

SUPPORT = 1.5


def roma_kernel(r):
    """phi(r) for r measured in grid spacings (vectorised)."""
    r = np.abs(np.asarray(r, dtype=np.float64))
    phi = np.zeros_like(r)

    inner = r <= 0.5
    phi[inner] = (1.0 + np.sqrt(1.0 - 3.0 * r[inner] ** 2)) / 3.0

    outer = (r > 0.5) & (r <= SUPPORT)
    phi[outer] = (5.0 - 3.0 * r[outer] - np.sqrt(1.0 - 3.0 * (1.0 - r[outer]) ** 2)) / 6.0
    return phi


def delta(distance, h):
    """One-dimensional discrete delta of width h."""
    return roma_kernel(np.asarray(distance) / h) / h
