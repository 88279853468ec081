"""Sparse operator assembly for the staggered-grid projection method."""

from .mass import assemble_mass_matrix
from .laplacian import assemble_laplacian, laplacian_boundary_terms
from .divergence import assemble_divergence, boundary_flux
from .composite import approximate_inverse, schur_complement

__all__ = [
    "assemble_mass_matrix",
    "assemble_laplacian",
    "laplacian_boundary_terms",
    "assemble_divergence",
    "boundary_flux",
    "approximate_inverse",
    "schur_complement",
]
