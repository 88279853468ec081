"""Structured staggered grids for the projection solvers."""

from .domain import Domain, create_uniform_domain, create_stretched_domain, stretched_nodes

__all__ = [
    "Domain",
    "create_uniform_domain",
    "create_stretched_domain",
    "stretched_nodes",
]
