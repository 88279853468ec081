"""Immersed bodies and the Taira & Colonius constraint operators."""

from .bodies import Body, body_from_dict, circle, load_body
from .delta import delta, roma_kernel
from .interpolation import assemble_interpolation, points_near_boundary

__all__ = [
    "Body",
    "body_from_dict",
    "circle",
    "load_body",
    "delta",
    "roma_kernel",
    "assemble_interpolation",
    "points_near_boundary",
]
