"""Immersed bodies described by Lagrangian boundary points."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple

import numpy as np


@dataclass
class Body:
    """A rigid body given by its boundary points at t = 0.

    Motion is a constant translation plus a sinusoidal oscillation:

        X(t) = X0 + velocity * t + amplitude * sin(2 pi frequency t + phase)
    """

    x0: np.ndarray
    y0: np.ndarray
    velocity: Tuple[float, float] = (0.0, 0.0)
    amplitude: Tuple[float, float] = (0.0, 0.0)
    frequency: float = 0.0
    phase: float = 0.0
    name: str = "body"

    # Current state (filled in __post_init__ and by move_to)
    x: np.ndarray = field(init=False, repr=False)
    y: np.ndarray = field(init=False, repr=False)
    u: np.ndarray = field(init=False, repr=False)
    v: np.ndarray = field(init=False, repr=False)

    def __post_init__(self):
        self.x0 = np.asarray(self.x0, dtype=np.float64)
        self.y0 = np.asarray(self.y0, dtype=np.float64)
        if self.x0.shape != self.y0.shape or self.x0.ndim != 1:
            raise ValueError(f"Body '{self.name}' needs matching 1D x and y point arrays")
        self.velocity = tuple(float(c) for c in self.velocity)
        self.amplitude = tuple(float(c) for c in self.amplitude)
        self.move_to(0.0)

    @property
    def n_points(self) -> int:
        return self.x0.size

    @property
    def is_moving(self) -> bool:
        translating = any(c != 0.0 for c in self.velocity)
        oscillating = self.frequency != 0.0 and any(c != 0.0 for c in self.amplitude)
        return translating or oscillating

    def move_to(self, time: float):
        """Update point positions and velocities to ``time``."""
        omega = 2.0 * np.pi * self.frequency
        arg = omega * time + self.phase
        ax, ay = self.amplitude
        vx, vy = self.velocity

        shift_x = vx * time + ax * (np.sin(arg) - np.sin(self.phase))
        shift_y = vy * time + ay * (np.sin(arg) - np.sin(self.phase))
        self.x = self.x0 + shift_x
        self.y = self.y0 + shift_y
        self.u = np.full(self.n_points, vx + ax * omega * np.cos(arg))
        self.v = np.full(self.n_points, vy + ay * omega * np.cos(arg))


def circle(center=(0.0, 0.0), radius=0.5, n_points=None, spacing=None, **kwargs) -> Body:
    """Circular body; give either ``n_points`` or a target point ``spacing``."""
    if n_points is None:
        if spacing is None:
            raise ValueError("circle() needs n_points or spacing")
        n_points = int(np.ceil(2.0 * np.pi * radius / spacing))
    theta = 2.0 * np.pi * np.arange(n_points) / n_points
    return Body(
        x0=center[0] + radius * np.cos(theta),
        y0=center[1] + radius * np.sin(theta),
        **kwargs,
    )


def load_body(path, **kwargs) -> Body:
    """Read body points from a text file.

    The first line holds the number of points, each following line one
    ``x y`` pair.
    """
    path = Path(path)
    with path.open() as fh:
        n_points = int(fh.readline().split()[0])
        coords = np.loadtxt(fh, max_rows=n_points, ndmin=2)
    if coords.shape[0] != n_points:
        raise ValueError(f"{path}: expected {n_points} points, found {coords.shape[0]}")
    kwargs.setdefault("name", path.stem)
    return Body(x0=coords[:, 0], y0=coords[:, 1], **kwargs)


def body_from_dict(data) -> Body:
    """Build a body from a configuration mapping (``type``: circle | file | points)."""
    data = dict(data)
    kind = data.pop("type", "points")
    if kind == "circle":
        return circle(**data)
    if kind == "file":
        return load_body(data.pop("path"), **data)
    if kind == "points":
        return Body(x0=data.pop("x"), y0=data.pop("y"), **data)
    raise ValueError(f"Unknown body type: {kind}. Use 'circle', 'file' or 'points'")
