"""
2D geometry helpers for packing.

Outlines are numpy arrays of shape (N, 2). Placement transforms are
similarities restricted to quarter-turn rotations, so texel rows and
columns stay axis aligned after packing.
"""

import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np

# Exact rotation matrices for 0, 90, 180 and 270 degrees (counter-clockwise)
_QUARTER_TURNS = (
    np.array([[1.0, 0.0], [0.0, 1.0]]),
    np.array([[0.0, -1.0], [1.0, 0.0]]),
    np.array([[-1.0, 0.0], [0.0, -1.0]]),
    np.array([[0.0, 1.0], [-1.0, 0.0]]),
)


@dataclass
class Box2:
    """Axis-aligned 2D box. An empty box has min > max."""
    min_x: float = math.inf
    min_y: float = math.inf
    max_x: float = -math.inf
    max_y: float = -math.inf

    @classmethod
    def from_points(cls, points: np.ndarray) -> "Box2":
        points = np.asarray(points, dtype=float).reshape(-1, 2)
        if len(points) == 0:
            return cls()
        lo = points.min(axis=0)
        hi = points.max(axis=0)
        return cls(float(lo[0]), float(lo[1]), float(hi[0]), float(hi[1]))

    def is_null(self) -> bool:
        return self.min_x > self.max_x or self.min_y > self.max_y

    @property
    def dim_x(self) -> float:
        return self.max_x - self.min_x

    @property
    def dim_y(self) -> float:
        return self.max_y - self.min_y

    def area(self) -> float:
        if self.is_null():
            return 0.0
        return self.dim_x * self.dim_y

    def corners(self) -> np.ndarray:
        """Counter-clockwise rectangle starting at the min corner."""
        return np.array([
            [self.min_x, self.min_y],
            [self.max_x, self.min_y],
            [self.max_x, self.max_y],
            [self.min_x, self.max_y],
        ])


@dataclass(frozen=True)
class Similarity2:
    """
    Uniform scale, quarter-turn rotation and translation.

    Maps p -> scale * R(90 * quarter_turns degrees) p + translation.
    """
    quarter_turns: int = 0
    scale: float = 1.0
    translation: Tuple[float, float] = (0.0, 0.0)

    def __post_init__(self):
        if self.quarter_turns not in (0, 1, 2, 3):
            raise ValueError(f"quarter_turns must be in 0..3, got {self.quarter_turns}")
        if not (math.isfinite(self.scale) and self.scale > 0):
            raise ValueError(f"scale must be a positive finite number, got {self.scale}")

    def apply(self, points: np.ndarray) -> np.ndarray:
        """Transform one point (2,) or an array of points (N, 2)."""
        pts = np.asarray(points, dtype=float)
        rotated = pts @ _QUARTER_TURNS[self.quarter_turns].T
        return rotated * self.scale + np.asarray(self.translation, dtype=float)


def rotate_quarter_turns(points: np.ndarray, quarter_turns: int) -> np.ndarray:
    """Rotate points counter-clockwise by a multiple of 90 degrees."""
    return np.asarray(points, dtype=float) @ _QUARTER_TURNS[quarter_turns % 4].T


def signed_area(points: np.ndarray) -> float:
    """Shoelace area; positive for counter-clockwise polygons."""
    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    if len(pts) < 3:
        return 0.0
    x, y = pts[:, 0], pts[:, 1]
    return 0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y))


def perimeter(points: np.ndarray) -> float:
    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    if len(pts) < 2:
        return 0.0
    return float(np.linalg.norm(np.roll(pts, -1, axis=0) - pts, axis=1).sum())


def rotate_vector(v: Tuple[float, float], theta: float) -> Tuple[float, float]:
    c, s = math.cos(theta), math.sin(theta)
    return (c * v[0] - s * v[1], s * v[0] + c * v[1])


def vector_angle(a: Tuple[float, float], b: Tuple[float, float]) -> float:
    """Unsigned angle in [0, pi] between two vectors."""
    cross = a[0] * b[1] - a[1] * b[0]
    dot = a[0] * b[0] + a[1] * b[1]
    return abs(math.atan2(cross, dot))
