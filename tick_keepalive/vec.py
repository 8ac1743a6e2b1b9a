"""3D vector helpers operating on tuple[float, float, float]."""
from __future__ import annotations

import math

from tick_keepalive.types import Vec3


def sub(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def magnitude_sq(v: Vec3) -> float:
    return v[0] * v[0] + v[1] * v[1] + v[2] * v[2]


def distance_sq(a: Vec3, b: Vec3) -> float:
    return magnitude_sq(sub(a, b))


def distance(a: Vec3, b: Vec3) -> float:
    return math.sqrt(distance_sq(a, b))


def as_dict(v: Vec3) -> dict[str, float]:
    return {"x": v[0], "y": v[1], "z": v[2]}
