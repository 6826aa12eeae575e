"""
Small tuple-based vector helpers shared by the reconstruction services.

Points and vectors are plain ``(x, y, z)`` tuples of floats.  Keeping
them as tuples makes every intermediate point set immutable, so the
pipeline stages can hand collections to one another without copying
and without any risk of one stage mutating another stage's input.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Sequence, Tuple

Point3 = Tuple[float, float, float]


def as_point(p: Sequence[float]) -> Point3:
    """Coerce any 3-element sequence (list, tuple, numpy row) to a Point3."""
    return (float(p[0]), float(p[1]), float(p[2]))


def as_points(points: Iterable[Sequence[float]]) -> List[Point3]:
    """Coerce an iterable of 3-element sequences to a list of Point3."""
    return [as_point(p) for p in points]


def dot(a: Point3, b: Point3) -> float:
    """Compute the dot product of two 3D vectors.

    Args:
        a: First vector.
        b: Second vector.

    Returns:
        The scalar dot product ``a·b``.
    """
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def sub(a: Point3, b: Point3) -> Point3:
    """Subtract two 3D vectors (a - b)."""
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def add(a: Point3, b: Point3) -> Point3:
    """Add two 3D vectors."""
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def scale(a: Point3, s: float) -> Point3:
    """Scale a 3D vector by ``s``."""
    return (a[0] * s, a[1] * s, a[2] * s)


def cross(a: Point3, b: Point3) -> Point3:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def length(a: Point3) -> float:
    return math.sqrt(dot(a, a))


def distance(a: Point3, b: Point3) -> float:
    """Euclidean distance between two points."""
    return length(sub(a, b))


def normalize(a: Point3) -> Point3:
    """Return ``a`` scaled to unit length.

    A zero vector is returned unchanged rather than raising, so callers
    working with degenerate tangents (duplicate samples) simply get no
    direction instead of a division error.
    """
    n = length(a)
    if n == 0.0:
        return (0.0, 0.0, 0.0)
    return (a[0] / n, a[1] / n, a[2] / n)


def angle_between(a: Point3, b: Point3) -> float:
    """Angle in radians between two vectors, in ``[0, pi]``.

    Returns ``pi / 2`` when either vector has zero length.
    """
    denom = length(a) * length(b)
    if denom == 0.0:
        return math.pi / 2
    cos_theta = max(-1.0, min(1.0, dot(a, b) / denom))
    return math.acos(cos_theta)


def lerp(a: Point3, b: Point3, t: float) -> Point3:
    """Linear interpolation ``a + (b - a) * t``."""
    return (
        a[0] + (b[0] - a[0]) * t,
        a[1] + (b[1] - a[1]) * t,
        a[2] + (b[2] - a[2]) * t,
    )


def centroid(points: Sequence[Point3]) -> Point3:
    """Arithmetic mean of a non-empty point sequence."""
    n = len(points)
    sx = sum(p[0] for p in points)
    sy = sum(p[1] for p in points)
    sz = sum(p[2] for p in points)
    return (sx / n, sy / n, sz / n)


def compute_bbox(points: Sequence[Point3]) -> Tuple[List[float], List[float]]:
    """Compute an axis-aligned bounding box for a point sequence.

    Args:
        points: Non-empty sequence of Point3.

    Returns:
        ``(min_xyz, max_xyz)`` as two lists of three floats.
    """
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    zs = [p[2] for p in points]
    return [min(xs), min(ys), min(zs)], [max(xs), max(ys), max(zs)]
