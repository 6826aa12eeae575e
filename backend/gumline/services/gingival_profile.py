"""
Gingival profile deformation.

For every gingival boundary point the pipeline knows a matching anchor
on the outer curve.  The mesh vertices lying roughly on the segment
from the gingival point towards that anchor are collected by a greedy
directional walk and have their vertical (y) coordinate rewritten by
the quartic falloff profile::

    t = |P - p| / D
    R = t * |b - p|
    h = -|k - y_gingival|
    y(P) = h * (R^(2 alpha) - 1)^2 + k

where ``p`` is the gingival point, ``b`` the curve anchor, ``D`` the
search/falloff radius, ``alpha`` the sharpness exponent and ``k`` the
fixed vertical offset (20).  ``R`` is a product of magnitudes and so
never negative.

The deformed points are then sorted along x and densified by linear
interpolation to feed the hull mesher.

Functions defined here:

- ``find_points_on_line`` – greedy directional vertex walk.
- ``profile_height`` – the falloff profile for one vertex.
- ``deform_gingival_profile`` – apply the profile to every anchor pair.
- ``interpolate_points`` – x-sort and densify a point set.
- ``find_nearest_spline_point`` / ``build_anchor_pairs`` – pair boundary
  points with curve samples.
- ``generate_inner_points`` – flat fill points between two curves.

Verbose per-walk diagnostics are logged at debug level when the
``GUMLINE_DEBUG`` environment variable is set.
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
from scipy.spatial import cKDTree

from .errors import InsufficientSamplePoints, InvalidProfileParameter
from .vectors import Point3, add, angle_between, as_points, distance, lerp, normalize, scale, sub

logger = logging.getLogger(__name__)

SEARCH_RADIUS: float = 0.5
ANGLE_THRESHOLD: float = 0.1  # radians
VERTICAL_OFFSET: float = 20.0
DEFAULT_SUBDIVISIONS: int = 5
DEFAULT_POINTS_PER_LINE: int = 30


@dataclass(frozen=True)
class AnchorPair:
    """One unit of deformation work.

    Attributes:
        gingival_point: Boundary sample where the walk starts.
        anchor: Matching point on the outer curve the walk heads to.
        height: Vertical coordinate of the boundary sample, used to
            scale the depth of the profile.
    """

    gingival_point: Point3
    anchor: Point3
    height: float


def validate_profile_parameters(D: float, alpha: float) -> None:
    if not (isinstance(D, (int, float)) and math.isfinite(D) and D > 0):
        raise InvalidProfileParameter(f"D must be a positive finite number, got {D!r}")
    if not (isinstance(alpha, (int, float)) and math.isfinite(alpha) and alpha > 0):
        raise InvalidProfileParameter(f"alpha must be a positive finite number, got {alpha!r}")


def find_points_on_line(
    start_point: Point3,
    end_point: Point3,
    vertex_points: Sequence[Point3],
    max_distance: float,
    radius: float = SEARCH_RADIUS,
    angle_threshold: float = ANGLE_THRESHOLD,
    tree: Optional[cKDTree] = None,
) -> List[Point3]:
    """Collect the mesh vertices lying along the segment ``start -> end``.

    Starting at ``start_point`` the walk repeatedly moves to the
    unvisited vertex within ``radius`` of the current point whose
    direction deviates least from the fixed ``start -> end`` direction.
    A vertex qualifies only if that deviation is below
    ``angle_threshold`` and it lies no farther than ``max_distance``
    from ``start_point``.  The walk stops when no vertex qualifies or
    when the current point is within ``radius`` of ``end_point``.

    Each step consumes one vertex, so the walk takes at most
    ``len(vertex_points)`` steps.  It approximates "vertices on the
    segment" without any connectivity; on dense noisy meshes the path
    may be shorter or longer than the true segment.

    Args:
        start_point: Gingival point where the walk begins.
        end_point: Curve anchor the walk heads towards.
        vertex_points: Candidate mesh vertices.
        max_distance: Bound on the distance from ``start_point`` (``D``).
        radius: Neighbourhood radius searched at every step.
        angle_threshold: Maximum deviation in radians.
        tree: Optional prebuilt ``cKDTree`` over ``vertex_points``.

    Returns:
        ``[start_point, *walked_vertices]``; just ``[start_point]`` when
        no vertex is reachable.
    """
    walked: List[Point3] = [start_point]
    if len(vertex_points) == 0:
        return walked
    if tree is None:
        tree = cKDTree(np.asarray(vertex_points, dtype=float))

    line_direction = normalize(sub(end_point, start_point))
    visited: set[int] = set()
    current = start_point

    for _ in range(len(vertex_points)):
        if distance(current, end_point) <= radius:
            break
        best_index: Optional[int] = None
        min_angle = angle_threshold
        for idx in sorted(tree.query_ball_point(current, r=radius)):
            if idx in visited:
                continue
            vertex = vertex_points[idx]
            if distance(current, vertex) <= 0.0:
                continue
            if distance(start_point, vertex) > max_distance:
                continue
            angle = angle_between(sub(vertex, current), line_direction)
            if angle < min_angle:
                min_angle = angle
                best_index = idx
        if best_index is None:
            break
        visited.add(best_index)
        current = vertex_points[best_index]
        walked.append(current)

    if os.getenv("GUMLINE_DEBUG"):
        logger.debug(
            "find_points_on_line: start=%s end=%s walked=%d vertices",
            start_point,
            end_point,
            len(walked) - 1,
        )
    return walked


def profile_height(
    point: Point3,
    gingival_point: Point3,
    anchor: Point3,
    gingival_y: float,
    D: float,
    alpha: float,
    k: float = VERTICAL_OFFSET,
) -> float:
    """Evaluate the falloff profile for one candidate vertex.

    Args:
        point: Candidate vertex ``P``.
        gingival_point: Walk start ``p``.
        anchor: Curve anchor ``b``.
        gingival_y: Height of the boundary sample; the profile depth is
            ``-|k - gingival_y|``.
        D: Falloff radius, strictly positive.
        alpha: Sharpness exponent, strictly positive.
        k: Fixed vertical offset.

    Returns:
        The new y coordinate of ``point``.  Equals ``k`` exactly where
        ``R^(2 alpha) == 1``.

    Raises:
        InvalidProfileParameter: If ``D`` or ``alpha`` is not positive,
            or if ``alpha`` is so large that the profile overflows.
    """
    validate_profile_parameters(D, alpha)
    t = distance(point, gingival_point) / D
    R = t * distance(anchor, gingival_point)
    h = -abs(k - gingival_y)
    try:
        y = h * (R ** (2.0 * alpha) - 1.0) ** 2 + k
    except OverflowError as exc:
        raise InvalidProfileParameter(
            f"alpha={alpha!r} overflows the profile at R={R:.6g}; use a smaller alpha"
        ) from exc
    if not math.isfinite(y):
        raise InvalidProfileParameter(
            f"alpha={alpha!r} gives a non-finite profile height at R={R:.6g}; use a smaller alpha"
        )
    return y


def deform_gingival_profile(
    pairs: Sequence[AnchorPair],
    vertex_points: Sequence[Point3],
    D: float,
    alpha: float,
    k: float = VERTICAL_OFFSET,
) -> List[Point3]:
    """Apply the falloff profile along every anchor pair.

    Args:
        pairs: Anchor pairs in boundary order.
        vertex_points: The scanned mesh vertices searched by the walk.
        D: Search/falloff radius, strictly positive.
        alpha: Sharpness exponent, strictly positive.
        k: Fixed vertical offset.

    Returns:
        The deformed points ``(P.x, y(P), P.z)`` in pair order, each
        pair contributing its walk start followed by its walked
        vertices.

    Raises:
        InvalidProfileParameter: If ``D`` or ``alpha`` is not positive.
    """
    validate_profile_parameters(D, alpha)
    vertices = as_points(vertex_points)
    # One tree per call; nothing is shared between invocations
    tree = cKDTree(np.asarray(vertices, dtype=float)) if vertices else None

    deformed: List[Point3] = []
    for pair in pairs:
        candidates = find_points_on_line(
            pair.gingival_point,
            pair.anchor,
            vertices,
            max_distance=D,
            tree=tree,
        )
        for candidate in candidates:
            y = profile_height(candidate, pair.gingival_point, pair.anchor, pair.height, D, alpha, k)
            deformed.append((candidate[0], y, candidate[2]))

    logger.info(
        "Deformed %d points from %d anchor pairs (D=%s, alpha=%s)",
        len(deformed),
        len(pairs),
        D,
        alpha,
    )
    return deformed


def interpolate_points(points: Sequence[Point3], subdivisions: int = DEFAULT_SUBDIVISIONS) -> List[Point3]:
    """Sort ``points`` by x and insert linear intermediates between neighbours.

    Between every consecutive pair of the x-sorted sequence
    ``subdivisions`` evenly spaced points are inserted; all original
    points are kept.  The result holds ``n + (n - 1) * subdivisions``
    points and stays x-ordered.  This is not a true surface ordering:
    points whose x projections coincide keep their input order.

    Raises:
        InvalidProfileParameter: If ``subdivisions`` is negative.
    """
    if subdivisions < 0:
        raise InvalidProfileParameter(f"subdivisions must be >= 0, got {subdivisions}")
    ordered = sorted(points, key=lambda p: p[0])
    if len(ordered) < 2:
        return list(ordered)

    result: List[Point3] = []
    step = 1.0 / (subdivisions + 1)
    for a, b in zip(ordered, ordered[1:]):
        result.append(a)
        for j in range(1, subdivisions + 1):
            result.append(lerp(a, b, j * step))
    result.append(ordered[-1])
    return result


def find_nearest_spline_point(point: Point3, spline_points: Sequence[Point3]) -> Point3:
    """Return the curve sample closest to ``point``."""
    return min(spline_points, key=lambda s: distance(point, s))


def build_anchor_pairs(
    gingival_points: Sequence[Point3],
    heights: Sequence[float],
    spline_points: Sequence[Point3],
) -> List[AnchorPair]:
    """Pair every gingival point with its nearest curve sample.

    Raises:
        InsufficientSamplePoints: If ``heights`` does not match
            ``gingival_points`` one to one, or no curve samples exist.
    """
    if len(heights) != len(gingival_points):
        raise InsufficientSamplePoints(
            f"Expected one height per gingival point: {len(gingival_points)} points, "
            f"{len(heights)} heights"
        )
    if not spline_points:
        raise InsufficientSamplePoints("No curve samples to pair gingival points with")
    return [
        AnchorPair(gingival_point=p, anchor=find_nearest_spline_point(p, spline_points), height=float(h))
        for p, h in zip(gingival_points, heights)
    ]


def generate_inner_points(
    inner_spline_points: Sequence[Point3],
    outer_spline_points: Sequence[Point3],
    points_per_line: int = DEFAULT_POINTS_PER_LINE,
    base_y: float = VERTICAL_OFFSET,
) -> List[Point3]:
    """Fill the band between two curves with flat points.

    For every inner sample the nearest outer sample is found and
    ``points_per_line - 1`` evenly spaced points are placed strictly
    between the two, each with its y forced to ``base_y``.

    Raises:
        InvalidProfileParameter: If ``points_per_line`` is below 1.
    """
    if points_per_line < 1:
        raise InvalidProfileParameter(f"points_per_line must be >= 1, got {points_per_line}")
    if not outer_spline_points:
        return []

    inner_points: List[Point3] = []
    for inner in inner_spline_points:
        nearest = find_nearest_spline_point(inner, outer_spline_points)
        direction = sub(nearest, inner)
        for i in range(1, points_per_line):
            p = add(inner, scale(direction, i / points_per_line))
            inner_points.append((p[0], base_y, p[2]))
    return inner_points
