"""
Control point extraction for the gingival boundary curve.

Given the sampled boundary cloud of a dental arch this module derives
the five landmark points through which the guiding curve is fitted.
In traversal order they are:

- ``min_x``: the leftmost sample, dropped to the global minimum z.
- ``max_dist_minus``: on the negative-x half, the sample farthest from
  the line joining ``top_centroid`` and ``min_x``.
- ``top_centroid``: the mean of the ten highest (largest z) samples.
  Averaging keeps a single noisy sample from dragging the ridge anchor.
- ``max_dist_plus``: the positive-x counterpart of ``max_dist_minus``.
- ``max_x``: the rightmost sample, dropped to the global minimum z.

Dropping both side anchors to the lowest z of the cloud guarantees the
fitted curve runs below every boundary sample so the reconstructed
surface envelops the anatomy.

Functions defined here:

- ``find_max_distance_point(top, side, points)``
- ``find_five_control_points(points)``
- ``create_control_point_set(points)``
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence

from .errors import InsufficientSamplePoints, InvalidControlPointCount
from .vectors import Point3, add, centroid, distance, dot, normalize, scale, sub

logger = logging.getLogger(__name__)

# Number of highest samples averaged into the ridge anchor.
TOP_POINT_COUNT: int = 10
CONTROL_POINT_COUNT: int = 5


@dataclass(frozen=True)
class ControlPointSet:
    """The five ordered landmarks of a boundary cloud.

    The field order is the curve traversal order; ``points`` returns
    them as a list in that order.
    """

    min_x: Point3
    max_dist_minus: Point3
    top_centroid: Point3
    max_dist_plus: Point3
    max_x: Point3

    @property
    def points(self) -> List[Point3]:
        return [
            self.min_x,
            self.max_dist_minus,
            self.top_centroid,
            self.max_dist_plus,
            self.max_x,
        ]


def create_control_point_set(points: Sequence[Point3]) -> ControlPointSet:
    """Build a :class:`ControlPointSet` from exactly five ordered points.

    Raises:
        InvalidControlPointCount: If ``points`` does not hold five entries.
    """
    if len(points) != CONTROL_POINT_COUNT:
        raise InvalidControlPointCount(
            f"Exactly {CONTROL_POINT_COUNT} control points are required, got {len(points)}"
        )
    return ControlPointSet(*points)


def find_max_distance_point(
    top_point: Point3,
    side_point: Point3,
    sampled_points: Sequence[Point3],
) -> Point3:
    """Find the sample farthest from the line through ``top_point`` and ``side_point``.

    Only samples on the same side of the x axis as ``side_point`` are
    considered: the filter is keyed off the reference point's x sign,
    not the candidate's.  The distance of a candidate is measured to
    its orthogonal projection onto the infinite line.

    Args:
        top_point: Ridge anchor defining one end of the line.
        side_point: Side anchor (``min_x`` or ``max_x``) defining the
            other end and selecting the half of the cloud to search.
        sampled_points: The boundary cloud.

    Returns:
        The farthest qualifying sample, or the first sample of the
        cloud when no sample lies on the selected side.
    """
    direction = normalize(sub(top_point, side_point))
    max_distance = 0.0
    max_dist_point = sampled_points[0]

    if side_point[0] < 0:
        candidates = [p for p in sampled_points if p[0] < 0]
    else:
        candidates = [p for p in sampled_points if p[0] > 0]

    for point in candidates:
        v = sub(point, side_point)
        proj = add(side_point, scale(direction, dot(v, direction)))
        dist = distance(point, proj)
        if dist > max_distance:
            max_distance = dist
            max_dist_point = point
    return max_dist_point


def find_five_control_points(sampled_points: Sequence[Point3]) -> ControlPointSet:
    """Derive the five ordered control points of a boundary cloud.

    Args:
        sampled_points: The boundary cloud.  Must hold at least
            ``TOP_POINT_COUNT`` samples.

    Returns:
        ControlPointSet: ``min_x, max_dist_minus, top_centroid,
        max_dist_plus, max_x`` in that order.

    Raises:
        InsufficientSamplePoints: If the cloud is empty or holds fewer
            than ``TOP_POINT_COUNT`` samples.
    """
    if not sampled_points:
        raise InsufficientSamplePoints("Cannot derive control points from an empty cloud")
    if len(sampled_points) < TOP_POINT_COUNT:
        raise InsufficientSamplePoints(
            f"At least {TOP_POINT_COUNT} samples are required for the top centroid, "
            f"got {len(sampled_points)}"
        )

    min_z = min(p[2] for p in sampled_points)
    left = min(sampled_points, key=lambda p: p[0])
    right = max(sampled_points, key=lambda p: p[0])
    min_x = (left[0], left[1], min_z)
    max_x = (right[0], right[1], min_z)

    # sorted() is stable so ties keep cloud order
    top_points = sorted(sampled_points, key=lambda p: p[2], reverse=True)[:TOP_POINT_COUNT]
    top_centroid = centroid(top_points)

    max_dist_minus = find_max_distance_point(top_centroid, min_x, sampled_points)
    max_dist_plus = find_max_distance_point(top_centroid, max_x, sampled_points)

    logger.debug(
        "Control points from %d samples: min_x=%s top=%s max_x=%s",
        len(sampled_points),
        min_x,
        top_centroid,
        max_x,
    )
    return create_control_point_set(
        [min_x, max_dist_minus, top_centroid, max_dist_plus, max_x]
    )
