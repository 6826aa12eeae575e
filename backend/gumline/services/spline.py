"""
Guiding curve construction for the gingival reconstruction.

The curve through the arch control points is an open Catmull–Rom
spline with tension 0.5 and uniform parameterisation.  A curve is an
immutable :class:`CatmullRomCurve` holding its anchors; it is sampled
on demand with :func:`sample_curve` into ``divisions + 1`` points at
evenly spaced parameter values.  Integer parameter positions return
the anchors themselves, so the first and last samples always equal
the first and last anchors exactly.

Because the curve is open, the missing neighbours of the two end
segments are synthesised by reflecting the second anchor through the
first (and the penultimate through the last).

:func:`create_offset_curve` shifts a sampled curve sideways in the
horizontal (x, z) plane by a fixed distance.  The pipeline uses it to
place the outer anchor curve the deformation walks towards.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

from .errors import InsufficientSamplePoints
from .vectors import Point3, add, normalize, scale, sub

logger = logging.getLogger(__name__)

CURVE_TENSION: float = 0.5
# Sample counts used by the pipeline for the offset derivation and for
# the preview curve handed back to display clients.
OFFSET_CURVE_DIVISIONS: int = 500
DISPLAY_CURVE_DIVISIONS: int = 100


@dataclass(frozen=True)
class CatmullRomCurve:
    """Open uniform Catmull–Rom curve through an ordered anchor list.

    Attributes:
        points: The anchors in traversal order.  At least two.
        tension: Tangent scale; 0.5 yields the classic Catmull–Rom
            spline.
    """

    points: Tuple[Point3, ...]
    tension: float = CURVE_TENSION

    def get_point(self, t: float) -> Point3:
        return evaluate_curve(self, t)

    def get_points(self, divisions: int) -> List[Point3]:
        return sample_curve(self, divisions)


def create_spline_curve(points: Sequence[Point3], y_offset: float = 0.0) -> CatmullRomCurve:
    """Create a Catmull–Rom curve through ``points`` shifted by ``y_offset``.

    Args:
        points: Ordered anchors.  The order is kept as given.
        y_offset: Vertical shift applied to every anchor, used when a
            curve is previewed at a different elevation.

    Returns:
        CatmullRomCurve: The immutable curve.

    Raises:
        InsufficientSamplePoints: If fewer than two anchors are given.
    """
    if len(points) < 2:
        raise InsufficientSamplePoints(
            f"A curve needs at least 2 anchors, got {len(points)}"
        )
    shifted = tuple((float(p[0]), float(p[1]) + y_offset, float(p[2])) for p in points)
    return CatmullRomCurve(points=shifted)


def _catmull_rom(x0: float, x1: float, x2: float, x3: float, tension: float, t: float) -> float:
    """Evaluate one coordinate of a Catmull–Rom segment from ``x1`` to ``x2``."""
    t0 = tension * (x2 - x0)
    t1 = tension * (x3 - x1)
    c0 = x1
    c1 = t0
    c2 = -3.0 * x1 + 3.0 * x2 - 2.0 * t0 - t1
    c3 = 2.0 * x1 - 2.0 * x2 + t0 + t1
    return c0 + c1 * t + c2 * t * t + c3 * t * t * t


def evaluate_curve(curve: CatmullRomCurve, t: float) -> Point3:
    """Evaluate ``curve`` at parameter ``t`` in ``[0, 1]``.

    Values outside the range are clamped.
    """
    pts = curve.points
    n = len(pts)
    t = max(0.0, min(1.0, t))
    p = (n - 1) * t
    seg = int(math.floor(p))
    weight = p - seg
    if weight == 0.0 and seg == n - 1:
        seg = n - 2
        weight = 1.0

    p1 = pts[seg]
    p2 = pts[seg + 1]
    # Anchors are interpolated exactly
    if weight == 0.0:
        return p1
    if weight == 1.0:
        return p2

    if seg > 0:
        p0 = pts[seg - 1]
    else:
        p0 = add(sub(pts[0], pts[1]), pts[0])
    if seg + 2 < n:
        p3 = pts[seg + 2]
    else:
        p3 = add(sub(pts[n - 1], pts[n - 2]), pts[n - 1])

    return (
        _catmull_rom(p0[0], p1[0], p2[0], p3[0], curve.tension, weight),
        _catmull_rom(p0[1], p1[1], p2[1], p3[1], curve.tension, weight),
        _catmull_rom(p0[2], p1[2], p2[2], p3[2], curve.tension, weight),
    )


def sample_curve(curve: CatmullRomCurve, divisions: int) -> List[Point3]:
    """Sample ``curve`` at ``divisions + 1`` evenly spaced parameters.

    Args:
        curve: The curve to sample.
        divisions: Number of parameter intervals; must be positive.

    Returns:
        A list of ``divisions + 1`` points from the first anchor to the
        last.
    """
    if divisions < 1:
        raise ValueError("divisions must be at least 1")
    return [evaluate_curve(curve, i / divisions) for i in range(divisions + 1)]


def create_offset_curve(
    curve: Union[CatmullRomCurve, Sequence[Point3]],
    offset: float,
    divisions: int = OFFSET_CURVE_DIVISIONS,
) -> List[Point3]:
    """Shift a curve sideways by ``offset`` in the horizontal plane.

    The tangent at each sample is the normalised difference of its two
    neighbours; at the ends the missing neighbour is the sample itself.
    The tangent is rotated 90° about the vertical (y) axis to obtain
    the lateral normal ``(-t.z, 0, t.x)``, normalised so that the
    displacement is exactly ``offset`` even when the curve climbs.  A
    vertical or zero tangent has no horizontal normal and leaves the
    sample where it is.

    Args:
        curve: A curve, sampled with ``divisions``, or an already
            sampled point sequence used as is.
        offset: Signed lateral distance.
        divisions: Sampling resolution when ``curve`` is a curve.

    Returns:
        The offset points; same count as the sampled input.
    """
    if isinstance(curve, CatmullRomCurve):
        points = sample_curve(curve, divisions)
    else:
        points = list(curve)

    offset_points: List[Point3] = []
    last = len(points) - 1
    for i, current in enumerate(points):
        next_point = points[i + 1] if i < last else current
        prev_point = points[i - 1] if i > 0 else current
        tangent = normalize(sub(next_point, prev_point))
        normal = normalize((-tangent[2], 0.0, tangent[0]))
        offset_points.append(add(current, scale(normal, offset)))
    return offset_points
