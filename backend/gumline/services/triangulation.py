"""
Surface meshing for reconstructed point sets.

Two meshing strategies are provided:

- ``create_triangle_mesh(points)`` projects the points onto the
  horizontal (x, z) plane and triangulates them with an incremental
  Bowyer–Watson Delaunay triangulation.  It is used for the flat base
  band between the guiding curves.
- ``create_hull_mesh(points)`` takes the 3D convex hull of the points
  with ``scipy.spatial.ConvexHull``.  It is used for the densified,
  deformed gum cap.

Both return a :class:`Mesh`: the untouched input vertex buffer, the
triangle list and per-vertex normals derived from the faces.  Normals
are display metadata; two meshes with the same vertices and triangles
are the same surface regardless of their normals.

Delaunay outline
----------------

The triangulation starts from a single synthetic super-triangle built
from the bounding box and inflated twentyfold so every real point lies
strictly inside it.  Its corners carry the sentinel indices ``-1``,
``-2`` and ``-3``.  Each real point is inserted in input order: every
triangle whose circumcircle contains the point is removed and its
three edges are toggled in a set keyed by the sorted index pair, so an
edge shared by two removed triangles cancels out and only the cavity
boundary survives.  The point is then connected to each boundary edge.
Finally every triangle touching a sentinel is dropped.

Degenerate triples (absolute signed area or circumcircle determinant
below ``DEGENERATE_EPS``) never raise.  A degenerate circumcircle is
simply never "containing", and a degenerate new triangle is skipped,
which may leave the result slightly sparser around duplicate points.
The number of skipped triangles is logged when ``GUMLINE_DEBUG`` is
set.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set, Tuple

import numpy as np
from scipy.spatial import ConvexHull, QhullError

from .errors import InsufficientPointsForHull
from .vectors import Point3, as_points

logger = logging.getLogger(__name__)

Point2 = Tuple[float, float]
Circle = Tuple[float, float, float]  # centre u, centre v, squared radius

SUPER_TRIANGLE_SCALE: float = 20.0
DEGENERATE_EPS: float = 1e-10
MIN_HULL_POINTS: int = 4


@dataclass(frozen=True)
class Triangle:
    """Three indices into a vertex buffer.

    Negative indices only ever refer to super-triangle corners while a
    triangulation is being built; they never appear in a returned mesh.
    """

    a: int
    b: int
    c: int


@dataclass
class Mesh:
    """A renderable triangle mesh.

    Attributes:
        vertices: Vertex buffer.
        triangles: Triangles indexing into ``vertices``.
        normals: Per-vertex normals, one per vertex.
    """

    vertices: List[Point3]
    triangles: List[Triangle]
    normals: List[Point3] = field(default_factory=list)

    @property
    def flat_vertices(self) -> List[float]:
        return [c for p in self.vertices for c in p]

    @property
    def flat_indices(self) -> List[int]:
        return [i for t in self.triangles for i in (t.a, t.b, t.c)]

    @property
    def flat_normals(self) -> List[float]:
        return [c for n in self.normals for c in n]


def _signed_area(a: Point2, b: Point2, c: Point2) -> float:
    """Signed area of triangle ``abc``; positive when counter-clockwise."""
    return 0.5 * ((b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0]))


def _circumcircle(a: Point2, b: Point2, c: Point2) -> Optional[Circle]:
    """Circumscribed circle of ``abc`` or ``None`` for a degenerate triple."""
    ax, ay = a
    bx, by = b
    cx, cy = c
    d = 2.0 * (ax * (by - cy) + bx * (cy - ay) + cx * (ay - by))
    if abs(d) < DEGENERATE_EPS:
        return None
    a2 = ax * ax + ay * ay
    b2 = bx * bx + by * by
    c2 = cx * cx + cy * cy
    ux = (a2 * (by - cy) + b2 * (cy - ay) + c2 * (ay - by)) / d
    uy = (a2 * (cx - bx) + b2 * (ax - cx) + c2 * (bx - ax)) / d
    r2 = (ax - ux) * (ax - ux) + (ay - uy) * (ay - uy)
    return (ux, uy, r2)


def is_point_in_circumcircle(point: Point2, a: Point2, b: Point2, c: Point2) -> bool:
    """Return True if ``point`` lies inside or on the circumcircle of ``abc``.

    A degenerate (collinear) triple has no valid circumcircle and
    always yields False.
    """
    circle = _circumcircle(a, b, c)
    if circle is None:
        return False
    return _in_circle(point, circle)


def _in_circle(point: Point2, circle: Circle) -> bool:
    ux, uy, r2 = circle
    dx = point[0] - ux
    dy = point[1] - uy
    return dx * dx + dy * dy <= r2


def _toggle_edge(edges: Set[Tuple[int, int]], a: int, b: int) -> None:
    """Add the undirected edge ``ab`` or remove it if already present."""
    key = (min(a, b), max(a, b))
    if key in edges:
        edges.remove(key)
    else:
        edges.add(key)


def _super_triangle(points: Sequence[Point2]) -> Tuple[Point2, Point2, Point2]:
    min_u = min(p[0] for p in points)
    max_u = max(p[0] for p in points)
    min_v = min(p[1] for p in points)
    max_v = max(p[1] for p in points)
    dmax = max(max_u - min_u, max_v - min_v)
    if dmax <= 0.0:
        dmax = 1.0
    mid_u = (min_u + max_u) / 2.0
    mid_v = (min_v + max_v) / 2.0
    s = SUPER_TRIANGLE_SCALE
    return (
        (mid_u - s * dmax, mid_v - dmax),
        (mid_u, mid_v + s * dmax),
        (mid_u + s * dmax, mid_v - dmax),
    )


def delaunay_triangulation(points: Sequence[Point2]) -> List[Triangle]:
    """Triangulate 2D points with incremental Bowyer–Watson insertion.

    Args:
        points: The ``(u, v)`` points.  Duplicates and collinear runs
            are tolerated.

    Returns:
        Counter-clockwise triangles whose indices refer to ``points``.
        Empty when fewer than three points are given.
    """
    n = len(points)
    if n < 3:
        return []

    super_pts = _super_triangle(points)

    def coord(index: int) -> Point2:
        return points[index] if index >= 0 else super_pts[-index - 1]

    # Arena of live triangles with their cached circumcircles
    arena: List[Tuple[Triangle, Optional[Circle]]] = [
        (Triangle(-1, -2, -3), _circumcircle(*super_pts))
    ]
    skipped = 0

    for index, point in enumerate(points):
        edges: Set[Tuple[int, int]] = set()
        kept: List[Tuple[Triangle, Optional[Circle]]] = []
        for tri, circle in arena:
            if circle is not None and _in_circle(point, circle):
                _toggle_edge(edges, tri.a, tri.b)
                _toggle_edge(edges, tri.b, tri.c)
                _toggle_edge(edges, tri.c, tri.a)
            else:
                kept.append((tri, circle))
        arena = kept

        for a, b in sorted(edges):
            pa, pb = coord(a), coord(b)
            area = _signed_area(pa, pb, point)
            if abs(area) <= DEGENERATE_EPS:
                skipped += 1
                continue
            if area < 0:
                a, b = b, a
                pa, pb = pb, pa
            arena.append((Triangle(a, b, index), _circumcircle(pa, pb, point)))

    triangles = [tri for tri, _ in arena if tri.a >= 0 and tri.b >= 0 and tri.c >= 0]
    if os.getenv("GUMLINE_DEBUG"):
        logger.debug(
            "delaunay_triangulation: points=%d triangles=%d degenerate_skipped=%d",
            n,
            len(triangles),
            skipped,
        )
    return triangles


def compute_vertex_normals(vertices: Sequence[Point3], triangles: Sequence[Triangle]) -> List[Point3]:
    """Average adjacent face normals into unit per-vertex normals.

    Face normals are accumulated unnormalised, so larger faces weigh
    more.  Vertices referenced by no face get a zero normal.
    """
    if len(vertices) == 0:
        return []
    v = np.asarray(vertices, dtype=float).reshape(-1, 3)
    normals = np.zeros_like(v)
    if triangles:
        idx = np.asarray([(t.a, t.b, t.c) for t in triangles], dtype=np.int64)
        face = np.cross(v[idx[:, 1]] - v[idx[:, 0]], v[idx[:, 2]] - v[idx[:, 0]])
        for col in range(3):
            np.add.at(normals, idx[:, col], face)
    lengths = np.linalg.norm(normals, axis=1)
    nonzero = lengths > 0.0
    normals[nonzero] /= lengths[nonzero][:, None]
    return [(float(n[0]), float(n[1]), float(n[2])) for n in normals]


def create_triangle_mesh(points: Sequence[Point3]) -> Mesh:
    """Mesh a roughly horizontal point set by planar Delaunay triangulation.

    The points are projected onto (x, z) for triangulation; the vertex
    buffer keeps the full 3D coordinates in input order.  Triangles
    are wound so that a flat surface gets upward (+y) normals.
    """
    vertices = as_points(points)
    planar = [(p[0], p[2]) for p in vertices]
    # Counter-clockwise in (x, z) faces -y, so flip the winding
    triangles = [Triangle(t.a, t.c, t.b) for t in delaunay_triangulation(planar)]
    logger.info(
        "Planar triangulation: %d points -> %d triangles", len(vertices), len(triangles)
    )
    return Mesh(
        vertices=vertices,
        triangles=triangles,
        normals=compute_vertex_normals(vertices, triangles),
    )


def create_hull_mesh(points: Sequence[Point3]) -> Mesh:
    """Mesh a point set as its closed 3D convex hull.

    Faces are oriented outward using the hull facet equations.  The
    vertex buffer is the full input; interior points are simply left
    unreferenced.  Coplanar input is retried with Qhull joggling.

    Raises:
        InsufficientPointsForHull: With fewer than four points, fewer
            than four distinct points, or when Qhull cannot build a
            hull even after joggling.
    """
    vertices = as_points(points)
    if len(vertices) < MIN_HULL_POINTS:
        raise InsufficientPointsForHull(
            f"Convex hull meshing needs at least {MIN_HULL_POINTS} points, got {len(vertices)}"
        )
    if len(set(vertices)) < MIN_HULL_POINTS:
        raise InsufficientPointsForHull(
            f"Convex hull meshing needs at least {MIN_HULL_POINTS} distinct points"
        )

    arr = np.asarray(vertices, dtype=float)
    try:
        hull = ConvexHull(arr)
    except QhullError as exc:
        logger.warning("Convex hull failed on %d points (%s); retrying with joggled input", len(vertices), exc)
        try:
            hull = ConvexHull(arr, qhull_options="QJ")
        except QhullError as exc2:
            raise InsufficientPointsForHull(
                f"Could not build a convex hull from the supplied points: {exc2}"
            ) from exc2

    triangles: List[Triangle] = []
    for simplex, equation in zip(hull.simplices, hull.equations):
        a, b, c = (int(i) for i in simplex)
        face_normal = np.cross(arr[b] - arr[a], arr[c] - arr[a])
        if np.dot(face_normal, equation[:3]) < 0:
            b, c = c, b
        triangles.append(Triangle(a, b, c))

    logger.info(
        "Convex hull: %d points -> %d faces on %d hull vertices",
        len(vertices),
        len(triangles),
        len(hull.vertices),
    )
    return Mesh(
        vertices=vertices,
        triangles=triangles,
        normals=compute_vertex_normals(vertices, triangles),
    )
