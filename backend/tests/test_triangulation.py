"""
Tests for planar Delaunay triangulation and convex hull meshing.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add backend to sys.path for importing modules
sys.path.append(str(Path(__file__).resolve().parents[1]))

from gumline.services.errors import InsufficientPointsForHull
from gumline.services.triangulation import (
    compute_vertex_normals,
    create_hull_mesh,
    create_triangle_mesh,
    delaunay_triangulation,
    is_point_in_circumcircle,
)


def _area(points, tri) -> float:
    a, b, c = points[tri.a], points[tri.b], points[tri.c]
    return 0.5 * ((b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0]))


def test_square_with_centre() -> None:
    points = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0), (0.5, 0.5)]
    triangles = delaunay_triangulation(points)
    assert len(triangles) == 4
    for tri in triangles:
        assert 4 in (tri.a, tri.b, tri.c)
        # Counter-clockwise orientation
        assert _area(points, tri) > 0
    assert sum(_area(points, t) for t in triangles) == pytest.approx(1.0)


def test_fewer_than_three_points() -> None:
    assert delaunay_triangulation([]) == []
    assert delaunay_triangulation([(0.0, 0.0), (1.0, 1.0)]) == []


def test_collinear_points_give_no_triangles() -> None:
    points = [(float(i), 0.0) for i in range(5)]
    assert delaunay_triangulation(points) == []


def test_random_cloud_is_delaunay() -> None:
    rng = np.random.default_rng(42)
    points = [tuple(float(c) for c in row) for row in rng.uniform(0.0, 10.0, size=(60, 2))]
    triangles = delaunay_triangulation(points)
    assert triangles
    for tri in triangles:
        indices = (tri.a, tri.b, tri.c)
        assert min(indices) >= 0
        assert max(indices) < len(points)
        a, b, c = (points[i] for i in indices)
        # Empty circumcircle
        for k, p in enumerate(points):
            if k in indices:
                continue
            assert not is_point_in_circumcircle(p, a, b, c)


def test_duplicate_points_do_not_raise() -> None:
    points = [(0.0, 0.0), (1.0, 0.0), (0.0, 1.0), (1.0, 0.0), (1.0, 1.0)]
    triangles = delaunay_triangulation(points)
    for tri in triangles:
        assert min(tri.a, tri.b, tri.c) >= 0


def test_circumcircle_predicate() -> None:
    a, b, c = (0.0, 0.0), (2.0, 0.0), (0.0, 2.0)
    assert is_point_in_circumcircle((1.0, 1.0), a, b, c)
    # On the circle counts as inside
    assert is_point_in_circumcircle((2.0, 2.0), a, b, c)
    assert not is_point_in_circumcircle((3.0, 3.0), a, b, c)
    # Collinear triples have no circumcircle
    assert not is_point_in_circumcircle((0.5, 0.0), a, b, (4.0, 0.0))


def test_triangle_mesh_faces_up() -> None:
    rng = np.random.default_rng(7)
    points = [(float(x), 20.0, float(z)) for x, z in rng.uniform(-5.0, 5.0, size=(30, 2))]
    mesh = create_triangle_mesh(points)
    assert mesh.vertices == points
    assert len(mesh.triangles) > 0
    assert len(mesh.normals) == len(points)
    v = np.asarray(points)
    for tri in mesh.triangles:
        a, b, c = v[tri.a], v[tri.b], v[tri.c]
        assert np.cross(b - a, c - a)[1] > 0
    used = {i for t in mesh.triangles for i in (t.a, t.b, t.c)}
    for i in used:
        assert mesh.normals[i] == pytest.approx((0.0, 1.0, 0.0))
    assert len(mesh.flat_vertices) == 3 * len(points)
    assert len(mesh.flat_indices) == 3 * len(mesh.triangles)
    assert min(mesh.flat_indices) >= 0


def test_hull_needs_four_points() -> None:
    with pytest.raises(InsufficientPointsForHull):
        create_hull_mesh([(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0)])
    with pytest.raises(InsufficientPointsForHull):
        create_hull_mesh([(0.0, 0.0, 0.0)] * 3 + [(1.0, 0.0, 0.0)])


def test_tetrahedron_hull_faces_outward() -> None:
    points = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0)]
    mesh = create_hull_mesh(points)
    assert len(mesh.triangles) == 4
    v = np.asarray(points)
    centre = v.mean(axis=0)
    for tri in mesh.triangles:
        a, b, c = v[tri.a], v[tri.b], v[tri.c]
        normal = np.cross(b - a, c - a)
        assert np.dot(normal, a - centre) > 0


def test_cube_hull_keeps_input_buffer() -> None:
    corners = [(float(x), float(y), float(z)) for x in (0, 1) for y in (0, 1) for z in (0, 1)]
    points = corners + [(0.5, 0.5, 0.5)]
    mesh = create_hull_mesh(points)
    assert mesh.vertices == points
    used = {i for t in mesh.triangles for i in (t.a, t.b, t.c)}
    assert 8 not in used
    assert len(mesh.triangles) == 12


def test_vertex_normals_for_unreferenced_vertex_are_zero() -> None:
    from gumline.services.triangulation import Triangle

    vertices = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 0.0, -1.0), (5.0, 5.0, 5.0)]
    normals = compute_vertex_normals(vertices, [Triangle(0, 1, 2)])
    assert normals[3] == (0.0, 0.0, 0.0)
    assert normals[0] == pytest.approx((0.0, 1.0, 0.0))
