"""
Tests for the gingival profile deformation stage.

The end-to-end scenario deforms a flat 10 x 10 vertex grid (spacing
0.5 in x and z) along a single anchor pair running in +x.  With
``D = 2`` the walk must stop at x = 2, so exactly five points come
back and each carries the falloff profile height.
"""

import math
import sys
from pathlib import Path

import numpy as np
import pytest

# Add backend to sys.path for importing modules
sys.path.append(str(Path(__file__).resolve().parents[1]))

from gumline.services.errors import InsufficientSamplePoints, InvalidProfileParameter
from gumline.services.gingival_profile import (
    VERTICAL_OFFSET,
    AnchorPair,
    build_anchor_pairs,
    deform_gingival_profile,
    find_points_on_line,
    generate_inner_points,
    interpolate_points,
    profile_height,
)


def _grid() -> list:
    return [(i * 0.5, 0.0, j * 0.5) for i in range(10) for j in range(10)]


def _expected_height(x: float, height: float, D: float = 2.0, alpha: float = 1.0) -> float:
    R = (x / D) * 4.5
    h = -abs(VERTICAL_OFFSET - height)
    return h * (R ** (2 * alpha) - 1) ** 2 + VERTICAL_OFFSET


def test_grid_deformation_end_to_end() -> None:
    pair = AnchorPair(gingival_point=(0.0, 0.0, 0.0), anchor=(4.5, 0.0, 0.0), height=0.0)
    deformed = deform_gingival_profile([pair], _grid(), D=2.0, alpha=1.0)
    xs = [p[0] for p in deformed]
    assert xs == [0.0, 0.5, 1.0, 1.5, 2.0]
    for p in deformed:
        assert p[2] == 0.0
        assert p[1] == pytest.approx(_expected_height(p[0], 0.0))
    # Only y is rewritten, so compare positions in the horizontal plane
    touched = {(p[0], p[2]) for p in deformed}
    assert all(math.dist((x, 0.0, z), (0.0, 0.0, 0.0)) <= 2.0 for x, z in touched)
    # Grid vertices farther than D from the gingival point never appear
    far = [v for v in _grid() if math.dist(v, (0.0, 0.0, 0.0)) > 2.0]
    assert far
    assert not any((v[0], v[2]) in touched for v in far)


def test_walk_stays_within_search_radius() -> None:
    walked = find_points_on_line((0.0, 0.0, 0.0), (4.5, 0.0, 0.0), _grid(), max_distance=2.0)
    assert walked == [(0.0, 0.0, 0.0), (0.5, 0.0, 0.0), (1.0, 0.0, 0.0), (1.5, 0.0, 0.0), (2.0, 0.0, 0.0)]
    assert all(math.dist(p, (0.0, 0.0, 0.0)) <= 2.0 for p in walked)


def test_profile_depth_scales_with_height() -> None:
    grid = _grid()
    low = deform_gingival_profile(
        [AnchorPair((0.0, 0.0, 0.0), (4.5, 0.0, 0.0), 0.0)], grid, D=2.0, alpha=1.0
    )
    high = deform_gingival_profile(
        [AnchorPair((0.0, 0.0, 0.0), (4.5, 0.0, 0.0), 10.0)], grid, D=2.0, alpha=1.0
    )
    assert len(low) == len(high)
    for a, b in zip(low, high):
        # h = -20 for height 0 and -10 for height 10
        assert (b[1] - VERTICAL_OFFSET) == pytest.approx(0.5 * (a[1] - VERTICAL_OFFSET))


def test_profile_height_equals_offset_where_R_is_one() -> None:
    y = profile_height((1.0, 0.0, 0.0), (0.0, 0.0, 0.0), (2.0, 0.0, 0.0), 3.0, D=2.0, alpha=1.7)
    assert y == pytest.approx(VERTICAL_OFFSET)


def test_profile_height_at_gingival_point() -> None:
    # R = 0, so y = h + k
    y = profile_height((0.0, 0.0, 0.0), (0.0, 0.0, 0.0), (3.0, 0.0, 0.0), 5.0, D=2.0, alpha=1.0)
    assert y == pytest.approx(-15.0 + VERTICAL_OFFSET)


def test_profile_height_is_symmetric() -> None:
    p = (0.0, 0.0, 0.0)
    b = (3.0, 0.0, 0.0)
    left = profile_height((0.0, 0.0, 1.0), p, b, 4.0, D=2.0, alpha=0.8)
    right = profile_height((0.0, 0.0, -1.0), p, b, 4.0, D=2.0, alpha=0.8)
    assert left == right


@pytest.mark.parametrize("D, alpha", [(0.0, 1.0), (-1.0, 1.0), (2.0, 0.0), (2.0, -0.5), (float("nan"), 1.0)])
def test_invalid_parameters_raise(D: float, alpha: float) -> None:
    with pytest.raises(InvalidProfileParameter):
        deform_gingival_profile([], _grid(), D=D, alpha=alpha)


def test_overflowing_alpha_raises_parameter_error() -> None:
    pair = AnchorPair((0.0, 0.0, 0.0), (5.0, 0.0, 0.0), 0.0)
    vertices = [(0.5 * i, 0.0, 0.0) for i in range(1, 5)]
    with pytest.raises(InvalidProfileParameter):
        deform_gingival_profile([pair], vertices, D=2.0, alpha=150.0)


def test_large_alpha_below_unit_radius_is_fine() -> None:
    # R < 1 everywhere, so R ** (2 alpha) underflows to 0 instead
    y = profile_height((0.5, 0.0, 0.0), (0.0, 0.0, 0.0), (1.0, 0.0, 0.0), 0.0, D=2.0, alpha=500.0)
    assert y == pytest.approx(0.0)


def test_walk_is_bounded() -> None:
    rng = np.random.default_rng(0)
    cloud = [tuple(float(c) for c in row) for row in rng.uniform(-3.0, 3.0, size=(400, 3))]
    start = (0.0, 0.0, 0.0)
    walked = find_points_on_line(start, (3.0, 0.5, 1.0), cloud, max_distance=1.5)
    assert walked[0] == start
    assert len(walked) <= len(cloud) + 1
    assert len(set(walked[1:])) == len(walked) - 1
    assert all(math.dist(start, p) <= 1.5 for p in walked)


def test_walk_without_vertices_returns_start() -> None:
    assert find_points_on_line((1.0, 2.0, 3.0), (4.0, 2.0, 3.0), [], max_distance=2.0) == [(1.0, 2.0, 3.0)]


def test_interpolate_points_sorts_and_densifies() -> None:
    pts = [(2.0, 0.0, 0.0), (0.0, 1.0, 0.0), (1.0, 2.0, 0.0)]
    result = interpolate_points(pts, subdivisions=1)
    assert result == [
        (0.0, 1.0, 0.0),
        (0.5, 1.5, 0.0),
        (1.0, 2.0, 0.0),
        (1.5, 1.0, 0.0),
        (2.0, 0.0, 0.0),
    ]


@pytest.mark.parametrize("n, subdivisions", [(1, 5), (2, 0), (4, 5), (7, 3)])
def test_interpolate_points_count(n: int, subdivisions: int) -> None:
    pts = [(float(i), 0.0, 0.0) for i in range(n)]
    result = interpolate_points(pts, subdivisions)
    assert len(result) == n + (n - 1) * subdivisions
    assert [p[0] for p in result] == sorted(p[0] for p in result)


def test_interpolate_points_rejects_negative_subdivisions() -> None:
    with pytest.raises(InvalidProfileParameter):
        interpolate_points([(0.0, 0.0, 0.0), (1.0, 0.0, 0.0)], subdivisions=-1)


def test_build_anchor_pairs_picks_nearest_sample() -> None:
    spline = [(0.0, 0.0, 0.0), (5.0, 0.0, 0.0), (10.0, 0.0, 0.0)]
    pairs = build_anchor_pairs([(4.0, 1.0, 0.0), (9.0, 0.0, 1.0)], [1.0, 2.0], spline)
    assert [p.anchor for p in pairs] == [(5.0, 0.0, 0.0), (10.0, 0.0, 0.0)]
    assert [p.height for p in pairs] == [1.0, 2.0]


def test_build_anchor_pairs_requires_matching_heights() -> None:
    with pytest.raises(InsufficientSamplePoints):
        build_anchor_pairs([(0.0, 0.0, 0.0)], [1.0, 2.0], [(1.0, 0.0, 0.0)])


def test_generate_inner_points_fills_band() -> None:
    inner = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0)]
    outer = [(0.0, 5.0, 4.0), (1.0, 5.0, 4.0)]
    points = generate_inner_points(inner, outer, points_per_line=4)
    assert len(points) == 6
    assert all(p[1] == VERTICAL_OFFSET for p in points)
    assert [p[2] for p in points[:3]] == pytest.approx([1.0, 2.0, 3.0])
    assert all(p[0] == 0.0 for p in points[:3])
