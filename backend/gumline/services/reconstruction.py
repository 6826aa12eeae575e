"""
End-to-end gingival surface reconstruction.

``reconstruct_gingiva`` chains the stages of the pipeline:

1. derive the five control points of the boundary cloud;
2. fit the guiding curve through them and sample a display preview;
3. derive the outer offset curve;
4. pair each gingival point with its nearest outer-curve sample;
5. deform the mesh vertices along each pair and densify the result;
6. mesh the densified cap as a convex hull;
7. fill the band between the guiding and outer curves with flat points
   and mesh it by planar Delaunay triangulation.

A run is all-or-nothing.  Every parameter is validated before any
geometry is computed and any error propagates without partial output.
Each run works on its own tuple copies of the inputs, so concurrent
runs never share mutable state.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from ..api.models import ReconstructionParams
from .control_points import ControlPointSet, find_five_control_points
from .errors import InsufficientSamplePoints, InvalidProfileParameter
from .gingival_profile import (
    AnchorPair,
    build_anchor_pairs,
    deform_gingival_profile,
    generate_inner_points,
    interpolate_points,
    validate_profile_parameters,
)
from .spline import (
    DISPLAY_CURVE_DIVISIONS,
    OFFSET_CURVE_DIVISIONS,
    create_offset_curve,
    create_spline_curve,
)
from .triangulation import Mesh, create_hull_mesh, create_triangle_mesh
from .vectors import Point3, as_points

logger = logging.getLogger(__name__)


@dataclass
class ReconstructionResult:
    """Everything produced by one reconstruction run."""

    control_points: ControlPointSet
    curve_points: List[Point3]
    offset_curve_points: List[Point3]
    anchor_pairs: List[AnchorPair]
    deformed_points: List[Point3]
    densified_points: List[Point3]
    inner_points: List[Point3]
    cap_mesh: Mesh
    base_mesh: Mesh
    timings: Dict[str, float] = field(default_factory=dict)


def _validate_params(params: ReconstructionParams) -> None:
    validate_profile_parameters(params.D, params.alpha)
    if params.subdivisions < 0:
        raise InvalidProfileParameter(f"subdivisions must be >= 0, got {params.subdivisions}")
    if params.pointsPerLine < 2:
        raise InvalidProfileParameter(f"pointsPerLine must be >= 2, got {params.pointsPerLine}")


def base_mesh_point_count(params: ReconstructionParams) -> int:
    """Number of fill points the base mesh is triangulated from."""
    return (DISPLAY_CURVE_DIVISIONS + 1) * (params.pointsPerLine - 1)


def reconstruct_gingiva(
    boundary_points: Sequence[Sequence[float]],
    gingival_points: Sequence[Sequence[float]],
    heights: Sequence[float],
    mesh_vertices: Sequence[Sequence[float]],
    params: ReconstructionParams | None = None,
) -> ReconstructionResult:
    """Run the full reconstruction pipeline.

    Args:
        boundary_points: Sampled boundary cloud used for the control
            points (at least ten samples).
        gingival_points: Gingival margin points, one walk each.
        heights: One height per gingival point.
        mesh_vertices: Vertices of the scanned mesh searched by the
            deformation walk.
        params: Tuning parameters; defaults when omitted.

    Returns:
        ReconstructionResult: All intermediate and final artifacts.

    Raises:
        InvalidProfileParameter: If a tuning parameter is out of range.
        InsufficientSamplePoints: If the boundary cloud is too small or
            heights and gingival points differ in count.
        InsufficientPointsForHull: If the densified cap has fewer than
            four points.
    """
    params = params or ReconstructionParams()
    _validate_params(params)

    boundary = as_points(boundary_points)
    gingival = as_points(gingival_points)
    vertices = as_points(mesh_vertices)
    heights = [float(h) for h in heights]
    if len(heights) != len(gingival):
        raise InsufficientSamplePoints(
            f"Expected one height per gingival point: {len(gingival)} points, {len(heights)} heights"
        )

    timings: Dict[str, float] = {}
    t0 = time.perf_counter()

    control = find_five_control_points(boundary)
    curve = create_spline_curve(control.points)
    display_curve = create_spline_curve(control.points, y_offset=params.offsetYDisplay)
    curve_points = display_curve.get_points(DISPLAY_CURVE_DIVISIONS)
    offset_points = create_offset_curve(curve, params.curveOffset, divisions=OFFSET_CURVE_DIVISIONS)
    timings["curves"] = time.perf_counter() - t0

    t1 = time.perf_counter()
    pairs = build_anchor_pairs(gingival, heights, offset_points)
    deformed = deform_gingival_profile(pairs, vertices, params.D, params.alpha)
    densified = interpolate_points(deformed, params.subdivisions)
    timings["deformation"] = time.perf_counter() - t1

    t2 = time.perf_counter()
    cap_mesh = create_hull_mesh(densified)
    base_curve_points = curve.get_points(DISPLAY_CURVE_DIVISIONS)
    inner_points = generate_inner_points(
        base_curve_points,
        offset_points,
        points_per_line=params.pointsPerLine,
    )
    base_mesh = create_triangle_mesh(inner_points)
    timings["meshing"] = time.perf_counter() - t2

    logger.info(
        "Reconstruction finished: %d gingival points, %d deformed, %d densified, "
        "cap=%d faces, base=%d faces in %.3fs",
        len(gingival),
        len(deformed),
        len(densified),
        len(cap_mesh.triangles),
        len(base_mesh.triangles),
        time.perf_counter() - t0,
    )
    return ReconstructionResult(
        control_points=control,
        curve_points=curve_points,
        offset_curve_points=offset_points,
        anchor_pairs=pairs,
        deformed_points=deformed,
        densified_points=densified,
        inner_points=inner_points,
        cap_mesh=cap_mesh,
        base_mesh=base_mesh,
        timings=timings,
    )
