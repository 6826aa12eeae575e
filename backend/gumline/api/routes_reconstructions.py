"""
API route for a complete gingival reconstruction.

``POST /api/reconstructions`` runs the whole pipeline in one request:
control points, guiding and offset curves, profile deformation,
densification and both meshes.  The response carries every
intermediate point set so a viewer can overlay them on the scan, plus
a metadata block with counts, the effective parameters and stage
timings.

Requests are independent: no state survives between runs and a failed
run returns no partial result.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, HTTPException

from ..services.errors import GumlineError
from ..services.reconstruction import base_mesh_point_count, reconstruct_gingiva
from .models import ReconstructionRequest, ReconstructionResponse
from .routes_meshes import max_triangulation_points, mesh_to_response

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/reconstructions", response_model=ReconstructionResponse)
async def create_reconstruction(request: ReconstructionRequest) -> ReconstructionResponse:
    """Reconstruct the gingival surface from a scan and its boundary.

    Input errors raised by the pipeline (too few boundary samples,
    mismatched heights, out-of-range parameters, a degenerate cap) are
    reported as HTTP 400 with the error class name.

    The base mesh is triangulated from a fill point set whose size
    follows from ``pointsPerLine``; requests exceeding the
    triangulation cap are rejected with 413 before any work starts.
    """
    base_points = base_mesh_point_count(request.params)
    limit = max_triangulation_points()
    if base_points > limit:
        raise HTTPException(
            status_code=413,
            detail=f"Base mesh would need {base_points} points, above the triangulation cap of {limit}",
        )
    try:
        result = reconstruct_gingiva(
            request.boundaryPoints,
            request.gingivalPoints,
            request.heights,
            request.meshVertices,
            request.params,
        )
    except GumlineError:
        raise
    except Exception as exc:
        logger.exception("reconstruction endpoint error: %s", exc)
        raise HTTPException(status_code=500, detail=f"Failed to reconstruct gingiva: {exc}")

    metadata: Dict[str, Any] = {
        "params": request.params.model_dump(),
        "pairCount": len(result.anchor_pairs),
        "deformedCount": len(result.deformed_points),
        "densifiedCount": len(result.densified_points),
        "innerPointCount": len(result.inner_points),
        "timings": result.timings,
    }
    return ReconstructionResponse(
        controlPoints=list(result.control_points.points),
        curve=result.curve_points,
        offsetCurve=result.offset_curve_points,
        deformed=result.deformed_points,
        densified=result.densified_points,
        innerPoints=result.inner_points,
        capMesh=mesh_to_response(result.cap_mesh),
        baseMesh=mesh_to_response(result.base_mesh),
        metadata=metadata,
    )
