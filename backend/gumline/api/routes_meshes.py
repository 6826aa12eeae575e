"""
API routes for surface meshing.

Two endpoints turn a point set into a renderable mesh:

- ``POST /api/meshes/triangulate`` projects the points onto the
  horizontal plane and triangulates them (Bowyer–Watson Delaunay).
- ``POST /api/meshes/hull`` builds the closed 3D convex hull.

Both respond with flat vertex, index and normal buffers plus the
bounding box, the same shape the viewer uploads to the GPU.  The
incremental triangulation is quadratic in the worst case, so the
number of points accepted by ``/meshes/triangulate`` is capped by
``GUMLINE_MAX_TRIANGULATION_POINTS`` (default 20000).
"""

from __future__ import annotations

import logging
import os

from fastapi import APIRouter, HTTPException

from ..services.errors import GumlineError
from ..services.triangulation import Mesh, create_hull_mesh, create_triangle_mesh
from ..services.vectors import compute_bbox
from .models import MeshBBox, MeshResponse, PointsRequest

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_MAX_TRIANGULATION_POINTS = 20000


def max_triangulation_points() -> int:
    """Return the configured triangulation cap, read on every request."""
    raw = os.getenv("GUMLINE_MAX_TRIANGULATION_POINTS")
    if not raw:
        return DEFAULT_MAX_TRIANGULATION_POINTS
    try:
        return int(raw)
    except ValueError:
        logger.warning(
            "Ignoring invalid GUMLINE_MAX_TRIANGULATION_POINTS=%r; using %d",
            raw,
            DEFAULT_MAX_TRIANGULATION_POINTS,
        )
        return DEFAULT_MAX_TRIANGULATION_POINTS


def mesh_to_response(mesh: Mesh) -> MeshResponse:
    """Flatten a :class:`Mesh` into the JSON mesh shape."""
    bbox = None
    if mesh.vertices:
        bmin, bmax = compute_bbox(mesh.vertices)
        bbox = MeshBBox(min=bmin, max=bmax)
    return MeshResponse(
        vertices=mesh.flat_vertices,
        indices=mesh.flat_indices,
        normals=mesh.flat_normals,
        bbox=bbox,
        triangleCount=len(mesh.triangles),
    )


@router.post("/meshes/triangulate", response_model=MeshResponse)
async def triangulate(request: PointsRequest) -> MeshResponse:
    """Triangulate a roughly horizontal point set in the (x, z) plane."""
    limit = max_triangulation_points()
    if len(request.points) > limit:
        raise HTTPException(
            status_code=413,
            detail=f"Too many points for triangulation: {len(request.points)} > {limit}",
        )
    try:
        mesh = create_triangle_mesh(request.points)
    except GumlineError:
        raise
    except Exception as exc:
        logger.exception("triangulate endpoint error: %s", exc)
        raise HTTPException(status_code=500, detail=f"Failed to triangulate points: {exc}")
    return mesh_to_response(mesh)


@router.post("/meshes/hull", response_model=MeshResponse)
async def hull(request: PointsRequest) -> MeshResponse:
    """Mesh a point set as its convex hull.

    Fewer than four distinct points, or a set Qhull cannot hull, is
    reported as ``InsufficientPointsForHull`` (HTTP 400).
    """
    try:
        mesh = create_hull_mesh(request.points)
    except GumlineError:
        raise
    except Exception as exc:
        logger.exception("hull endpoint error: %s", exc)
        raise HTTPException(status_code=500, detail=f"Failed to build convex hull: {exc}")
    return mesh_to_response(mesh)
