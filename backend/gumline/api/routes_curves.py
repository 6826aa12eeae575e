"""
API routes for control points and guiding curves.

``POST /api/control-points`` reduces a sampled boundary cloud to the
five landmarks the guiding curve passes through.  ``POST /api/curves``
fits the Catmull–Rom curve through a list of anchors and returns its
samples, optionally together with a laterally offset copy.  Clients
typically chain the two: the control points become the curve anchors.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from ..services.control_points import find_five_control_points
from ..services.errors import GumlineError
from ..services.spline import create_offset_curve, create_spline_curve, sample_curve
from .models import ControlPointsResponse, CurveRequest, CurveResponse, PointsRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/control-points", response_model=ControlPointsResponse)
async def control_points(request: PointsRequest) -> ControlPointsResponse:
    """Derive the five ordered control points of a boundary cloud.

    At least ten points are required; smaller clouds are rejected with
    ``InsufficientSamplePoints`` (HTTP 400).
    """
    try:
        control = find_five_control_points(request.points)
    except GumlineError:
        raise
    except Exception as exc:
        logger.exception("control-points endpoint error: %s", exc)
        raise HTTPException(status_code=500, detail=f"Failed to compute control points: {exc}")
    return ControlPointsResponse(points=list(control.points))


@router.post("/curves", response_model=CurveResponse)
async def curves(request: CurveRequest) -> CurveResponse:
    """Sample the guiding curve through ``anchors``.

    The curve is shifted vertically by ``yOffset`` and sampled at
    ``divisions + 1`` points.  When ``offset`` is given the response
    also carries the outer curve derived from ``offsetDivisions``
    samples of the unshifted curve.
    """
    try:
        display = create_spline_curve(request.anchors, y_offset=request.yOffset)
        points = sample_curve(display, request.divisions)
        offset_points = None
        if request.offset is not None:
            base = create_spline_curve(request.anchors)
            offset_points = create_offset_curve(base, request.offset, divisions=request.offsetDivisions)
    except GumlineError:
        raise
    except Exception as exc:
        logger.exception("curves endpoint error: %s", exc)
        raise HTTPException(status_code=500, detail=f"Failed to sample curve: {exc}")
    logger.debug(
        "Sampled curve through %d anchors: %d points%s",
        len(request.anchors),
        len(points),
        "" if offset_points is None else f", {len(offset_points)} offset points",
    )
    return CurveResponse(points=points, offsetPoints=offset_points)
