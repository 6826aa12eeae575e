"""
API route for the gingival profile deformation stage.

``POST /api/profiles`` takes explicit anchor pairs and the scanned mesh
vertices, runs the directional walk and falloff profile for every pair
and returns both the raw deformed points and their densified,
x-ordered version.  It exposes the middle of the reconstruction
pipeline on its own so clients can tune ``D`` and ``alpha``
interactively without re-running the curve stages.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from ..services.errors import GumlineError
from ..services.gingival_profile import AnchorPair, deform_gingival_profile, interpolate_points
from ..services.vectors import as_point
from .models import ProfileRequest, ProfileResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/profiles", response_model=ProfileResponse)
async def profiles(request: ProfileRequest) -> ProfileResponse:
    """Deform the mesh vertices along each anchor pair.

    Non-positive ``D`` or ``alpha`` is rejected with
    ``InvalidProfileParameter`` (HTTP 400) before any work is done.
    """
    pairs = [
        AnchorPair(
            gingival_point=as_point(p.gingivalPoint),
            anchor=as_point(p.anchor),
            height=p.height,
        )
        for p in request.pairs
    ]
    try:
        deformed = deform_gingival_profile(pairs, request.vertices, request.D, request.alpha)
        densified = interpolate_points(deformed, request.subdivisions)
    except GumlineError:
        raise
    except Exception as exc:
        logger.exception("profiles endpoint error: %s", exc)
        raise HTTPException(status_code=500, detail=f"Failed to deform profile: {exc}")
    return ProfileResponse(deformed=deformed, densified=densified)
