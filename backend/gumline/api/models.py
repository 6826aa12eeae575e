"""
Pydantic data models for the gingival reconstruction API.

These models define the shapes of requests and responses used by the
backend.  Points travel as ``[x, y, z]`` arrays; meshes travel as flat
vertex, index and normal buffers ready to be uploaded to a GPU buffer
on the client.  Maintaining these schemas separately keeps the HTTP
contract in one place while the services work on plain tuples.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

Vec3 = Tuple[float, float, float]


class PointsRequest(BaseModel):
    """Request body carrying a single point set."""

    points: List[Vec3] = Field(..., description="Points as [x, y, z] arrays")


class ControlPointsResponse(BaseModel):
    """The five ordered control points of a boundary cloud."""

    points: List[Vec3] = Field(
        ..., description="minX, maxDistMinus, topCentroid, maxDistPlus, maxX in curve order"
    )
    labels: List[str] = Field(
        default_factory=lambda: ["minX", "maxDistMinus", "topCentroid", "maxDistPlus", "maxX"],
        description="Landmark name of each returned point",
    )


class CurveRequest(BaseModel):
    """Request body for sampling a guiding curve."""

    anchors: List[Vec3] = Field(..., description="Ordered curve anchors (at least two)")
    yOffset: float = Field(
        default=0.0,
        description="Vertical shift applied to the anchors, used to preview the curve at another elevation",
    )
    divisions: int = Field(
        default=100,
        ge=1,
        le=10000,
        description="Number of parameter intervals; divisions + 1 samples are returned",
    )
    # When set, a laterally shifted copy of the curve is returned too.
    offset: Optional[float] = Field(
        default=None,
        description="Lateral offset distance for an additional offset curve",
    )
    offsetDivisions: int = Field(
        default=500,
        ge=1,
        le=10000,
        description="Sampling resolution used to derive the offset curve",
    )


class CurveResponse(BaseModel):
    """Sampled curve and optional offset curve."""

    points: List[Vec3] = Field(..., description="Curve samples from first to last anchor")
    offsetPoints: Optional[List[Vec3]] = Field(
        default=None, description="Offset curve samples when an offset was requested"
    )


class AnchorPairModel(BaseModel):
    """A gingival point, its curve anchor and its height."""

    gingivalPoint: Vec3
    anchor: Vec3
    height: float


class ProfileRequest(BaseModel):
    """Request body for the profile deformation stage."""

    pairs: List[AnchorPairModel] = Field(..., description="Anchor pairs in boundary order")
    vertices: List[Vec3] = Field(..., description="Scanned mesh vertices searched by the walk")
    # D and alpha are range-checked by the service so the error is
    # reported the same way for API and library callers.
    D: float = Field(default=2.0, description="Search and falloff radius (> 0)")
    alpha: float = Field(default=1.0, description="Falloff sharpness exponent (> 0)")
    subdivisions: int = Field(
        default=5, ge=0, description="Intermediate points inserted between neighbours when densifying"
    )


class ProfileResponse(BaseModel):
    """Deformed and densified point sets."""

    deformed: List[Vec3]
    densified: List[Vec3]


class MeshBBox(BaseModel):
    """Axis‑aligned bounding box for a mesh."""

    min: List[float] = Field(..., description="Minimum x, y, z coordinates of the mesh")
    max: List[float] = Field(..., description="Maximum x, y, z coordinates of the mesh")


class MeshResponse(BaseModel):
    """Response returned for a meshing request."""

    vertices: List[float] = Field(..., description="Flat list of vertex positions (x, y, z …)")
    indices: List[int] = Field(..., description="Index buffer defining the mesh triangles")
    normals: List[float] = Field(..., description="Flat list of vertex normals (x, y, z …)")
    bbox: Optional[MeshBBox] = Field(
        default=None, description="Bounding box around the mesh; absent for an empty vertex buffer"
    )
    triangleCount: int = Field(..., description="Number of triangles in the index buffer")


class ReconstructionParams(BaseModel):
    """Tuning parameters of a reconstruction run."""

    D: float = Field(default=2.0, description="Search and falloff radius (> 0)")
    alpha: float = Field(default=1.0, description="Falloff sharpness exponent (> 0)")
    curveOffset: float = Field(
        default=5.0, description="Lateral distance between the guiding curve and the outer anchor curve"
    )
    offsetYDisplay: float = Field(
        default=0.0, description="Vertical shift of the returned preview curve"
    )
    subdivisions: int = Field(
        default=5, ge=0, description="Intermediate points inserted between neighbours when densifying"
    )
    pointsPerLine: int = Field(
        default=30, ge=2, description="Fill points generated per inner/outer curve segment"
    )


class ReconstructionRequest(BaseModel):
    """Request body for a full reconstruction run."""

    boundaryPoints: List[Vec3] = Field(..., description="Sampled boundary cloud (at least ten points)")
    gingivalPoints: List[Vec3] = Field(..., description="Gingival margin points")
    heights: List[float] = Field(..., description="One height per gingival point")
    meshVertices: List[Vec3] = Field(..., description="Vertices of the scanned mesh")
    params: ReconstructionParams = Field(default_factory=ReconstructionParams)


class ReconstructionResponse(BaseModel):
    """Artifacts of a reconstruction run."""

    controlPoints: List[Vec3]
    curve: List[Vec3] = Field(..., description="Preview samples of the guiding curve")
    offsetCurve: List[Vec3] = Field(..., description="Samples of the outer anchor curve")
    deformed: List[Vec3]
    densified: List[Vec3]
    innerPoints: List[Vec3]
    capMesh: MeshResponse
    baseMesh: MeshResponse
    metadata: Dict[str, Any] = Field(
        default_factory=dict, description="Counts, parameters and stage timings"
    )
