"""
Mesh JSON: exchange format for chart packing

INPUT (MeshDocument):
- textures: source textures, by pixel size or by image path
- faces: triangles with per-corner UVs in the face's source texture
- charts: groups of face indices, one per UV island
- anchors / flipped: optional alignment data from a chart-merging step

UV CONVENTION:
- Input UVs are normalized (0-1) per source texture, origin bottom-left
- They are converted to texel units (uv * texture size * resolution scaling)
  before packing; the original texel coordinates drive integer shifting
- Output UVs are normalized (0-1) per output container, and each corner
  carries the index of its output container

OUTPUT (PackedMeshDocument):
- texture_sizes: realized pixel size of each output container
- charts: terminal packing state per chart
- faces: rewritten per-corner UVs and container indices

EXAMPLE:
    {
      "textures": [{"width": 1024, "height": 1024}],
      "faces": [
        {"vertices": [0, 1, 2], "uv": [[0, 0], [0.1, 0], [0.1, 0.1]], "texture": 0, "region": 0}
      ],
      "charts": [{"id": 0, "faces": [0]}]
    }
"""

from __future__ import annotations
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator

# Type aliases for better readability
UV2 = List[float]

#########################
# INPUT MODELS
#########################

class TextureEntry(BaseModel):
    """
    A source texture. Either give the pixel size directly or a path to an
    image file whose header provides it.
    """
    model_config = ConfigDict(extra='forbid')

    width: Optional[int] = Field(None, gt=0, description="Width in pixels.")
    height: Optional[int] = Field(None, gt=0, description="Height in pixels.")
    path: Optional[str] = Field(None, description="Image file to read the size from.")

    @model_validator(mode='after')
    def validate_size_source(self):
        has_size = self.width is not None and self.height is not None
        if not has_size and self.path is None:
            raise ValueError("Texture needs 'width' and 'height' or a 'path'")
        if (self.width is None) != (self.height is None):
            raise ValueError("'width' and 'height' must be given together")
        return self

class FaceEntry(BaseModel):
    model_config = ConfigDict(extra='forbid')

    vertices: List[int] = Field(..., description="Three vertex indices.", min_length=3, max_length=3)
    uv: List[UV2] = Field(..., description="Per-corner [u, v], normalized to the source texture.", min_length=3, max_length=3)
    texture: int = Field(0, ge=0, description="Source texture index.")
    region: Optional[int] = Field(None, description="Original region id (defaults to the face index).")

    @field_validator('vertices')
    @classmethod
    def validate_vertices(cls, v):
        if any(i < 0 for i in v):
            raise ValueError("Vertex indices must be non-negative")
        return v

    @field_validator('uv')
    @classmethod
    def validate_uv(cls, v):
        if any(len(corner) != 2 for corner in v):
            raise ValueError("Each UV corner must be [u, v]")
        return v

class ChartEntry(BaseModel):
    model_config = ConfigDict(extra='forbid')

    id: int = Field(..., description="Stable chart identifier.")
    faces: List[int] = Field(..., description="Indices into 'faces'.")

class MeshDocument(BaseModel):
    model_config = ConfigDict(extra='forbid')

    textures: List[TextureEntry] = Field(..., min_length=1, description="Source textures.")
    faces: List[FaceEntry] = Field(..., description="Triangles.")
    charts: List[ChartEntry] = Field(..., description="UV islands to pack.")
    anchors: Dict[int, int] = Field(default_factory=dict, description="Chart id -> anchor face index.")
    flipped: Dict[int, bool] = Field(default_factory=dict, description="Region id -> parameterization was mirrored.")

    @model_validator(mode='after')
    def validate_references(self):
        nf = len(self.faces)
        chart_faces = {}
        owner = {}
        for chart in self.charts:
            if chart.id in chart_faces:
                raise ValueError(f"Duplicate chart id {chart.id}")
            chart_faces[chart.id] = set(chart.faces)
            for f in chart.faces:
                if not 0 <= f < nf:
                    raise ValueError(f"Chart {chart.id} references missing face {f}")
                # Each face belongs to exactly one chart
                if f in owner:
                    raise ValueError(f"Face {f} is listed by chart {owner[f]} and chart {chart.id}")
                owner[f] = chart.id
        for face in self.faces:
            if face.texture >= len(self.textures):
                raise ValueError(f"Face references missing texture {face.texture}")
        for chart_id, f in self.anchors.items():
            if chart_id not in chart_faces:
                raise ValueError(f"Anchor given for unknown chart {chart_id}")
            if f not in chart_faces[chart_id]:
                raise ValueError(f"Anchor of chart {chart_id} references face {f}, which is not in that chart")
            region = self.faces[f].region if self.faces[f].region is not None else f
            if region not in self.flipped:
                raise ValueError(f"Anchor of chart {chart_id} needs a 'flipped' entry for region {region}")
        return self

#########################
# OUTPUT MODELS
#########################

class TextureSizeEntry(BaseModel):
    width: int
    height: int

class ChartResult(BaseModel):
    id: int
    state: str = Field(..., description="Terminal packing state.")
    container: Optional[int] = Field(None, description="Output container when packed.")
    shift: Optional[UV2] = Field(None, description="Integer-shift translation applied, if any.")

class PackedFace(BaseModel):
    vertices: List[int]
    uv: List[UV2] = Field(..., description="Per-corner [u, v], normalized to the output container.")
    texture: List[int] = Field(..., description="Per-corner output container index.")

class PackedMeshDocument(BaseModel):
    model_config = ConfigDict(extra='forbid')

    total_packed: int = Field(..., description="Charts resolved, packed or skipped.")
    packing_scale: float
    texture_sizes: List[TextureSizeEntry]
    charts: List[ChartResult]
    faces: List[PackedFace]

# Rebuild models for forward references
TextureEntry.model_rebuild()
FaceEntry.model_rebuild()
ChartEntry.model_rebuild()
MeshDocument.model_rebuild()
TextureSizeEntry.model_rebuild()
ChartResult.model_rebuild()
PackedFace.model_rebuild()
PackedMeshDocument.model_rebuild()
