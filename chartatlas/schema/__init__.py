"""Mesh JSON schema definitions."""
from .meshjson import (
    MeshDocument,
    TextureEntry,
    FaceEntry,
    ChartEntry,
    PackedMeshDocument,
    TextureSizeEntry,
    ChartResult,
    PackedFace,
)

__all__ = [
    "MeshDocument",
    "TextureEntry",
    "FaceEntry",
    "ChartEntry",
    "PackedMeshDocument",
    "TextureSizeEntry",
    "ChartResult",
    "PackedFace",
]
