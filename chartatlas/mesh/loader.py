"""
Conversion between Mesh JSON documents and the in-memory mesh.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

import numpy as np

from chartatlas.mesh.model import Chart, Mesh, build_charts
from chartatlas.mesh.texture import TextureObject, TextureSize
from chartatlas.schema.meshjson import MeshDocument

logger = logging.getLogger(__name__)


def load_document(path: Union[str, Path]) -> MeshDocument:
    """Read and validate a Mesh JSON file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    with open(path, 'r') as f:
        data = json.load(f)
    return MeshDocument.model_validate(data)


def build_texture_object(doc: MeshDocument, base_dir: Optional[Union[str, Path]] = None) -> TextureObject:
    sizes = []
    for entry in doc.textures:
        if entry.width is not None:
            sizes.append(TextureSize(entry.width, entry.height))
            continue
        tex_path = Path(entry.path)
        if base_dir is not None and not tex_path.is_absolute():
            tex_path = Path(base_dir) / tex_path
        sizes.extend(TextureObject.from_files([tex_path]).sizes)
    return TextureObject(sizes)


def build_mesh(
    doc: MeshDocument,
    texture_object: TextureObject,
    resolution_scaling: float = 1.0,
) -> Tuple[Mesh, List[Chart]]:
    """
    Build the face arena and charts of a document.

    Normalized input UVs are scaled to texel units of their source texture
    (times resolution_scaling), and that state is stored as the pre-packing
    reference used by integer shifting.
    """
    fn = len(doc.faces)
    face_vertices = np.array([face.vertices for face in doc.faces], dtype=np.int64).reshape(fn, 3)
    wedge_uv = np.array([face.uv for face in doc.faces], dtype=float).reshape(fn, 3, 2)
    wedge_tex = np.array([[face.texture] * 3 for face in doc.faces], dtype=np.int64).reshape(fn, 3)
    face_region = np.array(
        [face.region if face.region is not None else i for i, face in enumerate(doc.faces)],
        dtype=np.int64,
    )

    tex_dims = np.array([[s.w, s.h] for s in texture_object.sizes], dtype=float)
    if fn:
        wedge_uv *= tex_dims[wedge_tex[:, 0]][:, None, :] * resolution_scaling

    mesh = Mesh(face_vertices, wedge_uv, wedge_tex, face_region)
    charts = build_charts(mesh, {chart.id: chart.faces for chart in doc.charts})
    logger.info(f"Loaded mesh with {mesh.face_count} faces, {mesh.vertex_count} vertices and {len(charts)} charts")
    return mesh, charts
