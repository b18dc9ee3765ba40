"""
Core chartatlas API

Provides the AtlasPacker class that runs the full packing pipeline and the
PackResult class for inspecting and saving the outcome.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from chartatlas.mesh.loader import build_mesh, build_texture_object, load_document
from chartatlas.mesh.model import Chart, Mesh
from chartatlas.mesh.texture import TextureObject, TextureSize
from chartatlas.packing.allocator import Assignment, allocate_atlas
from chartatlas.packing.integer_shift import integer_shift
from chartatlas.packing.oracle import PackingOracle
from chartatlas.packing.outline import extract_outlines
from chartatlas.packing.params import AlgoParameters, PackingParameters
from chartatlas.packing.rasterized_packer import RasterizedOutlinePacker
from chartatlas.packing.rewriter import rewrite_uvs
from chartatlas.schema.meshjson import (
    ChartResult,
    MeshDocument,
    PackedFace,
    PackedMeshDocument,
    TextureSizeEntry,
)

logger = logging.getLogger(__name__)


@dataclass
class PackResult:
    """
    Outcome of a packing run.

    Attributes:
        total_packed: Charts resolved (placed or permanently skipped)
        texture_sizes: Realized pixel size of each output container
        assignments: Terminal state per chart, same order as the charts
        charts: The packed charts
        mesh: Mesh with rewritten UVs
        packing_scale: Texel-to-grid factor used for this run
        shifts: Integer-shift translation per anchored chart id
    """
    total_packed: int
    texture_sizes: List[TextureSize]
    assignments: List[Assignment]
    charts: List[Chart]
    mesh: Mesh
    packing_scale: float
    shifts: Dict[int, Tuple[float, float]] = field(default_factory=dict)

    def to_document(self) -> PackedMeshDocument:
        mesh = self.mesh
        return PackedMeshDocument(
            total_packed=self.total_packed,
            packing_scale=self.packing_scale,
            texture_sizes=[TextureSizeEntry(width=s.w, height=s.h) for s in self.texture_sizes],
            charts=[
                ChartResult(
                    id=chart.id,
                    state=assignment.state.value,
                    container=assignment.container,
                    shift=list(self.shifts[chart.id]) if chart.id in self.shifts else None,
                )
                for chart, assignment in zip(self.charts, self.assignments)
            ],
            faces=[
                PackedFace(
                    vertices=mesh.face_vertices[f].tolist(),
                    uv=mesh.wedge_uv[f].tolist(),
                    texture=mesh.wedge_tex[f].tolist(),
                )
                for f in range(mesh.face_count)
            ],
        )

    def to_json(self) -> dict:
        """
        Packed mesh as a JSON-compatible dict.

        Example:
            >>> result = packer.pack_file("mesh.json")
            >>> result.to_json()["texture_sizes"]
            [{'width': 1024, 'height': 1024}]
        """
        return self.to_document().model_dump()

    def save(self, path: Union[str, Path]) -> None:
        """Write the packed mesh document as JSON."""
        with open(path, 'w') as f:
            json.dump(self.to_json(), f, indent=2)


class AtlasPacker:
    """
    Packs the charts of a mesh into texture atlases.

    Examples:
        Basic usage:
        >>> packer = AtlasPacker()
        >>> packer.pack_file("mesh.json").save("packed.json")

        Custom parameters and oracle:
        >>> packer = AtlasPacker(
        ...     params=AlgoParameters(resolution_scaling=2.0),
        ...     packing_params=PackingParameters(gutter_width=2),
        ...     oracle=RasterizedOutlinePacker(max_grid_dim=4096),
        ... )
    """

    def __init__(
        self,
        params: Optional[AlgoParameters] = None,
        packing_params: Optional[PackingParameters] = None,
        oracle: Optional[PackingOracle] = None,
    ):
        self.params = params or AlgoParameters()
        self.packing_params = packing_params or PackingParameters()
        self.oracle = oracle or RasterizedOutlinePacker()

    def pack(
        self,
        mesh: Mesh,
        charts: Sequence[Chart],
        texture_object: TextureObject,
        anchors: Optional[Mapping[int, int]] = None,
        flipped: Optional[Mapping[int, bool]] = None,
    ) -> PackResult:
        """
        Run outline extraction, allocation, UV rewriting and integer shifting.

        Args:
            mesh: Mesh whose wedge UVs are in texel units
            charts: Charts to pack
            texture_object: Source textures
            anchors: chart id -> anchor face index
            flipped: region id -> mirrored flag, required for every anchor region

        Raises:
            PackingAttemptsExceeded: If the growth loop runs out of attempts
            PackingInvariantError: If the oracle breaks its contract
        """
        charts = list(charts)
        outlines = extract_outlines(charts)
        allocation = allocate_atlas(outlines, texture_object, self.params, self.oracle, self.packing_params)
        rewrite_uvs(charts, allocation)

        shifts = {}
        if self.params.integer_shift and anchors:
            # Collapsed charts have no output texture to align to
            packed = [c for c, a in zip(charts, allocation.assignments) if a.is_packed]
            shifts = integer_shift(mesh, packed, allocation.texture_sizes, anchors, flipped or {})

        return PackResult(
            total_packed=allocation.total_packed,
            texture_sizes=list(allocation.texture_sizes),
            assignments=allocation.assignments,
            charts=charts,
            mesh=mesh,
            packing_scale=allocation.packing_scale,
            shifts=shifts,
        )

    def pack_document(self, doc: MeshDocument, base_dir: Optional[Union[str, Path]] = None) -> PackResult:
        texture_object = build_texture_object(doc, base_dir)
        mesh, charts = build_mesh(doc, texture_object, self.params.resolution_scaling)
        return self.pack(mesh, charts, texture_object, doc.anchors, doc.flipped)

    def pack_file(self, path: Union[str, Path]) -> PackResult:
        doc = load_document(path)
        return self.pack_document(doc, base_dir=Path(path).parent)
