"""
Face arena and charts.

The Mesh owns all per-face and per-vertex texture coordinates as numpy
arrays. A Chart is a list of face indices into that arena; faces point back
to their chart through ``Mesh.face_chart`` (a chart id, not an object).

Texture coordinates come in two flavours, mirroring a typical mesh library:
- wedge UVs: one (u, v) and texture index per face corner
- vertex UVs: one (u, v) and texture index per vertex, kept as an alias of
  the last corner written
"""

from typing import Dict, List, Optional, Sequence

import numpy as np

from chartatlas.geometry import Box2


class Mesh:
    """
    Triangle mesh reduced to what packing needs.

    Attributes:
        face_vertices: (F, 3) vertex indices
        wedge_uv: (F, 3, 2) per-corner texture coordinates
        wedge_tex: (F, 3) per-corner texture index
        vertex_uv: (V, 2) per-vertex alias of the corner coordinates
        vertex_tex: (V,) per-vertex alias of the corner texture index
        original_wedge_uv: (F, 3, 2) reference copy taken before packing
        face_region: (F,) region id each face had in the input parameterization
        face_chart: (F,) id of the chart owning each face, -1 if none
    """

    def __init__(
        self,
        face_vertices: np.ndarray,
        wedge_uv: np.ndarray,
        wedge_tex: Optional[np.ndarray] = None,
        face_region: Optional[np.ndarray] = None,
        vertex_count: Optional[int] = None,
    ):
        self.face_vertices = np.asarray(face_vertices, dtype=np.int64).reshape(-1, 3)
        self.wedge_uv = np.asarray(wedge_uv, dtype=float).reshape(-1, 3, 2).copy()
        fn = len(self.face_vertices)
        if len(self.wedge_uv) != fn:
            raise ValueError(f"Expected {fn} faces of wedge UVs, got {len(self.wedge_uv)}")

        if wedge_tex is None:
            wedge_tex = np.zeros((fn, 3), dtype=np.int64)
        self.wedge_tex = np.asarray(wedge_tex, dtype=np.int64).reshape(fn, 3).copy()

        if face_region is None:
            face_region = np.arange(fn)
        self.face_region = np.asarray(face_region, dtype=np.int64).reshape(fn)

        if vertex_count is None:
            vertex_count = int(self.face_vertices.max()) + 1 if fn else 0
        self.vertex_uv = np.zeros((vertex_count, 2))
        self.vertex_tex = np.zeros(vertex_count, dtype=np.int64)
        self.face_chart = np.full(fn, -1, dtype=np.int64)
        self.sync_vertex_uvs()
        self.store_original_uvs()

    @property
    def face_count(self) -> int:
        return len(self.face_vertices)

    @property
    def vertex_count(self) -> int:
        return len(self.vertex_uv)

    def store_original_uvs(self) -> None:
        """Snapshot the current wedge UVs as the pre-packing reference."""
        self.original_wedge_uv = self.wedge_uv.copy()

    def sync_vertex_uvs(self, faces: Optional[Sequence[int]] = None) -> None:
        """Copy corner coordinates onto the vertex alias (last corner wins)."""
        if faces is None:
            faces = range(self.face_count)
        for f in faces:
            for j in range(3):
                v = self.face_vertices[f, j]
                self.vertex_uv[v] = self.wedge_uv[f, j]
                self.vertex_tex[v] = self.wedge_tex[f, j]


class Chart:
    """
    A connected island of faces sharing one parameterization.

    Charts never own face data: they index into their mesh's arrays. The UV
    bounding box is cached until parameterization_changed() is called.
    """

    def __init__(self, chart_id: int, mesh: Mesh, face_indices: Sequence[int]):
        self.id = chart_id
        self.mesh = mesh
        self.face_indices: List[int] = [int(f) for f in face_indices]
        seen = set()
        for f in self.face_indices:
            if not 0 <= f < mesh.face_count:
                raise ValueError(f"Chart {chart_id} references face {f} outside the mesh")
            if f in seen or mesh.face_chart[f] not in (-1, chart_id):
                raise ValueError(f"Face {f} already belongs to chart {mesh.face_chart[f]}")
            seen.add(f)
        for f in self.face_indices:
            mesh.face_chart[f] = chart_id
        self._uv_box: Optional[Box2] = None

    def __repr__(self) -> str:
        return f"Chart(id={self.id}, faces={len(self.face_indices)})"

    def face_count(self) -> int:
        return len(self.face_indices)

    def uv_box(self) -> Box2:
        if self._uv_box is None:
            if self.face_indices:
                self._uv_box = Box2.from_points(self.mesh.wedge_uv[self.face_indices])
            else:
                self._uv_box = Box2()
        return self._uv_box

    def parameterization_changed(self) -> None:
        self._uv_box = None


def build_charts(mesh: Mesh, groups: Dict[int, Sequence[int]]) -> List[Chart]:
    """Create charts from a {chart_id: face indices} mapping, keeping its order."""
    return [Chart(chart_id, mesh, faces) for chart_id, faces in groups.items()]
