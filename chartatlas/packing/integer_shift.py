"""
Grid-preserving translation of packed charts.

For each chart with an anchor face:
  - find the quarter-turn that maps the anchor's original edge direction
    onto its packed edge direction
  - compute the fractional texel offset of the anchor's first corner before
    packing (t0, rotated into the packed frame) and after packing (t1)
  - translate the whole chart by (t0 - t1) / texture size

so that texel boundaries fall at the same sub-texel position as in the
source texture.
"""

import logging
import math
from typing import Dict, Mapping, Sequence, Tuple

from chartatlas.geometry import rotate_vector, vector_angle
from chartatlas.mesh.model import Chart, Mesh
from chartatlas.mesh.texture import TextureSize
from chartatlas.packing.exceptions import PackingInvariantError

logger = logging.getLogger(__name__)

ANGLES = (0.0, math.pi / 2, math.pi, math.pi / 2 + math.pi)


def select_rotation(d0: Tuple[float, float], d1: Tuple[float, float]) -> int:
    """Index into ANGLES of the rotation taking d0 closest to d1 (first minimum wins)."""
    min_residual = 2 * math.pi
    min_index = -1
    for i, theta in enumerate(ANGLES):
        residual = vector_angle(rotate_vector(d0, theta), d1)
        if residual < min_residual:
            min_residual = residual
            min_index = i
    return min_index


def rotate_fraction(dx: float, dy: float, rotation: int) -> Tuple[float, float]:
    """Carry a fractional texel offset through a quarter-turn."""
    if rotation == 0:
        pass
    elif rotation == 1:
        dx, dy = dy, dx
        dx = 1 - dx
    elif rotation == 2:
        dx = 1 - dx
        dy = 1 - dy
    elif rotation == 3:
        dx, dy = dy, dx
        dy = 1 - dy
    else:
        raise PackingInvariantError(f"Invalid rotation index {rotation}")
    return dx, dy


def compute_shift(
    mesh: Mesh,
    anchor: int,
    texture_sizes: Sequence[TextureSize],
    flipped: bool,
) -> Tuple[float, float]:
    """Translation in normalized UV space that realigns the anchor face."""
    orig = mesh.original_wedge_uv[anchor]
    cur = mesh.wedge_uv[anchor]

    d0 = (float(orig[1, 0] - orig[0, 0]), float(orig[1, 1] - orig[0, 1]))
    d1 = (float(cur[1, 0] - cur[0, 0]), float(cur[1, 1] - cur[0, 1]))
    if flipped:
        d0 = (-d0[0], d0[1])

    rotation = select_rotation(d0, d1)

    ti = int(mesh.wedge_tex[anchor, 0])
    if not 0 <= ti < len(texture_sizes):
        raise PackingInvariantError(f"Anchor face {anchor} maps to texture {ti}, only {len(texture_sizes)} exist")
    tw, th = texture_sizes[ti].w, texture_sizes[ti].h

    dx = math.modf(float(orig[0, 0]))[0]
    dy = math.modf(float(orig[0, 1]))[0]
    if flipped:
        dx = 1 - dx
    dx, dy = rotate_fraction(dx, dy, rotation)

    dx1 = math.modf(float(cur[0, 0]) * tw)[0]
    dy1 = math.modf(float(cur[0, 1]) * th)[0]
    return (dx - dx1) / tw, (dy - dy1) / th


def integer_shift(
    mesh: Mesh,
    charts: Sequence[Chart],
    texture_sizes: Sequence[TextureSize],
    anchor_map: Mapping[int, int],
    flipped_input: Mapping[int, bool],
) -> Dict[int, Tuple[float, float]]:
    """
    Translate anchored charts so their texel grid matches the source.

    Args:
        mesh: Mesh holding the packed UVs and the pre-packing reference copy
        charts: Charts to correct
        texture_sizes: Realized size of every output container
        anchor_map: chart id -> anchor face index
        flipped_input: region id -> whether that region's parameterization was mirrored

    Returns:
        chart id -> applied translation, for anchored charts only
    """
    shifts = {}
    for chart in charts:
        anchor = anchor_map.get(chart.id)
        if anchor is None:
            continue
        if not 0 <= anchor < mesh.face_count or mesh.face_chart[anchor] != chart.id:
            raise PackingInvariantError(f"Anchor face {anchor} of chart {chart.id} is not a face of that chart")
        region = int(mesh.face_region[anchor])
        if region not in flipped_input:
            raise KeyError(f"No flip entry for region {region} (anchor face {anchor} of chart {chart.id})")
        flipped = flipped_input[region]
        tx, ty = compute_shift(mesh, anchor, texture_sizes, flipped)

        faces = chart.face_indices
        mesh.wedge_uv[faces] += (tx, ty)
        mesh.sync_vertex_uvs(faces)
        chart.parameterization_changed()
        shifts[chart.id] = (tx, ty)

    logger.info(f"Applied integer shift to {len(shifts)} of {len(charts)} charts")
    return shifts
