"""
Write packed placements back into the mesh.

Placed charts get their corner UVs transformed into the container grid and
normalized to [0, 1] by the grid size, with the container index stamped as
texture index. Charts that were not placed are collapsed onto (0, 0) of
texture 0.
"""

import logging
from typing import Sequence

import numpy as np

from chartatlas.mesh.model import Chart
from chartatlas.packing.allocator import Allocation
from chartatlas.packing.exceptions import PackingInvariantError

logger = logging.getLogger(__name__)


def rewrite_uvs(charts: Sequence[Chart], allocation: Allocation) -> None:
    """Apply an allocation to the wedge and vertex UVs of every chart."""
    if len(charts) != len(allocation.assignments):
        raise PackingInvariantError(
            f"Allocation covers {len(allocation.assignments)} charts, got {len(charts)}"
        )

    collapsed = 0
    for chart, assignment in zip(charts, allocation.assignments):
        if not chart.face_indices:
            chart.parameterization_changed()
            continue
        mesh = chart.mesh
        faces = chart.face_indices
        if not assignment.is_packed:
            mesh.wedge_uv[faces] = 0.0
            mesh.wedge_tex[faces] = 0
            collapsed += 1
        else:
            grid_w, grid_h = allocation.grid_size(assignment.container)
            uv = assignment.transform.apply(mesh.wedge_uv[faces].reshape(-1, 2))
            uv /= np.array([grid_w, grid_h], dtype=float)
            mesh.wedge_uv[faces] = uv.reshape(-1, 3, 2)
            mesh.wedge_tex[faces] = assignment.container
        mesh.sync_vertex_uvs(faces)
        chart.parameterization_changed()

    if collapsed:
        logger.info(f"Collapsed {collapsed} unpacked charts to the UV origin")
