"""
Chart outline extraction.

Walks the boundary loops of a chart in UV space and returns the longest one
as a counter-clockwise polygon. When the boundary cannot be trusted (no loop,
or a loop that does not span the chart's UV box) the chart's UV bounding
rectangle is used instead, so every chart with at least one face gets a
usable outline.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Sequence, Tuple

import numpy as np

from chartatlas.geometry import Box2, signed_area
from chartatlas.mesh.model import Chart

logger = logging.getLogger(__name__)

HalfEdge = Tuple[int, int]  # (face index, corner index)


def _boundary_half_edges(chart: Chart) -> Tuple[List[HalfEdge], Dict[int, List[HalfEdge]]]:
    """
    Find the face edges not shared with another face of the same chart.

    Returns the boundary half-edges in face order and an index of them by
    their start vertex.
    """
    fv = chart.mesh.face_vertices
    edge_use = defaultdict(int)
    for f in chart.face_indices:
        for i in range(3):
            a, b = fv[f, i], fv[f, (i + 1) % 3]
            edge_use[(min(a, b), max(a, b))] += 1

    boundary = []
    by_start = defaultdict(list)
    for f in chart.face_indices:
        for i in range(3):
            a, b = fv[f, i], fv[f, (i + 1) % 3]
            if edge_use[(min(a, b), max(a, b))] == 1:
                boundary.append((f, i))
                by_start[int(a)].append((f, i))
    return boundary, by_start


def extract_boundary_loops(chart: Chart) -> List[np.ndarray]:
    """
    Collect the UV positions of every closed boundary loop of a chart.

    Each loop lists the UV of the start corner of each boundary half-edge in
    traversal order. Walks that dead-end or run into an already visited
    half-edge (non-manifold boundary) are dropped.
    """
    mesh = chart.mesh
    fv = mesh.face_vertices
    boundary, by_start = _boundary_half_edges(chart)

    visited = set()
    loops = []
    for start in boundary:
        if start in visited:
            continue
        points = []
        walked = []
        he = start
        closed = False
        while True:
            visited.add(he)
            walked.append(he)
            f, i = he
            points.append(mesh.wedge_uv[f, i])
            end_vertex = int(fv[f, (i + 1) % 3])
            candidates = [c for c in by_start[end_vertex] if c not in visited or c == start]
            if not candidates:
                break
            he = candidates[0]
            if he == start:
                closed = True
                break
        if closed:
            loops.append(np.array(points, dtype=float))
        else:
            logger.debug(f"Chart {chart.id}: dropped open boundary walk of {len(walked)} edges")
    return loops


def _largest_loop_index(loops: Sequence[np.ndarray]) -> int:
    best = 0
    for i, loop in enumerate(loops):
        if len(loop) > len(loops[best]):
            best = i
    return best


def extract_outline(chart: Chart) -> np.ndarray:
    """
    Return the outline of a chart as an (N, 2) counter-clockwise polygon.

    Falls back to the chart's UV box rectangle when no boundary loop is found
    or when the longest loop does not cover the box. A chart without faces
    has an empty box and yields an empty outline.
    """
    box = chart.uv_box()
    if box.is_null():
        logger.warning(f"Chart {chart.id} has no faces, outline is empty")
        return np.zeros((0, 2))

    loops = [loop for loop in extract_boundary_loops(chart) if len(loop) > 0]

    use_box = False
    outline = None
    if not loops:
        use_box = True
    else:
        i = 0 if len(loops) == 1 else _largest_loop_index(loops)
        outline = loops[i]
        if signed_area(outline) < 0:
            outline = outline[::-1].copy()
        outline_box = Box2.from_points(outline)
        if outline_box.dim_x < box.dim_x or outline_box.dim_y < box.dim_y:
            use_box = True

    if use_box:
        logger.warning(
            f"Failed to compute outline for chart {chart.id}. It has {chart.face_count()} faces. "
            f"BBox area: {box.area()}. Falling back to UV bounding box."
        )
        return box.corners()
    return outline


def extract_outlines(charts: Sequence[Chart]) -> List[np.ndarray]:
    """Outlines for a list of charts, in the same order."""
    return [extract_outline(chart) for chart in charts]
