"""
Tests for chart outline extraction
"""
import logging

import numpy as np
import pytest

from chartatlas.geometry import Box2, signed_area
from chartatlas.mesh.model import Chart, Mesh
from chartatlas.packing.outline import (
    _largest_loop_index,
    extract_boundary_loops,
    extract_outline,
    extract_outlines,
)


class TestBoundaryLoops:
    """Test boundary loop walking"""

    def test_square_has_one_loop(self, squares):
        _, charts = squares([((0.0, 0.0), 2.0)])
        loops = extract_boundary_loops(charts[0])
        assert len(loops) == 1
        assert len(loops[0]) == 4

    def test_ring_has_outer_and_inner_loop(self, ring):
        _, chart = ring
        loops = extract_boundary_loops(chart)
        assert sorted(len(loop) for loop in loops) == [4, 12]

    def test_hole_runs_clockwise(self, ring):
        _, chart = ring
        loops = extract_boundary_loops(chart)
        inner = [loop for loop in loops if len(loop) == 4][0]
        assert signed_area(inner) == pytest.approx(-1.0)

    def test_open_walk_is_dropped(self, caplog):
        """Two faces wound against each other leave walks that never close"""
        _, chart = opposed_triangles()
        with caplog.at_level(logging.DEBUG, logger="chartatlas.packing.outline"):
            assert extract_boundary_loops(chart) == []
        assert "dropped open boundary walk of 2 edges" in caplog.text

    def test_largest_loop_index_keeps_first_on_tie(self):
        triangle = np.zeros((3, 2))
        quad = np.zeros((4, 2))
        assert _largest_loop_index([quad, quad.copy(), triangle]) == 0
        assert _largest_loop_index([triangle, quad, quad.copy()]) == 1


class TestExtractOutline:
    """Test outline selection and fallbacks"""

    def test_square_outline(self, squares):
        _, charts = squares([((3.0, 4.0), 2.0)])
        outline = extract_outline(charts[0])
        assert outline.shape == (4, 2)
        assert signed_area(outline) == pytest.approx(4.0)
        box = Box2.from_points(outline)
        assert (box.min_x, box.min_y, box.max_x, box.max_y) == (3.0, 4.0, 5.0, 6.0)

    def test_ring_uses_outer_loop(self, ring):
        _, chart = ring
        outline = extract_outline(chart)
        assert len(outline) == 12
        assert signed_area(outline) == pytest.approx(9.0)

    def test_clockwise_chart_is_reversed(self):
        """A mirrored chart walks its boundary clockwise; the outline must not"""
        mesh = Mesh(
            np.array([[0, 1, 2]]),
            np.array([[[0.0, 0.0], [0.0, 1.0], [1.0, 0.0]]]),
        )
        chart = Chart(0, mesh, [0])
        outline = extract_outline(chart)
        assert signed_area(outline) == pytest.approx(0.5)

    def test_disconnected_chart_falls_back_to_box(self, caplog):
        """Two separate squares in one chart: the longest loop misses half the box"""
        _, chart = squares_in_one_chart()
        with caplog.at_level(logging.WARNING):
            outline = extract_outline(chart)
        assert np.array_equal(outline, Box2(0.0, 0.0, 5.0, 1.0).corners())
        assert "Falling back to UV bounding box" in caplog.text

    def test_open_boundary_falls_back_to_box(self, caplog):
        _, chart = opposed_triangles()
        with caplog.at_level(logging.WARNING):
            outline = extract_outline(chart)
        assert np.array_equal(outline, Box2(0.0, -1.0, 1.0, 1.0).corners())
        assert "Falling back to UV bounding box" in caplog.text

    def test_tied_loops_pick_the_first_walked(self, caplog):
        """A square frame has two 4-edge loops; the outer one is walked first"""
        _, chart = square_frame(FRAME_FACES)
        with caplog.at_level(logging.WARNING):
            outline = extract_outline(chart)
        assert outline.tolist() == [[0.0, 0.0], [3.0, 0.0], [3.0, 3.0], [0.0, 3.0]]
        assert "Falling back" not in caplog.text

    def test_tied_loops_with_hole_first(self, caplog):
        """Walking the hole first selects it, and its small box forces the fallback"""
        _, chart = square_frame([FRAME_FACES[1], FRAME_FACES[0]] + FRAME_FACES[2:])
        with caplog.at_level(logging.WARNING):
            outline = extract_outline(chart)
        assert np.array_equal(outline, Box2(0.0, 0.0, 3.0, 3.0).corners())
        assert "Falling back to UV bounding box" in caplog.text

    def test_empty_chart(self, caplog):
        mesh = Mesh(np.array([[0, 1, 2]]), np.zeros((1, 3, 2)))
        chart = Chart(7, mesh, [])
        with caplog.at_level(logging.WARNING):
            outline = extract_outline(chart)
        assert outline.shape == (0, 2)
        assert "no faces" in caplog.text

    def test_outlines_keep_chart_order(self, squares):
        _, charts = squares([((0.0, 0.0), 1.0), ((10.0, 0.0), 3.0)])
        outlines = extract_outlines(charts)
        assert len(outlines) == 2
        assert Box2.from_points(outlines[0]).dim_x == 1.0
        assert Box2.from_points(outlines[1]).dim_x == 3.0


def squares_in_one_chart():
    faces = [[0, 1, 2], [0, 2, 3], [4, 5, 6], [4, 6, 7]]
    wedges = [
        [(0, 0), (1, 0), (1, 1)], [(0, 0), (1, 1), (0, 1)],
        [(4, 0), (5, 0), (5, 1)], [(4, 0), (5, 1), (4, 1)],
    ]
    mesh = Mesh(np.array(faces), np.array(wedges, dtype=float))
    return mesh, Chart(0, mesh, range(4))


def opposed_triangles():
    """Two triangles sharing edge 0-1 with the same winding along it"""
    uv = {0: (0.0, 0.0), 1: (1.0, 0.0), 2: (1.0, 1.0), 3: (0.5, -1.0)}
    faces = [[0, 1, 2], [0, 1, 3]]
    mesh = Mesh(np.array(faces), np.array([[uv[v] for v in face] for face in faces]))
    return mesh, Chart(0, mesh, range(2))


# Outer square 0-3 around a 1x1 hole 4-7, all faces counter-clockwise
FRAME_UV = {
    0: (0.0, 0.0), 1: (3.0, 0.0), 2: (3.0, 3.0), 3: (0.0, 3.0),
    4: (1.0, 1.0), 5: (2.0, 1.0), 6: (2.0, 2.0), 7: (1.0, 2.0),
}
FRAME_FACES = [
    [0, 1, 5], [0, 5, 4], [1, 2, 6], [1, 6, 5],
    [2, 3, 7], [2, 7, 6], [3, 0, 4], [3, 4, 7],
]


def square_frame(faces):
    mesh = Mesh(np.array(faces), np.array([[FRAME_UV[v] for v in face] for face in faces]))
    return mesh, Chart(0, mesh, range(len(faces)))
