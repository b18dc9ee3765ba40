"""
Shared mesh builders for the test suite.
"""
import numpy as np
import pytest

from chartatlas.mesh.model import Chart, Mesh


def square_faces(base_vertex, origin, size):
    """Two counter-clockwise triangles covering an axis-aligned square."""
    x0, y0 = origin
    uv = [(x0, y0), (x0 + size, y0), (x0 + size, y0 + size), (x0, y0 + size)]
    b = base_vertex
    faces = [[b, b + 1, b + 2], [b, b + 2, b + 3]]
    wedges = [[uv[0], uv[1], uv[2]], [uv[0], uv[2], uv[3]]]
    return faces, wedges


def build_squares(squares):
    """
    Mesh with one two-triangle chart per (origin, size) square, no shared vertices.

    Returns:
        (mesh, charts)
    """
    faces, wedges, groups = [], [], []
    for k, (origin, size) in enumerate(squares):
        f, w = square_faces(4 * k, origin, size)
        groups.append([len(faces), len(faces) + 1])
        faces.extend(f)
        wedges.extend(w)
    mesh = Mesh(np.array(faces), np.array(wedges, dtype=float))
    charts = [Chart(k, mesh, g) for k, g in enumerate(groups)]
    return mesh, charts


def build_ring():
    """
    A 3x3 quad grid with the centre quad removed, as one chart.

    Vertex (i, j) of the 4x4 grid has index j * 4 + i and UV (i, j). The
    outer boundary has 12 vertices, the hole 4.
    """
    faces, wedges = [], []
    for j in range(3):
        for i in range(3):
            if (i, j) == (1, 1):
                continue
            a, b, c, d = j * 4 + i, j * 4 + i + 1, (j + 1) * 4 + i + 1, (j + 1) * 4 + i
            uv = {a: (i, j), b: (i + 1, j), c: (i + 1, j + 1), d: (i, j + 1)}
            for tri in ([a, b, c], [a, c, d]):
                faces.append(tri)
                wedges.append([uv[v] for v in tri])
    mesh = Mesh(np.array(faces), np.array(wedges, dtype=float))
    return mesh, Chart(0, mesh, range(len(faces)))


def unit_square():
    return np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])


@pytest.fixture
def squares():
    """Factory fixture: squares([((x, y), size), ...]) -> (mesh, charts)"""
    return build_squares


@pytest.fixture
def square_outline():
    return unit_square()


@pytest.fixture
def ring():
    return build_ring()
