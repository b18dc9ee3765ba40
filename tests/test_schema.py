"""
Tests for Mesh JSON validation and loading
"""
import json

import numpy as np
import pytest
from PIL import Image
from pydantic import ValidationError

from chartatlas.mesh.loader import build_mesh, build_texture_object, load_document
from chartatlas.schema import FaceEntry, MeshDocument, TextureEntry


def document(**overrides):
    data = {
        "textures": [{"width": 64, "height": 32}],
        "faces": [
            {"vertices": [0, 1, 2], "uv": [[0, 0], [0.5, 0], [0.5, 0.5]]},
            {"vertices": [0, 2, 3], "uv": [[0, 0], [0.5, 0.5], [0, 0.5]], "region": 4},
        ],
        "charts": [{"id": 10, "faces": [0, 1]}],
    }
    data.update(overrides)
    return data


class TestInputModels:
    """Test input validation"""

    def test_valid_document(self):
        doc = MeshDocument.model_validate(document())
        assert len(doc.faces) == 2
        assert doc.faces[0].texture == 0
        assert doc.anchors == {}

    def test_texture_needs_a_size_source(self):
        with pytest.raises(ValidationError):
            TextureEntry()

    def test_texture_width_without_height(self):
        with pytest.raises(ValidationError):
            TextureEntry(width=64, path="a.png")

    def test_texture_by_path(self):
        assert TextureEntry(path="a.png").width is None

    def test_face_needs_three_corners(self):
        with pytest.raises(ValidationError):
            FaceEntry(vertices=[0, 1], uv=[[0, 0], [1, 0]])

    def test_uv_corner_needs_two_values(self):
        with pytest.raises(ValidationError):
            FaceEntry(vertices=[0, 1, 2], uv=[[0, 0], [1, 0], [1]])

    def test_negative_vertex(self):
        with pytest.raises(ValidationError):
            FaceEntry(vertices=[0, -1, 2], uv=[[0, 0], [1, 0], [1, 1]])

    def test_extra_fields_are_rejected(self):
        with pytest.raises(ValidationError):
            MeshDocument.model_validate(document(colors=[]))

    def test_duplicate_chart_id(self):
        with pytest.raises(ValidationError):
            MeshDocument.model_validate(document(charts=[{"id": 1, "faces": [0]}, {"id": 1, "faces": [1]}]))

    def test_chart_references_missing_face(self):
        with pytest.raises(ValidationError):
            MeshDocument.model_validate(document(charts=[{"id": 1, "faces": [0, 5]}]))

    def test_face_references_missing_texture(self):
        data = document()
        data["faces"][0]["texture"] = 2
        with pytest.raises(ValidationError):
            MeshDocument.model_validate(data)

    def test_anchor_for_unknown_chart(self):
        with pytest.raises(ValidationError):
            MeshDocument.model_validate(document(anchors={3: 0}))

    def test_face_in_two_charts(self):
        with pytest.raises(ValidationError, match="listed by chart 1 and chart 2"):
            MeshDocument.model_validate(document(charts=[{"id": 1, "faces": [0, 1]}, {"id": 2, "faces": [0]}]))

    def test_face_listed_twice_in_one_chart(self):
        with pytest.raises(ValidationError):
            MeshDocument.model_validate(document(charts=[{"id": 1, "faces": [0, 1, 1]}]))

    def test_anchor_face_outside_its_chart(self):
        """An anchor must be one of the faces of the chart it anchors"""
        charts = [{"id": 1, "faces": [0]}, {"id": 2, "faces": [1]}]
        with pytest.raises(ValidationError, match="not in that chart"):
            MeshDocument.model_validate(document(charts=charts, anchors={2: 0}, flipped={0: False}))

    def test_anchor_needs_flip_entry(self):
        with pytest.raises(ValidationError, match="'flipped' entry for region 4"):
            MeshDocument.model_validate(document(anchors={10: 1}, flipped={1: False}))

    def test_anchor_flip_entry_defaults_to_face_index(self):
        doc = MeshDocument.model_validate(document(anchors={10: 0}, flipped={0: True}))
        assert doc.flipped == {0: True}
        with pytest.raises(ValidationError):
            MeshDocument.model_validate(document(anchors={10: 0}, flipped={4: True}))

    def test_anchor_json_keys(self):
        """JSON object keys are strings; chart and region ids still come out as ints"""
        doc = MeshDocument.model_validate(json.loads(json.dumps(document(anchors={10: 1}, flipped={4: True}))))
        assert doc.anchors == {10: 1}
        assert doc.flipped == {4: True}


class TestLoader:
    """Test conversion into the face arena"""

    def test_uvs_become_texels(self):
        doc = MeshDocument.model_validate(document())
        mesh, charts = build_mesh(doc, build_texture_object(doc))
        assert mesh.wedge_uv[0, 1].tolist() == [32.0, 0.0]
        assert mesh.wedge_uv[0, 2].tolist() == [32.0, 16.0]
        assert np.array_equal(mesh.original_wedge_uv, mesh.wedge_uv)
        assert [c.id for c in charts] == [10]

    def test_resolution_scaling(self):
        doc = MeshDocument.model_validate(document())
        mesh, _ = build_mesh(doc, build_texture_object(doc), resolution_scaling=2.0)
        assert mesh.wedge_uv[0, 2].tolist() == [64.0, 32.0]

    def test_regions_default_to_face_index(self):
        doc = MeshDocument.model_validate(document())
        mesh, _ = build_mesh(doc, build_texture_object(doc))
        assert mesh.face_region.tolist() == [0, 4]

    def test_texture_path_is_relative_to_document(self, tmp_path):
        Image.new('RGB', (20, 10)).save(tmp_path / "tex.png")
        doc = MeshDocument.model_validate(document(textures=[{"path": "tex.png"}]))
        tex = build_texture_object(doc, tmp_path)
        assert (tex.texture_width(0), tex.texture_height(0)) == (20, 10)

    def test_load_document(self, tmp_path):
        path = tmp_path / "mesh.json"
        path.write_text(json.dumps(document()))
        assert len(load_document(path).charts) == 1

    def test_load_missing_document(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_document(tmp_path / "nope.json")
