"""Tests for OBJ assembly and model building."""

import logging

import numpy as np
import pytest

from karalis.errors import InvalidParameterError, ResourceNotFoundError
from karalis.loaders.mesh_spec import ImportSpec
from karalis.loaders.obj_loader import MISSING_INDEX, Shape, fix_index, load_obj, parse_obj

QUAD_OBJ = """\
mtllib scene.mtl
v 0 0 0
v 1 0 0
v 1 1 0
v 0 1 0
vt 0 0
vt 1 0
vt 1 1
vt 0 1
vn 0 0 1
o plane
usemtl red
f 1/1/1 2/2/1 3/3/1 4/4/1
"""

SCENE_MTL = """\
newmtl blue
Kd 0 0 1
newmtl red
Kd 1 0 0
"""

TRIANGLE_VERTS = "v 0 0 0\nv 1 0 0\nv 0 1 0\nv 1 1 0\n"


def make_resolver(files):
    def resolver(filename, working_dir):
        path = f"{working_dir}/{filename}" if working_dir else filename
        if path not in files:
            raise ResourceNotFoundError(f"Resource not found: {path}")
        return files[path]
    return resolver


class TestFixIndex:

    def test_positive_is_one_based(self):
        assert fix_index(1, 10) == 0
        assert fix_index(7, 10) == 6

    def test_zero(self):
        assert fix_index(0, 10) == 0

    def test_negative_counts_from_end(self):
        assert fix_index(-1, 10) == 9
        assert fix_index(-10, 10) == 0

    def test_negative_beyond_start(self):
        assert fix_index(-11, 10) == MISSING_INDEX

    def test_absent(self):
        assert fix_index(None, 10) == MISSING_INDEX

    @pytest.mark.parametrize("n", [1, 4, 100])
    def test_last_element(self, n):
        assert fix_index(-1, n) == n - 1

    def test_beyond_int32_is_missing(self):
        assert fix_index(2**31, 10) == 2**31 - 1
        assert fix_index(2**31 + 1, 10) == MISSING_INDEX
        assert fix_index(99999999999, 10) == MISSING_INDEX


class TestParseObj:

    def test_quad_attrib(self):
        result = parse_obj(QUAD_OBJ, make_resolver({"scene.mtl": SCENE_MTL}))
        attrib = result.attrib
        assert attrib.vertices.shape == (4, 3)
        assert attrib.texcoords.shape == (4, 2)
        assert attrib.normals.shape == (1, 3)
        assert attrib.faces.shape == (6, 3)
        assert list(attrib.face_num_verts) == [3, 3]
        assert attrib.num_faces == 2
        np.testing.assert_array_equal(attrib.faces[:3], [[0, 0, 0], [1, 1, 0], [2, 2, 0]])
        np.testing.assert_array_equal(attrib.faces[3:], [[0, 0, 0], [2, 2, 0], [3, 3, 0]])

    def test_material_ids(self):
        result = parse_obj(QUAD_OBJ, make_resolver({"scene.mtl": SCENE_MTL}))
        assert result.material_index == {"blue": 0, "red": 1}
        assert list(result.attrib.material_ids) == [1, 1]

    def test_faces_without_usemtl_have_no_material(self):
        result = parse_obj(TRIANGLE_VERTS + "f 1 2 3\nusemtl nope\nf 1 2 4\n")
        assert list(result.attrib.material_ids) == [-1, -1]

    def test_missing_library_continues(self, caplog):
        with caplog.at_level(logging.WARNING, logger="karalis"):
            result = parse_obj(QUAD_OBJ, make_resolver({}))
        assert result.materials == []
        assert list(result.attrib.material_ids) == [-1, -1]
        assert "scene.mtl" in caplog.text

    def test_library_is_read_from_working_dir(self):
        resolver = make_resolver({"models/scene.mtl": SCENE_MTL})
        result = parse_obj(QUAD_OBJ, resolver, working_dir="models")
        assert [m.name for m in result.materials] == ["blue", "red"]

    def test_relative_indices_use_count_at_face(self):
        text = "v 0 0 0\nv 1 0 0\nv 0 1 0\nf -3 -2 -1\nv 1 1 0\nf -1 -2 -3\n"
        attrib = parse_obj(text).attrib
        assert list(attrib.faces[:, 0]) == [0, 1, 2, 3, 2, 1]

    def test_absent_components_are_missing(self):
        attrib = parse_obj(TRIANGLE_VERTS + "f 1 2 3\n").attrib
        assert np.all(attrib.faces[:, 1] == MISSING_INDEX)
        assert np.all(attrib.faces[:, 2] == MISSING_INDEX)

    def test_huge_vertex_index_is_missing(self):
        attrib = parse_obj(TRIANGLE_VERTS + "f 1 2 99999999999\n").attrib
        assert list(attrib.faces[:, 0]) == [0, 1, MISSING_INDEX]

    def test_huge_texcoord_index_is_missing(self):
        attrib = parse_obj(TRIANGLE_VERTS + "vt 0.5 0.5\nf 1/3000000000 2/1 3/1\n").attrib
        assert list(attrib.faces[:, 1]) == [MISSING_INDEX, 0, 0]

    @pytest.mark.parametrize("n", [3, 4, 5, 7])
    def test_fan_triangulation_count(self, n):
        text = "".join(f"v {i} 0 0\n" for i in range(n))
        text += "f " + " ".join(str(i + 1) for i in range(n)) + "\n"
        attrib = parse_obj(text).attrib
        assert len(attrib.faces) == 3 * (n - 2)

    def test_without_triangulation(self):
        attrib = parse_obj(TRIANGLE_VERTS + "f 1 2 3 4\n", triangulate=False).attrib
        assert len(attrib.faces) == 4
        assert list(attrib.face_num_verts) == [4]

    def test_empty_input(self):
        with pytest.raises(InvalidParameterError):
            parse_obj("")
        with pytest.raises(InvalidParameterError):
            parse_obj(None)

    def test_only_comments(self):
        result = parse_obj("# nothing here\n")
        assert result.shapes == []
        assert len(result.attrib.faces) == 0


class TestShapes:

    def test_two_objects(self):
        text = "o A \n f 1 2 3 \n f 1 2 4 \n o B \n f 2 3 4"
        result = parse_obj(text, triangulate=False)
        assert result.shapes == [Shape("A", 0, 2), Shape("B", 2, 1)]

    def test_leading_unnamed_region(self):
        result = parse_obj(TRIANGLE_VERTS + "f 1 2 3\no B\nf 1 2 4\n")
        assert result.shapes == [Shape(None, 0, 1), Shape("B", 1, 1)]

    def test_empty_boundary_renames(self):
        result = parse_obj(TRIANGLE_VERTS + "o A\ng B\nf 1 2 3\n")
        assert result.shapes == [Shape("B", 0, 1)]

    def test_groups_are_boundaries(self):
        result = parse_obj(TRIANGLE_VERTS + "g one\nf 1 2 3\ng two\nf 1 2 4 3\n")
        assert result.shapes == [Shape("one", 0, 1), Shape("two", 1, 2)]

    def test_trailing_boundary_without_faces(self):
        result = parse_obj(TRIANGLE_VERTS + "o A\nf 1 2 3\no B\n")
        assert result.shapes == [Shape("A", 0, 1)]


class TestLoadObj:

    def test_quad_model(self):
        model = load_obj(QUAD_OBJ, make_resolver({"scene.mtl": SCENE_MTL}), name="quad")
        assert model.mesh_count == 1
        mesh = model.meshes[0]
        assert mesh.name == "plane"
        assert mesh.indices is None
        assert mesh.vertex_count == 6
        assert mesh.triangle_count == 2
        np.testing.assert_array_equal(mesh.vertices[:3], [[0, 0, 0], [1, 0, 0], [1, 1, 0]])
        np.testing.assert_array_equal(mesh.normals, [[0, 0, 1]] * 6)

    def test_texcoords_are_flipped(self):
        model = load_obj(QUAD_OBJ, make_resolver({"scene.mtl": SCENE_MTL}))
        np.testing.assert_allclose(model.meshes[0].texcoords[:3], [[0, 1], [1, 1], [1, 0]])

    def test_texcoord_flip_can_be_disabled(self):
        spec = ImportSpec(flip_uv_v=False)
        model = load_obj(QUAD_OBJ, make_resolver({"scene.mtl": SCENE_MTL}), spec=spec)
        np.testing.assert_allclose(model.meshes[0].texcoords[:3], [[0, 0], [1, 0], [1, 1]])

    def test_scale(self):
        model = load_obj(QUAD_OBJ, make_resolver({"scene.mtl": SCENE_MTL}), spec=ImportSpec(scale=2.0))
        np.testing.assert_allclose(model.meshes[0].vertices[2], [2, 2, 0])

    def test_mesh_material(self):
        model = load_obj(QUAD_OBJ, make_resolver({"scene.mtl": SCENE_MTL}))
        assert model.mesh_material == [1]
        assert model.get_mesh_material(0).name == "red"

    def test_mesh_without_material(self):
        model = load_obj(TRIANGLE_VERTS + "f 1 2 3\n")
        assert model.mesh_material == [-1]
        assert model.get_mesh_material(0) is None

    def test_huge_index_gives_zero_row(self):
        model = load_obj(TRIANGLE_VERTS + "v 5 5 5\nf 4 5 99999999999\n")
        np.testing.assert_array_equal(model.meshes[0].vertices, [[1, 1, 0], [5, 5, 5], [0, 0, 0]])

    def test_missing_attributes(self):
        model = load_obj(TRIANGLE_VERTS + "f 1 2 3\n")
        mesh = model.meshes[0]
        assert mesh.texcoords is None
        assert mesh.normals is None

    def test_one_mesh_per_shape(self):
        model = load_obj(TRIANGLE_VERTS + "o A\nf 1 2 3\no B\nf 1 2 3 4\n")
        assert [m.name for m in model.meshes] == ["A", "B"]
        assert [m.triangle_count for m in model.meshes] == [1, 2]
        np.testing.assert_array_equal(model.meshes[1].vertices[3:], [[0, 0, 0], [0, 1, 0], [1, 1, 0]])

    def test_polygon_without_triangulation_is_fanned_for_mesh(self):
        spec = ImportSpec(triangulate=False)
        model = load_obj(TRIANGLE_VERTS + "f 1 2 4 3\n", spec=spec)
        assert model.meshes[0].triangle_count == 2
