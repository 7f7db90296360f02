"""Tests for OBJ line classification."""

import pytest

from karalis.loaders.obj_commands import (
    EMPTY,
    Face,
    FaceVertexRef,
    GroupName,
    MaterialLib,
    Normal,
    ObjectName,
    Texcoord,
    UseMaterial,
    Vertex,
    parse_face_vertex,
    parse_float,
    parse_int,
    parse_line,
    triangulate_fan,
)


class TestNumbers:

    def test_parse_float(self):
        assert parse_float("1.5") == pytest.approx(1.5)
        assert parse_float("-2e3") == pytest.approx(-2000.0)
        assert parse_float(".25") == pytest.approx(0.25)

    def test_parse_float_uses_numeric_prefix(self):
        assert parse_float("1.5abc") == pytest.approx(1.5)
        assert parse_float("abc") == 0.0

    def test_parse_int(self):
        assert parse_int("42") == 42
        assert parse_int("-3x") == -3
        assert parse_int("") == 0


class TestParseLine:

    def test_vertex(self):
        assert parse_line("v 1 2 3") == Vertex(1.0, 2.0, 3.0)

    def test_vertex_with_missing_components(self):
        assert parse_line("v 1") == Vertex(1.0, 0.0, 0.0)

    def test_normal_and_texcoord(self):
        assert parse_line("vn 0 1 0") == Normal(0.0, 1.0, 0.0)
        assert parse_line("vt 0.5 0.25") == Texcoord(0.5, 0.25)

    def test_indented_directive_is_parsed(self):
        assert parse_line("   v 1 2 3") == Vertex(1.0, 2.0, 3.0)

    def test_empty_lines(self):
        assert parse_line("") is EMPTY
        assert parse_line("   \t") is EMPTY
        assert parse_line("# comment") is EMPTY
        assert parse_line("s off") is EMPTY

    def test_names_take_rest_of_line(self):
        assert parse_line("o my object ") == ObjectName("my object")
        assert parse_line("g body") == GroupName("body")
        assert parse_line("usemtl  red  ") == UseMaterial("red")
        assert parse_line("mtllib scene.mtl") == MaterialLib("scene.mtl")

    def test_triangle(self):
        face = parse_line("f 1 2 3")
        assert isinstance(face, Face)
        assert face.num_f == 3
        assert face.num_f_num_verts == 1
        assert [r.v for r in face.refs] == [1, 2, 3]

    def test_quad_is_fanned(self):
        face = parse_line("f 1 2 3 4")
        assert face.num_f == 6
        assert face.num_verts == (3, 3)
        assert [r.v for r in face.refs] == [1, 2, 3, 1, 3, 4]

    def test_quad_without_triangulation(self):
        face = parse_line("f 1 2 3 4", triangulate=False)
        assert face.num_f == 4
        assert face.num_verts == (4,)

    def test_face_vertex_forms(self):
        face = parse_line("f 1/2/3 4//5 6/7", triangulate=False)
        assert face.refs == (
            FaceVertexRef(1, 2, 3),
            FaceVertexRef(4, None, 5),
            FaceVertexRef(6, 7, None),
        )


def test_parse_face_vertex_negative():
    assert parse_face_vertex("-1/-2/-3") == FaceVertexRef(-1, -2, -3)


@pytest.mark.parametrize("n", [3, 4, 5, 8])
def test_fan_triangle_count(n):
    corners = [FaceVertexRef(i + 1) for i in range(n)]
    refs, num_verts = triangulate_fan(corners)
    assert len(refs) == 3 * (n - 2)
    assert num_verts == (3,) * (n - 2)
    assert all(refs[3 * k].v == 1 for k in range(n - 2))
