"""
Tests for Triangle and Mesh3, including binary STL I/O.
"""
import math

import numpy as np
import pytest

from kinelab.dynamics.solid import Solid3
from kinelab.spatial.mesh import STL_HEADER_BYTES, STL_RECORD, Face, Mesh3
from kinelab.spatial.quaternion import Quaternion
from kinelab.spatial.triangle import Triangle
from kinelab.spatial.vector3 import Vector3


class TestTriangle:

    def test_flat_triangle(self):
        tri = Triangle(Vector3.ZERO, Vector3.UNIT_X, Vector3.UNIT_Y)
        assert tri.parallelepiped_vector == Vector3(0.0, 0.0, 1.0)
        assert tri.area == pytest.approx(0.5)
        assert tri.normal == Vector3.UNIT_Z
        assert tri.centroid.is_close(Vector3(1 / 3, 1 / 3, 0.0))
        assert tri.triple_product == 0.0
        assert tri.vertices() == (Vector3.ZERO, Vector3.UNIT_X, Vector3.UNIT_Y)

    def test_triple_product(self):
        tri = Triangle(Vector3.UNIT_X, Vector3.UNIT_Y, Vector3.UNIT_Z)
        assert tri.triple_product == 1.0
        assert tri.area == pytest.approx(math.sqrt(3.0) / 2)


class TestMeshBuilding:

    def test_add_face_reuses_nodes(self):
        mesh = Mesh3()
        a, b, c, d = Vector3.ZERO, Vector3.UNIT_X, Vector3.UNIT_Y, Vector3.UNIT_Z
        f1 = mesh.add_face(a, b, c)
        f2 = mesh.add_face(a, c, d)
        assert f1 == Face((0, 1, 2))
        assert f2 == Face((0, 2, 3))
        assert len(mesh.nodes) == 4
        assert mesh.get_nodes(1) == [a, c, d]
        assert mesh.get_nodes(f1) == [a, b, c]

    def test_face_needs_three_points(self):
        with pytest.raises(ValueError, match="at least 3"):
            Mesh3().add_face(Vector3.ZERO, Vector3.UNIT_X)

    def test_constructor_checks_indices(self):
        with pytest.raises(ValueError, match="out of range"):
            Mesh3([Vector3.ZERO], [Face((0, 1, 2))])

    def test_fan_tessellation(self):
        mesh = Mesh3()
        p = [Vector3(math.cos(k * math.pi / 3), math.sin(k * math.pi / 3), 0.0) for k in range(6)]
        mesh.add_face(*p)
        (fan,) = mesh.tessellate()
        assert len(fan) == 4
        assert [t.vertices() for t in fan] == [
            (p[0], p[1], p[2]), (p[0], p[2], p[3]), (p[0], p[3], p[4]), (p[0], p[4], p[5]),
        ]
        # hexagon of unit circumradius
        assert sum(t.area for t in fan) == pytest.approx(3 * math.sqrt(3) / 2)
        assert all(t.normal.is_close(Vector3.UNIT_Z) for t in fan)


class TestFactories:

    def test_rectangular_prism(self, box_mesh):
        assert len(box_mesh.nodes) == 8
        assert len(box_mesh.faces) == 6
        assert all(len(face) == 4 for face in box_mesh.faces)
        assert len(box_mesh.triangles()) == 12
        lower, upper = box_mesh.bounds()
        assert lower == Vector3(-1.0, -0.5, -0.25)
        assert upper == Vector3(1.0, 0.5, 0.25)

    def test_rectangular_prism_faces_point_outward(self, box_mesh):
        for face in box_mesh.tessellate():
            for tri in face:
                assert tri.normal.dot(tri.centroid) > 0

    def test_triangular_prism(self):
        mesh = Mesh3.triangular_prism(5.0, 4.0)
        assert len(mesh.nodes) == 4
        assert len(mesh.faces) == 4
        centroid = sum((n for n in mesh.nodes), Vector3.ZERO).divide(4)
        assert centroid.is_close(Vector3.ZERO, 1e-12)
        for tri in mesh.triangles():
            assert tri.normal.dot(tri.centroid) > 0

    def test_get_shape(self, box_mesh):
        shape = box_mesh.get_shape()
        assert len(shape) == 6
        assert all(len(face) == 4 for face in shape)
        assert shape[0] == box_mesh.get_nodes(0)


class TestTransforms:

    def test_translate(self, box_mesh):
        box_mesh.translate(Vector3(1.0, 2.0, 3.0))
        lower, upper = box_mesh.bounds()
        assert lower == Vector3(0.0, 1.5, 2.75)
        assert upper == Vector3(2.0, 2.5, 3.25)

    def test_rotate_about_point(self):
        mesh = Mesh3()
        mesh.add_face(Vector3(2.0, 0.0, 0.0), Vector3(3.0, 0.0, 0.0), Vector3(2.0, 1.0, 0.0))
        mesh.rotate(Quaternion.rotate_z(math.pi / 2), about=Vector3(2.0, 0.0, 0.0))
        assert mesh.nodes[0].is_close(Vector3(2.0, 0.0, 0.0))
        assert mesh.nodes[1].is_close(Vector3(2.0, 1.0, 0.0), 1e-12)
        assert mesh.nodes[2].is_close(Vector3(1.0, 0.0, 0.0), 1e-12)

    def test_scale_about_point(self):
        mesh = Mesh3()
        mesh.add_face(Vector3(1.0, 1.0, 1.0), Vector3(2.0, 1.0, 1.0), Vector3(1.0, 2.0, 1.0))
        mesh.scale(3.0, about=Vector3(1.0, 1.0, 1.0))
        assert mesh.nodes == [Vector3(1.0, 1.0, 1.0), Vector3(4.0, 1.0, 1.0), Vector3(1.0, 4.0, 1.0)]

    def test_copy_is_independent(self, box_mesh):
        clone = box_mesh.copy()
        clone.translate(Vector3.UNIT_X)
        assert box_mesh.nodes[0] == Vector3(-1.0, -0.5, 0.25)
        assert clone.nodes[0] == Vector3(0.0, -0.5, 0.25)

    def test_empty_bounds(self):
        with pytest.raises(ValueError):
            Mesh3().bounds()


class TestSTL:

    def test_record_layout(self):
        assert STL_RECORD.itemsize == 50

    def test_round_trip(self, tmp_path, box_mesh):
        path = box_mesh.write_stl(tmp_path / "box.stl")
        assert path.stat().st_size == STL_HEADER_BYTES + 4 + 12 * 50

        mesh = Mesh3.read_stl(path)
        assert len(mesh.faces) == 12
        assert len(mesh.nodes) == 36
        solid = Solid3.from_mesh(mesh)
        assert solid.total_volume == pytest.approx(1.0, abs=1e-12)
        assert solid.surface_area == pytest.approx(2 * (2.0 + 1.0 + 0.5))

    def test_read_scale(self, tmp_path, box_mesh):
        path = box_mesh.write_stl(tmp_path / "box.stl")
        mesh = Mesh3.read_stl(path, scale=0.1)
        lower, upper = mesh.bounds()
        assert upper.is_close(Vector3(0.1, 0.05, 0.025), 1e-8)

    def test_header_and_normals(self, tmp_path, box_mesh):
        path = box_mesh.write_stl(tmp_path / "box.stl", header=b"unit box")
        data = path.read_bytes()
        assert data[:8] == b"unit box"
        records = np.frombuffer(data, dtype=STL_RECORD, offset=STL_HEADER_BYTES + 4)
        np.testing.assert_allclose(np.linalg.norm(records["normal"], axis=1), 1.0, rtol=1e-6)

    def test_too_short(self, tmp_path):
        path = tmp_path / "short.stl"
        path.write_bytes(b"\0" * 40)
        with pytest.raises(ValueError, match="too short"):
            Mesh3.read_stl(path)

    def test_truncated_payload(self, tmp_path):
        path = tmp_path / "truncated.stl"
        header = b"\0" * STL_HEADER_BYTES
        count = np.array([3], dtype="<u4").tobytes()
        path.write_bytes(header + count + b"\0" * 60)
        with pytest.raises(ValueError, match="declares 3 facets"):
            Mesh3.read_stl(path)

    def test_empty_stl(self, tmp_path):
        path = tmp_path / "empty.stl"
        path.write_bytes(b"\0" * STL_HEADER_BYTES + np.array([0], dtype="<u4").tobytes())
        mesh = Mesh3.read_stl(path)
        assert mesh.nodes == [] and mesh.faces == []
