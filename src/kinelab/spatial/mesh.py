"""
Polygon meshes: shared node list plus faces that index into it.

Meshes are the only mutable geometry type. Faces are stored as vertex
index tuples ordered counter-clockwise when seen from outside the solid,
which is what the mass-property integration in
:mod:`kinelab.dynamics.solid` expects.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from .quaternion import Quaternion
from .triangle import Triangle
from .vector3 import Vector3

STL_HEADER_BYTES = 80
STL_RECORD = np.dtype([
    ("normal", "<f4", (3,)),
    ("vertices", "<f4", (3, 3)),
    ("attribute", "<u2"),
])


@dataclass(frozen=True, slots=True)
class Face:
    """Polygon as indices into the node list of a :class:`Mesh3`."""

    vertices: tuple[int, ...]

    def __getitem__(self, index: int) -> int:
        return self.vertices[index]

    def __len__(self) -> int:
        return len(self.vertices)


class Mesh3:
    """
    Mutable polygon mesh.

    Parameters
    ----------
    nodes : list of Vector3, optional
        Initial node list.
    faces : list of Face, optional
        Initial faces. Indices must refer to ``nodes``.

    Examples
    --------
    >>> mesh = Mesh3.rectangular_prism(2.0, 1.0, 0.5)
    >>> len(mesh.nodes), len(mesh.faces)
    (8, 6)
    """

    def __init__(self, nodes: list[Vector3] | None = None, faces: list[Face] | None = None):
        self.nodes: list[Vector3] = list(nodes) if nodes is not None else []
        self.faces: list[Face] = list(faces) if faces is not None else []
        for face in self.faces:
            for index in face.vertices:
                if not 0 <= index < len(self.nodes):
                    raise ValueError(f"Face index {index} out of range for {len(self.nodes)} nodes")

    def __repr__(self) -> str:
        return f"Mesh3(nodes={len(self.nodes)}, faces={len(self.faces)})"

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def add_face(self, *points: Vector3) -> Face:
        """
        Append a polygon given by its corner points.

        Points equal to an existing node reuse that node's index.
        """
        if len(points) < 3:
            raise ValueError(f"A face needs at least 3 points, got {len(points)}")
        indices = []
        for point in points:
            point = point.column()
            try:
                indices.append(self.nodes.index(point))
            except ValueError:
                indices.append(len(self.nodes))
                self.nodes.append(point)
        face = Face(tuple(indices))
        self.faces.append(face)
        return face

    def copy(self) -> Mesh3:
        return Mesh3(self.nodes, self.faces)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_nodes(self, face: Face | int) -> list[Vector3]:
        if isinstance(face, int):
            face = self.faces[face]
        return [self.nodes[i] for i in face.vertices]

    def get_shape(self) -> list[list[Vector3]]:
        """Every face as its list of corner points."""
        return [self.get_nodes(face) for face in self.faces]

    def tessellate(self) -> list[list[Triangle]]:
        """
        Fan-triangulate each face.

        A polygon ``p0, p1, ..., pn`` becomes ``(p0, p1, p2), (p0, p2, p3), ...``,
        preserving the face winding. Faces must be convex.
        """
        result = []
        for face in self.faces:
            nodes = self.get_nodes(face)
            result.append([
                Triangle(nodes[0], nodes[i], nodes[i + 1])
                for i in range(1, len(nodes) - 1)
            ])
        return result

    def triangles(self) -> list[Triangle]:
        return [tri for face in self.tessellate() for tri in face]

    def bounds(self) -> tuple[Vector3, Vector3]:
        """Axis-aligned bounding box ``(lower, upper)``."""
        if not self.nodes:
            raise ValueError("Empty mesh has no bounds")
        arr = np.array([n.to_array() for n in self.nodes])
        return Vector3.from_array(arr.min(axis=0)), Vector3.from_array(arr.max(axis=0))

    # ------------------------------------------------------------------
    # In-place transforms
    # ------------------------------------------------------------------

    def translate(self, delta: Vector3) -> None:
        self.nodes = [n.add(delta) for n in self.nodes]

    def rotate(self, rotation: Quaternion, about: Vector3 = Vector3.ZERO) -> None:
        R = rotation.to_rotation_matrix()
        self.nodes = [about.add(R.multiply(n.subtract(about))) for n in self.nodes]

    def scale(self, factor: float, about: Vector3 = Vector3.ZERO) -> None:
        self.nodes = [about.add(n.subtract(about).scale(factor)) for n in self.nodes]

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def triangular_prism(cls, side: float, height: float) -> Mesh3:
        """
        Tetrahedron with its centroid at the origin.

        The equilateral base lies on a circle of radius ``side / 2`` (edge
        ``sqrt(3)/2 * side``) and the apex is ``height`` above it, so the
        volume is ``sqrt(3) * side**2 * height / 16``.
        """
        r3 = math.sqrt(3.0)
        A = Vector3(-side / 4, -r3 * side / 4, -height / 4)
        B = Vector3(-side / 4, r3 * side / 4, -height / 4)
        C = Vector3(side / 2, 0.0, -height / 4)
        D = Vector3(0.0, 0.0, 3 * height / 4)

        mesh = cls()
        mesh.add_face(A, B, C)
        mesh.add_face(B, D, C)
        mesh.add_face(C, D, A)
        mesh.add_face(A, D, B)
        return mesh

    @classmethod
    def rectangular_prism(cls, length: float, height: float, width: float) -> Mesh3:
        """
        Box centered at the origin, ``length`` along x, ``height`` along y
        and ``width`` along z.
        """
        #     H        G
        #      *------*
        #   D /|   C /|
        #    *------* |
        #    | *----|-*
        #    |/ E   |/ F
        #    *------*
        #   A        B
        lx, ly, lz = length / 2, height / 2, width / 2
        A = Vector3(-lx, -ly, lz)
        B = Vector3(lx, -ly, lz)
        C = Vector3(lx, ly, lz)
        D = Vector3(-lx, ly, lz)
        E = Vector3(-lx, -ly, -lz)
        F = Vector3(lx, -ly, -lz)
        G = Vector3(lx, ly, -lz)
        H = Vector3(-lx, ly, -lz)

        mesh = cls()
        mesh.add_face(A, B, C, D)
        mesh.add_face(B, F, G, C)
        mesh.add_face(F, E, H, G)
        mesh.add_face(E, A, D, H)
        mesh.add_face(D, C, G, H)
        mesh.add_face(E, F, B, A)
        return mesh

    # ------------------------------------------------------------------
    # STL
    # ------------------------------------------------------------------

    @classmethod
    def read_stl(cls, path: str | Path, scale: float = 1.0) -> Mesh3:
        """
        Import a binary STL file.

        Every facet contributes three new nodes and one triangular face;
        stored facet normals are ignored.

        Parameters
        ----------
        path : str or Path
            File to read.
        scale : float
            Factor applied to every vertex coordinate.

        Raises
        ------
        ValueError
            If the file is shorter than its header or its size does not
            match the facet count.
        """
        data = Path(path).read_bytes()
        if len(data) < STL_HEADER_BYTES + 4:
            raise ValueError(f"STL file too short ({len(data)} bytes): {path}")
        count = int(np.frombuffer(data, dtype="<u4", count=1, offset=STL_HEADER_BYTES)[0])
        expected = STL_HEADER_BYTES + 4 + count * STL_RECORD.itemsize
        if len(data) < expected:
            raise ValueError(
                f"STL file declares {count} facets but holds {len(data)} bytes "
                f"(expected {expected}): {path}"
            )
        records = np.frombuffer(data, dtype=STL_RECORD, count=count, offset=STL_HEADER_BYTES + 4)
        vertices = records["vertices"].astype(np.float64).reshape(-1, 3) * scale

        nodes = [Vector3(float(x), float(y), float(z)) for x, y, z in vertices]
        faces = [Face((3 * i, 3 * i + 1, 3 * i + 2)) for i in range(count)]
        return cls(nodes, faces)

    def write_stl(self, path: str | Path, header: bytes = b"kinelab") -> Path:
        """Export as binary STL, fan-triangulating polygon faces."""
        triangles = self.triangles()
        records = np.zeros(len(triangles), dtype=STL_RECORD)
        for i, tri in enumerate(triangles):
            records["normal"][i] = tri.normal.to_array()
            records["vertices"][i] = [v.to_array() for v in tri.vertices()]

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("wb") as fh:
            fh.write(header[:STL_HEADER_BYTES].ljust(STL_HEADER_BYTES, b"\0"))
            fh.write(np.array([len(triangles)], dtype="<u4").tobytes())
            fh.write(records.tobytes())
        return path
