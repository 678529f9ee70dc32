"""Oriented triangles, the unit of surface integration."""
from __future__ import annotations

from dataclasses import dataclass

from .vector3 import Vector3


@dataclass(frozen=True, slots=True)
class Triangle:
    """
    Triangle with vertices ``a, b, c`` in counter-clockwise order seen
    from the side its normal points to.
    """

    a: Vector3
    b: Vector3
    c: Vector3

    @property
    def parallelepiped_vector(self) -> Vector3:
        """``a x b + b x c + c x a``, twice the vector area."""
        return self.a.cross(self.b).add(self.b.cross(self.c)).add(self.c.cross(self.a))

    @property
    def triple_product(self) -> float:
        """``a . (b x c)``, six times the signed volume of the tetrahedron with the origin."""
        return self.a.dot(self.b.cross(self.c))

    @property
    def normal(self) -> Vector3:
        return self.parallelepiped_vector.unit_vector()

    @property
    def area(self) -> float:
        return 0.5 * self.parallelepiped_vector.magnitude

    @property
    def centroid(self) -> Vector3:
        return self.a.add(self.b).add(self.c).divide(3.0)

    def vertices(self) -> tuple[Vector3, Vector3, Vector3]:
        return (self.a, self.b, self.c)
