"""
Volumetric mass properties of closed triangulated surfaces.

Volume, centroid and inertia are extracted with the divergence theorem:
every surface triangle ``(A, B, C)`` forms a tetrahedron with the origin
whose signed contributions are summed.

For each triangle

- ``v_i = A . (B x C) / 6``                             (signed volume)
- ``c_i = 3/4 * (A + B + C) / 3``                        (tetra centroid)
- ``u_i = (P(A+B) + P(B+C) + P(C+A)) / 20``              (inertia / volume)

where ``P(r) = |r|^2 I - r r^T`` is the parallel-axis tensor. Then

- ``V = sum(v_i)``
- ``c = sum(v_i c_i) / V``
- ``J_O = sum(v_i u_i) / V`` and ``J_C = J_O - P(c)``

All inertia tensors here are *per unit volume*, so a body of mass ``m``
has the centroidal inertia ``m * J_C`` whatever its density.
"""
from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

from ..spatial.matrix3 import Matrix3
from ..spatial.mesh import Mesh3
from ..spatial.triangle import Triangle
from ..spatial.vector3 import Vector3


@dataclass(frozen=True, slots=True)
class Solid3:
    """
    Mass properties of a homogeneous solid.

    The record keeps the raw volume integrals, so partial surfaces whose
    signed volume nets to zero (faces through the origin, open patches)
    are still valid operands for :meth:`add`. Centroid and per-volume
    inertia are derived from them.

    Parameters
    ----------
    surface_area : float
        Total surface area [m^2].
    total_volume : float
        Enclosed volume [m^3]. Negative for cavities.
    first_moment : Vector3
        ``sum(v_i c_i)``, the volume-weighted centroid [m^4].
    second_moment : Matrix3
        ``sum(v_i u_i)``, the volume-weighted inertia about the origin [m^5].
    """

    surface_area: float
    total_volume: float
    first_moment: Vector3
    second_moment: Matrix3

    __array_ufunc__ = None

    @property
    def centroid(self) -> Vector3:
        """Volume centroid [m]; the origin when the volume is zero."""
        if self.total_volume == 0:
            return Vector3.ZERO
        return self.first_moment.divide(self.total_volume)

    @property
    def vmoi_at_origin(self) -> Matrix3:
        """Inertia per unit volume about the mesh origin."""
        if self.total_volume == 0:
            return Matrix3.ZERO
        return self.second_moment.divide(self.total_volume)

    @property
    def vmoi_at_centroid(self) -> Matrix3:
        """Inertia per unit volume about the centroid [m^2]."""
        if self.total_volume == 0:
            return Matrix3.ZERO
        return self.vmoi_at_origin.subtract(self.centroid.parallel())

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def empty(cls) -> Solid3:
        return cls(0.0, 0.0, Vector3.ZERO, Matrix3.ZERO)

    @classmethod
    def from_triangles(cls, triangles: Iterable[Triangle]) -> Solid3:
        """
        Integrate outward-wound triangles.

        Any subset of a closed surface is accepted; the solids of disjoint
        subsets add up to the solid of the whole surface.
        """
        area = 0.0
        volume = 0.0
        moment = Vector3.ZERO
        vmoi = Matrix3.ZERO
        for tri in triangles:
            vi = tri.triple_product / 6.0
            ci = tri.centroid.scale(0.75)
            ui = (
                tri.a.add(tri.b).parallel()
                .add(tri.b.add(tri.c).parallel())
                .add(tri.c.add(tri.a).parallel())
                .divide(20.0)
            )
            area += tri.area
            volume += vi
            moment = moment.add(ci.scale(vi))
            vmoi = vmoi.add(ui.scale(vi))
        return cls(area, volume, moment, vmoi)

    @classmethod
    def from_faces(cls, faces: Iterable[Iterable[Triangle]]) -> Solid3:
        """Integrate the output of :meth:`Mesh3.tessellate`."""
        return cls.from_triangles(tri for face in faces for tri in face)

    @classmethod
    def from_mesh(cls, mesh: Mesh3) -> Solid3:
        """
        Integrate a closed mesh.

        Raises
        ------
        ValueError
            If the enclosed volume is zero (open or flat surface).
        """
        solid = cls.from_faces(mesh.tessellate())
        if solid.total_volume == 0 or not math.isfinite(solid.total_volume):
            raise ValueError(f"Surface encloses no volume (V={solid.total_volume})")
        return solid

    # ------------------------------------------------------------------
    # Algebra
    # ------------------------------------------------------------------

    def add(self, other: Solid3) -> Solid3:
        """
        Combine two solids into one.

        Summing the volume integrals is the volume-weighted centroid and
        parallel-axis recombination about the common centroid. Adding the
        solids of two disjoint face sets gives the solid of their union.
        """
        return Solid3(
            self.surface_area + other.surface_area,
            self.total_volume + other.total_volume,
            self.first_moment.add(other.first_moment),
            self.second_moment.add(other.second_moment),
        )

    def scale(self, factor: float) -> Solid3:
        """
        Scale area and volume by ``factor``.

        Centroid and per-volume inertia are intensive and stay unchanged.
        A negative factor turns the solid into a cavity for :meth:`add`.
        """
        f = float(factor)
        return Solid3(
            f * self.surface_area,
            f * self.total_volume,
            self.first_moment.scale(f),
            self.second_moment.scale(f),
        )

    def mass_moment(self, mass: float) -> Matrix3:
        """Centroidal inertia tensor [kg m^2] of a body of the given mass."""
        return self.vmoi_at_centroid.scale(mass)

    def is_close(self, other: Solid3, tol: float = 1e-9) -> bool:
        return (
            abs(self.surface_area - other.surface_area) <= tol
            and abs(self.total_volume - other.total_volume) <= tol
            and self.first_moment.is_close(other.first_moment, tol)
            and self.second_moment.is_close(other.second_moment, tol)
        )

    def __add__(self, other: Solid3) -> Solid3:
        return self.add(other)

    def __neg__(self) -> Solid3:
        return self.scale(-1.0)

    def __sub__(self, other: Solid3) -> Solid3:
        return self.add(other.scale(-1.0))

    def __mul__(self, factor: float) -> Solid3:
        return self.scale(factor)

    __rmul__ = __mul__

    def __truediv__(self, divisor: float) -> Solid3:
        return self.scale(1.0 / divisor)
