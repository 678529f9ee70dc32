"""
Rigid bodies built from polygon meshes.

All physical quantities use SI units:
- Position: meters [m]
- Mass: kilograms [kg]
- Inertia: kilogram-meter-squared [kg m^2]

The body frame is the frame the meshes are modelled in. Its origin need not
be the centroid; the dynamics in :mod:`kinelab.dynamics.forces` treat the
body origin as the reference point, so meshes are normally modelled with
their centroid at the origin (as the factory shapes are).
"""
from __future__ import annotations

import warnings
from collections.abc import Iterable

from ..spatial.matrix3 import Matrix3
from ..spatial.mesh import Mesh3
from ..spatial.vector3 import Vector3
from ..utils.validation import validate_inertia_tensor, validate_positive
from .solid import Solid3
from .state import ObjState

MIN_MASS = 1e-10  # Below this the body is treated as massless
CENTROID_TOLERANCE = 1e-9


class RigidBody:
    """
    Named rigid body owning one or more meshes.

    Parameters
    ----------
    name : str
        Unique identifier, used as the column prefix in logs.
    mass : float
        Body mass [kg]. Must be positive.
    meshes : iterable of Mesh3
        Closed surfaces in the body frame. Their solids are added.
    initial_state : ObjState, optional
        State used when a scene is reset. Defaults to rest at the origin.
    color : str
        Matplotlib color used by the mesh projection plot.

    Notes
    -----
    Mass properties are cached. Call :meth:`recompute_mass_properties`
    after editing a mesh in place; :meth:`add_mesh` and
    :meth:`remove_mesh` do it automatically.
    """

    __slots__ = ("name", "mass", "meshes", "initial_state", "color", "_solid")

    def __init__(
        self,
        name: str,
        mass: float,
        meshes: Iterable[Mesh3] = (),
        initial_state: ObjState | None = None,
        color: str = "#1a73e8",
    ) -> None:
        validate_positive(mass, "Mass")
        if mass < MIN_MASS:
            warnings.warn(
                f"Very small mass ({mass} kg) detected. Consider using a larger value.",
                RuntimeWarning, stacklevel=2
            )

        self.name = name
        self.mass = float(mass)
        self.meshes: list[Mesh3] = list(meshes)
        self.initial_state = initial_state if initial_state is not None else ObjState()
        self.color = color
        self._solid = Solid3.empty()
        self.recompute_mass_properties()

    def __repr__(self) -> str:
        return f"RigidBody(name={self.name!r}, mass={self.mass}, meshes={len(self.meshes)})"

    # ------------------------------------------------------------------
    # Mass properties
    # ------------------------------------------------------------------

    def _combined_solid(self, meshes: list[Mesh3]) -> Solid3:
        """Solid of ``meshes``, validated without touching the body."""
        solid = Solid3.empty()
        for mesh in meshes:
            solid = solid.add(Solid3.from_mesh(mesh))
        if meshes:
            validate_inertia_tensor(solid.mass_moment(self.mass))
        return solid

    def _commit(self, meshes: list[Mesh3], solid: Solid3) -> Solid3:
        self.meshes = meshes
        self._solid = solid
        if meshes and not solid.centroid.is_close(Vector3.ZERO, CENTROID_TOLERANCE):
            warnings.warn(
                f"Body '{self.name}' centroid {solid.centroid} is not at the body origin; "
                "rotational dynamics are taken about the origin.",
                RuntimeWarning, stacklevel=3
            )
        return solid

    def recompute_mass_properties(self) -> Solid3:
        """
        Rebuild the combined solid from the current meshes.

        On failure the previous solid is kept and the error propagates.
        """
        return self._commit(self.meshes, self._combined_solid(self.meshes))

    def add_mesh(self, mesh: Mesh3) -> None:
        """Attach a mesh; a mesh that fails validation is not attached."""
        meshes = [*self.meshes, mesh]
        self._commit(meshes, self._combined_solid(meshes))

    def remove_mesh(self, mesh: Mesh3) -> None:
        meshes = list(self.meshes)
        meshes.remove(mesh)
        self._commit(meshes, self._combined_solid(meshes))

    @property
    def solid(self) -> Solid3:
        return self._solid

    @property
    def mmoi(self) -> Matrix3:
        """Centroidal inertia tensor in the body frame [kg m^2]."""
        return self._solid.mass_moment(self.mass)

    def inertia_world(self, state: ObjState) -> Matrix3:
        """
        Inertia tensor in the world frame.

        ``I_world = R I_body R^T`` with ``R`` the state's rotation.
        """
        return state.orientation.rotate_matrix(self.mmoi)

    def kinetic_energy(self, state: ObjState) -> float:
        """
        Total kinetic energy [J].

        ``KE = 0.5 m |v|^2 + 0.5 w . I_world w``
        """
        v, w = state.velocity, state.omega
        ke_lin = 0.5 * self.mass * v.sum_squares
        ke_rot = 0.5 * w.dot(self.inertia_world(state).multiply(w))
        return ke_lin + ke_rot

    def get_shape(self, state: ObjState | None = None) -> list[list[list[Vector3]]]:
        """World-space faces of every mesh, one list of point lists per mesh."""
        state = self.initial_state if state is None else state
        return [state.transform_faces(mesh.get_shape()) for mesh in self.meshes]
