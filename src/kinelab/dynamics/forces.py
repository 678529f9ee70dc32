"""
Force laws and the rigid-body rate function.

Force objects follow the :class:`Force` protocol: given a body, its state
and the time they return the resultant force and torque in the world frame,
both acting about the body origin. :class:`BodyDynamics` sums them per body
and turns them into accelerations with the Newton-Euler equations.

Physical units:
- Forces: Newtons [N]
- Torques: Newton-meters [N m]
- Velocities: meters per second [m/s]
- Areas: square meters [m^2]
- Densities: kilograms per cubic meter [kg/m^3]
"""
from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import Protocol

import numpy as np
from numpy.typing import NDArray

from ..spatial.vector3 import Vector3
from ..utils.validation import validate_finite, validate_non_negative
from .body import RigidBody
from .frame import Frame3
from .state import ObjRate, ObjState

# Physical constants
EPSILON_VELOCITY = 1e-12  # Minimum speed for quadratic drag
STANDARD_GRAVITY = 9.80665

Loads = tuple[Vector3, Vector3]


class Force(Protocol):
    """Protocol for force laws acting on rigid bodies."""

    def evaluate(self, body: RigidBody, state: ObjState, t: float) -> Loads:
        """
        Return ``(force, torque)`` acting on ``body`` in ``state`` at time ``t``.

        Parameters
        ----------
        body : RigidBody
            Body the law acts on (mass, inertia, name).
        state : ObjState
            Current state of that body.
        t : float
            Simulation time [s].
        """
        ...


def _as_vector(value: Vector3 | Sequence[float] | NDArray, name: str) -> Vector3:
    if isinstance(value, Vector3):
        return value.column()
    arr = np.asarray(value, dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError(f"{name} vector must be (3,), got shape {arr.shape}")
    return Vector3.from_array(arr)


class Gravity:
    """
    Uniform gravitational force.

    Force: ``F = m * g`` applied at the body origin, no torque.

    Parameters
    ----------
    g : Vector3 or array-like
        Gravitational acceleration in the world frame [m/s^2].
        Standard Earth gravity: ``(0, 0, -9.81)``.

    Examples
    --------
    >>> gravity = Gravity(Vector3(0.0, 0.0, -9.81))
    """

    def __init__(self, g: Vector3 | Sequence[float] | NDArray = (0.0, 0.0, -STANDARD_GRAVITY)) -> None:
        self.g = _as_vector(g, "Gravity")
        validate_finite(self.g, "Gravity")

    def evaluate(self, body: RigidBody, state: ObjState, t: float) -> Loads:
        return self.g.scale(body.mass), Vector3.ZERO


class Drag:
    """
    Velocity-proportional damping in the world frame.

    Supports two translational models:
    - 'linear': ``F = -k_linear * v`` (Stokes drag)
    - 'quadratic': ``F = -0.5 * rho * Cd * A * |v| * v``

    In both modes the rotation is damped linearly, ``tau = -k_angular * w``.

    Parameters
    ----------
    mode : str
        'linear' (default) or 'quadratic'.
    k_linear : float
        Linear drag coefficient [N s/m].
    k_angular : float
        Angular damping coefficient [N m s/rad].
    rho : float
        Fluid density for 'quadratic' mode [kg/m^3].
    Cd : float | Callable[[float, RigidBody], float]
        Drag coefficient [-]. Constant or function of ``(t, body)``.
    area : float | Callable[[float, RigidBody], float]
        Reference area [m^2]. Constant or function of ``(t, body)``.

    Examples
    --------
    >>> damping = Drag(mode="linear", k_linear=0.5, k_angular=0.05)
    """

    def __init__(
        self,
        mode: str = "linear",
        k_linear: float = 0.0,
        k_angular: float = 0.0,
        rho: float = 1.225,
        Cd: float | Callable[[float, RigidBody], float] = 1.0,
        area: float | Callable[[float, RigidBody], float] = 1.0,
    ) -> None:
        if mode not in ("quadratic", "linear"):
            raise ValueError(f"Mode must be 'quadratic' or 'linear', got '{mode}'")
        validate_non_negative(k_linear, "Linear drag coefficient")
        validate_non_negative(k_angular, "Angular drag coefficient")
        validate_non_negative(rho, "Density")

        self.mode = mode
        self.k_linear = float(k_linear)
        self.k_angular = float(k_angular)
        self.rho = float(rho)
        self.Cd = Cd
        self.area = area

    def _value(self, val: float | Callable, t: float, body: RigidBody) -> float:
        """Evaluate parameter (constant or callable)."""
        return float(val(t, body)) if callable(val) else float(val)

    def evaluate(self, body: RigidBody, state: ObjState, t: float) -> Loads:
        v = state.velocity
        torque = state.omega.scale(-self.k_angular)

        if self.mode == "linear":
            return v.scale(-self.k_linear), torque

        speed = v.magnitude
        if speed < EPSILON_VELOCITY:
            return Vector3.ZERO, torque
        Cd = self._value(self.Cd, t, body)
        A = self._value(self.area, t, body)
        return v.scale(-0.5 * self.rho * Cd * A * speed), torque


class BodyDynamics:
    """
    Rate function for independent rigid bodies under force laws.

    For each body the loads of the global forces and of the body's own
    forces are summed and converted to rates:

    - ``acceleration = F / m``
    - ``alpha = I_w^-1 (tau - w x I_w w)`` with ``I_w = R I_body R^T``

    Bodies without meshes have no rotational inertia; their angular
    velocity is held constant.

    Parameters
    ----------
    bodies : sequence of RigidBody
        Bodies in frame order.
    global_forces : iterable of Force
        Laws applied to every body.

    Raises
    ------
    ValueError
        When called with a frame whose body count differs.
    SingularMatrixError
        If a body's world inertia tensor is singular.
    """

    def __init__(self, bodies: Sequence[RigidBody], global_forces: Iterable[Force] = ()) -> None:
        self.bodies = list(bodies)
        self.global_forces: list[Force] = list(global_forces)
        self.body_forces: dict[str, list[Force]] = {}

    def add_global_force(self, force: Force) -> None:
        self.global_forces.append(force)

    def add_body_force(self, body_name: str, force: Force) -> None:
        """Attach a force law to a single body, by name."""
        if body_name not in {b.name for b in self.bodies}:
            raise ValueError(f"Unknown body '{body_name}'")
        self.body_forces.setdefault(body_name, []).append(force)

    def loads(self, body: RigidBody, state: ObjState, t: float) -> Loads:
        """Resultant world-frame force and torque on one body."""
        force, torque = Vector3.ZERO, Vector3.ZERO
        for law in (*self.global_forces, *self.body_forces.get(body.name, ())):
            f, tau = law.evaluate(body, state, t)
            force = force.add(f)
            torque = torque.add(tau)
        return force, torque

    def body_rate(self, body: RigidBody, state: ObjState, force: Vector3, torque: Vector3) -> ObjRate:
        acceleration = force.divide(body.mass)
        if not body.meshes:
            return ObjRate.from_state(state, acceleration, Vector3.ZERO)
        I_w = body.inertia_world(state)
        w = state.omega
        gyroscopic = w.cross(I_w.multiply(w))
        alpha = I_w.solve(torque.subtract(gyroscopic))
        return ObjRate.from_state(state, acceleration, alpha)

    def __call__(self, frame: Frame3) -> list[ObjRate]:
        if frame.count != len(self.bodies):
            raise ValueError(
                f"Frame holds {frame.count} states but {len(self.bodies)} bodies are registered"
            )
        rates = []
        for body, state in zip(self.bodies, frame.states):
            force, torque = self.loads(body, state, frame.time)
            rates.append(self.body_rate(body, state, force, torque))
        return rates
