import math

import numpy as np
import pytest

from kinelab.dynamics.body import RigidBody
from kinelab.dynamics.forces import STANDARD_GRAVITY, BodyDynamics, Drag, Gravity
from kinelab.dynamics.frame import Frame3
from kinelab.dynamics.state import ObjState
from kinelab.spatial.vector3 import Vector3


class ConstantTorque:
    def __init__(self, torque):
        self.torque = torque

    def evaluate(self, body, state, t):
        return Vector3.ZERO, self.torque


# --- Gravity ---

def test_gravity_force(box_body):
    g = Gravity(np.array([0, 0, -9.81]))
    force, torque = g.evaluate(box_body, ObjState(), 0.0)
    assert force.is_close(Vector3(0.0, 0.0, -29.43), 1e-12)
    assert torque == Vector3.ZERO


def test_gravity_default():
    assert Gravity().g == Vector3(0.0, 0.0, -STANDARD_GRAVITY)
    assert Gravity(Vector3(0.0, -1.0, 0.0)).g == Vector3(0.0, -1.0, 0.0)


def test_gravity_invalid():
    with pytest.raises(ValueError, match="must be \\(3,\\)"):
        Gravity([0.0, 9.81])
    with pytest.raises(ValueError, match="finite"):
        Gravity([0.0, 0.0, math.nan])


# --- Drag ---

def test_drag_invalid_parameters():
    with pytest.raises(ValueError, match="Mode must be"):
        Drag(mode="cubic")
    with pytest.raises(ValueError, match="non-negative"):
        Drag(k_linear=-1.0)
    with pytest.raises(ValueError):
        Drag(rho=-1.0)


def test_drag_linear(box_body):
    d = Drag(mode="linear", k_linear=0.5, k_angular=0.1)
    state = ObjState(velocity=Vector3(1.0, 2.0, 0.0), omega=Vector3(0.0, 0.0, 2.0))
    force, torque = d.evaluate(box_body, state, 0.0)
    assert force.is_close(Vector3(-0.5, -1.0, 0.0))
    assert torque.is_close(Vector3(0.0, 0.0, -0.2))


def test_drag_quadratic(box_body):
    d = Drag(mode="quadratic", rho=1.225, Cd=1.0, area=2.0)
    state = ObjState(velocity=Vector3(3.0, 4.0, 0.0))
    force, torque = d.evaluate(box_body, state, 0.0)
    # 0.5 * 1.225 * 1 * 2 * |v| = 6.125
    assert force.is_close(Vector3(-18.375, -24.5, 0.0), 1e-12)
    assert force.dot(state.velocity) < 0
    assert torque == Vector3.ZERO


def test_drag_quadratic_at_rest(box_body):
    d = Drag(mode="quadratic", Cd=1.0, area=2.0)
    force, _ = d.evaluate(box_body, ObjState(), 0.0)
    assert force == Vector3.ZERO


def test_drag_callable_parameters(box_body):
    calls = []

    def cd(t, body):
        calls.append((t, body.name))
        return 0.5

    d = Drag(mode="quadratic", rho=2.0, Cd=cd, area=lambda t, body: 1.0 + t)
    force, _ = d.evaluate(box_body, ObjState(velocity=Vector3(0.0, 0.0, -2.0)), 1.0)
    # 0.5 * 2 * 0.5 * 2 * 2 = 2 per unit velocity
    assert force.is_close(Vector3(0.0, 0.0, 4.0), 1e-12)
    assert calls == [(1.0, "box")]


# --- BodyDynamics ---

def test_gravity_acceleration(box_body):
    dyn = BodyDynamics([box_body], [Gravity([0.0, 0.0, -9.81])])
    frame = Frame3(0.0, [ObjState(velocity=Vector3(1.0, 0.0, 0.0))])
    (rate,) = dyn(frame)
    assert rate.velocity == Vector3(1.0, 0.0, 0.0)
    assert rate.acceleration.is_close(Vector3(0.0, 0.0, -9.81), 1e-12)
    assert rate.alpha.is_close(Vector3.ZERO)


def test_torque_about_principal_axis(box_body):
    dyn = BodyDynamics([box_body], [ConstantTorque(Vector3(0.0, 0.0, 1.25))])
    (rate,) = dyn(Frame3(0.0, [ObjState()]))
    assert rate.alpha.is_close(Vector3(0.0, 0.0, 1.0), 1e-12)


def test_gyroscopic_term(box_body):
    # Euler: I2 w2' = (I3 - I1) w3 w1
    dyn = BodyDynamics([box_body])
    (rate,) = dyn(Frame3(0.0, [ObjState(omega=Vector3(1.0, 0.0, 1.0))]))
    expected = (1.25 - 0.3125) / 1.0625
    assert rate.alpha.is_close(Vector3(0.0, expected, 0.0), 1e-12)


def test_spin_about_principal_axis_is_steady(box_body):
    dyn = BodyDynamics([box_body])
    (rate,) = dyn(Frame3(0.0, [ObjState(omega=Vector3(0.0, 0.0, 5.0))]))
    assert rate.alpha.is_close(Vector3.ZERO, 1e-12)


def test_body_without_mesh_keeps_spin():
    point = RigidBody("point", 1.0)
    dyn = BodyDynamics([point], [ConstantTorque(Vector3(1.0, 0.0, 0.0))])
    (rate,) = dyn(Frame3(0.0, [ObjState(omega=Vector3(0.0, 1.0, 0.0))]))
    assert rate.alpha == Vector3.ZERO
    assert rate.omega == Vector3(0.0, 1.0, 0.0)


def test_body_force_targets_one_body(box_mesh):
    a = RigidBody("a", 1.0, [box_mesh])
    b = RigidBody("b", 2.0, [box_mesh.copy()])
    dyn = BodyDynamics([a, b])
    dyn.add_body_force("b", Gravity([0.0, 0.0, -1.0]))
    rates = dyn(Frame3(0.0, [ObjState(), ObjState()]))
    assert rates[0].acceleration == Vector3.ZERO
    assert rates[1].acceleration.is_close(Vector3(0.0, 0.0, -1.0))

    force, _ = dyn.loads(b, ObjState(), 0.0)
    assert force.is_close(Vector3(0.0, 0.0, -2.0))


def test_global_forces_sum(box_body):
    dyn = BodyDynamics([box_body], [Gravity([0.0, 0.0, -1.0])])
    dyn.add_global_force(Gravity([0.0, 0.0, -2.0]))
    force, torque = dyn.loads(box_body, ObjState(), 0.0)
    assert force.is_close(Vector3(0.0, 0.0, -9.0))
    assert torque == Vector3.ZERO


def test_unknown_body_force(box_body):
    dyn = BodyDynamics([box_body])
    with pytest.raises(ValueError, match="Unknown body"):
        dyn.add_body_force("missing", Gravity())


def test_frame_count_mismatch(box_body):
    dyn = BodyDynamics([box_body])
    with pytest.raises(ValueError, match="2 states but 1 bodies"):
        dyn(Frame3(0.0, [ObjState(), ObjState()]))
