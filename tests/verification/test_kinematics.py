"""
Kinematic Verification Tests.

Tests basic motion against analytical solutions:
- Free fall under gravity
- Constant velocity motion
- Projectile motion
- Constant-rate rotation
"""

import math

import numpy as np
import pytest

from kinelab.core.simulation import Scene
from kinelab.dynamics.body import RigidBody
from kinelab.dynamics.forces import Gravity
from kinelab.dynamics.frame import Frame3, free_motion
from kinelab.dynamics.state import ObjState
from kinelab.spatial.quaternion import Quaternion
from kinelab.spatial.vector3 import Vector3


class TestFreeFall:
    """
    Verify free fall: z(t) = z0 + v0*t - 0.5*g*t^2

    RK4 integrates polynomials of degree <= 4 exactly, so only round-off
    remains.
    """

    @pytest.mark.parametrize("dt", [0.1, 0.01, 0.001])
    def test_free_fall_position(self, dt, gravity):
        z0 = 100.0
        body = RigidBody("ball", 1.0, initial_state=ObjState.at(Vector3(0.0, 0.0, z0)))
        scene = Scene([body], [Gravity(gravity)])
        t_end = 2.0
        final = scene.run(t_end, dt, log_interval=0)

        z_analytical = z0 - 0.5 * 9.81 * t_end**2
        assert final[0].position.z == pytest.approx(z_analytical, abs=1e-8)
        assert final[0].velocity.z == pytest.approx(-9.81 * t_end, abs=1e-8)

    def test_projectile(self, gravity):
        v0 = Vector3(10.0, 5.0, 20.0)
        body = RigidBody("shell", 2.0, initial_state=ObjState(velocity=v0))
        scene = Scene([body], [Gravity(gravity)])
        scene.run(3.0, 0.05, log_interval=0)

        for frame in scene.history:
            t = frame.time
            p = frame[0].position
            expected = np.array([10.0 * t, 5.0 * t, 20.0 * t - 0.5 * 9.81 * t**2])
            np.testing.assert_allclose(p.to_array(), expected, atol=1e-9)


class TestConstantVelocity:

    def test_constant_velocity(self):
        v = Vector3(1.0, -2.0, 0.5)
        body = RigidBody("drifter", 1.0, initial_state=ObjState(velocity=v))
        scene = Scene([body])
        final = scene.run(10.0, 0.1, log_interval=0)
        assert final[0].position.is_close(v.scale(10.0), 1e-9)
        assert final[0].velocity == v


class TestConstantRotation:
    """
    Under free motion the orientation after time T is exp(w T / 2) * q0,
    independent of the step size.
    """

    @pytest.mark.parametrize("steps", [1, 10, 100])
    def test_orientation_exact(self, steps):
        q0 = Quaternion.from_axis_angle(Vector3(1.0, 2.0, 3.0), 0.4)
        w = Vector3(0.3, -1.2, 0.7)
        frame = Frame3(0.0, [ObjState(orientation=q0, omega=w)])
        t_end = 2.0
        for _ in range(steps):
            frame = frame.integrate(t_end / steps, free_motion)

        expected = Quaternion.from_rot_velocity_and_time(w, t_end).product(q0)
        assert frame[0].orientation.same_rotation(expected, 1e-10)
        assert frame[0].orientation.is_unit(1e-10)

    def test_full_turns(self):
        w = Vector3(0.0, 0.0, 2 * math.pi)
        frame = Frame3(0.0, [ObjState(omega=w)])
        for _ in range(100):
            frame = frame.integrate(0.01, free_motion)
        assert frame[0].orientation.rotate(Vector3.UNIT_X).is_close(Vector3.UNIT_X, 1e-10)
