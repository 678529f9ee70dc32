"""
Damping Verification Tests.

Tests drag laws against analytical solutions:
- Exponential decay under linear drag
- Exponential spin-down under angular damping
- Terminal velocity under quadratic drag
"""

import math

import pytest

from kinelab.core.simulation import Scene
from kinelab.dynamics.body import RigidBody
from kinelab.dynamics.forces import Drag, Gravity
from kinelab.dynamics.state import ObjState
from kinelab.spatial.mesh import Mesh3
from kinelab.spatial.vector3 import Vector3


class TestLinearDrag:
    """
    m dv/dt = -k v  =>  v(t) = v0 exp(-k t / m)
                        x(t) = v0 m / k (1 - exp(-k t / m))
    """

    def test_velocity_and_position(self):
        m, k, v0 = 2.0, 0.5, 4.0
        body = RigidBody("puck", m, initial_state=ObjState(velocity=Vector3(v0, 0.0, 0.0)))
        scene = Scene([body], [Drag(mode="linear", k_linear=k)])
        scene.run(5.0, 0.01, log_interval=0)

        for frame in scene.history[::100]:
            t = frame.time
            decay = math.exp(-k * t / m)
            assert frame[0].velocity.x == pytest.approx(v0 * decay, rel=1e-8)
            assert frame[0].position.x == pytest.approx(v0 * m / k * (1 - decay), rel=1e-8, abs=1e-12)

    def test_spin_down(self):
        """Spin about a principal axis: Izz dw/dt = -k w."""
        body = RigidBody(
            "box", 3.0, [Mesh3.rectangular_prism(2.0, 1.0, 0.5)],
            initial_state=ObjState(omega=Vector3(0.0, 0.0, 10.0)),
        )
        Izz = 3.0 * (2.0**2 + 1.0**2) / 12
        k = 0.25
        scene = Scene([body], [Drag(k_angular=k)])
        final = scene.run(3.0, 0.01, log_interval=0)

        assert final[0].omega.z == pytest.approx(10.0 * math.exp(-k * 3.0 / Izz), rel=1e-8)
        assert final[0].omega.x == pytest.approx(0.0, abs=1e-12)
        assert final[0].position == Vector3.ZERO


class TestQuadraticDrag:
    """
    Falling from rest with F = -1/2 rho Cd A |v| v:

        v(t) = -v_t tanh(g t / v_t),  v_t = sqrt(2 m g / (rho Cd A))
    """

    @pytest.mark.parametrize("t_end", [0.5, 1.0, 5.0])
    def test_fall_velocity(self, t_end, gravity):
        m, rho, Cd, A = 1.0, 1.225, 1.0, 1.0
        g = 9.81
        v_t = math.sqrt(2 * m * g / (rho * Cd * A))

        body = RigidBody("ball", m, initial_state=ObjState.at(Vector3(0.0, 0.0, 1000.0)))
        scene = Scene([body], [Gravity(gravity), Drag(mode="quadratic", rho=rho, Cd=Cd, area=A)])
        final = scene.run(t_end, 0.01, log_interval=0)

        assert final[0].velocity.z == pytest.approx(-v_t * math.tanh(g * t_end / v_t), rel=1e-5)

    def test_terminal_velocity_reached(self, gravity):
        body = RigidBody("ball", 1.0, initial_state=ObjState.at(Vector3(0.0, 0.0, 1000.0)))
        drag = Drag(mode="quadratic", rho=1.225, Cd=lambda t, b: 1.0, area=lambda t, b: 1.0)
        scene = Scene([body], [Gravity(gravity), drag])
        final = scene.run(10.0, 0.01, log_interval=0)
        v_t = math.sqrt(2 * 9.81 / 1.225)
        assert abs(final[0].velocity.z) == pytest.approx(v_t, rel=1e-9)
