"""
Verification suite for kinelab.

These tests compare simulation results against analytical solutions
to validate the geometry and dynamics implementation.

Test Categories:
- Mass properties: closed-form volumes, centroids and inertia tensors
- Kinematic: free fall, constant velocity, free rotation
- Rotational: torque-free spin, Dzhanibekov effect
- Energy: conservation and dissipation checks
- Damping: exponential decay, terminal velocity
"""

import pytest

from kinelab.dynamics.body import RigidBody
from kinelab.dynamics.state import ObjState
from kinelab.spatial.mesh import Mesh3
from kinelab.spatial.vector3 import Vector3


@pytest.fixture
def gravity():
    """Standard Earth gravity vector."""
    return Vector3(0.0, 0.0, -9.81)


@pytest.fixture
def asymmetric_mesh():
    """1 x 2 x 3 box: per-volume inertia diag(13, 10, 5) / 12."""
    return Mesh3.rectangular_prism(1.0, 2.0, 3.0)


@pytest.fixture
def spinner(asymmetric_mesh):
    """Factory for a 1 kg asymmetric box spinning with the given angular velocity."""
    def make(omega: Vector3) -> RigidBody:
        return RigidBody("spinner", 1.0, [asymmetric_mesh], initial_state=ObjState(omega=omega))
    return make
