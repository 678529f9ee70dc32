import os
import sys

import pytest

# Get the path to the project root (one level up from 'tests')
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
src_path = os.path.join(project_root, 'src')

# Add 'src' to sys.path
sys.path.insert(0, src_path)

from kinelab.dynamics.body import RigidBody  # noqa: E402
from kinelab.spatial.mesh import Mesh3  # noqa: E402


@pytest.fixture
def box_mesh():
    """2 x 1 x 0.5 box centered at the origin."""
    return Mesh3.rectangular_prism(2.0, 1.0, 0.5)


@pytest.fixture
def box_body(box_mesh):
    return RigidBody("box", mass=3.0, meshes=[box_mesh])
