"""
kinelab - 3D rigid-body kinematics and dynamics sandbox.

Spatial Math
------------
Vector3, Matrix3 : Immutable 3D vector and 3x3 matrix values
Quaternion : Rotation quaternions with exp/log, SLERP and spline blending
Matrix31, Vector31 : Partitioned 4x4 algebra with closed-form inverses
Mesh3 : Polygon meshes, factory prisms and binary STL I/O

Dynamics
--------
Solid3 : Divergence-theorem mass properties of closed meshes
ObjState, ObjRate : Rigid-body state and its time derivative
Frame3 : Snapshot of all body states, advanced with RK4
RigidBody : Named body with mass and meshes
Gravity, Drag, BodyDynamics : Force laws and the Newton-Euler rate function

Simulation
----------
Scene : Orchestrator with history, CSV logging and plots

Examples
--------
>>> from kinelab import Scene, RigidBody, Mesh3, Drag
>>> box = RigidBody("box", 2.0, [Mesh3.rectangular_prism(1.0, 0.5, 0.25)])
>>> scene = Scene([box], global_forces=[Drag(k_linear=0.1, k_angular=0.01)])
>>> scene.run(duration=2.0, dt=0.01)
"""

__version__ = "0.1.0"

# Spatial math
from kinelab.spatial import (
    AxisName,
    Face,
    Matrix3,
    Matrix31,
    Mesh3,
    Quaternion,
    QuaternionLayout,
    RotationSequence,
    SingularMatrixError,
    Triangle,
    Vector3,
    Vector31,
)

# Dynamics
from kinelab.dynamics import (
    BodyDynamics,
    Drag,
    Force,
    Frame3,
    Gravity,
    ObjRate,
    ObjState,
    RigidBody,
    Solid3,
    free_motion,
)

# Simulation and logging
from kinelab.core.simulation import Scene
from kinelab.logger import CSVLogger

__all__ = [
    # Version
    "__version__",
    # Spatial
    "Vector3",
    "Matrix3",
    "SingularMatrixError",
    "AxisName",
    "RotationSequence",
    "Quaternion",
    "QuaternionLayout",
    "Matrix31",
    "Vector31",
    "Triangle",
    "Face",
    "Mesh3",
    # Dynamics
    "Solid3",
    "ObjState",
    "ObjRate",
    "Frame3",
    "free_motion",
    "RigidBody",
    "Force",
    "Gravity",
    "Drag",
    "BodyDynamics",
    # Simulation
    "Scene",
    "CSVLogger",
]
