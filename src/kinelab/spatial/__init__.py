from .vector3 import Vector3
from .matrix3 import Matrix3, SingularMatrixError
from .rotations import AxisName, RotationSequence, body_sequence, from_axis_rotation, world_sequence
from .block import Matrix31, Vector31
from .quaternion import Quaternion, QuaternionLayout, apply_operator, omega_operator
from .triangle import Triangle
from .mesh import Face, Mesh3
