from .solid import Solid3
from .state import ObjRate, ObjState
from .frame import Frame3, RateFunction, free_motion
from .body import RigidBody
from .forces import BodyDynamics, Drag, Force, Gravity
