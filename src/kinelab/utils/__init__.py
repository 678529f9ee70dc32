"""Utility functions for kinelab simulations."""

from .validation import (
    validate_finite,
    validate_inertia_tensor,
    validate_non_negative,
    validate_positive,
    validate_quaternion,
    validate_timestep,
)

__all__ = [
    "validate_positive",
    "validate_non_negative",
    "validate_quaternion",
    "validate_inertia_tensor",
    "validate_timestep",
    "validate_finite",
]
