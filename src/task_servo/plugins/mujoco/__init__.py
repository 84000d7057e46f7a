"""
MuJoCo adapters providing kinematic inputs to servoing tasks.
"""

from .kinematics import MujocoKinematics

__all__ = [
    'MujocoKinematics',
]
