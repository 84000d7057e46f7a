"""
Spatial transforms for velocity twists.

Twists are ordered [v; w] (linear velocity followed by angular). A velocity
twist matrix aVb maps a twist expressed in frame b to frame a:

    aVb = [ R    [t]x R ]
          [ 0         R ]

with (R, t) the rotation and translation of b expressed in a.
"""

import mink
import numpy as np


def skew(v: np.ndarray) -> np.ndarray:
    """
    Compute skew-symmetric matrix from 3D vector.

    For vector v = [x, y, z], returns:
        [ 0  -z   y ]
        [ z   0  -x ]
        [-y   x   0 ]
    """
    x, y, z = v
    return np.array([[0.0, -z, y], [z, 0.0, -x], [-y, x, 0.0]], dtype=float)


def velocity_twist_matrix(R: np.ndarray, t: np.ndarray) -> np.ndarray:
    """
    Build the velocity twist matrix from a rotation and a translation.

    Args:
        R: 3x3 rotation of frame b expressed in frame a
        t: 3D position of frame b origin expressed in frame a

    Returns:
        6x6 velocity twist matrix aVb
    """
    R = np.asarray(R, dtype=float)
    upper = np.hstack((R, skew(np.asarray(t, dtype=float)) @ R))
    lower = np.hstack((np.zeros((3, 3)), R))
    return np.vstack((upper, lower))


def velocity_twist_from_pose(aMb: np.ndarray) -> np.ndarray:
    """
    Build aVb from a 4x4 homogeneous transform using mink's SE3 adjoint.

    Args:
        aMb: 4x4 pose of frame b expressed in frame a

    Returns:
        6x6 velocity twist matrix aVb
    """
    return mink.SE3.from_matrix(np.asarray(aMb, dtype=float)).adjoint()


def homogeneous(R: np.ndarray, t: np.ndarray) -> np.ndarray:
    """Assemble a 4x4 homogeneous transform."""
    T = np.eye(4)
    T[:3, :3] = R
    T[:3, 3] = t
    return T
