"""
Theta-u rotation feature.

s = theta * u is the axis-angle vector of the rotation cdRc between the
desired and current camera frames. Its time derivative only depends on the
camera angular velocity:

    s_dot = [0_3  Lw] v_c
    Lw = I + theta/2 [u]x + (1 - sinc(theta) / sinc^2(theta/2)) [u]x^2

The error is computed on SO(3) so that rotation vectors on either side of
the +/- pi boundary stay close.
"""

import mink
import numpy as np

from .base import BasicFeature, FEATURE_ALL, selection_indices
from ..core.transforms import skew


def _sinc(x: float) -> float:
    if abs(x) < 1e-8:
        return 1.0
    return np.sin(x) / x


class ThetaUFeature(BasicFeature):
    """
    Rotation feature in axis-angle form.

    Example:
        tu = ThetaUFeature()
        tu.build_from_rotation(cdRc)
        task.add_feature(tu)        # desired is the identity rotation
    """

    SELECT_TUX = 1 << 0
    SELECT_TUY = 1 << 1
    SELECT_TUZ = 1 << 2

    dim_s = 3

    def build_from_rotation(self, R: np.ndarray) -> None:
        """Set s from a 3x3 rotation matrix using the SO(3) logarithm."""
        self.s = np.asarray(mink.SO3.from_matrix(np.asarray(R, dtype=float)).log(), dtype=float)

    def build_from(self, theta_u) -> None:
        self.set_s(theta_u)

    @property
    def theta(self) -> float:
        return float(np.linalg.norm(self.s))

    def interaction(self, select: int = FEATURE_ALL) -> np.ndarray:
        theta = self.theta
        L = np.zeros((3, 6))
        if theta < 1e-8:
            Lw = np.eye(3)
        else:
            ux = skew(self.s / theta)
            Lw = (
                np.eye(3)
                + (theta / 2.0) * ux
                + (1.0 - _sinc(theta) / _sinc(theta / 2.0) ** 2) * (ux @ ux)
            )
        L[:, 3:] = Lw
        return self._select_rows(L, select)

    def error(self, desired: BasicFeature, select: int = FEATURE_ALL) -> np.ndarray:
        current = mink.SO3.exp(self.s)
        target = mink.SO3.exp(desired.s)
        err = np.asarray((current @ target.inverse()).log(), dtype=float)
        return err[selection_indices(select, self.dim_s)]

    def reset(self) -> None:
        self.s = np.zeros(3)
