"""
2D image point feature.

Following the Chaumette & Hutchinson formulation, a point with normalized
image coordinates (x, y) and depth Z moves in the image according to

    [x_dot]   [-1/Z    0   x/Z    xy   -(1+x^2)   y] v_c
    [y_dot] = [  0  -1/Z   y/Z  1+y^2    -xy     -x]

where v_c = [v; w] is the camera twist.
"""

import numpy as np

from .base import BasicFeature, FEATURE_ALL


class PointFeature(BasicFeature):
    """
    Point feature s = (x, y) in normalized image coordinates.

    Example:
        p, p_star = PointFeature(), PointFeature()
        p.build_from(0.1, 0.05, Z=0.8)
        p_star.build_from(0.0, 0.0, Z=0.5)
        task.add_feature(p, p_star)
    """

    SELECT_X = 1 << 0
    SELECT_Y = 1 << 1

    dim_s = 2

    def __init__(self):
        super().__init__()
        self.Z = 1.0

    def build_from(self, x: float, y: float, Z: float) -> None:
        """
        Set the point from its normalized coordinates and depth.

        Args:
            x: Normalized image abscissa (u - cx) / fx
            y: Normalized image ordinate (v - cy) / fy
            Z: Depth of the point in the camera frame (meters)
        """
        self.set_Z(Z)
        self.s = np.array([x, y], dtype=float)

    @classmethod
    def from_pixel(cls, u: float, v: float, Z: float,
                   fx: float, fy: float, cx: float, cy: float) -> 'PointFeature':
        p = cls()
        p.build_from((u - cx) / fx, (v - cy) / fy, Z)
        return p

    def set_Z(self, Z: float) -> None:
        if Z <= 0:
            raise ValueError(f"point depth must be positive, got {Z}")
        self.Z = float(Z)

    @property
    def x(self) -> float:
        return float(self.s[0])

    @property
    def y(self) -> float:
        return float(self.s[1])

    def interaction(self, select: int = FEATURE_ALL) -> np.ndarray:
        x, y, Z = self.x, self.y, self.Z
        L = np.array([
            [-1.0 / Z, 0.0, x / Z, x * y, -(1.0 + x * x), y],
            [0.0, -1.0 / Z, y / Z, 1.0 + y * y, -x * y, -x],
        ])
        return self._select_rows(L, select)

    def reset(self) -> None:
        self.s = np.zeros(2)
        self.Z = 1.0
