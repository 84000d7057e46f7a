"""
Generic feature with a user-supplied value, interaction matrix and error.

Useful when the feature model lives outside this package: the caller
computes s, L and optionally the error each cycle and pushes them in.
"""

from typing import Optional

import numpy as np

from .base import BasicFeature, FEATURE_ALL, selection_indices
from ..core.contracts import TWIST_DIM


class GenericFeature(BasicFeature):
    """
    Feature of arbitrary dimension whose model is set from outside.

    Example:
        f = GenericFeature(dim=2)
        f.set_s([0.3, -0.1])
        f.set_interaction_matrix(L)         # (2, 6)
        task.add_feature(f)                 # desired is synthesized as 0
    """

    def __init__(self, dim: int):
        """
        Initialize a generic feature.

        Args:
            dim: Number of components
        """
        if dim <= 0:
            raise ValueError("dim must be positive")
        self.dim_s = int(dim)
        super().__init__()
        self.L: Optional[np.ndarray] = None
        self.err: Optional[np.ndarray] = None

    def set_interaction_matrix(self, L) -> None:
        L = np.asarray(L, dtype=float)
        if L.shape != (self.dim_s, TWIST_DIM):
            raise ValueError(f"interaction matrix must be ({self.dim_s}, {TWIST_DIM}), got {L.shape}")
        self.L = L

    def set_error(self, err) -> None:
        """Override s - s* with an error computed by the caller."""
        err = np.asarray(err, dtype=float).reshape(-1)
        if err.shape != (self.dim_s,):
            raise ValueError(f"expected {self.dim_s} components, got {err.shape[0]}")
        self.err = err

    def interaction(self, select: int = FEATURE_ALL) -> np.ndarray:
        if self.L is None:
            raise ValueError("interaction matrix of GenericFeature was never set")
        return self._select_rows(self.L, select)

    def error(self, desired: BasicFeature, select: int = FEATURE_ALL) -> np.ndarray:
        if self.err is None:
            return super().error(desired, select)
        return self.err[selection_indices(select, self.dim_s)]

    def reset(self) -> None:
        self.s = np.zeros(self.dim_s)
        self.err = None
