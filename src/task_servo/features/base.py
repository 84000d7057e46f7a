"""
Abstract base class for visual features.

This module defines the capability interface that every visual feature must
implement to take part in a servoing task (points, theta-u rotations,
generic user-defined features, ...). The task only ever talks to features
through these operations.
"""

import copy
from abc import ABC, abstractmethod
from typing import List

import numpy as np

from ..core.contracts import FEATURE_ALL, FeatureOwner, TWIST_DIM


def selection_indices(select: int, dim: int) -> List[int]:
    """
    Component indices selected by a bitmask.

    Args:
        select: Bitmask, bit i selects component i
        dim: Number of components of the feature

    Returns:
        Sorted list of selected indices below dim
    """
    return [i for i in range(dim) if (select >> i) & 1]


class BasicFeature(ABC):
    """
    Abstract base class for visual features.

    A feature holds its current value s (``dim_s`` components). Each
    component can be selected individually through a bitmask so that a task
    only regulates part of a feature.

    Subclasses must implement:
    - interaction(select): rows of the interaction matrix
    - reset(): neutral value used for synthesized desired features

    Example usage:
        p = PointFeature()
        p.build_from(x=0.1, y=-0.2, Z=1.0)
        L = p.interaction(PointFeature.SELECT_X)   # (1, 6)
    """

    dim_s: int = 0

    def __init__(self):
        self.s = np.zeros(self.dim_s)
        self.owner = FeatureOwner.USER
        self.released = False

    def get_dimension(self, select: int = FEATURE_ALL) -> int:
        """Number of components selected by the mask."""
        return len(selection_indices(select, self.dim_s))

    def get_s(self) -> np.ndarray:
        """Current value of the feature."""
        return self.s.copy()

    def set_s(self, s) -> None:
        s = np.asarray(s, dtype=float).reshape(-1)
        if s.shape != (self.dim_s,):
            raise ValueError(f"expected {self.dim_s} components, got {s.shape[0]}")
        self.s = s

    @abstractmethod
    def interaction(self, select: int = FEATURE_ALL) -> np.ndarray:
        """
        Interaction matrix of the selected components.

        Args:
            select: Selection bitmask

        Returns:
            (get_dimension(select), 6) matrix relating ds/dt to the twist
        """
        pass

    def error(self, desired: 'BasicFeature', select: int = FEATURE_ALL) -> np.ndarray:
        """
        Error between this feature and a desired one, restricted to select.

        The default is the plain difference s - s*. Features living on a
        non-Euclidean space override it.
        """
        idx = selection_indices(select, self.dim_s)
        return (self.s - desired.s)[idx]

    @abstractmethod
    def reset(self) -> None:
        """Set the feature to its neutral value."""
        pass

    def duplicate(self) -> 'BasicFeature':
        """Deep copy of the feature, owned by the caller."""
        twin = copy.deepcopy(self)
        twin.owner = FeatureOwner.USER
        twin.released = False
        return twin

    def release(self) -> None:
        """Drop the feature's state once its owner no longer needs it."""
        self.s = np.zeros(self.dim_s)
        self.released = True

    def _select_rows(self, L: np.ndarray, select: int) -> np.ndarray:
        idx = selection_indices(select, self.dim_s)
        return np.asarray(L, dtype=float).reshape(self.dim_s, TWIST_DIM)[idx]

    def describe(self, select: int = FEATURE_ALL) -> str:
        idx = selection_indices(select, self.dim_s)
        values = ", ".join(f"{self.s[i]:.4g}" for i in idx)
        return f"{type(self).__name__}: s=[{values}] ({self.owner.name.lower()})"

    def __repr__(self) -> str:
        return self.describe()
