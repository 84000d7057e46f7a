"""
Secondary tasks projected onto the null space of the primary task.

Given the range projector W^+W of the task Jacobian, any velocity filtered
by I - W^+W leaves the primary feature motion unchanged:

    q_dot = -lambda W^+W J1^+ e  +  (I - W^+W) de2/dt                 (damping)
    q_dot = ...  - lambda(e2) (I - W^+W) e2 + (I - W^+W) de2/dt       (tracking)
"""

import logging
from typing import Callable, Optional

import numpy as np

from .exceptions import NoFreeDofError
from .linalg import null_projector

logger = logging.getLogger(__name__)


class RedundancyProjector:
    """
    Computes secondary task terms from the projector of the last cycle.

    Example usage:
        projector = RedundancyProjector()
        q_dot2 = projector.project(WpW, rank, n_dof, de2dt)
    """

    def __init__(self):
        self.I_WpW: Optional[np.ndarray] = None

    def project(
        self,
        WpW: np.ndarray,
        rank: int,
        n_dof: int,
        de2dt: np.ndarray,
        e2: Optional[np.ndarray] = None,
        gain: Optional[Callable[[np.ndarray], float]] = None,
    ) -> np.ndarray:
        """
        Project a secondary objective onto the free degrees of freedom.

        Args:
            WpW: (n, n) range projector of the primary task Jacobian, n joints
            rank: Rank of the primary task Jacobian
            n_dof: Number of actuator degrees of freedom (6 for a twist)
            de2dt: (n,) feed-forward term of the secondary task
            e2: (n,) secondary error, None for the damping form
            gain: Gain evaluated on e2 (tracking form only)

        Returns:
            (n,) velocity to be added to the primary task output

        Raises:
            NoFreeDofError: If the primary task uses every degree of freedom
        """
        if rank == n_dof:
            logger.error("no degree of freedom is free, cannot use secondary task")
            raise NoFreeDofError("no degree of freedom is free, cannot use secondary task")

        n = WpW.shape[0]
        de2dt = self._check(de2dt, n, 'de2dt')
        self.I_WpW = null_projector(WpW)
        sec = self.I_WpW @ de2dt

        if e2 is not None:
            e2 = self._check(e2, n, 'e2')
            lam = gain(e2) if gain is not None else 1.0
            sec = -lam * (self.I_WpW @ e2) + sec
        return sec

    @staticmethod
    def _check(v, n: int, name: str) -> np.ndarray:
        v = np.asarray(v, dtype=float).reshape(-1)
        if v.shape[0] != n:
            raise ValueError(f"{name} must have {n} components, got {v.shape[0]}")
        return v
