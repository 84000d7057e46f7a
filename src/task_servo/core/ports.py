from __future__ import annotations
from typing import Protocol, Tuple, Optional, TYPE_CHECKING
import numpy as np

if TYPE_CHECKING:
    from .task import ServoTask


class GainSchedule(Protocol):
    """Protocol for gains evaluated on the (possibly vector-valued) error."""
    def __call__(self, error: np.ndarray) -> float: ...


class KinematicSource(Protocol):
    """
    Protocol for providers of the kinematic inputs of a task.

    Standardizes how robot models feed twist transforms and Jacobians into
    a task each cycle, regardless of the underlying framework (MuJoCo,
    a real robot driver, a fixed calibration, ...).
    """
    def update(self, task: ServoTask) -> None:
        """
        Push the current twist transforms / Jacobians into the task.

        Args:
            task: Task whose kinematic setters are called (set_cVe, set_eJe, ...)
        """
        ...


class SecondaryObjective(Protocol):
    """Protocol for objectives pursued in the null space of the primary task."""
    def __call__(self, task: ServoTask) -> Tuple[Optional[np.ndarray], np.ndarray]:
        """
        Evaluate the secondary objective for the current cycle.

        Args:
            task: Task whose control law has just been computed

        Returns:
            Tuple of (e2, de2dt) where e2 may be None for the damping form
        """
        ...
