from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Callable

import numpy as np

from .contracts import TimeStamp, VelocityCommand
from .ports import KinematicSource, SecondaryObjective
from .task import ServoTask


@dataclass
class ServoBridge:
    """One control tick: refresh kinematics, primary law, optional secondary task."""
    task: ServoTask
    now: Callable[[], float]
    kinematics: Optional[KinematicSource] = None
    secondary: Optional[SecondaryObjective] = None

    def control_tick(self) -> VelocityCommand:
        if self.kinematics is not None:
            self.kinematics.update(self.task)

        primary = self.task.compute_control_law()
        velocity = primary
        sec = None
        if self.secondary is not None:
            e2, de2dt = self.secondary(self.task)
            if e2 is None:
                sec = self.task.secondary_task(de2dt)
            else:
                sec = self.task.secondary_task(e2, de2dt)
            velocity = primary + sec

        return VelocityCommand(
            stamp=TimeStamp(self.now()),
            velocity=velocity,
            primary=primary,
            secondary=sec,
            error_norm=float(np.linalg.norm(self.task.error)),
            rank=self.task.rank_J1,
        )
