from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, auto
from typing import NamedTuple, Optional
import numpy as np

'''
Separation of Concerns

- `ServoType` = which kinematic chain links the sensor to the actuator
- `KinematicInput` = one caller-supplied twist/Jacobian plus its freshness flag
- `FeatureEntry` = one registered (current, desired, selection) triple
- `VelocityCommand` = what the servo loop hands to the actuator for one tick
- Each has a single, clear responsibility

Caller supplies KinematicInputs -> task resolves them into (cVa, aJe) -> VelocityCommand
'''

# Number of degrees of freedom of a velocity twist (v, w).
TWIST_DIM = 6

# Selection mask selecting every component of a feature.
FEATURE_ALL = 0xFFFF


@dataclass(frozen=True)
class TimeStamp:
    t: float  # seconds, monotonic


class ServoType(Enum):
    NONE = auto()
    EYEINHAND_CAMERA = auto()
    EYEINHAND_L_cVe_eJe = auto()
    EYETOHAND_L_cVe_eJe = auto()
    EYETOHAND_L_cVf_fVe_eJe = auto()
    EYETOHAND_L_cVf_fJe = auto()

    @property
    def is_eye_in_hand(self) -> bool:
        return self in (ServoType.EYEINHAND_CAMERA, ServoType.EYEINHAND_L_cVe_eJe)

    @property
    def sign(self) -> int:
        """Sign applied to the task Jacobian: +1 eye-in-hand, -1 eye-to-hand."""
        return 1 if self.is_eye_in_hand else -1


class InteractionMatrixType(Enum):
    CURRENT = auto()
    DESIRED = auto()
    MEAN = auto()


class InversionType(Enum):
    PSEUDO_INVERSE = auto()
    TRANSPOSE = auto()


class PrintLevel(Enum):
    ALL = auto()
    MINIMUM = auto()


class FeatureOwner(Enum):
    USER = auto()   # borrowed from the caller
    TASK = auto()   # synthesized by the task, released by it


@dataclass
class KinematicInput:
    """A twist transform or Jacobian supplied by the caller.

    `fresh` is set on every update and cleared once the control law has
    consumed the value; `supplied` stays set after the first update.
    """
    name: str
    value: Optional[np.ndarray] = None
    fresh: bool = False
    supplied: bool = False

    def update(self, value: np.ndarray) -> None:
        self.value = np.array(value, dtype=float)
        self.fresh = True
        self.supplied = True

    def consume(self) -> np.ndarray:
        self.fresh = False
        return self.value


@dataclass(frozen=True)
class FeatureEntry:
    current: 'BasicFeature'
    desired: 'BasicFeature'
    select: int


class PseudoInverseResult(NamedTuple):
    pinv: np.ndarray             # (n, m) Moore-Penrose pseudo-inverse
    rank: int
    singular_values: np.ndarray  # (min(m, n),) descending
    image: np.ndarray            # (m, rank) orthonormal basis of range(J)
    image_transpose: np.ndarray  # (n, rank) orthonormal basis of range(J^T)


@dataclass(frozen=True)
class VelocityCommand:
    stamp: TimeStamp
    velocity: np.ndarray                   # (n,) primary + secondary
    primary: np.ndarray                    # (n,) -lambda * e1
    secondary: Optional[np.ndarray] = None  # (n,) projected secondary term
    error_norm: float = 0.0
    rank: int = 0
