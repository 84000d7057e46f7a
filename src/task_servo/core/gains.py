"""
Gain schedules for the control law.

The gain is evaluated on the error it multiplies, which allows schedules
that are high near convergence (to speed up the end of the motion) and
low far from it (to bound the initial velocities).
"""

from typing import Union

import numpy as np

from .ports import GainSchedule


class ConstantGain:
    """Gain independent of the error."""

    def __init__(self, value: float):
        self.value = float(value)

    def __call__(self, error: np.ndarray) -> float:
        return self.value

    def __repr__(self) -> str:
        return f"ConstantGain({self.value:g})"


class AdaptiveGain:
    """
    Exponentially decreasing gain.

        lambda(x) = (l0 - linf) * exp(-l0' / (l0 - linf) * |x|_inf) + linf

    Example:
        gain = AdaptiveGain(gain_at_zero=4.0, gain_at_infinity=0.4, slope_at_zero=30.0)
        task.set_lambda(gain)
    """

    def __init__(self, gain_at_zero: float, gain_at_infinity: float, slope_at_zero: float):
        """
        Initialize adaptive gain.

        Args:
            gain_at_zero: Gain for a null error (l0)
            gain_at_infinity: Asymptotic gain for large errors (linf)
            slope_at_zero: Slope of the gain at the origin (l0')
        """
        if gain_at_zero < gain_at_infinity:
            raise ValueError("gain_at_zero must be greater than or equal to gain_at_infinity")
        self.gain_at_zero = float(gain_at_zero)
        self.gain_at_infinity = float(gain_at_infinity)
        self.slope_at_zero = float(slope_at_zero)

    def __call__(self, error: np.ndarray) -> float:
        span = self.gain_at_zero - self.gain_at_infinity
        if span == 0.0:
            return self.gain_at_infinity
        x = float(np.max(np.abs(error))) if np.size(error) else 0.0
        return span * np.exp(-self.slope_at_zero / span * x) + self.gain_at_infinity

    def __repr__(self) -> str:
        return (f"AdaptiveGain({self.gain_at_zero:g}, {self.gain_at_infinity:g}, "
                f"{self.slope_at_zero:g})")


GainLike = Union[float, int, GainSchedule]


def as_gain(gain: GainLike) -> GainSchedule:
    """Wrap plain numbers into a ConstantGain; callables are kept as is."""
    if callable(gain):
        return gain
    return ConstantGain(gain)
