"""
Core package for task-priority visual servoing.

This package provides the servoing task and its building blocks: feature
registry, stacked-quantity assembly, kinematic chain resolution, the
control law and the null-space projection of secondary tasks.
"""

from .contracts import (
    FeatureOwner, InteractionMatrixType, InversionType, PrintLevel,
    ServoType, TimeStamp, VelocityCommand,
)
from .exceptions import (
    EmptyFeatureSetError, FeatureDimensionMismatchError, InvalidKinematicInputError,
    NoFreeDofError, NotInitializedError, ServoConfigurationError, ServoError,
)
from .gains import AdaptiveGain, ConstantGain
from .task import ServoTask

__all__ = [
    'FeatureOwner',
    'InteractionMatrixType',
    'InversionType',
    'PrintLevel',
    'ServoType',
    'TimeStamp',
    'VelocityCommand',
    'EmptyFeatureSetError',
    'FeatureDimensionMismatchError',
    'InvalidKinematicInputError',
    'NoFreeDofError',
    'NotInitializedError',
    'ServoConfigurationError',
    'ServoError',
    'AdaptiveGain',
    'ConstantGain',
    'ServoTask',
]
