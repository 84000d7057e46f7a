"""
task_servo: task-priority visual servoing.

Computes, at each control cycle, the velocity command driving a robot or a
camera so that a set of visual features converges to its desired values,
with optional secondary objectives projected onto the free degrees of
freedom.
"""

from .core import (
    AdaptiveGain,
    ConstantGain,
    EmptyFeatureSetError,
    FeatureDimensionMismatchError,
    FeatureOwner,
    InteractionMatrixType,
    InvalidKinematicInputError,
    InversionType,
    NoFreeDofError,
    NotInitializedError,
    PrintLevel,
    ServoConfigurationError,
    ServoError,
    ServoTask,
    ServoType,
    TimeStamp,
    VelocityCommand,
)
from .features import (
    BasicFeature,
    FEATURE_ALL,
    GenericFeature,
    PointFeature,
    ThetaUFeature,
)

__version__ = "0.1.0"

__all__ = [
    'AdaptiveGain',
    'ConstantGain',
    'EmptyFeatureSetError',
    'FeatureDimensionMismatchError',
    'FeatureOwner',
    'InteractionMatrixType',
    'InvalidKinematicInputError',
    'InversionType',
    'NoFreeDofError',
    'NotInitializedError',
    'PrintLevel',
    'ServoConfigurationError',
    'ServoError',
    'ServoTask',
    'ServoType',
    'TimeStamp',
    'VelocityCommand',
    'BasicFeature',
    'FEATURE_ALL',
    'GenericFeature',
    'PointFeature',
    'ThetaUFeature',
]
