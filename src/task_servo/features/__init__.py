"""
Features package for visual servoing tasks.

This package provides the abstract feature capability consumed by the task
and a few reference feature kinds.
"""

from .base import BasicFeature, FEATURE_ALL, selection_indices
from .generic import GenericFeature
from .point import PointFeature
from .thetau import ThetaUFeature

__all__ = [
    'BasicFeature',
    'FEATURE_ALL',
    'selection_indices',
    'GenericFeature',
    'PointFeature',
    'ThetaUFeature',
]
