"""
Ordered registry of (current, desired, selection) feature triples.

Registration order is significant: it fixes the stacking order of the
interaction matrix, the value vectors and the error vector.
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional, TYPE_CHECKING

from .contracts import FEATURE_ALL, FeatureEntry, FeatureOwner

if TYPE_CHECKING:
    from ..features.base import BasicFeature

logger = logging.getLogger(__name__)


class FeatureRegistry:
    """
    Parallel lists of current features, desired features and selections.

    Desired features synthesized by ``add_feature(current)`` belong to the
    registry and are released by ``release()``; every other feature is
    borrowed from the caller.
    """

    def __init__(self):
        self._entries: List[FeatureEntry] = []
        self.dim_task = 0
        self.released = False

    def add_feature(
        self,
        current: BasicFeature,
        desired: Optional[BasicFeature] = None,
        select: int = FEATURE_ALL,
    ) -> FeatureEntry:
        """
        Register a feature pair.

        Args:
            current: Current feature (borrowed)
            desired: Desired feature (borrowed); if None, a neutral copy of
                current is synthesized and owned by the registry
            select: Selection bitmask shared by both features

        Returns:
            The registered entry
        """
        if desired is None:
            # s* = s, reinitialized to its neutral value
            desired = current.duplicate()
            desired.reset()
            desired.owner = FeatureOwner.TASK

        entry = FeatureEntry(current=current, desired=desired, select=select)
        self._entries.append(entry)
        self.released = False
        return entry

    def get_dimension(self) -> int:
        """Recompute and cache the task dimension."""
        self.dim_task = sum(e.current.get_dimension(e.select) for e in self._entries)
        return self.dim_task

    def current_features(self) -> List[BasicFeature]:
        return [e.current for e in self._entries]

    def desired_features(self) -> List[BasicFeature]:
        return [e.desired for e in self._entries]

    def selections(self) -> List[int]:
        return [e.select for e in self._entries]

    def is_empty(self) -> bool:
        return not self._entries

    def release(self) -> None:
        """
        Release the task-owned features and clear the registry.

        Safe to call several times; only the first call does any work.
        """
        if self.released:
            return
        for entry in self._entries:
            if entry.current.owner is FeatureOwner.TASK and not entry.current.released:
                entry.current.release()
            if entry.desired.owner is FeatureOwner.TASK and not entry.desired.released:
                logger.debug("releasing %r", entry.desired)
                entry.desired.release()
        self._entries.clear()
        self.released = True

    def __iter__(self) -> Iterator[FeatureEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
