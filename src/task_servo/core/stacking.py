"""
Amortized-growth buffers used to stack per-feature contributions.

The total size of a stacked quantity (interaction matrix, value vector,
error vector) is only known after every feature has been visited. Each
buffer therefore starts from the size reached by its previous assembly
(or 1 the first time), doubles its capacity whenever the next contribution
would overflow, and is trimmed to the exact size once all contributions are
copied. The first assembly performs at most log2(dim) + 1 reallocations;
subsequent assemblies of an unchanged task perform none.
"""

import logging
from typing import Iterable, Optional

import numpy as np

from .exceptions import EmptyFeatureSetError

logger = logging.getLogger(__name__)


class StackedBuffer:
    """
    Growable buffer stacking vectors (width=None) or fixed-width row blocks.

    Example usage:
        L_buffer = StackedBuffer(width=6)
        L = L_buffer.assemble(f.interaction(select) for f, select in entries)

        e_buffer = StackedBuffer()
        e = e_buffer.assemble(f.error(f_star, select) for ...)
    """

    def __init__(self, width: Optional[int] = None, capacity: int = 0):
        """
        Initialize an empty buffer.

        Args:
            width: Column count of every contribution, None for 1-D vectors
            capacity: Assumed initial capacity (rows / entries)
        """
        self.width = width
        self.capacity = int(capacity)
        self.reallocations = 0
        self._data = self._allocate(self.capacity)

    def _allocate(self, rows: int) -> np.ndarray:
        if self.width is None:
            return np.zeros(rows)
        return np.zeros((rows, self.width))

    def _grow(self, cursor: int) -> None:
        # preserve the rows already copied
        data = self._allocate(self.capacity)
        data[:cursor] = self._data[:cursor]
        self._data = data
        self.reallocations += 1
        logger.debug("Realloc! capacity=%d", self.capacity)

    def assemble(self, contributions: Iterable[np.ndarray]) -> np.ndarray:
        """
        Stack the contributions in iteration order.

        Args:
            contributions: Iterable of (k,) vectors or (k, width) matrices

        Returns:
            Copy of the stacked result trimmed to the exact size

        Raises:
            EmptyFeatureSetError: If the iterable yields nothing
        """
        if self.capacity == 0:
            self.capacity = 1
            self._data = self._allocate(self.capacity)
        self.reallocations = 0

        cursor = 0
        count = 0
        for block in contributions:
            count += 1
            if self.width is None:
                block = np.asarray(block, dtype=float).reshape(-1)
            else:
                block = np.asarray(block, dtype=float).reshape(-1, self.width)
            rows = block.shape[0]

            while cursor + rows > self.capacity:
                self.capacity *= 2
                self._grow(cursor)

            self._data[cursor:cursor + rows] = block
            cursor += rows

        if count == 0:
            logger.error("feature list empty, cannot stack contributions")
            raise EmptyFeatureSetError("feature list empty, cannot stack contributions")

        # Trim to what was consumed
        self.capacity = cursor
        self._data = self._data[:cursor].copy()
        return self._data.copy()

    def __len__(self) -> int:
        return self.capacity
