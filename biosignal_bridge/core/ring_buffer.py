"""
Fixed-capacity sample buffers

Array-backed FIFO with a write cursor: pushing into a full buffer overwrites
the oldest sample, so memory stays constant no matter how long a session runs.
"""

import numpy as np


class RingBuffer:
    """Sliding window over the most recent `capacity` scalar samples"""

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError(f"Ring buffer capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._data = np.zeros(capacity, dtype=np.float64)
        self._head = 0  # next write position
        self._len = 0

    def __len__(self) -> int:
        return self._len

    @property
    def is_full(self) -> bool:
        return self._len == self.capacity

    def push(self, value: float) -> None:
        self._data[self._head] = value
        self._head = (self._head + 1) % self.capacity
        if self._len < self.capacity:
            self._len += 1

    def snapshot(self) -> np.ndarray:
        """Copy of the buffered samples, oldest first"""
        if self._len < self.capacity:
            return self._data[:self._len].copy()
        return np.concatenate((self._data[self._head:], self._data[:self._head]))

    def clear(self) -> None:
        self._head = 0
        self._len = 0
