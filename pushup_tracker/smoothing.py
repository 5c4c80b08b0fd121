import numpy as np


class MovingAverage:
    """
    Fixed-capacity moving average over the most recent readings.

    Backed by a preallocated ring buffer; the oldest reading is overwritten
    once the buffer is full.
    """

    def __init__(self, capacity):
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self._buf = np.zeros(int(capacity), dtype=float)
        self._head = 0
        self._size = 0

    @property
    def capacity(self):
        return len(self._buf)

    @property
    def value(self):
        """Mean of the buffered readings, or None when empty."""
        if self._size == 0:
            return None
        return float(self._buf[:self._size].mean())

    def push(self, reading):
        self._buf[self._head] = reading
        self._head = (self._head + 1) % self.capacity
        if self._size < self.capacity:
            self._size += 1
        return self.value

    def clear(self):
        self._head = 0
        self._size = 0

    def __len__(self):
        return self._size
