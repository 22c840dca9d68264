"""A thread-safe pool of reusable fixed-size byte buffers."""

from __future__ import annotations

import threading


class BufferPool:
    """Stack of equally sized ``bytearray`` buffers shared between connections.

    Buffers are handed out last-in, first-out. When the pool runs dry a fresh
    buffer is allocated; every buffer given back is kept for reuse.
    """

    def __init__(self, buffer_size: int, initial_pool_size: int = 100) -> None:
        if buffer_size < 1:
            raise ValueError("buffer_size must be at least 1")
        self.buffer_size = buffer_size
        self._pool: list[bytearray] = [
            bytearray(buffer_size) for _ in range(initial_pool_size)
        ]
        self._lock = threading.Lock()

    def acquire(self) -> bytearray:
        """Take a buffer from the pool, allocating one if the pool is empty."""
        with self._lock:
            if self._pool:
                return self._pool.pop()
        return bytearray(self.buffer_size)

    def release(self, buffer: bytearray) -> None:
        """Give a buffer back to the pool."""
        with self._lock:
            self._pool.append(buffer)

    def __len__(self) -> int:
        with self._lock:
            return len(self._pool)