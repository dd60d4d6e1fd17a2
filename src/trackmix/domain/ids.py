"""Id allocation for tracks, chapter lists and containers."""

import itertools
import threading


class IdAllocator:
    """Thread-safe monotonic id generator.

    Every entity takes its id from an allocator at construction. Tests
    create their own allocator to get reproducible ids; everything else
    shares DEFAULT_ALLOCATOR.

    Example:
        allocator = IdAllocator()
        allocator.next_id()  # 0
        allocator.next_id()  # 1
    """

    def __init__(self, start: int = 0) -> None:
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next_id(self) -> int:
        """Return the next unused id."""
        with self._lock:
            return next(self._counter)


DEFAULT_ALLOCATOR = IdAllocator()
