"""Bounded FIFO window over the most recent frames."""

from __future__ import annotations

from collections import deque
from typing import Iterator

from .frames import Frame


class SlidingWindow:
    """
    Most recent ``capacity`` frames, oldest evicted first.

    Used only for real-time metrics; the full history lives on the Session.
    """

    def __init__(self, capacity: int = 30):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._frames: deque[Frame] = deque(maxlen=capacity)

    def append(self, frame: Frame) -> Frame | None:
        """Add a frame; return the evicted frame, if any."""
        evicted = self._frames[0] if len(self._frames) == self.capacity else None
        self._frames.append(frame)
        return evicted

    def recent(self, n: int) -> list[Frame]:
        """Last ``n`` frames in arrival order."""
        if n <= 0:
            return []
        return list(self._frames)[-n:]

    def clear(self) -> None:
        self._frames.clear()

    @property
    def frames(self) -> list[Frame]:
        return list(self._frames)

    @property
    def is_full(self) -> bool:
        return len(self._frames) >= self.capacity

    def __len__(self) -> int:
        return len(self._frames)

    def __iter__(self) -> Iterator[Frame]:
        return iter(list(self._frames))
