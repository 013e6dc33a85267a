"""
Bounded rolling window of pose frames for frame-incremental analysis.
"""

from collections import deque
from typing import List, Optional

from .frames import PoseFrame


class RollingPoseWindow:
    """Fixed-capacity FIFO of (frame, timestamp) pairs; oldest frames drop off."""

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("Window capacity must be at least 1")
        self.capacity = capacity
        self._frames = deque(maxlen=capacity)
        self._timestamps = deque(maxlen=capacity)

    def __len__(self):
        return len(self._frames)

    @property
    def is_full(self) -> bool:
        return len(self._frames) == self.capacity

    def append(self, frame: PoseFrame, timestamp_ms: Optional[float] = None):
        if timestamp_ms is None:
            timestamp_ms = frame.timestamp_ms
        self._frames.append(frame)
        self._timestamps.append(timestamp_ms)

    def clear(self):
        self._frames.clear()
        self._timestamps.clear()

    def frames(self) -> List[PoseFrame]:
        return list(self._frames)

    def timestamps(self) -> Optional[List[float]]:
        """Window timestamps, or None if any frame arrived without one."""
        stamps = list(self._timestamps)
        if any(t is None for t in stamps):
            return None
        return stamps
