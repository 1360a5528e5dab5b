"""
Bounded frame buffer.

Holds the most recent frames of an unbounded image stream. When the buffer is
full the oldest frame is evicted before the new one is appended (FIFO ring
buffer), so memory stays bounded by the capacity regardless of stream length.

Example:
    >>> buffer = FrameBuffer(capacity=2)
    >>> buffer.push(FrameRecord(image=img0))
    >>> buffer.push(FrameRecord(image=img1))
    >>> previous, current = buffer.second_latest(), buffer.latest()
"""

from typing import Iterator, List, Optional

from .core_data_structures import FrameRecord
from .exceptions import ConfigurationError, PreconditionError
from .logger import get_logger

logger = get_logger("frame_buffer")


class FrameBuffer:
    """Fixed-capacity, oldest-first sequence of FrameRecords"""

    def __init__(self, capacity: int = 2):
        """
        Initialize buffer

        Args:
            capacity: Maximum number of frames held at the same time (> 0)
        """
        if not isinstance(capacity, int) or isinstance(capacity, bool) or capacity <= 0:
            raise ConfigurationError(f"Buffer capacity must be a positive integer, got {capacity!r}")
        self.capacity = capacity
        self._frames: List[FrameRecord] = []
        self.evicted_count = 0

    def push(self, record: FrameRecord) -> Optional[FrameRecord]:
        """
        Append a frame, evicting the oldest one first if the buffer is full

        Args:
            record: Newly loaded frame

        Returns:
            The evicted frame, or None if nothing was evicted
        """
        evicted = None
        if len(self._frames) >= self.capacity:
            evicted = self._frames.pop(0)
            self.evicted_count += 1
            logger.debug(f"Evicted frame {evicted.frame_index}")
        self._frames.append(record)
        return evicted

    def size(self) -> int:
        return len(self._frames)

    def latest(self) -> FrameRecord:
        """Most recently pushed frame"""
        if not self._frames:
            raise PreconditionError("Frame buffer is empty")
        return self._frames[-1]

    def second_latest(self) -> FrameRecord:
        """Frame pushed immediately before latest()"""
        if len(self._frames) < 2:
            raise PreconditionError(
                f"Need at least 2 frames in buffer, have {len(self._frames)}"
            )
        return self._frames[-2]

    def has_predecessor(self) -> bool:
        return len(self._frames) >= 2

    def clear(self):
        self._frames.clear()
        self.evicted_count = 0

    def frame_indices(self) -> List[int]:
        """Frame indices currently resident, oldest first"""
        return [frame.frame_index for frame in self._frames]

    def __len__(self):
        return len(self._frames)

    def __iter__(self) -> Iterator[FrameRecord]:
        return iter(list(self._frames))

    def __repr__(self):
        return f"FrameBuffer({len(self)}/{self.capacity} frames, indices={self.frame_indices()})"
