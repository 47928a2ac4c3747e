"""Bounded buffer between the tracking thread and the processing worker."""

from __future__ import annotations

import logging
import threading
from typing import List, Tuple

from .config import MAX_FRAME_COUNT, TARGET_FRAME_COUNT
from .mesh import FrameSample

logger = logging.getLogger(__name__)


class CaptureBuffer:
    """Thread-safe list of accepted frames with a hard cap.

    The tracking collaborator calls :meth:`offer` for each frame that passed
    its quality gate. Once ``max_frames`` are held further frames are
    declined; that is the normal end of a capture, not an error.
    """

    def __init__(self, max_frames: int = MAX_FRAME_COUNT, target_frames: int = TARGET_FRAME_COUNT):
        if max_frames < 1:
            raise ValueError("max_frames must be >= 1")
        if not 1 <= target_frames <= max_frames:
            raise ValueError("target_frames must be between 1 and max_frames")
        self.max_frames = max_frames
        self.target_frames = target_frames
        self._frames: List[FrameSample] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._frames)

    @property
    def is_full(self) -> bool:
        return len(self) >= self.max_frames

    @property
    def is_ready(self) -> bool:
        """Enough frames were collected to aggregate."""
        return len(self) >= self.target_frames

    def offer(self, sample: FrameSample) -> bool:
        """Append ``sample`` unless the cap is reached. Returns whether it was kept."""
        with self._lock:
            if len(self._frames) >= self.max_frames:
                return False
            self._frames.append(sample)
            count = len(self._frames)

        # Log every 10th frame only
        if count == 1 or count % 10 == 0:
            logger.info("Captured frame %d/%d", count, self.max_frames)
        return True

    def drain(self) -> Tuple[FrameSample, ...]:
        """Hand every buffered frame to the caller and empty the buffer."""
        with self._lock:
            frames = tuple(self._frames)
            self._frames.clear()
        return frames

    def clear(self) -> None:
        with self._lock:
            self._frames.clear()
