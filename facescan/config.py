"""
Scan and processing settings.

Constants mirror the capture and edit limits of the scanning app:
- Capture: 90 frames (~3 s at 30 fps) are targeted, at most 120 are kept
- Scale: 1.0 is life-size, UI sliders range 0.5x - 2.0x
- Smoothing: 2 passes by default, never more than 10
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

TARGET_FRAME_COUNT = 90
MAX_FRAME_COUNT = 120

DEFAULT_SCALE = 1.0
MIN_SCALE = 0.5
MAX_SCALE = 2.0

DEFAULT_SMOOTHING_ITERATIONS = 2
MAX_SMOOTHING_ITERATIONS = 10

DEFAULT_STL_HEADER = "FaceScanner v1.0 - 3D Face Scan"
DEFAULT_OBJECT_NAME = "FaceScan"


class ExportFormat(Enum):
    STL = "STL"
    OBJ = "OBJ"

    @property
    def extension(self) -> str:
        return self.value.lower()


class ProcessingOrder(Enum):
    """Order in which smoothing and scaling are applied after aggregation."""
    SMOOTH_THEN_SCALE = "smooth_then_scale"
    SCALE_THEN_SMOOTH = "scale_then_smooth"


@dataclass
class ScanSettings:
    """User-adjustable settings for one processing run."""
    export_format: ExportFormat = ExportFormat.STL
    scale: float = DEFAULT_SCALE
    smoothing_iterations: int = DEFAULT_SMOOTHING_ITERATIONS
    processing_order: ProcessingOrder = ProcessingOrder.SMOOTH_THEN_SCALE
    object_name: str = DEFAULT_OBJECT_NAME
    stl_header: str = DEFAULT_STL_HEADER
    max_frames: int = MAX_FRAME_COUNT
    target_frames: int = TARGET_FRAME_COUNT

    def __post_init__(self):
        self.export_format = ExportFormat(self.export_format)
        self.processing_order = ProcessingOrder(self.processing_order)
        if self.max_frames < 1:
            raise ValueError("max_frames must be >= 1")
        if not 1 <= self.target_frames <= self.max_frames:
            raise ValueError("target_frames must be between 1 and max_frames")

    @property
    def effective_iterations(self) -> int:
        """Smoothing iterations clamped to [0, MAX_SMOOTHING_ITERATIONS]."""
        clamped = min(max(int(self.smoothing_iterations), 0), MAX_SMOOTHING_ITERATIONS)
        if clamped != self.smoothing_iterations:
            logger.warning(
                "Clamping smoothing iterations %s to %d", self.smoothing_iterations, clamped
            )
        return clamped

    def reset(self) -> None:
        """Restore the default format, scale and smoothing."""
        self.export_format = ExportFormat.STL
        self.scale = DEFAULT_SCALE
        self.smoothing_iterations = DEFAULT_SMOOTHING_ITERATIONS

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["export_format"] = self.export_format.value
        data["processing_order"] = self.processing_order.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScanSettings":
        return cls(**data)

    def save(self, path: Path) -> None:
        """Save settings to a JSON file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: Path) -> "ScanSettings":
        with open(path) as f:
            return cls.from_dict(json.load(f))
