"""Error types raised by the face scan pipeline.

Every error carries the ``stage`` it was raised from so a caller can tell the
user which step failed and offer a retry.
"""

from __future__ import annotations


class ScanPipelineError(Exception):
    """Base class for all pipeline failures."""

    stage = "pipeline"


class EmptyCaptureError(ScanPipelineError, ValueError):
    stage = "aggregate"


class InconsistentTopologyError(ScanPipelineError, ValueError):
    stage = "aggregate"


class InvalidMeshError(ScanPipelineError, ValueError):
    stage = "capture"


class InvalidIterationsError(ScanPipelineError, ValueError):
    stage = "smooth"


class InvalidScaleError(ScanPipelineError, ValueError):
    stage = "scale"


class InvalidIndexError(ScanPipelineError, IndexError):
    """A triangle references a vertex that does not exist.

    Exporters never raise this. They skip the triangle and keep one instance
    per omission on the resulting artifact.
    """

    stage = "export"

    def __init__(self, triangle: int, indices, vertex_count: int):
        self.triangle = int(triangle)
        self.indices = tuple(int(i) for i in indices)
        self.vertex_count = int(vertex_count)
        super().__init__(
            f"triangle {self.triangle} references {list(self.indices)} "
            f"but the mesh has {self.vertex_count} vertices"
        )


class InvalidHeaderError(ScanPipelineError, ValueError):
    stage = "export"


class IOWriteError(ScanPipelineError, OSError):
    stage = "export"


class ExportCancelledError(ScanPipelineError):
    stage = "export"
