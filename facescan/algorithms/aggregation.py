"""Temporal averaging of tracked face samples."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

import numpy as np

from ..errors import EmptyCaptureError, InconsistentTopologyError
from ..mesh import FrameSample, Mesh

logger = logging.getLogger(__name__)


class FrameAccumulator:
    """Running per-vertex sum over samples that share one topology.

    Only the float64 sum and the first sample's faces are retained, so memory
    stays O(V) however many samples are added.
    """

    def __init__(self):
        self._sum: Optional[np.ndarray] = None
        self._faces: Optional[np.ndarray] = None
        self.count = 0

    @property
    def vertex_count(self) -> Optional[int]:
        return None if self._sum is None else int(self._sum.shape[0])

    def add(self, sample: FrameSample) -> None:
        if self._sum is None:
            self._sum = np.array(sample.vertices, dtype=np.float64)
            self._faces = sample.indices
            self.count = 1
            return

        if sample.vertex_count != self._sum.shape[0]:
            raise InconsistentTopologyError(
                f"sample {self.count} has {sample.vertex_count} vertices, "
                f"expected {self._sum.shape[0]}"
            )
        if sample.indices is not self._faces and not np.array_equal(sample.indices, self._faces):
            raise InconsistentTopologyError(
                f"sample {self.count} has a different triangle list than the first sample"
            )

        self._sum += sample.vertices
        self.count += 1

    def result(self) -> Mesh:
        if self._sum is None:
            raise EmptyCaptureError("no frames were captured")
        return Mesh(vertices=self._sum / self.count, faces=self._faces)


def aggregate_frames(samples: Iterable[FrameSample]) -> Mesh:
    """Average same-topology samples into a single mesh.

    Vertex ``i`` of the result is the arithmetic mean of vertex ``i`` across
    all samples; the triangle list is carried over unchanged. The whole call
    fails on the first mismatched sample, nothing is averaged partially.

    Args:
        samples: non-empty iterable of FrameSample, consumed in one pass

    Returns:
        Mesh with the averaged vertices

    Raises:
        EmptyCaptureError: no samples were given
        InconsistentTopologyError: a sample's vertex count or triangles differ
    """
    accumulator = FrameAccumulator()
    for sample in samples:
        accumulator.add(sample)

    mesh = accumulator.result()
    logger.info(
        "Aggregated %d frames into %d vertices / %d triangles",
        accumulator.count, mesh.vertex_count, mesh.triangle_count,
    )
    return mesh
