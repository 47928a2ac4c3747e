"""
Capture processing pipeline
===========================
Turns a finished capture into an export artifact:

    aggregate -> smooth / scale (user-chosen order) -> normals -> export

``ScanPipeline.run`` does the work synchronously. ``PipelineWorker`` runs it
on a background thread so the capture and render path never waits on it, and
reports progress as ``PipelineEvent`` values on a queue instead of shared
observable state.
"""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional

import numpy as np

from .algorithms.aggregation import aggregate_frames
from .algorithms.normals import compute_vertex_normals
from .algorithms.scaling import scale_mesh
from .algorithms.smoothing import smooth_mesh
from .config import ExportFormat, ProcessingOrder, ScanSettings
from .errors import ExportCancelledError, ScanPipelineError
from .export.artifact import ExportArtifact, ExportDirectory
from .export.obj import encode_obj
from .export.stl import encode_stl
from .mesh import FrameSample, Mesh

logger = logging.getLogger(__name__)

STAGES = ("aggregate", "smooth", "scale", "normals", "export")


@dataclass(frozen=True)
class PipelineEvent:
    stage: str
    status: str  # "started", "finished" or "failed"
    message: str = ""


@dataclass(frozen=True, eq=False)
class PipelineResult:
    mesh: Mesh
    normals: np.ndarray
    artifact: ExportArtifact
    path: Optional[Path] = None


class ScanPipeline:
    """Processes one capture with a fixed set of settings.

    Args:
        settings: scale, smoothing, order and export format to use
        output: where to write the artifact; if None the artifact is only
            returned and the caller decides what to do with it
    """

    def __init__(self, settings: Optional[ScanSettings] = None, output: Optional[ExportDirectory] = None):
        self.settings = settings or ScanSettings()
        self.output = output

    def run(
        self,
        samples: Iterable[FrameSample],
        name: str = "FaceScan",
        cancel_event: Optional[threading.Event] = None,
        on_event: Optional[Callable[[PipelineEvent], None]] = None,
    ) -> PipelineResult:
        emit = on_event or (lambda event: None)
        stage = STAGES[0]

        def begin(next_stage: str) -> None:
            nonlocal stage
            if cancel_event is not None and cancel_event.is_set():
                raise ExportCancelledError(f"cancelled before {next_stage}")
            stage = next_stage
            emit(PipelineEvent(stage, "started"))

        def done(message: str = "") -> None:
            emit(PipelineEvent(stage, "finished", message))

        try:
            begin("aggregate")
            mesh = aggregate_frames(samples)
            done(f"{mesh.vertex_count} vertices")

            mesh = self._transform(mesh, begin, done)

            begin("normals")
            normals = compute_vertex_normals(mesh)
            done()

            begin("export")
            artifact = self._encode(mesh, name)
            path = None
            if self.output is not None:
                path = self.output.write(artifact, cancel_event=cancel_event)
            done(f"{artifact.triangles_written} triangles written, "
                 f"{artifact.triangles_skipped} skipped")
        except ScanPipelineError as exc:
            logger.error("Pipeline failed during %s: %s", stage, exc)
            emit(PipelineEvent(stage, "failed", str(exc)))
            raise
        except Exception as exc:
            logger.exception("Unexpected error during %s", stage)
            emit(PipelineEvent(stage, "failed", str(exc)))
            raise

        return PipelineResult(mesh=mesh, normals=normals, artifact=artifact, path=path)

    def _transform(self, mesh: Mesh, begin, done) -> Mesh:
        iterations = self.settings.effective_iterations

        def smooth(m: Mesh) -> Mesh:
            begin("smooth")
            m = smooth_mesh(m, iterations)
            done(f"{iterations} iterations")
            return m

        def scale(m: Mesh) -> Mesh:
            begin("scale")
            m = scale_mesh(m, self.settings.scale)
            done(f"x{self.settings.scale:g}")
            return m

        if self.settings.processing_order is ProcessingOrder.SCALE_THEN_SMOOTH:
            return smooth(scale(mesh))
        return scale(smooth(mesh))

    def _encode(self, mesh: Mesh, name: str) -> ExportArtifact:
        fmt = self.settings.export_format
        filename = f"{name}.{fmt.extension}"
        if fmt is ExportFormat.OBJ:
            return encode_obj(mesh, name=self.settings.object_name, filename=filename)
        return encode_stl(mesh, header=self.settings.stl_header, filename=filename)


class PipelineWorker:
    """Runs :class:`ScanPipeline` jobs one at a time on a background thread.

    Progress is pushed onto ``events`` as :class:`PipelineEvent` values; the
    outcome (a :class:`PipelineResult` or the raised error) is on the returned
    ``Future``.
    """

    def __init__(self, pipeline: ScanPipeline, events: Optional[queue.Queue] = None):
        self.pipeline = pipeline
        self.events = events if events is not None else queue.Queue()
        self._pending = {}
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="facescan-pipeline")

    def submit(self, samples: Iterable[FrameSample], name: str = "FaceScan") -> Future:
        cancel_event = threading.Event()
        logger.info("Queued processing job %s", name)
        future = self._executor.submit(
            self.pipeline.run, samples, name, cancel_event, self.events.put
        )
        with self._lock:
            self._pending[future] = cancel_event
        future.add_done_callback(self._forget)
        return future

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.pop(future, None)

    def cancel(self) -> None:
        """Ask queued and running jobs to stop at the next stage boundary or write chunk."""
        with self._lock:
            for cancel_event in self._pending.values():
                cancel_event.set()

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "PipelineWorker":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()
