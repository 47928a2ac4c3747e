"""
Face scan capture processing: frame aggregation, smoothing, scaling,
normal generation and STL/OBJ export.
"""

from .algorithms import (
    aggregate_frames,
    build_adjacency,
    compute_vertex_normals,
    scale_mesh,
    smooth_mesh,
)
from .capture import CaptureBuffer
from .config import ExportFormat, ProcessingOrder, ScanSettings
from .errors import (
    EmptyCaptureError,
    ExportCancelledError,
    InconsistentTopologyError,
    InvalidIndexError,
    InvalidHeaderError,
    InvalidIterationsError,
    InvalidMeshError,
    InvalidScaleError,
    IOWriteError,
    ScanPipelineError,
)
from .export import ExportArtifact, ExportDirectory, encode_obj, encode_stl, export_obj, export_stl
from .mesh import FrameSample, Mesh
from .pipeline import PipelineEvent, PipelineResult, PipelineWorker, ScanPipeline

__version__ = "1.0.0"

__all__ = [
    # Data
    'FrameSample',
    'Mesh',
    'CaptureBuffer',
    'ScanSettings',
    'ExportFormat',
    'ProcessingOrder',
    # Stages
    'aggregate_frames',
    'build_adjacency',
    'smooth_mesh',
    'scale_mesh',
    'compute_vertex_normals',
    # Export
    'ExportArtifact',
    'ExportDirectory',
    'encode_stl',
    'export_stl',
    'encode_obj',
    'export_obj',
    # Pipeline
    'ScanPipeline',
    'PipelineWorker',
    'PipelineEvent',
    'PipelineResult',
    # Errors
    'ScanPipelineError',
    'EmptyCaptureError',
    'InconsistentTopologyError',
    'InvalidMeshError',
    'InvalidHeaderError',
    'InvalidIterationsError',
    'InvalidScaleError',
    'InvalidIndexError',
    'IOWriteError',
    'ExportCancelledError',
]
