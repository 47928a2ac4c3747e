"""
Core geometric algorithms for captured face meshes.
"""

from .aggregation import aggregate_frames, FrameAccumulator
from .smoothing import (
    build_adjacency,
    build_adjacency_matrix,
    laplacian_smoothing,
    smooth_mesh,
)
from .scaling import scale_mesh
from .normals import compute_face_normals, compute_vertex_normals
from .processing import valid_triangle_mask, split_valid_triangles

__all__ = [
    # Aggregation
    'aggregate_frames',
    'FrameAccumulator',
    # Smoothing
    'build_adjacency',
    'build_adjacency_matrix',
    'laplacian_smoothing',
    'smooth_mesh',
    # Scaling
    'scale_mesh',
    # Normals
    'compute_face_normals',
    'compute_vertex_normals',
    # Index validation
    'valid_triangle_mask',
    'split_valid_triangles',
]
