import logging

import numpy as np

from ..mesh import Mesh
from .processing import valid_triangle_mask

logger = logging.getLogger(__name__)

_EPS = 1e-12


def _normalize_rows(vectors):
    lengths = np.linalg.norm(vectors, axis=1)
    out = np.zeros_like(vectors)
    nonzero = lengths > _EPS
    out[nonzero] = vectors[nonzero] / lengths[nonzero, None]
    return out


def compute_face_normals(verts, faces):
    """
    Compute unit face normals from the winding order of each triangle.

    The normal is cross(v1 - v0, v2 - v0) normalized, so counter-clockwise
    triangles face the viewer. Zero-area triangles get a zero vector.
    Every index in ``faces`` must already be in range.

    Args:
        verts: (N, 3) array of vertex positions
        faces: (M, 3) array of triangle indices

    Returns:
        normals: (M, 3) float64 array
    """
    verts = np.asarray(verts, dtype=np.float64)
    faces = np.asarray(faces, dtype=np.int64).reshape(-1, 3)

    v0 = verts[faces[:, 0]]
    v1 = verts[faces[:, 1]]
    v2 = verts[faces[:, 2]]

    return _normalize_rows(np.cross(v1 - v0, v2 - v0))


def compute_vertex_normals(mesh: Mesh):
    """
    Compute per-vertex normals for shaded preview.

    Each face normal is added to its three vertices and the sums are
    normalized. Triangles with out-of-range indices are left out; vertices not
    touched by any valid triangle keep a zero normal.

    Returns:
        normals: (N, 3) float64 array
    """
    mask = valid_triangle_mask(mesh.faces, mesh.vertex_count)
    faces = mesh.faces[mask]
    skipped = int((~mask).sum())
    if skipped:
        logger.warning("Normal generation ignored %d triangles with invalid indices", skipped)

    face_normals = compute_face_normals(mesh.vertices, faces)

    # Accumulate face normals at vertices
    accum = np.zeros((mesh.vertex_count, 3), dtype=np.float64)
    np.add.at(accum, faces[:, 0], face_normals)
    np.add.at(accum, faces[:, 1], face_normals)
    np.add.at(accum, faces[:, 2], face_normals)

    return _normalize_rows(accum)
