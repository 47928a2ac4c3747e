import logging
from typing import Dict, Optional, Set

import numpy as np
from scipy import sparse

from ..errors import InvalidIterationsError
from ..mesh import Mesh

logger = logging.getLogger(__name__)

AdjacencyGraph = Dict[int, Set[int]]


def build_adjacency(faces):
    """
    Build the vertex -> neighbour-set map from triangle indices.

    Only vertices referenced by at least one triangle get an entry. Indices are
    not bounds checked here, a corrupt triangle just yields extra entries.
    """
    faces = np.asarray(faces, dtype=np.int64).reshape(-1, 3)
    adjacency: AdjacencyGraph = {}
    for a, b, c in faces.tolist():
        adjacency.setdefault(a, set()).update((b, c))
        adjacency.setdefault(b, set()).update((a, c))
        adjacency.setdefault(c, set()).update((a, b))
    return adjacency


def build_adjacency_matrix(num_verts, adjacency):
    """
    Build the row-normalized adjacency matrix W = D^-1 * A and the mask of
    vertices that have no usable neighbour.
    """
    rows = []
    cols = []
    for vertex, neighbors in adjacency.items():
        for neighbor in neighbors:
            rows.append(vertex)
            cols.append(neighbor)
    rows = np.asarray(rows, dtype=np.int64)
    cols = np.asarray(cols, dtype=np.int64)

    # Edges to vertices that do not exist cannot be read
    in_range = (rows >= 0) & (rows < num_verts) & (cols >= 0) & (cols < num_verts)
    dropped = int((~in_range).sum())
    if dropped:
        logger.warning("Ignoring %d adjacency edges with out-of-range vertices", dropped)
    rows = rows[in_range]
    cols = cols[in_range]

    A = sparse.coo_matrix((np.ones(len(rows)), (rows, cols)), shape=(num_verts, num_verts))
    A = A.tocsr()
    A.sum_duplicates()
    A.data[:] = 1.0

    degrees = np.array(A.sum(axis=1)).flatten()
    isolated = degrees == 0
    # Avoid division by zero
    degrees[isolated] = 1

    D_inv = sparse.diags(1.0 / degrees)
    W = D_inv @ A
    return W, isolated


def laplacian_smoothing(verts, faces, iterations, adjacency=None):
    """
    Apply umbrella Laplacian smoothing: every vertex moves to the mean of its
    neighbours, vertices without neighbours stay where they are.

    All vertices are updated from the previous iteration's positions at once.
    High iteration counts shrink the surface and round off sharp features;
    that is expected.

    Args:
        verts: (N, 3) vertex positions
        faces: (M, 3) face indices
        iterations: number of smoothing passes (>= 0)
        adjacency: optional prebuilt neighbour map, built from faces if omitted

    Returns:
        smoothed_verts: (N, 3) new array
    """
    if iterations < 0:
        raise InvalidIterationsError(f"iterations must be >= 0, got {iterations}")

    verts = np.asarray(verts, dtype=np.float64)
    num_verts = verts.shape[0]
    if num_verts == 0:
        return verts.copy()
    if adjacency is None:
        adjacency = build_adjacency(faces)
    W, isolated = build_adjacency_matrix(num_verts, adjacency)

    # Operator: K = W + I restricted to isolated vertices
    K = W + sparse.diags(isolated.astype(np.float64))

    curr_verts = verts
    for _ in range(iterations):
        curr_verts = K @ curr_verts

    return curr_verts


def smooth_mesh(mesh: Mesh, iterations: int, adjacency: Optional[AdjacencyGraph] = None) -> Mesh:
    """Return a smoothed copy of ``mesh``; ``iterations == 0`` returns it unchanged."""
    if iterations < 0:
        raise InvalidIterationsError(f"iterations must be >= 0, got {iterations}")
    if iterations == 0:
        return mesh

    smoothed = laplacian_smoothing(mesh.vertices, mesh.faces, iterations, adjacency=adjacency)
    logger.info("Smoothed %d vertices over %d iterations", mesh.vertex_count, iterations)
    return mesh.with_vertices(smoothed)
