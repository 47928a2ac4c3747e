"""Value types shared by every pipeline stage."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .errors import InvalidMeshError


def as_vertex_array(vertices) -> np.ndarray:
    """Return a read-only ``(V, 3)`` float64 copy of ``vertices``."""
    verts = np.array(vertices, dtype=np.float64)
    if verts.size == 0:
        verts = verts.reshape(0, 3)
    if verts.ndim != 2 or verts.shape[1] != 3:
        raise InvalidMeshError(f"vertices must be shaped (V, 3), got {verts.shape}")
    verts.setflags(write=False)
    return verts


def as_face_array(indices) -> np.ndarray:
    """Group a flat ``[3k]`` index list (or ``(k, 3)`` array) into triples.

    Index values are not checked against any vertex count here; exporters
    re-validate every triangle before dereferencing it.
    """
    data = np.asarray(indices)
    if data.size == 0:
        faces = np.zeros((0, 3), dtype=np.int64)
    else:
        if not np.issubdtype(data.dtype, np.integer):
            raise InvalidMeshError(f"indices must be integers, got dtype {data.dtype}")
        if data.ndim == 2 and data.shape[1] == 3:
            faces = data.astype(np.int64)
        elif data.ndim == 1 and data.shape[0] % 3 == 0:
            faces = data.astype(np.int64).reshape(-1, 3)
        else:
            raise InvalidMeshError(
                f"indices must be a flat list of triples or shaped (k, 3), got {data.shape}"
            )
    faces.setflags(write=False)
    return faces


@dataclass(frozen=True, eq=False)
class FrameSample:
    """One tracked instant: vertex positions plus the session topology."""

    vertices: np.ndarray
    indices: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, "vertices", as_vertex_array(self.vertices))
        object.__setattr__(self, "indices", as_face_array(self.indices))

    @property
    def vertex_count(self) -> int:
        return int(self.vertices.shape[0])


@dataclass(frozen=True, eq=False)
class Mesh:
    """Triangle mesh passed between stages.

    ``faces`` may contain indices outside ``[0, vertex_count)`` when the
    upstream topology is corrupt. Stages never mutate a mesh; each returns a
    new one.
    """

    vertices: np.ndarray
    faces: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, "vertices", as_vertex_array(self.vertices))
        object.__setattr__(self, "faces", as_face_array(self.faces))

    @property
    def vertex_count(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def triangle_count(self) -> int:
        return int(self.faces.shape[0])

    @property
    def indices(self) -> np.ndarray:
        """The flat ``[3k]`` index list."""
        return self.faces.reshape(-1)

    def with_vertices(self, vertices) -> "Mesh":
        return Mesh(vertices=vertices, faces=self.faces)
