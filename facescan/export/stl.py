"""Binary STL encoding.

Layout (little-endian)::

    offset 0   80 bytes   ASCII header, space padded
    offset 80  uint32     triangle count
    offset 84  50 bytes   per triangle: normal (3 x float32),
                          vertices (9 x float32), attribute (uint16 = 0)

The count field always equals the number of records that follow, so the file
length is exactly ``84 + 50 * count``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

import numpy as np

from ..algorithms.normals import compute_face_normals
from ..algorithms.processing import split_valid_triangles
from ..config import DEFAULT_STL_HEADER, ExportFormat
from ..errors import InvalidHeaderError
from ..mesh import Mesh
from .artifact import ExportArtifact

logger = logging.getLogger(__name__)

__all__ = ["STL_RECORD_DTYPE", "encode_stl_header", "encode_stl", "export_stl"]

HEADER_SIZE = 80
COUNT_SIZE = 4

STL_RECORD_DTYPE = np.dtype([
    ("normal", "<f4", (3,)),
    ("vertices", "<f4", (3, 3)),
    ("attribute", "<u2"),
])


def encode_stl_header(text: str = DEFAULT_STL_HEADER) -> bytes:
    """Encode ``text`` as an 80-byte, space-padded ASCII header."""
    try:
        raw = text.encode("ascii")
    except UnicodeEncodeError as exc:
        raise InvalidHeaderError(f"STL header must be ASCII text, got {text!r}") from exc
    if len(raw) > HEADER_SIZE:
        logger.warning("STL header truncated to %d bytes", HEADER_SIZE)
    return raw[:HEADER_SIZE].ljust(HEADER_SIZE, b" ")


def encode_stl(mesh: Mesh, header: str = DEFAULT_STL_HEADER, filename: str = "FaceScan.stl") -> ExportArtifact:
    """Encode ``mesh`` as binary STL.

    Triangles with an index outside the vertex array are omitted and recorded
    on the artifact; the export itself still succeeds. Face normals are
    recomputed from each triangle's winding, independent of any vertex normals.
    """
    faces, skipped = split_valid_triangles(mesh.faces, mesh.vertex_count)
    if skipped:
        logger.warning(
            "Skipping %d of %d triangles with out-of-range indices",
            len(skipped), mesh.triangle_count,
        )

    records = np.zeros(faces.shape[0], dtype=STL_RECORD_DTYPE)
    records["normal"] = compute_face_normals(mesh.vertices, faces)
    records["vertices"] = mesh.vertices[faces]

    count = np.array([records.shape[0]], dtype="<u4")
    data = encode_stl_header(header) + count.tobytes() + records.tobytes()

    return ExportArtifact(
        data=data,
        filename=filename,
        format=ExportFormat.STL,
        vertex_count=mesh.vertex_count,
        triangles_written=int(records.shape[0]),
        skipped=skipped,
    )


def export_stl(mesh: Mesh, destination: Union[str, Path], header: str = DEFAULT_STL_HEADER,
               cancel_event=None) -> ExportArtifact:
    """Encode ``mesh`` and write it atomically to ``destination``."""
    destination = Path(destination)
    artifact = encode_stl(mesh, header=header, filename=destination.name)
    artifact.write(destination, cancel_event=cancel_event)
    return artifact
