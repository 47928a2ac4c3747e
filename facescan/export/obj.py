"""ASCII Wavefront OBJ encoding (positions and faces only)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Union

import numpy as np

from ..algorithms.processing import split_valid_triangles
from ..config import DEFAULT_OBJECT_NAME, ExportFormat
from ..mesh import Mesh
from .artifact import ExportArtifact

logger = logging.getLogger(__name__)

__all__ = ["encode_obj", "export_obj"]

OBJ_COMMENT = "Generated by FaceScanner App"


def _format_coordinate(value) -> str:
    # Shortest text that round-trips the single-precision value
    return str(np.float32(value))


def encode_obj(mesh: Mesh, name: str = DEFAULT_OBJECT_NAME, filename: str = "FaceScan.obj") -> ExportArtifact:
    """Encode ``mesh`` as OBJ text.

    All ``v`` lines come before the ``f`` lines, faces use 1-based indices.
    Triangles with out-of-range indices are omitted exactly like the STL
    exporter does.
    """
    faces, skipped = split_valid_triangles(mesh.faces, mesh.vertex_count)
    if skipped:
        logger.warning(
            "Skipping %d of %d triangles with out-of-range indices",
            len(skipped), mesh.triangle_count,
        )

    lines: List[str] = [
        f"# {OBJ_COMMENT}",
        f"# Vertices: {mesh.vertex_count}",
        f"# Faces: {faces.shape[0]}",
        "",
        f"o {name}",
        "",
    ]
    lines.extend(
        "v " + " ".join(_format_coordinate(c) for c in vertex)
        for vertex in mesh.vertices.astype(np.float32)
    )
    lines.append("")
    lines.extend(f"f {a} {b} {c}" for a, b, c in (faces + 1).tolist())

    data = ("\n".join(lines) + "\n").encode("utf-8")

    return ExportArtifact(
        data=data,
        filename=filename,
        format=ExportFormat.OBJ,
        vertex_count=mesh.vertex_count,
        triangles_written=int(faces.shape[0]),
        skipped=skipped,
    )


def export_obj(mesh: Mesh, destination: Union[str, Path], name: str = DEFAULT_OBJECT_NAME,
               cancel_event=None) -> ExportArtifact:
    """Encode ``mesh`` and write it atomically to ``destination``."""
    destination = Path(destination)
    artifact = encode_obj(mesh, name=name, filename=destination.name)
    artifact.write(destination, cancel_event=cancel_event)
    return artifact
