"""Uniform scaling for print sizing."""

from __future__ import annotations

import logging
import math

from ..errors import InvalidScaleError
from ..mesh import Mesh

logger = logging.getLogger(__name__)


def scale_mesh(mesh: Mesh, scale: float) -> Mesh:
    """Multiply every vertex coordinate by ``scale``; faces are unchanged.

    Raises:
        InvalidScaleError: ``scale`` is not a finite positive number
    """
    try:
        factor = float(scale)
    except (TypeError, ValueError) as exc:
        raise InvalidScaleError(f"scale must be a number, got {scale!r}") from exc
    if not math.isfinite(factor) or factor <= 0:
        raise InvalidScaleError(f"scale must be > 0, got {scale!r}")

    logger.info("Scaling %d vertices by %g", mesh.vertex_count, factor)
    return mesh.with_vertices(mesh.vertices * factor)
