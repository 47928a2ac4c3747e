"""Index validation shared by the normal generator and the exporters."""

from __future__ import annotations

import logging

import numpy as np

from ..errors import InvalidIndexError

logger = logging.getLogger(__name__)


def valid_triangle_mask(faces: np.ndarray, vertex_count: int) -> np.ndarray:
    """Flag the triangles whose three indices all fall inside ``[0, vertex_count)``.

    Parameters
    ----------
    faces:
        Triangle indices shaped (k, 3).
    vertex_count:
        Number of vertices the indices must address.

    Returns
    -------
    np.ndarray
        Boolean array of length k, ``True`` where the triangle is safe to
        dereference.
    """
    faces = np.asarray(faces)
    if faces.ndim != 2 or faces.shape[1] != 3:
        raise ValueError("faces must be shaped (k, 3)")
    if faces.shape[0] == 0:
        return np.zeros(0, dtype=bool)
    in_range = (faces >= 0) & (faces < vertex_count)
    return np.all(in_range, axis=1)


def split_valid_triangles(faces: np.ndarray, vertex_count: int):
    """Separate dereferenceable triangles from the ones that must be skipped.

    Returns the valid faces (in their original order) and one
    :class:`InvalidIndexError` per skipped triangle.
    """
    mask = valid_triangle_mask(faces, vertex_count)
    skipped = tuple(
        InvalidIndexError(i, faces[i], vertex_count) for i in np.flatnonzero(~mask)
    )
    for err in skipped:
        logger.debug("Skipping triangle: %s", err)
    return faces[mask], skipped
