from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest

# Ensure repo root is importable when running pytest from any CWD.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from facescan.mesh import Mesh  # noqa: E402


@pytest.fixture
def triangle_mesh() -> Mesh:
    """Single right triangle in the z=0 plane, facing +z."""
    return Mesh(
        vertices=[[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]],
        faces=[0, 1, 2],
    )


@pytest.fixture
def tetrahedron_mesh() -> Mesh:
    """Every vertex is connected to the other three."""
    return Mesh(
        vertices=[
            [0.0, 0.0, 0.0],
            [1.0, 0.0, 0.0],
            [0.0, 1.0, 0.0],
            [0.0, 0.0, 1.0],
        ],
        faces=[[0, 2, 1], [0, 1, 3], [1, 2, 3], [0, 3, 2]],
    )


@pytest.fixture
def quad_mesh() -> Mesh:
    """Unit square split into two triangles."""
    return Mesh(
        vertices=[
            [0.0, 0.0, 0.0],
            [1.0, 0.0, 0.0],
            [1.0, 1.0, 0.0],
            [0.0, 1.0, 0.0],
        ],
        faces=[0, 1, 2, 0, 2, 3],
    )


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)
