"""STL / OBJ byte layout, skip policy, and atomic writes."""

from __future__ import annotations

import os
import stat
import struct
import threading

import numpy as np
import pytest

from facescan.config import ExportFormat
from facescan.errors import (
    ExportCancelledError,
    InvalidHeaderError,
    InvalidIndexError,
    IOWriteError,
    ScanPipelineError,
)
from facescan.export import ExportDirectory, encode_obj, encode_stl, export_obj, export_stl, write_atomic
from facescan.export.stl import STL_RECORD_DTYPE, encode_stl_header
from facescan.mesh import Mesh


def _parse_stl(data: bytes):
    (count,) = struct.unpack_from("<I", data, 80)
    if len(data) == 84:
        return data[:80], count, np.zeros(0, dtype=STL_RECORD_DTYPE)
    records = np.frombuffer(data, dtype=STL_RECORD_DTYPE, offset=84)
    return data[:80], count, records


def _parse_obj(text: str):
    verts, faces = [], []
    for line in text.splitlines():
        parts = line.split()
        if not parts:
            continue
        if parts[0] == "v":
            verts.append([float(p) for p in parts[1:]])
        elif parts[0] == "f":
            faces.append([int(p) for p in parts[1:]])
    return np.array(verts), np.array(faces)


# ---------------------------------------------------------------------------
# STL
# ---------------------------------------------------------------------------

def test_stl_single_triangle(triangle_mesh):
    artifact = encode_stl(triangle_mesh)
    assert len(artifact.data) == 134
    header, count, records = _parse_stl(artifact.data)
    assert count == 1
    assert header.startswith(b"FaceScanner v1.0 - 3D Face Scan")
    assert header.rstrip(b" ") == b"FaceScanner v1.0 - 3D Face Scan"
    np.testing.assert_array_equal(records["normal"][0], [0.0, 0.0, 1.0])
    np.testing.assert_array_equal(records["vertices"][0], triangle_mesh.vertices)
    assert records["attribute"][0] == 0
    assert artifact.triangles_written == 1
    assert artifact.triangles_skipped == 0
    assert artifact.format is ExportFormat.STL


def test_stl_out_of_range_triangle_is_skipped():
    mesh = Mesh(
        vertices=[[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]],
        faces=[0, 1, 5],
    )
    artifact = encode_stl(mesh)
    _, count, records = _parse_stl(artifact.data)
    assert count == 0
    assert len(records) == 0
    assert len(artifact.data) == 84
    assert artifact.triangles_skipped == 1
    err = artifact.skipped[0]
    assert isinstance(err, InvalidIndexError)
    assert err.triangle == 0
    assert err.indices == (0, 1, 5)


def test_stl_count_matches_written_records(quad_mesh):
    mesh = Mesh(
        vertices=quad_mesh.vertices,
        faces=[[0, 1, 2], [0, 2, 4], [0, 2, 3], [-1, 0, 1]],
    )
    artifact = encode_stl(mesh)
    _, count, records = _parse_stl(artifact.data)
    assert count == 2 == artifact.triangles_written
    assert artifact.triangles_skipped == 2
    assert len(artifact.data) == 80 + 4 + 50 * count
    # surviving triangles keep their order
    np.testing.assert_array_equal(records["vertices"][1], quad_mesh.vertices[[0, 2, 3]])


def test_stl_record_is_little_endian_float32(triangle_mesh):
    data = encode_stl(triangle_mesh).data
    values = struct.unpack_from("<12fH", data, 84)
    assert values[:3] == (0.0, 0.0, 1.0)
    assert values[3:12] == (0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0, 1.0, 0.0)
    assert values[12] == 0


def test_stl_degenerate_triangle_has_zero_normal():
    mesh = Mesh(vertices=[[0.0, 0.0, 0.0], [1.0, 1.0, 1.0], [2.0, 2.0, 2.0]], faces=[0, 1, 2])
    _, _, records = _parse_stl(encode_stl(mesh).data)
    np.testing.assert_array_equal(records["normal"][0], [0.0, 0.0, 0.0])


def test_stl_header_padding_and_truncation():
    assert encode_stl_header("abc") == b"abc" + b" " * 77
    assert len(encode_stl_header("x" * 200)) == 80
    with pytest.raises(InvalidHeaderError) as excinfo:
        encode_stl_header("café")
    assert isinstance(excinfo.value, ScanPipelineError)
    assert excinfo.value.stage == "export"


def test_stl_record_layout_is_50_bytes():
    assert STL_RECORD_DTYPE.itemsize == 50
    assert STL_RECORD_DTYPE.fields["attribute"][1] == 48


def test_export_stl_writes_file(tmp_path, quad_mesh):
    target = tmp_path / "scan.stl"
    artifact = export_stl(quad_mesh, target)
    assert target.read_bytes() == artifact.data
    assert target.stat().st_size == 84 + 50 * 2
    assert artifact.filename == "scan.stl"


# ---------------------------------------------------------------------------
# OBJ
# ---------------------------------------------------------------------------

def test_obj_layout(quad_mesh):
    text = encode_obj(quad_mesh).data.decode("utf-8")
    lines = text.splitlines()
    assert lines[0] == "# Generated by FaceScanner App"
    assert "o FaceScan" in lines

    v_lines = [i for i, line in enumerate(lines) if line.startswith("v ")]
    f_lines = [i for i, line in enumerate(lines) if line.startswith("f ")]
    assert len(v_lines) == 4
    assert len(f_lines) == 2
    assert max(v_lines) < min(f_lines)
    assert [lines[i] for i in f_lines] == ["f 1 2 3", "f 1 3 4"]
    assert lines[v_lines[2]] == "v 1.0 1.0 0.0"


def test_obj_reparse_matches_mesh(rng):
    verts = rng.normal(size=(40, 3))
    faces = rng.integers(0, 40, size=(60, 3))
    mesh = Mesh(vertices=verts, faces=faces)
    parsed_verts, parsed_faces = _parse_obj(encode_obj(mesh).data.decode("utf-8"))
    assert parsed_verts.shape == (40, 3)
    assert parsed_faces.shape == (60, 3)
    np.testing.assert_array_equal(parsed_faces - 1, faces)
    np.testing.assert_allclose(parsed_verts, verts, rtol=1e-6, atol=1e-6)


def test_obj_skips_invalid_triangles(quad_mesh):
    mesh = Mesh(vertices=quad_mesh.vertices, faces=[[0, 1, 2], [0, 2, 4]])
    artifact = encode_obj(mesh, name="Bust")
    text = artifact.data.decode("utf-8")
    _, faces = _parse_obj(text)
    assert faces.tolist() == [[1, 2, 3]]
    assert "# Faces: 1" in text
    assert "o Bust" in text
    assert artifact.triangles_skipped == 1
    assert artifact.format is ExportFormat.OBJ


def test_export_obj_writes_file(tmp_path, quad_mesh):
    target = tmp_path / "scan.obj"
    artifact = export_obj(quad_mesh, target)
    assert target.read_bytes() == artifact.data


# ---------------------------------------------------------------------------
# Atomic writes and export directory
# ---------------------------------------------------------------------------

def test_cancelled_write_leaves_nothing(tmp_path):
    cancel = threading.Event()
    cancel.set()
    target = tmp_path / "scan.stl"
    with pytest.raises(ExportCancelledError):
        write_atomic(b"\x00" * 1000, target, cancel_event=cancel)
    assert list(tmp_path.iterdir()) == []


def test_cancelled_write_keeps_previous_file(tmp_path, triangle_mesh):
    target = tmp_path / "scan.stl"
    target.write_bytes(b"previous")
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(ExportCancelledError):
        export_stl(triangle_mesh, target, cancel_event=cancel)
    assert target.read_bytes() == b"previous"
    assert [p.name for p in tmp_path.iterdir()] == ["scan.stl"]


def test_write_to_missing_directory_raises_io_error(tmp_path):
    with pytest.raises(IOWriteError) as excinfo:
        write_atomic(b"data", tmp_path / "missing" / "scan.stl")
    assert excinfo.value.stage == "export"


def test_export_directory(tmp_path, triangle_mesh):
    exports = ExportDirectory(tmp_path / "exports")
    artifact = encode_stl(triangle_mesh)

    path = exports.write(artifact, name="scan-1")
    assert path == exports.path_for("scan-1", ExportFormat.STL)
    assert path.name == "scan-1.stl"
    assert path.read_bytes() == artifact.data

    default_path = exports.write(artifact)
    assert default_path.name == "FaceScan.stl"

    assert exports.delete(path) is True
    assert not path.exists()
    assert exports.delete(path) is False


def test_written_file_follows_umask(tmp_path, triangle_mesh):
    umask = os.umask(0)
    os.umask(umask)
    target = tmp_path / "scan.stl"
    export_stl(triangle_mesh, target)
    assert stat.S_IMODE(target.stat().st_mode) == 0o666 & ~umask
