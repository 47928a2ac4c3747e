"""Encoded export results and how they reach disk."""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple, Union

from ..config import ExportFormat
from ..errors import ExportCancelledError, InvalidIndexError, IOWriteError

logger = logging.getLogger(__name__)

__all__ = ["ExportArtifact", "ExportDirectory", "write_atomic"]

_CHUNK_SIZE = 1 << 20

# mkstemp creates files as 0600; exports get the mode a plain open() would give
_UMASK = os.umask(0)
os.umask(_UMASK)
_FILE_MODE = 0o666 & ~_UMASK


def _remove_quietly(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass


def write_atomic(data: bytes, destination: Union[str, Path], cancel_event=None) -> Path:
    """Write ``data`` so that ``destination`` is either complete or untouched.

    Bytes go to a temporary file in the destination directory, which is
    renamed over ``destination`` only after everything was flushed. On error or
    cancellation the temporary file is deleted.

    Raises:
        IOWriteError: the file could not be written or renamed
        ExportCancelledError: ``cancel_event`` was set before the rename
    """
    destination = Path(destination)
    try:
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent
        )
    except OSError as exc:
        raise IOWriteError(f"cannot create temporary file next to {destination}: {exc}") from exc

    try:
        with os.fdopen(fd, "wb") as fh:
            view = memoryview(data)
            for start in range(0, len(view), _CHUNK_SIZE):
                if cancel_event is not None and cancel_event.is_set():
                    raise ExportCancelledError(f"export to {destination} was cancelled")
                fh.write(view[start:start + _CHUNK_SIZE])
            fh.flush()
            os.fsync(fh.fileno())
        if cancel_event is not None and cancel_event.is_set():
            raise ExportCancelledError(f"export to {destination} was cancelled")
        os.chmod(tmp_path, _FILE_MODE)
        os.replace(tmp_path, destination)
    except ExportCancelledError:
        _remove_quietly(tmp_path)
        logger.info("Export to %s cancelled, partial file removed", destination)
        raise
    except OSError as exc:
        _remove_quietly(tmp_path)
        raise IOWriteError(f"failed to write {destination}: {exc}") from exc

    return destination


@dataclass(frozen=True)
class ExportArtifact:
    """Encoded file contents handed to the storage or sharing collaborator."""
    data: bytes
    filename: str
    format: ExportFormat
    vertex_count: int
    triangles_written: int
    skipped: Tuple[InvalidIndexError, ...] = field(default_factory=tuple)

    @property
    def triangles_skipped(self) -> int:
        return len(self.skipped)

    @property
    def size(self) -> int:
        return len(self.data)

    def write(self, path: Union[str, Path], cancel_event=None) -> Path:
        path = write_atomic(self.data, path, cancel_event=cancel_event)
        logger.info(
            "%s exported: %s (%d triangles, %d skipped, %d bytes)",
            self.format.value, path, self.triangles_written, self.triangles_skipped, self.size,
        )
        return path


class ExportDirectory:
    """Where exported scans live.

    Constructed once by the application and passed to whatever needs to
    persist or remove exports.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def path_for(self, name: str, export_format: ExportFormat) -> Path:
        return self.root / f"{name}.{export_format.extension}"

    def write(self, artifact: ExportArtifact, name: Optional[str] = None, cancel_event=None) -> Path:
        self.root.mkdir(parents=True, exist_ok=True)
        if name is None:
            target = self.root / artifact.filename
        else:
            target = self.path_for(name, artifact.format)
        return artifact.write(target, cancel_event=cancel_event)

    def delete(self, path: Union[str, Path]) -> bool:
        """Remove an exported file. Returns False if it was already gone."""
        path = Path(path)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning("Export %s does not exist", path.name)
            return False
        except OSError as exc:
            raise IOWriteError(f"failed to delete {path}: {exc}") from exc
        logger.info("Deleted export %s", path.name)
        return True
