"""Scoped temporary directory for intermediate and final track files."""

import shutil
import tempfile
from pathlib import Path
from typing import Optional

from opusmux.utils.logger import get_logger

logger = get_logger(__name__)


class Workspace:
    """A uniquely named temp directory, removed recursively on exit.

    Use as a context manager; the directory exists only inside the ``with``
    block, whatever way the block is left.
    """

    def __init__(self, parent: Optional[str | Path] = None, prefix: str = "opusmux-"):
        self.parent = Path(parent) if parent else None
        self.prefix = prefix
        self._path: Optional[Path] = None

    @property
    def path(self) -> Path:
        if self._path is None:
            raise RuntimeError("Workspace is not active")
        return self._path

    def path_for(self, stream_index: int, stage: str, suffix: str) -> Path:
        """Deterministic file name for one track and stage."""
        return self.path / f"track{stream_index:02d}_{stage}{suffix}"

    def __enter__(self) -> "Workspace":
        if self.parent is not None:
            self.parent.mkdir(parents=True, exist_ok=True)
        self._path = Path(tempfile.mkdtemp(prefix=self.prefix, dir=self.parent))
        logger.debug("Workspace created", path=str(self._path))
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        path, self._path = self._path, None
        if path is None:
            return
        try:
            shutil.rmtree(path)
            logger.debug("Workspace removed", path=str(path))
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Failed to remove workspace", path=str(path), error=str(e))
