"""
Persistence adapters for the prediction set.

Every adapter honours the same contract: ``load()`` returns the whole set plus
an opaque version token (or ``None``), and ``save()`` writes the whole set back,
passing along whatever token ``load()`` handed out. Nothing is cached between
calls; each call acquires and releases its own file handle or connection.
"""

from __future__ import annotations

import json
import logging
import os
import stat
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from core.exceptions import StorageError

logger = logging.getLogger(__name__)

PredictionSet = Dict[str, Dict[str, Any]]


def serialize_predictions(data: PredictionSet) -> str:
    """Render the prediction set the way it is stored: 2-space indented JSON."""
    return json.dumps(data, indent=2, ensure_ascii=False)


class PredictionStore(ABC):
    """Load/save contract shared by the local and remote deployments."""

    name: str = "store"

    @abstractmethod
    def load(self) -> Tuple[PredictionSet, Optional[str]]:
        """Return the current prediction set and its version token."""

    @abstractmethod
    def save(self, data: PredictionSet, version: Optional[str] = None) -> None:
        """Persist the full prediction set, raising on failure."""

    def check(self) -> None:
        """Raise if the backing store cannot be used. Used by the health check."""
        self.load()


class LocalFileStore(PredictionStore):
    """Prediction set kept in a single JSON file on local disk. No version token."""

    name = "local_file"

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> Tuple[PredictionSet, Optional[str]]:
        if not self.path.exists():
            return {}, None

        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logger.warning(
                "Unreadable predictions file, treating as empty",
                extra={"path": str(self.path), "error": str(exc)},
            )
            return {}, None

        if not isinstance(data, dict):
            logger.warning(
                "Predictions file does not hold a JSON object, treating as empty",
                extra={"path": str(self.path), "found": type(data).__name__},
            )
            return {}, None

        return data, None

    def save(self, data: PredictionSet, version: Optional[str] = None) -> None:
        temp_path: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)

            # Temp file in the same directory so the final rename stays atomic
            temp_fd, temp_path = tempfile.mkstemp(
                suffix=".tmp",
                prefix=f".{self.path.name}.",
                dir=self.path.parent,
            )
            with open(temp_fd, "w", encoding="utf-8") as fh:
                fh.write(serialize_predictions(data))

            # mkstemp creates 0o600; keep the mode a plain open() would give
            os.chmod(temp_path, self._file_mode())
            os.replace(temp_path, self.path)
        except OSError as exc:
            if temp_path is not None:
                Path(temp_path).unlink(missing_ok=True)
            raise StorageError(f"Failed to write {self.path}: {exc}") from exc

        logger.debug(
            "Predictions written", extra={"path": str(self.path), "entries": len(data)}
        )

    def _file_mode(self) -> int:
        try:
            return stat.S_IMODE(self.path.stat().st_mode)
        except FileNotFoundError:
            umask = os.umask(0)
            os.umask(umask)
            return 0o666 & ~umask

    def check(self) -> None:
        directory = self.path.parent
        while not directory.exists() and directory != directory.parent:
            directory = directory.parent
        if not os.access(directory, os.W_OK):
            raise StorageError(f"Predictions directory {directory} is not writable")
