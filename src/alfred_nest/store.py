"""
Where config.json and cache.json live.

Components take a store instead of a path so tests can hand them an
in-memory one.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Protocol

from alfred_nest.errors import PersistenceError

logger = logging.getLogger(__name__)


class DocumentStore(Protocol):
    def load(self) -> Optional[dict[str, Any]]:
        """Return the stored document, or None if there is none yet."""
        ...

    def save(self, data: dict[str, Any]) -> None:
        ...


class JsonFileStore:
    """A single JSON document on disk, replaced atomically on every save."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Optional[dict[str, Any]]:
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Ignoring unreadable %s: %s", self.path, e)
            return None
        except OSError as e:
            raise PersistenceError(f"Failed to read {self.path}: {e}", {"path": str(self.path)}) from e

    def save(self, data: dict[str, Any]) -> None:
        tmp_path: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as e:
            raise PersistenceError(f"Failed to write {self.path}: {e}", {"path": str(self.path)}) from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)


class MemoryStore:
    def __init__(self, data: Optional[dict[str, Any]] = None):
        self.data = data
        self.saves = 0

    def load(self) -> Optional[dict[str, Any]]:
        # Hand out a copy so callers can't mutate what was "persisted".
        return json.loads(json.dumps(self.data)) if self.data is not None else None

    def save(self, data: dict[str, Any]) -> None:
        self.data = json.loads(json.dumps(data))
        self.saves += 1
