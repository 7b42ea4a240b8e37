"""
Diagnostic storage for relengindex.

Diagnostics are attached to resources and cleared per kind:
- MarkerStore: in-memory, for embedding and tests
- JsonMarkerStore: persisted to a JSON file with atomic writes, so the CLI
  can report problems found by an earlier run
"""

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional
import logging

from ..domain.diagnostic import Diagnostic, POM_VERSION_PROBLEM
from ..domain.resource import Resource

logger = logging.getLogger(__name__)


class MarkerStore:
    """
    In-memory diagnostic sink.

    Example:
        store = MarkerStore()
        store.create(diagnostic)
        store.delete_markers(Resource.project_handle("org.eclipse.foo"))
    """

    def __init__(self):
        self._markers: Dict[str, List[Diagnostic]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(resource: Resource) -> str:
        return resource.path.as_posix()

    def create(self, diagnostic: Diagnostic) -> None:
        with self._lock:
            self._markers.setdefault(self._key(diagnostic.subject), []).append(diagnostic)
            self._changed()

    def delete_markers(
        self,
        resource: Resource,
        type: str = POM_VERSION_PROBLEM,
        recursive: bool = True
    ) -> int:
        """
        Delete diagnostics of one kind on a resource.

        Args:
            resource: Resource to clean
            type: Diagnostic kind to delete
            recursive: Also clean everything below the resource

        Returns:
            Number of diagnostics deleted
        """
        deleted = 0
        with self._lock:
            for key in list(self._markers):
                subject = self._markers[key][0].subject if self._markers[key] else None
                if subject is None:
                    continue
                if subject != resource and not (recursive and subject.is_under(resource)):
                    continue

                kept = [m for m in self._markers[key] if m.type != type]
                deleted += len(self._markers[key]) - len(kept)
                if kept:
                    self._markers[key] = kept
                else:
                    del self._markers[key]
            if deleted:
                self._changed()
        return deleted

    def markers(
        self,
        resource: Optional[Resource] = None,
        type: Optional[str] = None
    ) -> List[Diagnostic]:
        """Diagnostics on or below a resource (everything if None)."""
        with self._lock:
            result = []
            for key in sorted(self._markers):
                for marker in self._markers[key]:
                    if resource is not None and not marker.subject.is_under(resource):
                        continue
                    if type is not None and marker.type != type:
                        continue
                    result.append(marker)
            return result

    def _changed(self) -> None:
        """Called with the lock held after every mutation."""


class JsonMarkerStore(MarkerStore):
    """
    Diagnostic sink persisted to a JSON file.

    Example:
        store = JsonMarkerStore(Path("~/.relengindex/markers.json"))
    """

    def __init__(self, path: Path):
        super().__init__()
        self.path = Path(path).expanduser().resolve()
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Error reading {self.path}: {e}")
            return

        for key, items in data.items():
            self._markers[key] = [Diagnostic.from_dict(item) for item in items]

    def _changed(self) -> None:
        data = {
            key: [m.to_dict() for m in markers]
            for key, markers in self._markers.items()
        }
        self._write_atomic(data)

    def _write_atomic(self, data: dict) -> None:
        """Write data atomically using temp file and rename."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp"
        )
        try:
            with os.fdopen(fd, 'w') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.write('\n')
            os.replace(temp_path, self.path)
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise
