"""
Workspace storage for relengindex.

A workspace is a directory whose immediate subdirectories are projects:

    workspace/
        org.eclipse.releng/maps/core.map
        org.eclipse.foo/META-INF/MANIFEST.MF
        org.eclipse.foo/pom.xml
        org.eclipse.foo/.project

Provides:
- Whole-file reads and atomic writes that keep local history
- Folder listing
- Project state (exists, open, natures)
"""

import os
import shutil
import tempfile
import time
from pathlib import Path
from typing import Iterable, List, Optional, Set
import logging

from ..domain.resource import Resource, ResourceType
from ..exceptions import StorageError

logger = logging.getLogger(__name__)

PROJECT_DESCRIPTION = ".project"
HISTORY_DIR = ".history"


class Workspace:
    """
    Filesystem-backed storage collaborator.

    Example:
        ws = Workspace("~/releng-ws", closed_projects=["org.eclipse.old"])
        data = ws.read_bytes(Resource.file("org.eclipse.releng/maps/core.map"))
    """

    def __init__(self, root, closed_projects: Optional[Iterable[str]] = None):
        """
        Initialize Workspace.

        Args:
            root: Workspace directory
            closed_projects: Projects that exist on disk but count as closed
        """
        self.root = Path(root).expanduser().resolve()
        self.closed_projects: Set[str] = set(closed_projects or [])

    def path_for(self, resource: Resource) -> Path:
        """Absolute filesystem path of a resource."""
        return self.root.joinpath(*resource.path.parts)

    def resource_for(self, path, is_directory: bool = False) -> Optional[Resource]:
        """
        Map an absolute filesystem path back to a resource handle.

        Returns:
            Resource, or None when the path is outside the workspace or
            inside the local history folder
        """
        try:
            relative = Path(path).resolve().relative_to(self.root)
        except ValueError:
            return None

        parts = relative.parts
        if not parts:
            return Resource.root()
        if parts[0] == HISTORY_DIR:
            return None
        if len(parts) == 1:
            if is_directory:
                return Resource.project_handle(parts[0])
            return None
        if is_directory:
            return Resource.folder(relative.as_posix())
        return Resource.file(relative.as_posix())

    def exists(self, resource: Resource) -> bool:
        path = self.path_for(resource)
        if resource.type == ResourceType.FILE:
            return path.is_file()
        return path.is_dir()

    def read_bytes(self, resource: Resource) -> bytes:
        """
        Read the full contents of a file.

        Raises:
            StorageError: If the file cannot be read
        """
        try:
            return self.path_for(resource).read_bytes()
        except OSError as e:
            raise StorageError(resource, f"cannot read: {e}") from e

    def read_text(self, resource: Resource, encoding: str = 'utf-8') -> str:
        data = self.read_bytes(resource)
        try:
            return data.decode(encoding)
        except UnicodeDecodeError as e:
            raise StorageError(resource, f"cannot decode: {e}") from e

    def write_bytes(self, resource: Resource, data: bytes, keep_history: bool = True) -> None:
        """
        Replace the contents of a file atomically.

        Args:
            resource: File to write
            data: New contents
            keep_history: Copy the previous contents into the local history

        Raises:
            StorageError: If the file cannot be written
        """
        path = self.path_for(resource)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if keep_history and path.is_file():
                self._save_history(resource, path)

            fd, temp_path = tempfile.mkstemp(
                dir=path.parent,
                prefix=f".{path.name}.",
                suffix=".tmp"
            )
            try:
                with os.fdopen(fd, 'wb') as f:
                    f.write(data)
                os.replace(temp_path, path)
            except Exception:
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
                raise
        except OSError as e:
            raise StorageError(resource, f"cannot write: {e}") from e

    def _save_history(self, resource: Resource, path: Path) -> None:
        target = self.root.joinpath(HISTORY_DIR, *resource.path.parts)
        target.mkdir(parents=True, exist_ok=True)
        shutil.copy2(path, target / str(time.time_ns()))

    def history(self, resource: Resource) -> List[Path]:
        """Saved previous versions of a file, oldest first."""
        folder = self.root.joinpath(HISTORY_DIR, *resource.path.parts)
        if not folder.is_dir():
            return []
        return sorted(folder.iterdir(), key=lambda p: int(p.name))

    def members(self, folder: Resource) -> List[Resource]:
        """
        Direct children of a folder or project, sorted by name.

        Raises:
            StorageError: If the folder cannot be listed
        """
        path = self.path_for(folder)
        try:
            entries = sorted(path.iterdir(), key=lambda p: p.name)
        except OSError as e:
            raise StorageError(folder, f"cannot list: {e}") from e

        members = []
        for entry in entries:
            type_ = ResourceType.FOLDER if entry.is_dir() else ResourceType.FILE
            members.append(folder.child(entry.name, type_))
        return members

    def project(self, name: str) -> Resource:
        return Resource.project_handle(name)

    def projects(self) -> List[str]:
        """Names of all project directories, open or closed."""
        if not self.root.is_dir():
            return []
        return sorted(
            p.name for p in self.root.iterdir()
            if p.is_dir() and not p.name.startswith('.')
        )

    def project_exists(self, name: str) -> bool:
        return bool(name) and (self.root / name).is_dir()

    def is_open(self, name: str) -> bool:
        return name not in self.closed_projects

    def is_accessible(self, name: Optional[str]) -> bool:
        """True if the project exists and is open."""
        return bool(name) and self.project_exists(name) and self.is_open(name)

    def has_nature(self, name: str, nature: str) -> bool:
        """
        Check whether a project's description declares a nature.

        Raises:
            StorageError: If the project is not accessible
        """
        if not self.is_accessible(name):
            raise StorageError(name, "project is not accessible")
        description = self.root / name / PROJECT_DESCRIPTION
        try:
            return nature in description.read_text(encoding='utf-8')
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(name, f"cannot read project description: {e}") from e
