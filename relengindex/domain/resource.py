"""
Resource handles for relengindex.

A resource is identified by its workspace-relative POSIX path:
- ""                                  the workspace root
- "org.eclipse.releng"                a project
- "org.eclipse.releng/maps"           a folder
- "org.eclipse.releng/maps/core.map"  a file

Handles are cheap immutable values; they do not imply the resource exists.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import Optional, Union


class ResourceType(Enum):
    """Kind of workspace resource."""
    ROOT = "root"
    PROJECT = "project"
    FOLDER = "folder"
    FILE = "file"


PathLike = Union[str, PurePosixPath]


@dataclass(frozen=True)
class Resource:
    """
    Handle to a file, folder, project or the workspace root.

    Attributes:
        path: Workspace-relative path (empty for the root)
        type: Resource kind
    """

    path: PurePosixPath
    type: ResourceType

    @classmethod
    def root(cls) -> 'Resource':
        return cls(PurePosixPath(), ResourceType.ROOT)

    @classmethod
    def project_handle(cls, name: str) -> 'Resource':
        return cls(PurePosixPath(name), ResourceType.PROJECT)

    @classmethod
    def folder(cls, path: PathLike) -> 'Resource':
        return cls(PurePosixPath(path), ResourceType.FOLDER)

    @classmethod
    def file(cls, path: PathLike) -> 'Resource':
        return cls(PurePosixPath(path), ResourceType.FILE)

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def project(self) -> Optional[str]:
        """Name of the enclosing project, None for the root."""
        parts = self.path.parts
        return parts[0] if parts else None

    @property
    def project_relative_path(self) -> PurePosixPath:
        return PurePosixPath(*self.path.parts[1:])

    @property
    def extension(self) -> Optional[str]:
        """File extension without the dot, None if there is none."""
        suffix = self.path.suffix
        return suffix[1:] if suffix else None

    def child(self, name: str, type: ResourceType) -> 'Resource':
        return Resource(self.path / name, type)

    def is_under(self, other: 'Resource') -> bool:
        """True if this resource is other or lies inside it."""
        depth = len(other.path.parts)
        return self.path.parts[:depth] == other.path.parts

    def __str__(self) -> str:
        return "/" + self.path.as_posix() if self.path.parts else "/"
