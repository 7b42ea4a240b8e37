"""
Map file for relengindex.

A map file is a line-oriented document listing project=tag associations
for a release. A MapFile holds the entries from the last successful parse
of its backing resource.
"""

from typing import List, Optional, Tuple
import logging
import re

from .map_entry import MapEntry, tag_span
from .resource import Resource
from ..exceptions import MapFileError, StorageError

logger = logging.getLogger(__name__)

MAP_FILE_EXTENSION = "map"

# A tag is one map field: no commas or whitespace
_TAG_RE = re.compile(r'[^,\s]+')


def _split_lines(text: str) -> List[str]:
    return text.splitlines(keepends=True)


def _strip_terminator(line: str) -> Tuple[str, str]:
    body = line.rstrip('\r\n')
    return body, line[len(body):]


class MapFile:
    """
    Entries parsed from one map document.

    Example:
        mf = MapFile(Resource.file("org.eclipse.releng/maps/core.map"), workspace)
        mf.parse()
        entry = mf.entry_for("org.eclipse.core.resources")
    """

    def __init__(self, resource: Resource, workspace):
        """
        Initialize MapFile. Nothing is read until parse() is called.

        Args:
            resource: Map document handle
            workspace: Storage collaborator used to read the document
        """
        self.resource = resource
        self.workspace = workspace
        self.entries: Tuple[MapEntry, ...] = ()
        self.parsed = False

    def parse(self) -> None:
        """
        Read the document and replace the entries.

        Raises:
            MapFileError: If the document cannot be read; previous entries
                are kept and parsed is cleared
        """
        try:
            text = self.workspace.read_text(self.resource)
        except StorageError as e:
            self.parsed = False
            logger.error(f"Cannot load map file {self.resource}: {e}")
            raise MapFileError(self.resource, str(e)) from e

        entries = []
        for number, line in enumerate(_split_lines(text)):
            entry = MapEntry.parse(line, number)
            if entry is not None:
                entries.append(entry)

        self.entries = tuple(entries)
        self.parsed = True

    reload = parse

    def entry_for(self, project: str) -> Optional[MapEntry]:
        for entry in self.entries:
            if entry.project_name == project:
                return entry
        return None

    def contains(self, project: str) -> bool:
        return self.entry_for(project) is not None

    @property
    def projects(self) -> List[str]:
        return [entry.project_name for entry in self.entries]

    def accessible_projects(self) -> List[str]:
        """Projects named by this file that exist and are open."""
        return [
            name for name in self.projects
            if self.workspace.is_accessible(name)
        ]

    def update_tag(self, project: str, tag) -> Tuple[str, bool]:
        """
        Render the document with one project's tag replaced.

        Only the tag field of the project's line changes; every other
        character of the document is preserved. Storage is not written.

        Args:
            project: Project whose entry to rewrite
            tag: New tag (Tag or string)

        Returns:
            Tuple of (new document text, whether anything changed)

        Raises:
            MapFileError: If the document cannot be read
            ValueError: If the tag is empty or contains a comma or whitespace
        """
        new_name = str(tag)
        if not _TAG_RE.fullmatch(new_name):
            raise ValueError(f"Invalid tag {new_name!r}")
        try:
            text = self.workspace.read_text(self.resource)
        except StorageError as e:
            raise MapFileError(self.resource, str(e)) from e

        lines = _split_lines(text)
        changed = False
        for number, line in enumerate(lines):
            entry = MapEntry.parse(line, number)
            if entry is None or entry.project_name != project:
                continue

            body, terminator = _strip_terminator(line)
            start, end = tag_span(body)
            if body[start:end] != new_name:
                lines[number] = body[:start] + new_name + body[end:] + terminator
                changed = True
            break

        return "".join(lines), changed

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'path': str(self.resource),
            'parsed': self.parsed,
            'entries': [entry.to_dict() for entry in self.entries],
        }

    def __repr__(self) -> str:
        return f"MapFile({str(self.resource)!r}, entries={len(self.entries)})"


def is_map_file(resource: Resource, extension: str = MAP_FILE_EXTENSION) -> bool:
    """True for files carrying the map extension."""
    return resource.extension is not None and resource.extension == extension
