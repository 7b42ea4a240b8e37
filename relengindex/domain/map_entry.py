"""
Map entry domain object for relengindex.

One line of a map file associates a project with the tag it is released from:

    plugin@org.eclipse.core.resources=v20130925-1200,:git:eclipse.org/platform,
    org.eclipse.releng=HEAD

Lines starting with '!' or '#' are comments.
"""

import re
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .tag import Tag

COMMENT_PREFIXES = ('!', '#')

_LINE_RE = re.compile(
    r'^\s*(?:(?P<kind>[\w.-]+)@)?(?P<project>[^=,@\s]+)\s*='
    r'\s*(?P<tag>[^,\s]*)\s*(?:,(?P<options>.*))?$'
)


@dataclass(frozen=True, eq=False)
class MapEntry:
    """
    Association of a project with its release tag.

    Entries compare equal when they name the same project.

    Attributes:
        project_name: Name of the project the entry releases
        tag: Tag the project is released from
        kind: Optional element kind prefix ("plugin", "feature", ...)
        options: Everything after the tag, verbatim
        line_number: 0-based line index in the source document
    """

    project_name: str
    tag: Tag
    kind: Optional[str] = None
    options: str = ""
    line_number: int = field(default=-1)

    @classmethod
    def parse(cls, line: str, line_number: int = -1) -> Optional['MapEntry']:
        """
        Parse one map line.

        Args:
            line: Raw line, with or without its terminator
            line_number: Index of the line in its document

        Returns:
            MapEntry, or None for blank, comment and malformed lines
        """
        text = line.strip()
        if not text or text.startswith(COMMENT_PREFIXES):
            return None

        match = _LINE_RE.match(text)
        if not match or not match.group('tag'):
            return None

        return cls(
            project_name=match.group('project'),
            tag=Tag.parse(match.group('tag')),
            kind=match.group('kind'),
            options=match.group('options') or "",
            line_number=line_number,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'project': self.project_name,
            'tag': self.tag.name,
            'kind': self.kind,
            'options': self.options,
        }

    def __eq__(self, other) -> bool:
        if not isinstance(other, MapEntry):
            return NotImplemented
        return self.project_name == other.project_name

    def __hash__(self) -> int:
        return hash(self.project_name)

    def __str__(self) -> str:
        return f"{self.project_name}={self.tag}"


def tag_span(line: str) -> Optional[Tuple[int, int]]:
    """
    Locate the tag field of a map line.

    Args:
        line: Line content without its terminator

    Returns:
        (start, end) indexes of the tag within the line, or None when the
        line is not an entry
    """
    if line.strip().startswith(COMMENT_PREFIXES):
        return None
    match = _LINE_RE.match(line)
    if not match or not match.group('tag'):
        return None
    return match.span('tag')
