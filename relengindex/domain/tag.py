"""
Tag domain object for relengindex.

A tag names the line of history a project is released from:
- HEAD: the default, latest/trunk
- Version tags: "v20130925-1200", "R4_3"
- Branches: "R4_3_maintenance"

Tags are immutable value objects compared by name.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar


class TagType(Enum):
    """Kind of version-control label."""
    HEAD = "head"
    BRANCH = "branch"
    VERSION = "version"


HEAD_NAME = "HEAD"


@dataclass(frozen=True)
class Tag:
    """
    Version-control label for a project.

    Examples:
        Tag.parse("v20130925")  -> Tag('v20130925')
        Tag.parse("HEAD")       -> Tag.DEFAULT

    Attributes:
        name: Label as written in the map file
        type: Whether this is HEAD, a branch or a version tag
    """

    name: str
    type: TagType = field(default=TagType.VERSION, compare=False)

    DEFAULT: ClassVar['Tag']

    @classmethod
    def parse(cls, text: str, type: TagType = TagType.VERSION) -> 'Tag':
        """Build a Tag from raw text, mapping HEAD to Tag.DEFAULT."""
        text = text.strip()
        if not text or text == HEAD_NAME:
            return cls.DEFAULT
        return cls(text, type)

    @property
    def is_default(self) -> bool:
        return self.name == HEAD_NAME

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {'name': self.name, 'type': self.type.value}

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"Tag({self.name!r})"


Tag.DEFAULT = Tag(HEAD_NAME, TagType.HEAD)
