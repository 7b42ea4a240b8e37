"""
Diagnostic domain object for relengindex.

A diagnostic is a located, severity-tagged report attached to a file, e.g.
a pom.xml whose version disagrees with the bundle manifest.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import Optional

from .resource import Resource, ResourceType

POM_VERSION_PROBLEM = "relengindex.pomVersionProblem"


class Severity(Enum):
    """Severity of a reported problem."""
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Diagnostic:
    """
    A reported problem.

    Attributes:
        message: Human-readable description
        severity: WARNING or ERROR
        subject: File the problem is attached to
        line: 1-based line number
        char_start: Document offset where the problem starts, if known
        char_end: Document offset where the problem ends, if known
        corrected_version: Suggested replacement text
        type: Problem kind, used to clear problems of one kind only
    """

    message: str
    severity: Severity
    subject: Resource
    line: int = 1
    char_start: Optional[int] = None
    char_end: Optional[int] = None
    corrected_version: Optional[str] = None
    type: str = POM_VERSION_PROBLEM

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'message': self.message,
            'severity': self.severity.value,
            'subject': self.subject.path.as_posix(),
            'line': self.line,
            'char_start': self.char_start,
            'char_end': self.char_end,
            'corrected_version': self.corrected_version,
            'type': self.type,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Diagnostic':
        return cls(
            message=data['message'],
            severity=Severity(data['severity']),
            subject=Resource(PurePosixPath(data['subject']), ResourceType.FILE),
            line=data.get('line', 1),
            char_start=data.get('char_start'),
            char_end=data.get('char_end'),
            corrected_version=data.get('corrected_version'),
            type=data.get('type', POM_VERSION_PROBLEM),
        )

    def __str__(self) -> str:
        return f"{self.subject}:{self.line}: {self.severity.value}: {self.message}"
