"""
Version parsing and comparison for relengindex.

Bundle versions follow the OSGi grammar:

    major[.minor[.micro[.qualifier]]]

where major, minor and micro are non-negative integers and the qualifier is
made of letters, digits, '_' and '-'. Maven versions ("1.0.1-SNAPSHOT")
are compared after the snapshot suffix is removed.

Drift checks only look at major.minor.micro; qualifiers never cause a
mismatch.
"""

import re
from dataclasses import dataclass
from typing import Optional

SNAPSHOT_SUFFIX = "-SNAPSHOT"

_QUALIFIER_RE = re.compile(r'[A-Za-z0-9_-]+')
_NUMBER_RE = re.compile(r'[0-9]+')


@dataclass(frozen=True, order=True)
class SemVer:
    """
    Parsed version.

    Attributes:
        major: Major component
        minor: Minor component
        micro: Micro component
        qualifier: Qualifier text, empty when absent
    """

    major: int = 0
    minor: int = 0
    micro: int = 0
    qualifier: str = ""

    @classmethod
    def parse(cls, text: str) -> 'SemVer':
        """
        Parse a version string.

        Raises:
            ValueError: If the text is not a valid version
        """
        if text is None:
            raise ValueError("version is None")
        text = text.strip()
        if not text:
            raise ValueError("empty version")

        parts = text.split('.', 3)
        numbers = []
        for part in parts[:3]:
            if not _NUMBER_RE.fullmatch(part):
                raise ValueError(f"invalid version component {part!r} in {text!r}")
            numbers.append(int(part))
        while len(numbers) < 3:
            numbers.append(0)

        qualifier = parts[3] if len(parts) == 4 else ""
        if len(parts) == 4 and not _QUALIFIER_RE.fullmatch(qualifier):
            raise ValueError(f"invalid qualifier {qualifier!r} in {text!r}")

        return cls(numbers[0], numbers[1], numbers[2], qualifier)

    def base(self) -> 'SemVer':
        """This version without its qualifier."""
        return SemVer(self.major, self.minor, self.micro)

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.micro}"
        if self.qualifier:
            text += f".{self.qualifier}"
        return text


@dataclass(frozen=True)
class VersionCheck:
    """
    Outcome of comparing a declared version against the manifest version.

    Attributes:
        matches: True when major.minor.micro agree
        manifest: Manifest version without qualifier
        declared: Declared version without qualifier or snapshot suffix
        corrected: Suggested replacement for the declared text
    """

    matches: bool
    manifest: SemVer
    declared: SemVer
    corrected: str


def strip_snapshot(text: str):
    """
    Split off a snapshot suffix.

    Returns:
        Tuple of (text before the suffix, whether the suffix was present)
    """
    index = text.find(SNAPSHOT_SUFFIX)
    if index >= 0:
        return text[:index], True
    return text, False


def compare_versions(manifest_version, declared_text: str) -> Optional[VersionCheck]:
    """
    Compare a declared (pom) version with the manifest version.

    Args:
        manifest_version: SemVer or version string from the manifest
        declared_text: Raw version text from the declared-version document

    Returns:
        VersionCheck, or None when the declared text is not a valid version
        (an invalid version is reported elsewhere, not as drift)

    Raises:
        ValueError: If manifest_version is a string that is not a valid version
    """
    if not isinstance(manifest_version, SemVer):
        manifest_version = SemVer.parse(manifest_version)

    text, snapshot = strip_snapshot(declared_text)
    try:
        declared = SemVer.parse(text).base()
    except ValueError:
        return None

    manifest = manifest_version.base()
    corrected = str(manifest) + (SNAPSHOT_SUFFIX if snapshot else "")
    return VersionCheck(
        matches=manifest == declared,
        manifest=manifest,
        declared=declared,
        corrected=corrected,
    )
