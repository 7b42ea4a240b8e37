"""
Domain layer for relengindex.

Contains domain objects:
- Tag, MapEntry, MapFile: release map contents
- SemVer: bundle versions
- Resource, ResourceDelta: workspace handles and change records
- Diagnostic: located problem reports

Value objects are immutable; MapFile is the one stateful holder.
"""

from .tag import Tag, TagType
from .map_entry import MapEntry
from .map_file import MapFile, MAP_FILE_EXTENSION
from .version import SemVer, VersionCheck, compare_versions
from .resource import Resource, ResourceType
from .change import ChangeKind, DeltaFlag, ResourceDelta, build_delta
from .diagnostic import Diagnostic, Severity

__all__ = [
    'Tag',
    'TagType',
    'MapEntry',
    'MapFile',
    'MAP_FILE_EXTENSION',
    'SemVer',
    'VersionCheck',
    'compare_versions',
    'Resource',
    'ResourceType',
    'ChangeKind',
    'DeltaFlag',
    'ResourceDelta',
    'build_delta',
    'Diagnostic',
    'Severity',
]
