"""
relengindex - Release map index and POM version checks.

relengindex keeps two models of a release engineering workspace current
as files change:
- the project -> tag index built from the map files of the map project
- diagnostics for pom.xml versions that drifted from MANIFEST.MF

Quick Start:
    import relengindex

    ri = relengindex.RelengIndex(workspace="~/releng-ws")

    # Which tag is a project released from?
    entry = ri.map_index.map_entry_for("org.eclipse.core.resources")

    # Update a map entry and commit the map project
    ri.map_index.update_entry_tag("org.eclipse.core.resources", "v20131001")
    ri.map_index.commit("Releng build input for v20131001")

    # Check pom.xml versions
    ri.validator.validate_all()
    for diagnostic in ri.markers.markers():
        print(diagnostic)

Domain Objects:
    Tag, MapEntry, MapFile - Release map contents
    SemVer - Bundle version
    Resource, ResourceDelta - Workspace handles and change records
    Diagnostic - Located problem report

Services:
    MapIndex - Incrementally maintained map index
    PomVersionValidator - POM version drift diagnostics
"""

__version__ = "0.3.0"

# High-level API
from .api import RelengIndex

# Domain objects
from .domain import (
    Tag,
    MapEntry,
    MapFile,
    SemVer,
    Resource,
    ResourceDelta,
    ChangeKind,
    DeltaFlag,
    Diagnostic,
    Severity,
    build_delta,
    compare_versions,
)

# Services
from .services import MapIndex, PomVersionValidator

# Configuration
from .config import load_config, save_config, Preferences

__all__ = [
    "__version__",
    "RelengIndex",
    "Tag",
    "MapEntry",
    "MapFile",
    "SemVer",
    "Resource",
    "ResourceDelta",
    "ChangeKind",
    "DeltaFlag",
    "Diagnostic",
    "Severity",
    "build_delta",
    "compare_versions",
    "MapIndex",
    "PomVersionValidator",
    "load_config",
    "save_config",
    "Preferences",
]
