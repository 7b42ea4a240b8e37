"""
Service layer for relengindex.

Contains the incrementally maintained models:
- MapIndex: project -> release tag index over the map files
- PomVersionValidator: pom.xml / manifest version drift diagnostics

Both react to change batches and can be rebuilt from scratch.
"""

from .map_index import MapIndex
from .pom_validator import PomVersionValidator

__all__ = [
    'MapIndex',
    'PomVersionValidator',
]
