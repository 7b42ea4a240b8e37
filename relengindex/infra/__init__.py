"""
Infrastructure layer for relengindex.

Contains abstractions for external systems:
- Workspace: File storage, folder listing and project state
- ChangeNotifier: Delivery of change batches to listeners
- WorkspaceWatcher: watchdog-backed source of change batches
- GitClient: Git command execution
- MarkerStore / JsonMarkerStore: Diagnostic storage

These provide clean interfaces that can be mocked for testing.
"""

from .workspace import Workspace
from .notifier import ChangeNotifier
from .watcher import WorkspaceWatcher
from .git_client import GitClient
from .marker_store import MarkerStore, JsonMarkerStore

__all__ = [
    'Workspace',
    'ChangeNotifier',
    'WorkspaceWatcher',
    'GitClient',
    'MarkerStore',
    'JsonMarkerStore',
]
