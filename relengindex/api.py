"""
High-level Python API for relengindex.

Wires the workspace, change notifier, map index and POM validator together
from configuration.

Example:
    import relengindex

    ri = relengindex.RelengIndex(workspace="~/releng-ws")

    # Release tags
    entry = ri.map_index.map_entry_for("org.eclipse.core.resources")
    tags = ri.map_index.tags_for(["org.eclipse.core.resources", "org.eclipse.ui"])

    # POM version drift
    ri.validator.validate_all()
    for diagnostic in ri.markers.markers():
        print(diagnostic)

    # Keep both models current while files change
    ri.start()
    ri.watch()
"""

from pathlib import Path
from typing import Any, Dict, Optional
import logging

from .config import Preferences, load_config
from .infra import ChangeNotifier, GitClient, JsonMarkerStore, MarkerStore, Workspace, WorkspaceWatcher
from .services import MapIndex, PomVersionValidator

logger = logging.getLogger(__name__)


class RelengIndex:
    """
    Facade over the release engineering models.

    Nothing listens for changes until start() is called.
    """

    def __init__(
        self,
        workspace=None,
        config: Optional[Dict[str, Any]] = None,
        markers: Optional[MarkerStore] = None,
        persist_markers: bool = False
    ):
        """
        Initialize RelengIndex.

        Args:
            workspace: Workspace directory (overrides config)
            config: Full config dict (loads from file if None)
            markers: Diagnostic sink (in-memory unless persist_markers)
            persist_markers: Store diagnostics in the configured markers file

        Raises:
            MapFileError: If a map file cannot be read while building the index
        """
        self.config = config if config is not None else load_config()
        root = workspace or self.config.get('workspace', '.')

        self.workspace = Workspace(root, closed_projects=self.config.get('closed_projects', []))
        self.notifier = ChangeNotifier()
        self.preferences = Preferences(self.config)

        if markers is None:
            if persist_markers:
                markers = JsonMarkerStore(Path(self.config.get('markers_file', '~/.relengindex/markers.json')))
            else:
                markers = MarkerStore()
        self.markers = markers

        maps = self.config.get('maps', {})
        self.map_index = MapIndex(
            self.workspace,
            project=maps.get('project', 'org.eclipse.releng'),
            map_folder=maps.get('folder', 'maps'),
            extension=maps.get('extension', 'map'),
            git_client=GitClient(timeout=self.config.get('git', {}).get('timeout_seconds', 30)),
        )
        self.validator = PomVersionValidator(self.workspace, self.markers, self.preferences)
        self._watcher: Optional[WorkspaceWatcher] = None

    def start(self) -> None:
        """Attach both models to the change notifier."""
        self.map_index.attach(self.notifier)
        self.validator.start(self.notifier)

    def stop(self) -> None:
        self.map_index.detach()
        self.validator.stop()
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None

    def watch(self, interval: float = 1.0) -> None:
        """Watch the workspace directory and deliver changes until interrupted."""
        self._watcher = WorkspaceWatcher(self.workspace, self.notifier)
        self._watcher.start()
        try:
            self._watcher.run(interval)
        finally:
            self.stop()
