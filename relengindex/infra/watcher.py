"""
File system watcher for relengindex.

Turns watchdog events under the workspace root into ResourceDelta batches.
The observer thread only queues raw changes; flush() coalesces them into
one delta tree and publishes it on the caller's thread, so listeners never
run concurrently.
"""

import queue
import time
from typing import Dict, List, Optional, Tuple
import logging

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..domain.change import Change, ChangeKind, DeltaFlag, build_delta
from .notifier import ChangeNotifier

logger = logging.getLogger(__name__)


class WorkspaceEventHandler(FileSystemEventHandler):
    """Queues workspace changes reported by watchdog."""

    def __init__(self, workspace, changes: "queue.Queue[Change]"):
        super().__init__()
        self.workspace = workspace
        self.changes = changes

    def _should_ignore(self, path: str) -> bool:
        name = path.rsplit('/', 1)[-1]
        # Temporary files from atomic writes
        return name.startswith('.') and name.endswith('.tmp')

    def _queue(self, path, is_directory: bool, kind: ChangeKind, flags: DeltaFlag = DeltaFlag.NONE):
        path = path.decode() if isinstance(path, bytes) else path
        if self._should_ignore(path):
            return
        resource = self.workspace.resource_for(path, is_directory=is_directory)
        if resource is None or not resource.path.parts:
            return
        self.changes.put((resource, kind, flags))

    def on_created(self, event: FileSystemEvent):
        self._queue(event.src_path, event.is_directory, ChangeKind.ADDED)

    def on_deleted(self, event: FileSystemEvent):
        self._queue(event.src_path, event.is_directory, ChangeKind.REMOVED)

    def on_modified(self, event: FileSystemEvent):
        if event.is_directory:
            return
        self._queue(event.src_path, False, ChangeKind.CHANGED, DeltaFlag.CONTENT)

    def on_moved(self, event: FileSystemEvent):
        self._queue(event.src_path, event.is_directory, ChangeKind.REMOVED)
        self._queue(event.dest_path, event.is_directory, ChangeKind.ADDED)


def coalesce(changes: List[Change]) -> List[Change]:
    """
    Merge repeated changes to the same resource within one batch.

    - added then changed: added
    - added then removed: dropped
    - removed then added: changed content
    - anything else: the latest change wins
    """
    merged: Dict[Tuple, Change] = {}
    for resource, kind, flags in changes:
        key = resource.path.parts
        previous = merged.get(key)
        if previous is None:
            merged[key] = (resource, kind, flags)
            continue

        _, prev_kind, prev_flags = previous
        if prev_kind == ChangeKind.ADDED and kind == ChangeKind.CHANGED:
            continue
        if prev_kind == ChangeKind.ADDED and kind == ChangeKind.REMOVED:
            del merged[key]
        elif prev_kind == ChangeKind.REMOVED and kind == ChangeKind.ADDED:
            merged[key] = (resource, ChangeKind.CHANGED, DeltaFlag.CONTENT)
        elif prev_kind == kind == ChangeKind.CHANGED:
            merged[key] = (resource, kind, prev_flags | flags)
        else:
            merged[key] = (resource, kind, flags)
    return list(merged.values())


class WorkspaceWatcher:
    """
    Change notification source backed by watchdog.

    Example:
        watcher = WorkspaceWatcher(workspace, notifier)
        watcher.start()
        try:
            watcher.run(interval=1.0)
        finally:
            watcher.stop()
    """

    def __init__(self, workspace, notifier: Optional[ChangeNotifier] = None):
        self.workspace = workspace
        self.notifier = notifier or ChangeNotifier()
        self.changes: "queue.Queue[Change]" = queue.Queue()
        self.handler = WorkspaceEventHandler(workspace, self.changes)
        self._observer = None
        self._running = False

    def start(self) -> None:
        if self._observer is not None:
            return
        self._observer = Observer()
        self._observer.schedule(self.handler, str(self.workspace.root), recursive=True)
        self._observer.start()
        self._running = True
        logger.info(f"Watching {self.workspace.root}")

    def stop(self) -> None:
        self._running = False
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None

    def flush(self) -> int:
        """
        Publish everything queued so far as one delta batch.

        Returns:
            Number of resource changes delivered
        """
        pending: List[Change] = []
        while True:
            try:
                pending.append(self.changes.get_nowait())
            except queue.Empty:
                break

        changes = coalesce(pending)
        if changes:
            logger.debug(f"Publishing {len(changes)} workspace changes")
            self.notifier.publish(build_delta(changes))
        return len(changes)

    def run(self, interval: float = 1.0) -> None:
        """Flush periodically until stop() is called or interrupted."""
        try:
            while self._running:
                time.sleep(interval)
                self.flush()
        except KeyboardInterrupt:
            logger.info("Watcher interrupted")
