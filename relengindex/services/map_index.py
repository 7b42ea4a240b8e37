"""
Map index service for relengindex.

Maintains the project -> tag index built from the map files of the map
project (by default org.eclipse.releng/maps/*.map) and keeps it current
as change batches arrive:
- content edits reparse the edited file only
- additions parse and insert the new file only
- removals rebuild the whole index

Lookups iterate map files in path order, so when two files claim the same
project the one with the lexicographically smallest path wins.
"""

from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Optional
import logging

from ..domain.change import ChangeKind, DeltaFlag, ResourceDelta
from ..domain.map_entry import MapEntry
from ..domain.map_file import MAP_FILE_EXTENSION, MapFile, is_map_file
from ..domain.resource import Resource, ResourceType
from ..domain.tag import Tag
from ..exceptions import OperationCanceled, RelengError
from ..infra.git_client import GitClient
from ..progress import ProgressMonitor

logger = logging.getLogger(__name__)

DEFAULT_MAP_PROJECT = "org.eclipse.releng"
DEFAULT_MAP_FOLDER = "maps"


class MapIndex:
    """
    Index of map files for one map project.

    Example:
        index = MapIndex(workspace)
        index.attach(notifier)
        tags = index.tags_for(["org.eclipse.core.resources", "org.eclipse.ui"])
    """

    def __init__(
        self,
        workspace,
        project: str = DEFAULT_MAP_PROJECT,
        map_folder: str = DEFAULT_MAP_FOLDER,
        extension: str = MAP_FILE_EXTENSION,
        git_client: Optional[GitClient] = None,
        load: bool = True
    ):
        """
        Initialize MapIndex.

        Args:
            workspace: Storage collaborator
            project: Name of the map project
            map_folder: Folder holding map files, relative to the project
            extension: Map file extension without the dot
            git_client: Version-control collaborator (creates default if None)
            load: Build the index immediately

        Raises:
            MapFileError: If load is set and a map file cannot be read
        """
        self.workspace = workspace
        self.project = workspace.project(project)
        self.map_folder = Resource.folder(PurePosixPath(project, map_folder))
        self.extension = extension
        self.git = git_client or GitClient()
        self._files: Dict[str, MapFile] = {}
        self._notifier = None

        if load:
            self.load()

    @property
    def files(self) -> List[MapFile]:
        """Map files in path order."""
        files = self._files
        return [files[key] for key in sorted(files)]

    def load(self) -> None:
        """
        Rebuild the index from the map folder.

        The new set of map files replaces the old one in a single step, so
        lookups never see a partially built index.

        Raises:
            MapFileError: If a map file cannot be read
            StorageError: If the map folder cannot be listed
        """
        files: Dict[str, MapFile] = {}
        if self.workspace.exists(self.map_folder):
            for member in self.workspace.members(self.map_folder):
                if member.type != ResourceType.FILE or not self._is_map_file(member):
                    continue
                map_file = MapFile(member, self.workspace)
                map_file.parse()
                files[self._key(member)] = map_file

        self._files = files
        logger.debug(f"Loaded {len(files)} map files from {self.map_folder}")

    def maps_are_loaded(self) -> bool:
        return self.workspace.exists(self.project)

    def _is_map_file(self, resource: Resource) -> bool:
        return is_map_file(resource, self.extension)

    @staticmethod
    def _key(resource: Resource) -> str:
        return resource.path.as_posix()

    def _map_file_for_resource(self, resource: Resource) -> MapFile:
        existing = self._files.get(self._key(resource))
        if existing is not None:
            return existing
        return MapFile(resource, self.workspace)

    def _put(self, map_file: MapFile) -> None:
        files = dict(self._files)
        files[self._key(map_file.resource)] = map_file
        self._files = files

    # -------------------------------------------------------------------------
    # Change handling
    # -------------------------------------------------------------------------

    def attach(self, notifier) -> None:
        """Start receiving change batches from a notifier."""
        self.detach()
        notifier.subscribe(self.resource_changed)
        self._notifier = notifier

    def detach(self) -> None:
        if self._notifier is not None:
            self._notifier.unsubscribe(self.resource_changed)
            self._notifier = None

    def resource_changed(self, delta: ResourceDelta) -> None:
        """
        Apply one change batch.

        Only direct file children of the map folder are considered. Errors
        are logged; the index keeps its previous state for the failed file.
        """
        folder_delta = delta.find_member(self.map_folder.path)
        if folder_delta is None:
            return

        for child in folder_delta.affected_children():
            resource = child.resource
            if resource.type != ResourceType.FILE or not self._is_map_file(resource):
                continue
            try:
                self._apply(child)
            except RelengError as e:
                logger.error(f"Failed to update map index for {resource}: {e}")

    def _apply(self, delta: ResourceDelta) -> None:
        resource = delta.resource
        if delta.kind == ChangeKind.CHANGED:
            if DeltaFlag.CONTENT in delta.flags:
                map_file = self._map_file_for_resource(resource)
                map_file.reload()
                self._put(map_file)
        elif delta.kind == ChangeKind.REMOVED:
            # The removed file can no longer be read, so rebuild from what
            # is still on disk.
            self.load()
        elif delta.kind == ChangeKind.ADDED:
            map_file = MapFile(resource, self.workspace)
            map_file.parse()
            self._put(map_file)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def map_file_for(self, project: str) -> Optional[MapFile]:
        for map_file in self.files:
            if map_file.contains(project):
                return map_file
        return None

    def map_entry_for(self, project: str) -> Optional[MapEntry]:
        """Entry for a project, or None if no map file lists it."""
        map_file = self.map_file_for(project)
        if map_file is None:
            return None
        return map_file.entry_for(project)

    def valid_map_files(self) -> List[MapFile]:
        """Map files naming at least one accessible project."""
        return [f for f in self.files if f.accessible_projects()]

    def map_files_for(self, projects: Iterable[str]) -> List[MapFile]:
        """Distinct map files owning the given projects, unmapped ones skipped."""
        result: List[MapFile] = []
        for project in projects:
            map_file = self.map_file_for(project)
            if map_file is not None and map_file not in result:
                result.append(map_file)
        return result

    def tags_for(self, projects: Optional[Iterable[str]]) -> List[Tag]:
        """
        Release tags for projects, Tag.DEFAULT where no entry exists.

        Args:
            projects: Project names

        Returns:
            One tag per project in input order (empty for empty input)
        """
        if not projects:
            return []
        tags = []
        for project in projects:
            entry = self.map_entry_for(project)
            tags.append(entry.tag if entry is not None else Tag.DEFAULT)
        return tags

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def update_entry_tag(self, project: str, tag) -> bool:
        """
        Point a project's map entry at a new tag.

        The map file is written (keeping local history) only when its
        content actually changes. The index reflects the new tag as soon as
        this returns.

        Returns:
            True if the map file was rewritten

        Raises:
            MapFileError: If the map file cannot be read
            StorageError: If the map file cannot be written
            ValueError: If the tag is empty or contains a comma or whitespace
        """
        map_file = self.map_file_for(project)
        if map_file is None:
            return False

        text, changed = map_file.update_tag(project, tag)
        if changed:
            self.workspace.write_bytes(map_file.resource, text.encode('utf-8'), keep_history=True)
            map_file.reload()
            logger.info(f"Updated {project} to {tag} in {map_file.resource}")
        return changed

    def commit(self, comment: str, monitor: Optional[ProgressMonitor] = None) -> bool:
        """
        Commit the map project.

        Returns:
            True if a commit was created

        Raises:
            VcsError: If the commit failed for any reason other than cancellation
        """
        try:
            return self.git.commit(self.workspace.path_for(self.project), None, comment, monitor)
        except OperationCanceled:
            logger.info(f"Commit of {self.project} canceled")
            return False
