"""
POM version validation service for relengindex.

Checks that the <project><version> of each plug-in project's pom.xml agrees
with the Bundle-Version in META-INF/MANIFEST.MF, ignoring qualifiers and
the -SNAPSHOT suffix. Mismatches are reported as diagnostics on pom.xml
with the exact character range of the offending version.

Re-validation happens when:
- pom.xml or the manifest is added or its content changes
- a plug-in project is opened
- the severity preference changes to warning or error

Removing the manifest only clears the project's diagnostics.
"""

from pathlib import PurePosixPath
from typing import Optional
import logging

from ..config import POM_VERSION_SEVERITY, VALUE_IGNORE, VALUE_WARNING, PreferenceChangeEvent
from ..domain.change import ChangeKind, DeltaFlag, ResourceDelta
from ..domain.diagnostic import Diagnostic, POM_VERSION_PROBLEM, Severity
from ..domain.resource import Resource, ResourceType
from ..domain.version import SemVer, compare_versions
from ..exceptions import StorageError
from ..manifest import BUNDLE_VERSION, read_attribute
from ..pom import find_version, locate_span

logger = logging.getLogger(__name__)

POM_PATH = PurePosixPath("pom.xml")
MANIFEST_PATH = PurePosixPath("META-INF/MANIFEST.MF")
PLUGIN_NATURE = "org.eclipse.pde.PluginNature"

MESSAGE = "POM version {pom} does not match the bundle version {bundle}"


class PomVersionValidator:
    """
    Reports pom.xml versions that drifted from the bundle manifest.

    Example:
        validator = PomVersionValidator(workspace, MarkerStore(), Preferences(config))
        validator.start(notifier)
        validator.validate("org.eclipse.foo")
    """

    def __init__(self, workspace, markers, preferences):
        """
        Initialize PomVersionValidator.

        Args:
            workspace: Storage collaborator
            markers: Diagnostic sink
            preferences: Configuration source holding the severity
        """
        self.workspace = workspace
        self.markers = markers
        self.preferences = preferences
        self._notifier = None
        self._listening = False

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self, notifier) -> None:
        """Listen for preference changes and, unless ignored, for resource changes."""
        self._notifier = notifier
        self.preferences.add_listener(self.preference_change)
        if self.preferences.severity != VALUE_IGNORE:
            self._attach()

    def stop(self) -> None:
        self.preferences.remove_listener(self.preference_change)
        self._detach()
        self._notifier = None

    @property
    def listening(self) -> bool:
        return self._listening

    def _attach(self) -> None:
        if self._notifier is not None and not self._listening:
            self._notifier.subscribe(self.resource_changed)
            self._listening = True

    def _detach(self) -> None:
        if self._notifier is not None and self._listening:
            self._notifier.unsubscribe(self.resource_changed)
        self._listening = False

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def clean_markers(self, resource: Resource) -> None:
        self.markers.delete_markers(resource, POM_VERSION_PROBLEM, recursive=True)

    def validate(self, project: Optional[str]) -> Optional[Diagnostic]:
        """
        Validate one project, replacing its previous diagnostics.

        Args:
            project: Project name

        Returns:
            The diagnostic created, or None when the versions agree or the
            project cannot be checked
        """
        if not project or not self.workspace.is_accessible(project):
            return None

        self.clean_markers(self.workspace.project(project))

        severity = self.preferences.severity
        if severity == VALUE_IGNORE:
            return None

        manifest = Resource.file(PurePosixPath(project) / MANIFEST_PATH)
        pom = Resource.file(PurePosixPath(project) / POM_PATH)
        if not self.workspace.exists(manifest) or not self.workspace.exists(pom):
            return None

        try:
            bundle_text = read_attribute(self.workspace.read_bytes(manifest), BUNDLE_VERSION)
        except StorageError as e:
            logger.error(f"Cannot read manifest of {project}: {e}")
            return None
        if bundle_text is None:
            return None

        try:
            bundle_version = SemVer.parse(bundle_text)
        except ValueError:
            logger.debug(f"Invalid Bundle-Version {bundle_text!r} in {project}")
            return None

        try:
            pom_bytes = self.workspace.read_bytes(pom)
        except StorageError as e:
            logger.error(f"Cannot read pom.xml of {project}: {e}")
            return None

        located = find_version(pom_bytes)
        if located is None:
            return None
        pom_text = pom_bytes.decode('utf-8', errors='replace')

        check = compare_versions(bundle_version, located.value)
        if check is None or check.matches:
            return None

        line = located.line_number if located.line_number > 0 else 1
        span = locate_span(pom_text, line, located.value)
        char_start, char_end = span if span is not None else (None, None)

        diagnostic = Diagnostic(
            message=MESSAGE.format(pom=check.declared, bundle=check.manifest),
            severity=Severity.WARNING if severity == VALUE_WARNING else Severity.ERROR,
            subject=pom,
            line=line,
            char_start=char_start,
            char_end=char_end,
            corrected_version=check.corrected,
        )
        self.markers.create(diagnostic)
        return diagnostic

    def validate_all(self) -> None:
        for project in self.workspace.projects():
            self.validate(project)

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    def resource_changed(self, delta: Optional[ResourceDelta]) -> None:
        if delta is not None:
            delta.accept(self._visit)

    def _visit(self, delta: ResourceDelta) -> bool:
        resource = delta.resource
        if resource.type in (ResourceType.ROOT, ResourceType.FOLDER):
            return True

        if resource.type == ResourceType.PROJECT:
            return self._visit_project(delta)

        relative = resource.project_relative_path
        if delta.kind == ChangeKind.REMOVED:
            if relative == MANIFEST_PATH and self.workspace.is_accessible(resource.project):
                self.clean_markers(self.workspace.project(resource.project))
        elif delta.kind == ChangeKind.ADDED:
            if relative in (MANIFEST_PATH, POM_PATH):
                self.validate(resource.project)
        elif delta.kind == ChangeKind.CHANGED and DeltaFlag.CONTENT in delta.flags:
            if relative in (MANIFEST_PATH, POM_PATH):
                self.validate(resource.project)
        return False

    def _visit_project(self, delta: ResourceDelta) -> bool:
        name = delta.resource.project
        if not self.workspace.is_accessible(name):
            return False
        try:
            if not self.workspace.has_nature(name, PLUGIN_NATURE):
                return False
        except StorageError as e:
            logger.error(f"Cannot read description of {name}: {e}")
            return False

        if DeltaFlag.OPEN in delta.flags:
            self.validate(name)
            return False
        return True

    def preference_change(self, event: PreferenceChangeEvent) -> None:
        """
        React to a severity change.

        Switching to ignore stops listening for resource changes and leaves
        existing diagnostics alone. Any other value re-validates every
        project with the new severity.
        """
        if event.key != POM_VERSION_SEVERITY or event.new_value is None:
            return

        if event.new_value == VALUE_IGNORE:
            self._detach()
            return

        if event.old_value == VALUE_IGNORE:
            self._attach()
        self.validate_all()
