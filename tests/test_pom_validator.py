"""
Tests for the POM version validator.
"""

import pytest

from relengindex.config import POM_VERSION_SEVERITY, Preferences, get_default_config
from relengindex.domain import ChangeKind, DeltaFlag, Resource, Severity, build_delta
from relengindex.infra import ChangeNotifier, MarkerStore, Workspace
from relengindex.services import PomVersionValidator

PROJECT = "org.eclipse.foo"

DESCRIPTION = """<?xml version="1.0" encoding="UTF-8"?>
<projectDescription>
  <name>{name}</name>
  <natures>
    <nature>{nature}</nature>
  </natures>
</projectDescription>
"""

POM = """<?xml version="1.0" encoding="UTF-8"?>
<project>
  <modelVersion>4.0.0</modelVersion>
  <artifactId>{name}</artifactId>
  <version>{version}</version>
</project>
"""


def make_project(root, name, bundle_version="1.0.0.qualifier", pom_version="1.0.1-SNAPSHOT",
                 nature="org.eclipse.pde.PluginNature"):
    project = root / name
    (project / "META-INF").mkdir(parents=True, exist_ok=True)
    (project / ".project").write_text(DESCRIPTION.format(name=name, nature=nature))
    if bundle_version is not None:
        (project / "META-INF" / "MANIFEST.MF").write_text(
            f"Manifest-Version: 1.0\nBundle-SymbolicName: {name}\nBundle-Version: {bundle_version}\n"
        )
    if pom_version is not None:
        (project / "pom.xml").write_text(POM.format(name=name, version=pom_version))
    return project


def pom_of(name):
    return Resource.file(f"{name}/pom.xml")


def manifest_of(name):
    return Resource.file(f"{name}/META-INF/MANIFEST.MF")


@pytest.fixture
def preferences():
    return Preferences(get_default_config())


@pytest.fixture
def markers():
    return MarkerStore()


@pytest.fixture
def workspace(tmp_path):
    make_project(tmp_path, PROJECT)
    return Workspace(tmp_path)


@pytest.fixture
def validator(workspace, markers, preferences):
    return PomVersionValidator(workspace, markers, preferences)


class TestValidate:
    """Tests for validating one project."""

    def test_mismatch_reported_on_version_text(self, validator, markers, tmp_path):
        diagnostic = validator.validate(PROJECT)

        assert markers.markers() == [diagnostic]
        assert diagnostic.subject == pom_of(PROJECT)
        assert diagnostic.severity == Severity.WARNING
        assert diagnostic.corrected_version == "1.0.0-SNAPSHOT"
        assert diagnostic.line == 5
        text = (tmp_path / PROJECT / "pom.xml").read_text()
        assert text[diagnostic.char_start:diagnostic.char_end] == "1.0.1-SNAPSHOT"
        assert "1.0.1" in diagnostic.message and "1.0.0" in diagnostic.message

    def test_idempotent(self, validator, markers):
        validator.validate(PROJECT)
        validator.validate(PROJECT)
        assert len(markers.markers()) == 1

    def test_matching_versions_clear_previous(self, validator, markers, tmp_path):
        validator.validate(PROJECT)
        (tmp_path / PROJECT / "pom.xml").write_text(POM.format(name=PROJECT, version="1.0.0-SNAPSHOT"))
        assert validator.validate(PROJECT) is None
        assert markers.markers() == []

    def test_error_severity(self, validator, preferences):
        preferences.config["pom_version"]["severity"] = "error"
        assert validator.validate(PROJECT).severity == Severity.ERROR

    def test_ignore_only_cleans(self, validator, markers, preferences):
        validator.validate(PROJECT)
        preferences.config["pom_version"]["severity"] = "ignore"
        assert validator.validate(PROJECT) is None
        assert markers.markers() == []

    @pytest.mark.parametrize("missing", ["pom.xml", "META-INF/MANIFEST.MF"])
    def test_missing_file(self, validator, markers, tmp_path, missing):
        (tmp_path / PROJECT / missing).unlink()
        assert validator.validate(PROJECT) is None
        assert markers.markers() == []

    @pytest.mark.parametrize("bundle_version", ["", "not.a.version"])
    def test_unusable_bundle_version(self, tmp_path, validator, markers, bundle_version):
        make_project(tmp_path, PROJECT, bundle_version=bundle_version)
        assert validator.validate(PROJECT) is None

    @pytest.mark.parametrize("pom_version", ["${project.version}", ""])
    def test_unusable_pom_version(self, tmp_path, validator, pom_version):
        make_project(tmp_path, PROJECT, pom_version=pom_version)
        assert validator.validate(PROJECT) is None

    def test_unparseable_pom(self, tmp_path, validator):
        (tmp_path / PROJECT / "pom.xml").write_text("<project><version>2.0.0</project>")
        assert validator.validate(PROJECT) is None

    def test_closed_or_missing_project(self, validator, workspace, markers):
        workspace.closed_projects.add(PROJECT)
        assert validator.validate(PROJECT) is None
        assert validator.validate("org.eclipse.missing") is None
        assert validator.validate(None) is None
        assert markers.markers() == []

    def test_validate_all(self, validator, markers, tmp_path):
        make_project(tmp_path, "org.eclipse.bar", bundle_version="2.0.0", pom_version="2.0.0")
        make_project(tmp_path, "org.eclipse.baz", bundle_version="3.1.0", pom_version="3.0.0")
        validator.validate_all()
        subjects = [m.subject for m in markers.markers()]
        assert subjects == [pom_of("org.eclipse.baz"), pom_of(PROJECT)]


class TestResourceChanged:
    """Tests for change-triggered validation."""

    def publish(self, validator, *changes):
        validator.resource_changed(build_delta(changes))

    def test_pom_content_change(self, validator, markers):
        self.publish(validator, (pom_of(PROJECT), ChangeKind.CHANGED, DeltaFlag.CONTENT))
        assert len(markers.markers()) == 1

    def test_manifest_added(self, validator, markers):
        self.publish(validator, (manifest_of(PROJECT), ChangeKind.ADDED, DeltaFlag.NONE))
        assert len(markers.markers()) == 1

    def test_change_without_content_ignored(self, validator, markers):
        self.publish(validator, (pom_of(PROJECT), ChangeKind.CHANGED, DeltaFlag.NONE))
        assert markers.markers() == []

    def test_other_files_ignored(self, validator, markers):
        self.publish(
            validator,
            (Resource.file(f"{PROJECT}/build.properties"), ChangeKind.CHANGED, DeltaFlag.CONTENT),
            (Resource.file(f"{PROJECT}/src/pom.xml"), ChangeKind.ADDED, DeltaFlag.NONE),
        )
        assert markers.markers() == []

    def test_manifest_removal_clears(self, validator, markers, tmp_path):
        validator.validate(PROJECT)
        (tmp_path / PROJECT / "META-INF" / "MANIFEST.MF").unlink()
        self.publish(validator, (manifest_of(PROJECT), ChangeKind.REMOVED, DeltaFlag.NONE))
        assert markers.markers() == []

    def test_pom_removal_keeps_diagnostics(self, validator, markers):
        validator.validate(PROJECT)
        self.publish(validator, (pom_of(PROJECT), ChangeKind.REMOVED, DeltaFlag.NONE))
        assert len(markers.markers()) == 1

    def test_non_plugin_project_skipped(self, tmp_path, validator, markers):
        make_project(tmp_path, "org.eclipse.feature", nature="org.eclipse.pde.FeatureNature")
        self.publish(validator, (pom_of("org.eclipse.feature"), ChangeKind.CHANGED, DeltaFlag.CONTENT))
        assert markers.markers() == []

    def test_project_without_description_skipped(self, tmp_path, validator, markers):
        (tmp_path / PROJECT / ".project").unlink()
        self.publish(validator, (pom_of(PROJECT), ChangeKind.CHANGED, DeltaFlag.CONTENT))
        assert markers.markers() == []

    def test_project_opened(self, validator, markers):
        self.publish(validator, (Resource.project_handle(PROJECT), ChangeKind.CHANGED, DeltaFlag.OPEN))
        assert len(markers.markers()) == 1

    def test_closed_project_skipped(self, validator, workspace, markers):
        workspace.closed_projects.add(PROJECT)
        self.publish(validator, (pom_of(PROJECT), ChangeKind.CHANGED, DeltaFlag.CONTENT))
        assert markers.markers() == []

    def test_none_delta(self, validator):
        validator.resource_changed(None)


class TestPreferences:
    """Tests for severity preference handling."""

    @pytest.fixture
    def notifier(self):
        return ChangeNotifier()

    def test_start_attaches(self, validator, notifier):
        validator.start(notifier)
        assert validator.listening
        assert notifier.is_subscribed(validator.resource_changed)
        validator.stop()
        assert not validator.listening
        assert not notifier.is_subscribed(validator.resource_changed)

    def test_start_ignored_does_not_attach(self, validator, notifier, preferences):
        preferences.config["pom_version"]["severity"] = "ignore"
        validator.start(notifier)
        assert not validator.listening

    def test_switch_to_error_revalidates(self, validator, notifier, preferences, markers):
        validator.start(notifier)
        validator.validate(PROJECT)
        preferences.set(POM_VERSION_SEVERITY, "error")
        assert [m.severity for m in markers.markers()] == [Severity.ERROR]

    def test_switch_to_ignore_detaches_and_keeps_diagnostics(self, validator, notifier,
                                                             preferences, markers):
        validator.start(notifier)
        validator.validate(PROJECT)
        preferences.set(POM_VERSION_SEVERITY, "ignore")
        assert not validator.listening
        assert len(markers.markers()) == 1

    def test_switch_back_from_ignore(self, validator, notifier, preferences, markers):
        preferences.config["pom_version"]["severity"] = "ignore"
        validator.start(notifier)
        preferences.set(POM_VERSION_SEVERITY, "warning")
        assert validator.listening
        assert len(markers.markers()) == 1

        notifier.publish(build_delta([(pom_of(PROJECT), ChangeKind.CHANGED, DeltaFlag.CONTENT)]))
        assert len(markers.markers()) == 1

    def test_unrelated_key_ignored(self, validator, notifier, preferences, markers):
        validator.start(notifier)
        preferences.set("git.timeout_seconds", 5)
        assert markers.markers() == []

    def test_stop_removes_preference_listener(self, validator, notifier, preferences, markers):
        validator.start(notifier)
        validator.stop()
        preferences.set(POM_VERSION_SEVERITY, "error")
        assert markers.markers() == []
