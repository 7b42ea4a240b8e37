"""
Tests for the MapIndex service: full loads, incremental change handling,
queries and map updates.
"""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from relengindex.domain import ChangeKind, DeltaFlag, Resource, Tag, build_delta
from relengindex.exceptions import OperationCanceled, VcsError
from relengindex.infra import ChangeNotifier, GitClient, Workspace
from relengindex.services import MapIndex

MAPS = "org.eclipse.releng/maps"


def write(root, relative, text):
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


def change(path, kind, flags=DeltaFlag.NONE):
    return build_delta([(Resource.file(path), kind, flags)])


def snapshot(index):
    """Comparable view of an index: path -> [(project, tag)]."""
    return {
        str(f.resource): [(e.project_name, e.tag.name) for e in f.entries]
        for f in index.files
    }


@pytest.fixture
def root(tmp_path):
    write(tmp_path, f"{MAPS}/core.map", "plugin@org.eclipse.core.resources=v1\nplugin@org.eclipse.ui=v2\n")
    write(tmp_path, f"{MAPS}/jdt.map", "plugin@org.eclipse.jdt.core=v3\n")
    write(tmp_path, f"{MAPS}/notes.txt", "plugin@org.eclipse.notes=v4\n")
    write(tmp_path, f"{MAPS}/old/archived.map", "plugin@org.eclipse.archived=v5\n")
    for name in ["org.eclipse.ui", "org.eclipse.jdt.core"]:
        (tmp_path / name).mkdir()
    return tmp_path


@pytest.fixture
def workspace(root):
    return Workspace(root)


@pytest.fixture
def git():
    return MagicMock()


@pytest.fixture
def index(workspace, git):
    return MapIndex(workspace, git_client=git)


class TestLoad:
    """Tests for full index rebuilds."""

    def test_only_direct_map_files(self, index):
        assert list(snapshot(index)) == [
            f"/{MAPS}/core.map",
            f"/{MAPS}/jdt.map",
        ]

    def test_missing_folder_is_empty(self, tmp_path):
        index = MapIndex(Workspace(tmp_path), git_client=MagicMock())
        assert index.files == []
        assert not index.maps_are_loaded()
        assert index.map_entry_for("anything") is None

    def test_maps_are_loaded(self, index):
        assert index.maps_are_loaded()

    def test_deferred_load(self, workspace):
        index = MapIndex(workspace, git_client=MagicMock(), load=False)
        assert index.files == []
        index.load()
        assert len(index.files) == 2

    def test_custom_layout(self, tmp_path):
        write(tmp_path, "releng/build/a.maps", "x=v1\n")
        index = MapIndex(Workspace(tmp_path), project="releng", map_folder="build",
                         extension="maps", git_client=MagicMock())
        assert index.map_entry_for("x").tag == Tag("v1")


class TestQueries:
    """Tests for lookups."""

    def test_map_entry_for(self, index):
        entry = index.map_entry_for("org.eclipse.ui")
        assert entry.tag == Tag("v2")
        assert index.map_entry_for("org.eclipse.notes") is None
        assert index.map_entry_for("org.eclipse.archived") is None

    def test_map_file_for(self, index):
        assert index.map_file_for("org.eclipse.jdt.core").resource.name == "jdt.map"
        assert index.map_file_for("missing") is None

    def test_tags_for_preserves_order(self, index):
        tags = index.tags_for(["org.eclipse.jdt.core", "missing", "org.eclipse.core.resources"])
        assert tags == [Tag("v3"), Tag.DEFAULT, Tag("v1")]

    def test_tags_for_empty(self, index):
        assert index.tags_for([]) == []
        assert index.tags_for(None) == []

    def test_valid_map_files(self, index, root):
        assert [f.resource.name for f in index.valid_map_files()] == ["core.map", "jdt.map"]
        index.workspace.closed_projects.add("org.eclipse.jdt.core")
        assert [f.resource.name for f in index.valid_map_files()] == ["core.map"]

    def test_map_files_for_dedupes(self, index):
        files = index.map_files_for(["org.eclipse.ui", "missing", "org.eclipse.core.resources",
                                     "org.eclipse.jdt.core"])
        assert [f.resource.name for f in files] == ["core.map", "jdt.map"]

    def test_duplicate_claims_resolve_by_path(self, root, workspace):
        """When two map files list a project, the smaller path wins."""
        write(root, f"{MAPS}/aaa.map", "plugin@org.eclipse.ui=from-aaa\n")
        index = MapIndex(workspace, git_client=MagicMock())
        assert index.map_entry_for("org.eclipse.ui").tag == Tag("from-aaa")


class TestChanges:
    """Tests for incremental change handling."""

    def test_content_change_reloads_only_that_file(self, index, root):
        jdt = index.map_file_for("org.eclipse.jdt.core")
        write(root, f"{MAPS}/core.map", "plugin@org.eclipse.ui=v9\n")

        with patch.object(jdt, "parse", wraps=jdt.parse) as jdt_parse:
            index.resource_changed(change(f"{MAPS}/core.map", ChangeKind.CHANGED, DeltaFlag.CONTENT))

        jdt_parse.assert_not_called()
        assert index.map_entry_for("org.eclipse.ui").tag == Tag("v9")
        assert index.map_entry_for("org.eclipse.core.resources") is None
        assert index.map_file_for("org.eclipse.jdt.core") is jdt

    def test_change_without_content_flag_ignored(self, index, root):
        write(root, f"{MAPS}/core.map", "plugin@org.eclipse.ui=v9\n")
        index.resource_changed(change(f"{MAPS}/core.map", ChangeKind.CHANGED))
        assert index.map_entry_for("org.eclipse.ui").tag == Tag("v2")

    def test_content_change_for_unknown_file_inserts_it(self, index, root):
        write(root, f"{MAPS}/late.map", "plugin@org.eclipse.late=v7\n")
        index.resource_changed(change(f"{MAPS}/late.map", ChangeKind.CHANGED, DeltaFlag.CONTENT))
        assert index.map_entry_for("org.eclipse.late").tag == Tag("v7")

    def test_added_file_is_indexed(self, index, root):
        write(root, f"{MAPS}/pde.map", "plugin@org.eclipse.pde=v6\n")
        index.resource_changed(change(f"{MAPS}/pde.map", ChangeKind.ADDED))
        assert index.map_entry_for("org.eclipse.pde").tag == Tag("v6")
        assert len(index.files) == 3

    def test_added_twice_does_not_duplicate(self, index, root):
        write(root, f"{MAPS}/pde.map", "plugin@org.eclipse.pde=v6\n")
        delta = change(f"{MAPS}/pde.map", ChangeKind.ADDED)
        index.resource_changed(delta)
        write(root, f"{MAPS}/pde.map", "plugin@org.eclipse.pde=v8\n")
        index.resource_changed(delta)
        assert len(index.files) == 3
        assert index.map_entry_for("org.eclipse.pde").tag == Tag("v8")

    def test_add_then_remove_matches_fresh_load(self, index, root, workspace):
        """Removal rebuilds the index from what remains on disk."""
        pde = write(root, f"{MAPS}/pde.map", "plugin@org.eclipse.pde=v6\n")
        index.resource_changed(change(f"{MAPS}/pde.map", ChangeKind.ADDED))
        pde.unlink()
        (root / MAPS / "core.map").unlink()
        index.resource_changed(change(f"{MAPS}/pde.map", ChangeKind.REMOVED))

        fresh = MapIndex(workspace, git_client=MagicMock())
        assert snapshot(index) == snapshot(fresh)
        assert index.map_entry_for("org.eclipse.pde") is None

    def test_non_map_files_ignored(self, index, root):
        write(root, f"{MAPS}/notes.txt", "plugin@org.eclipse.x=v1\n")
        index.resource_changed(change(f"{MAPS}/notes.txt", ChangeKind.ADDED))
        assert index.map_entry_for("org.eclipse.x") is None

    def test_nested_folder_ignored(self, index, root):
        write(root, f"{MAPS}/old/new.map", "plugin@org.eclipse.x=v1\n")
        index.resource_changed(change(f"{MAPS}/old/new.map", ChangeKind.ADDED))
        assert index.map_entry_for("org.eclipse.x") is None

    def test_outside_map_folder_ignored(self, index, root):
        with patch.object(index, "load") as load:
            index.resource_changed(change("org.eclipse.ui/plugin.map", ChangeKind.REMOVED))
        load.assert_not_called()

    def test_unreadable_added_file_is_logged(self, index, caplog):
        """A file that vanished before it could be read does not raise."""
        index.resource_changed(change(f"{MAPS}/ghost.map", ChangeKind.ADDED))
        assert index.map_entry_for("ghost") is None
        assert "ghost.map" in caplog.text

    def test_attach_to_notifier(self, index, root):
        notifier = ChangeNotifier()
        index.attach(notifier)
        write(root, f"{MAPS}/pde.map", "plugin@org.eclipse.pde=v6\n")
        notifier.publish(change(f"{MAPS}/pde.map", ChangeKind.ADDED))
        assert index.map_entry_for("org.eclipse.pde") is not None

        index.detach()
        assert not notifier.is_subscribed(index.resource_changed)


class TestUpdateEntryTag:
    """Tests for map updates and commits."""

    def test_writes_changed_file_with_history(self, index, root, workspace):
        assert index.update_entry_tag("org.eclipse.ui", Tag("v20131001"))
        text = (root / MAPS / "core.map").read_text()
        assert text == "plugin@org.eclipse.core.resources=v1\nplugin@org.eclipse.ui=v20131001\n"
        history = workspace.history(Resource.file(f"{MAPS}/core.map"))
        assert len(history) == 1
        assert "org.eclipse.ui=v2\n" in history[0].read_text()

    def test_index_reflects_new_tag(self, index):
        """Lookups see the new tag without waiting for a change batch."""
        index.update_entry_tag("org.eclipse.ui", Tag("v9"))
        assert index.map_entry_for("org.eclipse.ui").tag == Tag("v9")
        assert index.tags_for(["org.eclipse.ui", "org.eclipse.core.resources"]) == [Tag("v9"), Tag("v1")]

    @pytest.mark.parametrize("tag", ["v1,extra", "v 1", ""])
    def test_invalid_tag_rejected(self, index, root, tag):
        before = (root / MAPS / "core.map").read_text()
        with pytest.raises(ValueError):
            index.update_entry_tag("org.eclipse.ui", tag)
        assert (root / MAPS / "core.map").read_text() == before
        assert index.map_entry_for("org.eclipse.ui").tag == Tag("v2")

    def test_no_write_when_unchanged(self, index, workspace):
        with patch.object(workspace, "write_bytes") as write_bytes:
            assert not index.update_entry_tag("org.eclipse.ui", "v2")
        write_bytes.assert_not_called()

    def test_unmapped_project_is_noop(self, index, workspace):
        with patch.object(workspace, "write_bytes") as write_bytes:
            assert not index.update_entry_tag("missing", "v2")
        write_bytes.assert_not_called()

    def test_commit_delegates_to_git(self, index, git, root):
        git.commit.return_value = True
        assert index.commit("Update maps")
        args = git.commit.call_args[0]
        assert args[0] == root.resolve() / "org.eclipse.releng"
        assert args[2] == "Update maps"

    def test_commit_cancel_is_swallowed(self, index, git):
        git.commit.side_effect = OperationCanceled("canceled")
        assert index.commit("Update maps") is False

    def test_commit_timeout_propagates(self, workspace):
        index = MapIndex(workspace, git_client=GitClient(timeout=1))
        with patch("relengindex.infra.git_client.subprocess.run",
                   side_effect=subprocess.TimeoutExpired("git", 1)):
            with pytest.raises(VcsError):
                index.commit("Update maps")

    def test_commit_failure_propagates(self, index, git):
        git.commit.side_effect = VcsError("push rejected", 1)
        with pytest.raises(VcsError):
            index.commit("Update maps")
