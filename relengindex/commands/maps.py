"""
Map commands for relengindex.

Query and update the release map files of the map project.
"""

import click
from rich.console import Console
from rich.table import Table

from ..api import RelengIndex
from ..cli_utils import standard_command
from ..exit_codes import NotMappedError
from ..progress import ProgressMonitor

console = Console()


def _index(ctx) -> RelengIndex:
    return ctx.obj['factory']()


@click.group("maps")
def maps_cmd():
    """Release map queries and updates."""
    pass


@maps_cmd.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include map files with no accessible project")
@click.option("--table", is_flag=True, help="Display as a formatted table")
@click.pass_context
@standard_command
def maps_list(ctx, show_all, table):
    """List map files and their entries.

    By default only map files naming at least one open project are shown.
    """
    index = _index(ctx).map_index
    files = index.files if show_all else index.valid_map_files()

    if not table:
        return [f.to_dict() for f in files]

    t = Table(title="Map files")
    t.add_column("Map file", style="cyan")
    t.add_column("Project")
    t.add_column("Tag", style="green")
    for map_file in files:
        for entry in map_file.entries:
            t.add_row(str(map_file.resource), entry.project_name, entry.tag.name)
    console.print(t)
    return None


@maps_cmd.command("entry")
@click.argument("project")
@click.pass_context
@standard_command
def maps_entry(ctx, project):
    """Show the map entry for PROJECT."""
    index = _index(ctx).map_index
    map_file = index.map_file_for(project)
    if map_file is None:
        raise NotMappedError(project)
    entry = map_file.entry_for(project)
    result = entry.to_dict()
    result['map_file'] = str(map_file.resource)
    return result


@maps_cmd.command("tags")
@click.argument("projects", nargs=-1, required=True)
@click.pass_context
@standard_command
def maps_tags(ctx, projects):
    """Show the release tag of each PROJECT (HEAD when unmapped)."""
    tags = _index(ctx).map_index.tags_for(list(projects))
    return [{'project': p, 'tag': t.name} for p, t in zip(projects, tags)]


@maps_cmd.command("files")
@click.argument("projects", nargs=-1, required=True)
@click.pass_context
@standard_command
def maps_files(ctx, projects):
    """Show the map files that list any of PROJECTS."""
    files = _index(ctx).map_index.map_files_for(list(projects))
    return [{'map_file': str(f.resource), 'projects': f.projects} for f in files]


@maps_cmd.command("set-tag")
@click.argument("project")
@click.argument("tag")
@click.option("--commit", "message", default=None, help="Commit the map project with this message")
@click.pass_context
@standard_command
def maps_set_tag(ctx, project, tag, message):
    """Point PROJECT's map entry at TAG.

    The map file is only rewritten when the tag actually changes.
    """
    index = _index(ctx).map_index
    if index.map_file_for(project) is None:
        raise NotMappedError(project)

    changed = index.update_entry_tag(project, tag)
    result = {'project': project, 'tag': tag, 'changed': changed}
    if message and changed:
        result['committed'] = index.commit(message, ProgressMonitor())
    return result


@maps_cmd.command("commit")
@click.argument("message")
@click.pass_context
@standard_command
def maps_commit(ctx, message):
    """Commit the map project with MESSAGE."""
    committed = _index(ctx).map_index.commit(message, ProgressMonitor())
    return {'committed': committed}
