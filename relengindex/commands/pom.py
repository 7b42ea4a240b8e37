"""
POM version check command for relengindex.
"""

import sys

import click
from rich.console import Console
from rich.table import Table

from ..cli_utils import emit, standard_command
from ..config import POM_VERSION_SEVERITY
from ..exit_codes import PROBLEMS_FOUND

console = Console()


@click.group("pom")
def pom_cmd():
    """pom.xml version checks."""
    pass


@pom_cmd.command("check")
@click.argument("projects", nargs=-1)
@click.option("--severity", type=click.Choice(["warning", "error"]), default=None,
              help="Override the configured severity for this run")
@click.option("--strict", is_flag=True, help="Exit with a non-zero code when problems are found")
@click.option("--table", is_flag=True, help="Display as a formatted table")
@click.pass_context
@standard_command
def pom_check(ctx, projects, severity, strict, table):
    """Compare pom.xml versions with bundle manifests.

    Checks PROJECTS, or every project in the workspace when none are given.
    """
    ri = ctx.obj['factory']()
    if severity:
        ri.preferences.set(POM_VERSION_SEVERITY, severity)

    targets = list(projects) or ri.workspace.projects()
    for project in targets:
        ri.validator.validate(project)

    diagnostics = [
        d for d in ri.markers.markers()
        if d.subject.project in targets
    ]

    if table:
        t = Table(title="POM version problems")
        t.add_column("File", style="cyan")
        t.add_column("Line", justify="right")
        t.add_column("Severity")
        t.add_column("Message")
        t.add_column("Fix", style="green")
        for d in diagnostics:
            t.add_row(str(d.subject), str(d.line), d.severity.value, d.message, d.corrected_version or "")
        console.print(t)
    else:
        for d in diagnostics:
            emit(d.to_dict())

    if strict and diagnostics:
        sys.exit(PROBLEMS_FOUND)
    return None
