"""
Watch command for relengindex.

Keeps the map index and POM diagnostics current while the workspace
changes, printing each new diagnostic as a JSON line.
"""

import click

from ..cli_utils import emit


class DiagnosticFeed:
    """
    Change listener that emits diagnostics not present after the previous batch.

    A diagnostic that is fixed and later comes back is emitted again.
    """

    def __init__(self, markers):
        self.markers = markers
        self.seen = set()

    def __call__(self, _delta=None) -> None:
        current = {}
        for diagnostic in self.markers.markers():
            current[(diagnostic.subject, diagnostic.line, diagnostic.message)] = diagnostic

        for key, diagnostic in current.items():
            if key not in self.seen:
                emit(diagnostic.to_dict())
        self.seen = set(current)


@click.command("watch")
@click.option("--interval", default=1.0, show_default=True, help="Seconds between change batches")
@click.option("--initial/--no-initial", default=True, help="Validate every project before watching")
@click.pass_context
def watch_cmd(ctx, interval, initial):
    """Watch the workspace and re-validate as files change."""
    ri = ctx.obj['factory'](persist_markers=True)
    report = DiagnosticFeed(ri.markers)

    ri.start()
    if initial:
        ri.validator.validate_all()
        report()
    # Subscribed after the models so it sees their updates
    ri.notifier.subscribe(report)

    click.echo(f"Watching {ri.workspace.root} (Ctrl+C to stop)", err=True)
    ri.watch(interval)
