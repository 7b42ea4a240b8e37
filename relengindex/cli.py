#!/usr/bin/env python3

import click

from relengindex.api import RelengIndex
from relengindex.config import load_config
from relengindex.commands.config import config_cmd
from relengindex.commands.maps import maps_cmd
from relengindex.commands.pom import pom_cmd
from relengindex.commands.watch import watch_cmd


@click.group()
@click.version_option(package_name="relengindex")
@click.option("-w", "--workspace", default=None, type=click.Path(file_okay=False),
              help="Workspace directory (default: from config)")
@click.pass_context
def cli(ctx, workspace):
    """relengindex - Release map index and POM version checks.

    Tracks which tag each project is released from, and reports pom.xml
    versions that drifted from their bundle manifests.
    """
    ctx.ensure_object(dict)

    def factory(**kwargs):
        return RelengIndex(workspace=workspace, config=load_config(), **kwargs)

    ctx.obj['factory'] = factory


cli.add_command(maps_cmd)
cli.add_command(pom_cmd)
cli.add_command(watch_cmd)
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
