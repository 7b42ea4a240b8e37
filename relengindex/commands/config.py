"""Configuration commands for relengindex."""

import click
import json

from ..config import (
    POM_VERSION_SEVERITY,
    SEVERITY_VALUES,
    Preferences,
    get_config_path,
    load_config,
    save_config,
)


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSONL")
@click.option("--path", is_flag=True, help="Show the config file path being used")
def show_config(pretty, path):
    """Show the current configuration with all merges applied."""
    if path:
        print(json.dumps({"config_path": str(get_config_path())}))
        return

    config = load_config()
    if pretty:
        print(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        print(json.dumps(config, ensure_ascii=False))


@config_cmd.command("set-severity")
@click.argument("severity", type=click.Choice(SEVERITY_VALUES))
def set_severity(severity):
    """Set the severity of POM version problems (ignore, warning, error)."""
    config = load_config()
    Preferences(config).set(POM_VERSION_SEVERITY, severity)
    save_config(config)
    print(json.dumps({POM_VERSION_SEVERITY: severity}))
