"""
CLI module for the kde panel.
Launches the terminal panel and provides headless commands that print the
environment tree.
"""

import sys
import logging
import json
import yaml
import click

from kde_panel.config import LOG_FORMAT, load_config
from kde_panel.connection.connector import EnvironmentConnector
from kde_panel.connection.output import KdeError
from kde_panel.tree.provider import TreeProvider

logger = logging.getLogger(__name__)

# Helper function to pretty print dict as YAML
def print_yaml(data):
    """Print data as YAML."""
    print(yaml.dump(data, default_flow_style=False, sort_keys=False))

# Helper function to pretty print dict as JSON
def print_json(data, indent=2):
    """Print data as JSON."""
    print(json.dumps(data, indent=indent))

def print_output(ctx, data):
    if ctx.obj['output_format'] == 'json':
        print_json(data)
    else:
        print_yaml(data)

def _connect(ctx) -> EnvironmentConnector:
    """Create the connector from the resolved config, exiting if kde is missing."""
    connector = ctx.obj['connector']
    if not connector.connected and not connector.connect():
        click.echo(f"kde CLI not found: {ctx.obj['config'].binary}", err=True)
        sys.exit(1)
    return connector

@click.group(invoke_without_command=True)
@click.option(
    '--config', 'config_path',
    type=click.Path(dir_okay=False),
    envvar='KDE_PANEL_CONFIG',
    help='YAML config file (default: ~/.config/kde-panel/config.yaml)'
)
@click.option(
    '--binary',
    envvar='KDE_PANEL_BINARY',
    help='Name or path of the kde executable'
)
@click.option(
    '--workspace',
    type=click.Path(exists=True, file_okay=False),
    envvar='KDE_PANEL_WORKSPACE',
    help='Directory kde commands run in (default: current directory)'
)
@click.option(
    '--refresh-interval',
    type=click.FloatRange(min=0),
    envvar='KDE_PANEL_REFRESH',
    help='Seconds between tree refreshes, 0 disables (default: 8)'
)
@click.option(
    '--terminal',
    envvar='KDE_PANEL_TERMINAL',
    help='Terminal emulator prefix for long-running commands, e.g. "gnome-terminal --"'
)
@click.option(
    '--log-file',
    type=click.Path(dir_okay=False),
    help='Write the panel log to this file'
)
@click.option(
    '--verbose', '-v',
    is_flag=True,
    help='Log debug messages'
)
@click.option(
    '--output-format',
    type=click.Choice(['yaml', 'json']),
    default='yaml',
    help='Output format: yaml or json'
)
@click.pass_context
def cli(ctx, config_path, binary, workspace, refresh_interval, terminal, log_file, verbose, output_format):
    """
    Panel for local Kubernetes development environments managed by kde.

    Without a command the interactive panel is started. The panel lists
    environments, their projects and pods, and runs kde for the actions you
    pick on them.
    """
    ctx.ensure_object(dict)

    try:
        config = load_config(
            config_path,
            binary=binary,
            workspace=workspace,
            refresh_interval=refresh_interval,
            terminal=terminal,
            log_file=log_file,
            log_level='DEBUG' if verbose else None,
        )
    except (ValueError, TypeError) as e:
        click.echo(f"Invalid configuration: {e}", err=True)
        sys.exit(1)

    ctx.obj['config'] = config
    ctx.obj['output_format'] = output_format
    ctx.obj['connector'] = EnvironmentConnector.from_config(config)

    if ctx.invoked_subcommand is None:
        ctx.invoke(ui)

@cli.command()
@click.pass_context
def ui(ctx):
    """
    Start the interactive panel.
    """
    # Import here so headless commands do not need a terminal UI
    from kde_panel.ui.app import KdePanelApp
    from kde_panel.ui.output import configure_file_logging

    config = ctx.obj['config']
    configure_file_logging(config.log_file, config.log_level)

    connector = _connect(ctx)
    KdePanelApp(config=config, connector=connector).run()

@cli.command()
@click.pass_context
def envs(ctx):
    """
    List environments with their status.
    """
    logging.basicConfig(level=ctx.obj['config'].log_level, format=LOG_FORMAT)
    connector = _connect(ctx)

    try:
        status = connector.environment_status()
        names = connector.list_environments()
    except KdeError as e:
        click.echo(f"Failed to list environments: {e}", err=True)
        sys.exit(1)

    print_output(ctx, [
        {"environment": name, "status": status.get(name) or "UNREADY"}
        for name in names
    ])

@cli.command()
@click.option('--depth', type=click.IntRange(1, 3), default=3,
              help='1: environments, 2: add projects, 3: add pods')
@click.pass_context
def tree(ctx, depth):
    """
    Print the environment -> project -> pod tree.
    """
    logging.basicConfig(level=ctx.obj['config'].log_level, format=LOG_FORMAT)
    connector = _connect(ctx)

    errors = []
    provider = TreeProvider(connector, on_error=errors.append)
    snapshot = provider.snapshot(depth)

    print_output(ctx, snapshot)
    for message in errors:
        click.echo(message, err=True)
    if errors:
        sys.exit(1)

def main():
    """Entry point for the CLI."""
    cli(obj={})

if __name__ == '__main__':
    main()
