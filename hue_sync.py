#!/usr/bin/env python3
"""
Hue Sync CLI
Control a Philips Hue bridge and its entertainment streaming.
"""

import click

from models.utils import set_debug

from commands.setup import ColouredGroup, help_command, setup_command
from commands.bridge import register_command, areas_command, events_command
from commands.control import (
    light_command,
    group_command,
    scene_command,
    stream_start_command,
    stream_stop_command
)


@click.group(
    cls=ColouredGroup,
    context_settings={
        'help_option_names': ['-h', '--help'],
        'max_content_width': 999
    }
)
@click.option('--debug', is_flag=True, help='Print protocol debug messages to stderr')
@click.version_option(version='0.1.0', prog_name='Hue Sync')
def cli(debug):
    """Hue Sync CLI - Talk to your Philips Hue bridge and its entertainment areas.

Credentials: HUE_BRIDGE_IP/HUE_APPLICATION_KEY/HUE_CLIENT_KEY → 1Password → ~/.hue_sync/config.json
Run 'register BRIDGE_IP' to create keys.

Use 'help' for a quick reference of all commands.
Use 'COMMAND -h' or 'COMMAND --help' for detailed help on a specific command."""
    if debug:
        set_debug(True)


# Register setup and help commands
cli.add_command(help_command)
cli.add_command(setup_command)

# Register bridge commands
cli.add_command(register_command)
cli.add_command(areas_command)
cli.add_command(events_command)

# Register control commands
cli.add_command(light_command)
cli.add_command(group_command)
cli.add_command(scene_command)
cli.add_command(stream_start_command)
cli.add_command(stream_stop_command)


if __name__ == '__main__':
    cli()
