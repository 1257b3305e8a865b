"""
Setup and help commands for Hue Sync CLI.

Contains custom Click group class for coloured help output and typo suggestions.
"""

from dataclasses import dataclass

import click

from commands.helpers import get_gateway, report_connection_problem, run_request
from core.config import USER_CONFIG_FILE, get_auth_credentials
from models.utils import similarity_score


@dataclass(frozen=True)
class CommandSection:
    """Represents a section in the help command."""
    name: str
    commands: list[tuple[str, str]]


class ColouredGroup(click.Group):
    """Custom Group class that adds colour to help output and suggests similar commands."""

    def resolve_command(self, ctx, args):
        """Resolve command with suggestions for typos."""
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as e:
            if 'No such command' in str(e):
                cmd_name = args[0] if args else ''
                suggestions = self._get_suggestions(ctx, cmd_name)

                if suggestions:
                    error_msg = f"Error: No such command '{cmd_name}'.\n\n"
                    error_msg += click.style("Did you mean one of these?\n", fg='yellow')
                    for suggestion in suggestions:
                        error_msg += click.style(f"  • {suggestion}\n", fg='green')
                    raise click.UsageError(error_msg)
            raise

    def _get_suggestions(self, ctx, cmd_name, max_suggestions=3):
        """Get command suggestions based on similarity."""
        if not cmd_name:
            return []

        suggestions = []
        for command in self.list_commands(ctx):
            cmd_obj = self.get_command(ctx, command)
            if cmd_obj and not cmd_obj.hidden:
                score = similarity_score(cmd_name, command)
                if score > 0:
                    suggestions.append((score, command))

        suggestions.sort(reverse=True, key=lambda x: x[0])
        return [cmd for score, cmd in suggestions[:max_suggestions]]

    def format_usage(self, ctx, formatter):
        """Format the usage line with colour."""
        formatter.write_paragraph()
        formatter.write_text(
            click.style('Usage: ', fg='cyan', bold=True) +
            click.style(f'{ctx.command_path} [OPTIONS] COMMAND [ARGS]...', fg='white')
        )

    def format_commands(self, ctx, formatter):
        """Format commands with colour."""
        commands = []
        for subcommand in self.list_commands(ctx):
            cmd = self.get_command(ctx, subcommand)
            if cmd is None or cmd.hidden:
                continue
            commands.append((subcommand, cmd.get_short_help_str(limit=500)))

        if commands:
            formatter.write_paragraph()
            formatter.write_text(click.style('Commands:', fg='yellow', bold=True))

            max_len = max(max(len(cmd[0]) for cmd in commands), 20)

            with formatter.indentation():
                for subcommand, help_text in commands:
                    formatter.write_text(
                        click.style(subcommand.ljust(max_len), fg='green') + '  ' +
                        click.style(help_text, fg='white', dim=True)
                    )


COMMAND_SECTIONS = [
    CommandSection(
        name="SETUP",
        commands=[
            ("register <bridge_ip>", "Create application and client keys (press link button first)"),
            ("setup", "Show configured bridge and test the connection"),
        ]
    ),
    CommandSection(
        name="ENTERTAINMENT",
        commands=[
            ("areas", "List entertainment areas with channel positions"),
            ("stream-start <area_id>", "Enable streaming for an area on the bridge"),
            ("stream-stop <area_id>", "Disable streaming for an area on the bridge"),
            ("events", "Follow the bridge event stream"),
        ]
    ),
    CommandSection(
        name="CONTROL",
        commands=[
            ("light <id> [json] [--rgb|--kelvin]", "Set light state or colour"),
            ("group <id> [json] [--rgb|--kelvin]", "Set grouped_light state or colour"),
            ("scene <id> [json]", "Recall or update a scene"),
        ]
    ),
]


@click.command(name='help')
def help_command():
    """Display help and common commands."""
    click.secho("\nHue Sync - Quick Reference\n", fg='cyan', bold=True)

    for section in COMMAND_SECTIONS:
        click.secho(section.name, fg='yellow', bold=True)
        for cmd, desc in section.commands:
            click.echo("  ", nl=False)
            click.secho(cmd, fg='green', nl=False)
            click.echo(" " * (36 - len(cmd)) + "  " + desc)
        click.echo()

    click.secho("For detailed help on any command:", fg='cyan')
    click.echo(f"  python hue_sync.py {click.style('<command> -h', fg='white', bold=True)}")
    click.echo()


@click.command(name='setup')
def setup_command():
    """Show the configured bridge and test the connection.

    Credentials are read from (in order): HUE_BRIDGE_IP / HUE_APPLICATION_KEY /
    HUE_CLIENT_KEY, 1Password, ~/.hue_sync/config.json.
    """
    credentials = get_auth_credentials()
    if not credentials:
        click.secho("✗ No credentials configured", fg='red')
        click.echo(f"Run 'register BRIDGE_IP' and export the printed variables, or create {USER_CONFIG_FILE}.")
        return

    click.echo(f"Bridge IP:        {credentials['bridge_ip']}")
    click.echo(f"Application key:  {credentials['application_key'][:8]}...")
    if credentials.get('client_key'):
        click.echo("Client key:       configured (streaming available)")
    else:
        click.secho("Client key:       missing (streaming unavailable)", fg='yellow')
    click.echo()

    gateway = get_gateway()
    if not gateway:
        return

    outcome = {}
    gateway.events.subscribe('all-data', lambda data: outcome.update(ok=True, data=data))
    report_connection_problem(gateway, outcome)
    run_request(gateway, gateway.get_all())

    if outcome.get('ok'):
        resources = outcome['data'].get('data', []) if isinstance(outcome['data'], dict) else []
        click.secho(f"✓ Connected to Hue Bridge at {credentials['bridge_ip']} "
                    f"({len(resources)} resources)", fg='green')
    else:
        click.secho(f"✗ Failed to connect to bridge at {credentials['bridge_ip']}", fg='red')
