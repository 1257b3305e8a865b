"""
Bridge commands: registration, entertainment areas and the event stream.
"""

import asyncio
import json
import time

import click

from commands.helpers import echo_outcome, get_gateway, report_connection_problem, run_request
from core.config import BridgeConfig
from core.eventstream import EventStreamReader
from core.gateway import BridgeGateway
from models.types import parse_entertainment_areas


@click.command(name='register')
@click.argument('bridge_ip')
def register_command(bridge_ip: str):
    """Create an application key and client key on the bridge.

    Press the link button on the bridge, then run this command within 30 seconds.

    \b
    Examples:
      python hue_sync.py register 192.168.1.10
    """
    gateway = BridgeGateway(BridgeConfig(bridge_ip))
    outcome = {}

    def on_new_user(username, clientkey):
        outcome.update(ok=True, username=username, clientkey=clientkey)

    gateway.events.subscribe('new-user', on_new_user)
    report_connection_problem(gateway, outcome)

    click.echo(f"Registering with bridge at {bridge_ip}...")
    run_request(gateway, gateway.create_user())

    echo_outcome(outcome, "Successfully created application key!",
                 "Registration failed. Was the link button pressed?")
    if outcome.get('ok'):
        click.echo()
        click.echo(f"  HUE_BRIDGE_IP={bridge_ip}")
        click.echo(f"  HUE_APPLICATION_KEY={outcome['username']}")
        click.echo(f"  HUE_CLIENT_KEY={outcome['clientkey']}")


@click.command(name='areas')
def areas_command():
    """List entertainment areas with their channels.

    \b
    Examples:
      python hue_sync.py areas
    """
    gateway = get_gateway()
    if not gateway:
        return

    outcome = {}

    def on_data(data):
        outcome.update(ok=True, areas=parse_entertainment_areas(data.get('data', [])))

    gateway.events.subscribe('entertainment-data', on_data)
    report_connection_problem(gateway, outcome)
    run_request(gateway, gateway.get_entertainment())

    if not outcome.get('ok'):
        echo_outcome(outcome, '', "Failed to fetch entertainment areas")
        return

    areas = outcome['areas']
    if not areas:
        click.echo("No entertainment areas configured.")
        return

    for area in areas.values():
        status_colour = 'green' if area.active else 'white'
        click.secho(f"{area.name}", fg='cyan', bold=True, nl=False)
        click.secho(f"  [{area.status}]", fg=status_colour)
        click.echo(f"  ID: {area.id}")
        for channel in area.channels:
            click.echo(f"    Channel {channel.channel_id}: "
                       f"x={channel.x:+.2f} y={channel.y:+.2f} z={channel.z:+.2f}")
        click.echo()


@click.command(name='events')
def events_command():
    """Follow the bridge event stream and print every change.

    Runs until interrupted with Ctrl+C or until the bridge closes the stream.
    """
    gateway = get_gateway()
    if not gateway:
        return

    def on_event(data):
        for update in data if isinstance(data, list) else []:
            for change in update.get('data', []):
                click.echo(f"[{time.strftime('%H:%M:%S')}] {change.get('type', '?')} "
                           f"{change.get('id', '')}: {json.dumps(change)}")

    gateway.events.subscribe('event-stream-data', on_event)

    async def main():
        reader = EventStreamReader(gateway)
        stopped = asyncio.Event()
        reader.events.subscribe('stopped', stopped.set)
        reader.start()
        try:
            await stopped.wait()
        finally:
            reader.stop()
            gateway.close()

    click.echo(f"Listening for events from {gateway.config.address} (Ctrl+C to stop)...\n")
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        click.echo("\nStopped.")
        return

    click.secho("✗ Event stream closed", fg='red')
