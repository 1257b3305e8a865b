"""
Control commands: set light, group and scene state, toggle entertainment streaming.
"""

import json

import click

from commands.helpers import echo_outcome, get_gateway, report_connection_problem, run_request
from models.colors import kelvin_to_ct, rgb_to_xy


def _parse_state(state: str) -> dict | None:
    try:
        data = json.loads(state)
    except ValueError as e:
        click.secho(f"✗ Invalid JSON state: {e}", fg='red')
        return None
    if not isinstance(data, dict):
        click.secho("✗ State must be a JSON object", fg='red')
        return None
    return data


def rgb_state(red: int, green: int, blue: int) -> dict:
    """CLIP v2 state showing an RGB colour; black turns the light off."""
    if not (red or green or blue):
        return {'on': {'on': False}}
    x, y = rgb_to_xy(red, green, blue)
    return {'on': {'on': True}, 'color': {'xy': {'x': round(x, 4), 'y': round(y, 4)}}}


def kelvin_state(kelvin: int) -> dict:
    """CLIP v2 state showing a white colour temperature."""
    return {'on': {'on': True}, 'color_temperature': {'mirek': kelvin_to_ct(kelvin)}}


def _build_state(state: str | None, rgb: tuple | None, kelvin: int | None) -> dict | None:
    if rgb and kelvin is not None:
        click.secho("✗ Use either --rgb or --kelvin, not both", fg='red')
        return None

    data = {}
    if state is not None:
        data = _parse_state(state)
        if data is None:
            return None

    if rgb:
        data.update(rgb_state(*rgb))
    elif kelvin is not None:
        data.update(kelvin_state(kelvin))

    if not data:
        click.secho("✗ Give a JSON state, --rgb or --kelvin", fg='red')
        return None
    return data


def _put_state(setter_name: str, resource_id: str, data: dict | None, label: str):
    if data is None:
        return

    gateway = get_gateway()
    if not gateway:
        return

    outcome = {}
    gateway.events.subscribe('change-occurred', lambda response: outcome.update(ok=True))
    report_connection_problem(gateway, outcome)

    setter = getattr(gateway, setter_name)
    run_request(gateway, setter(resource_id, data))
    echo_outcome(outcome, f"{label} {resource_id} updated", f"Failed to update {label.lower()} {resource_id}")


@click.command(name='light')
@click.argument('light_id')
@click.argument('state', required=False)
@click.option('--rgb', type=click.IntRange(0, 255), nargs=3, default=None,
              help='Colour as three 0-255 values, e.g. --rgb 255 128 0')
@click.option('--kelvin', type=click.IntRange(2000, 6500), default=None,
              help='White colour temperature in kelvin (2000-6500)')
def light_command(light_id: str, state: str | None, rgb: tuple | None, kelvin: int | None):
    """Set the state of a light (CLIP v2 JSON, --rgb or --kelvin).

    \b
    Examples:
      python hue_sync.py light <id> '{"on": {"on": true}}'
      python hue_sync.py light <id> '{"dimming": {"brightness": 50}}'
      python hue_sync.py light <id> --rgb 255 0 0
      python hue_sync.py light <id> --kelvin 2700
    """
    _put_state('set_light', light_id, _build_state(state, rgb, kelvin), 'Light')


@click.command(name='group')
@click.argument('group_id')
@click.argument('state', required=False)
@click.option('--rgb', type=click.IntRange(0, 255), nargs=3, default=None,
              help='Colour as three 0-255 values, e.g. --rgb 255 128 0')
@click.option('--kelvin', type=click.IntRange(2000, 6500), default=None,
              help='White colour temperature in kelvin (2000-6500)')
def group_command(group_id: str, state: str | None, rgb: tuple | None, kelvin: int | None):
    """Set the state of a grouped_light (CLIP v2 JSON, --rgb or --kelvin).

    \b
    Examples:
      python hue_sync.py group <id> '{"on": {"on": false}}'
      python hue_sync.py group <id> --kelvin 4000
    """
    _put_state('set_group', group_id, _build_state(state, rgb, kelvin), 'Group')


@click.command(name='scene')
@click.argument('scene_id')
@click.argument('state', default='{"recall": {"action": "active"}}')
def scene_command(scene_id: str, state: str):
    """Update or recall a scene (default: recall it).

    \b
    Examples:
      python hue_sync.py scene <id>
    """
    _put_state('set_scene', scene_id, _parse_state(state), 'Scene')


def _toggle_stream(area_id: str, enable: bool):
    gateway = get_gateway()
    if not gateway:
        return

    outcome = {}
    event = 'stream-enabled' if enable else 'stream-disabled'
    gateway.events.subscribe(event, lambda response: outcome.update(ok=True))
    report_connection_problem(gateway, outcome)

    if enable:
        run_request(gateway, gateway.enable_stream(area_id))
        echo_outcome(outcome, f"Streaming enabled for {area_id}", "Failed to enable streaming")
    else:
        run_request(gateway, gateway.disable_stream(area_id))
        echo_outcome(outcome, f"Streaming disabled for {area_id}", "Failed to disable streaming")


@click.command(name='stream-start')
@click.argument('area_id')
def stream_start_command(area_id: str):
    """Tell the bridge to start entertainment streaming for an area."""
    _toggle_stream(area_id, True)


@click.command(name='stream-stop')
@click.argument('area_id')
def stream_stop_command(area_id: str):
    """Tell the bridge to stop entertainment streaming for an area."""
    _toggle_stream(area_id, False)
