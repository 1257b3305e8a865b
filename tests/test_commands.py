"""Tests for the click commands, run through CliRunner.

HTTP goes to FakeTransport by patching the gateway's default transport.
"""

import json

import pytest
from click.testing import CliRunner
from unittest.mock import patch

from core.transport import HttpResponse
from hue_sync import cli
from models.colors import kelvin_to_ct
from fakes import FakeTransport

CREDENTIALS = {'bridge_ip': '192.168.1.10', 'application_key': 'app-key', 'client_key': 'psk'}


@pytest.fixture
def runner():
    return CliRunner()


def bridge(*responses):
    """Patch the transport every gateway is built with."""
    return patch('core.gateway.RequestsTransport', return_value=FakeTransport(responses))


class TestHelp:
    def test_help_lists_commands(self, runner):
        result = runner.invoke(cli, ['help'])
        assert result.exit_code == 0
        for command in ('register', 'areas', 'stream-start', 'light', 'scene'):
            assert command in result.output

    def test_typo_suggestions(self, runner):
        result = runner.invoke(cli, ['stream-strat'])
        assert result.exit_code != 0
        assert 'Did you mean' in result.output
        assert 'stream-start' in result.output


class TestRegister:
    def test_prints_keys(self, runner):
        body = [{'success': {'username': 'new-user', 'clientkey': 'ABCDEF'}}]
        with bridge(HttpResponse(200, json.dumps(body))):
            result = runner.invoke(cli, ['register', '192.168.1.10'])

        assert result.exit_code == 0
        assert 'HUE_APPLICATION_KEY=new-user' in result.output
        assert 'HUE_CLIENT_KEY=ABCDEF' in result.output

    def test_link_button_not_pressed(self, runner):
        body = [{'error': {'type': 101, 'description': 'link button not pressed'}}]
        with bridge(HttpResponse(200, json.dumps(body))):
            result = runner.invoke(cli, ['register', '192.168.1.10'])

        assert 'Registration failed' in result.output
        assert 'HUE_APPLICATION_KEY' not in result.output


@patch('commands.helpers.get_auth_credentials', return_value=CREDENTIALS)
class TestBridgeCommands:
    def test_areas(self, mock_credentials, runner):
        body = {'errors': [], 'data': [{
            'id': 'area-1',
            'type': 'entertainment_configuration',
            'metadata': {'name': 'TV area'},
            'status': 'inactive',
            'channels': [{'channel_id': 0, 'position': {'x': -0.5, 'y': 0.8, 'z': 0.0}}],
        }]}
        with bridge(HttpResponse(200, json.dumps(body))):
            result = runner.invoke(cli, ['areas'])

        assert result.exit_code == 0
        assert 'TV area' in result.output
        assert 'Channel 0' in result.output

    def test_light_updates(self, mock_credentials, runner):
        transport = FakeTransport([HttpResponse(200, '{"data": []}')])
        with patch('core.gateway.RequestsTransport', return_value=transport):
            result = runner.invoke(cli, ['light', 'light-1', '{"on": {"on": true}}'])

        assert '✓ Light light-1 updated' in result.output
        method, url, _, payload = transport.calls[0]
        assert method == 'PUT'
        assert url.endswith('/resource/light/light-1')
        assert payload == {'on': {'on': True}}

    def test_scene_recalls_by_default(self, mock_credentials, runner):
        transport = FakeTransport([HttpResponse(200, '{"data": []}')])
        with patch('core.gateway.RequestsTransport', return_value=transport):
            runner.invoke(cli, ['scene', 'scene-1'])

        assert transport.calls[0][3] == {'recall': {'action': 'active'}}

    def test_invalid_state(self, mock_credentials, runner):
        result = runner.invoke(cli, ['group', 'group-1', 'not json'])
        assert 'Invalid JSON state' in result.output

    def test_light_rgb(self, mock_credentials, runner):
        transport = FakeTransport([HttpResponse(200, '{"data": []}')])
        with patch('core.gateway.RequestsTransport', return_value=transport):
            result = runner.invoke(cli, ['light', 'light-1', '--rgb', '255', '0', '0'])

        assert result.exit_code == 0
        payload = transport.calls[0][3]
        assert payload['on'] == {'on': True}
        assert payload['color']['xy']['x'] == pytest.approx(0.735, abs=1e-3)
        assert payload['color']['xy']['y'] == pytest.approx(0.265, abs=1e-3)

    def test_light_rgb_black_turns_off(self, mock_credentials, runner):
        transport = FakeTransport([HttpResponse(200, '{"data": []}')])
        with patch('core.gateway.RequestsTransport', return_value=transport):
            runner.invoke(cli, ['light', 'light-1', '--rgb', '0', '0', '0'])

        assert transport.calls[0][3] == {'on': {'on': False}}

    def test_group_kelvin(self, mock_credentials, runner):
        transport = FakeTransport([HttpResponse(200, '{"data": []}')])
        with patch('core.gateway.RequestsTransport', return_value=transport):
            result = runner.invoke(cli, ['group', 'group-1', '--kelvin', '2700'])

        assert '✓ Group group-1 updated' in result.output
        method, url, _, payload = transport.calls[0]
        assert url.endswith('/resource/grouped_light/group-1')
        assert payload == {'on': {'on': True}, 'color_temperature': {'mirek': kelvin_to_ct(2700)}}

    def test_colour_merges_into_state(self, mock_credentials, runner):
        transport = FakeTransport([HttpResponse(200, '{"data": []}')])
        with patch('core.gateway.RequestsTransport', return_value=transport):
            runner.invoke(cli, ['light', 'light-1', '{"dimming": {"brightness": 40}}', '--kelvin', '6500'])

        assert transport.calls[0][3] == {
            'dimming': {'brightness': 40},
            'on': {'on': True},
            'color_temperature': {'mirek': 153},
        }

    def test_rgb_and_kelvin_rejected(self, mock_credentials, runner):
        transport = FakeTransport()
        with patch('core.gateway.RequestsTransport', return_value=transport):
            result = runner.invoke(cli, ['light', 'light-1', '--rgb', '1', '2', '3', '--kelvin', '3000'])

        assert 'Use either --rgb or --kelvin' in result.output
        assert transport.calls == []

    def test_state_required(self, mock_credentials, runner):
        transport = FakeTransport()
        with patch('core.gateway.RequestsTransport', return_value=transport):
            result = runner.invoke(cli, ['group', 'group-1'])

        assert 'Give a JSON state, --rgb or --kelvin' in result.output
        assert transport.calls == []

    def test_kelvin_out_of_range(self, mock_credentials, runner):
        result = runner.invoke(cli, ['light', 'light-1', '--kelvin', '9000'])
        assert result.exit_code != 0

    def test_stream_start(self, mock_credentials, runner):
        with bridge(HttpResponse(200, '{"data": []}')):
            result = runner.invoke(cli, ['stream-start', 'area-1'])
        assert 'Streaming enabled for area-1' in result.output

    def test_stream_stop_failure(self, mock_credentials, runner):
        with bridge(HttpResponse(403, '')):
            result = runner.invoke(cli, ['stream-stop', 'area-1'])
        assert 'Failed to disable streaming' in result.output


@patch('commands.helpers.get_auth_credentials', return_value=None)
def test_missing_credentials(mock_credentials, runner):
    result = runner.invoke(cli, ['areas'])
    assert 'Could not obtain bridge credentials' in result.output
