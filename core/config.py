"""Bridge configuration and credential loading.

This module handles:
- BridgeConfig: bridge address and keys, with the derived API URLs
- Credential loading from environment variables, 1Password CLI and the
  user config file (read only; this application never writes credentials)
"""

import json
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

import click

from models.types import AuthCredentials

# Request timeout in seconds for control API calls
DEFAULT_TIMEOUT = 2

# Entertainment streaming (DTLS) port on the bridge
STREAM_PORT = 2100

USER_CONFIG_FILE = Path.home() / '.hue_sync' / 'config.json'

ENV_BRIDGE_IP = 'HUE_BRIDGE_IP'
ENV_APPLICATION_KEY = 'HUE_APPLICATION_KEY'
ENV_CLIENT_KEY = 'HUE_CLIENT_KEY'


@dataclass
class BridgeConfig:
    """Address and credentials of one bridge.

    The control API and event stream URLs are derived from the address when
    the config is built and again on reconfigure().
    """
    address: str | None
    application_key: str | None = None
    client_key: str | None = None
    api_url: str | None = field(init=False, default=None)
    event_stream_url: str | None = field(init=False, default=None)

    def __post_init__(self):
        self.reconfigure(self.address)

    def reconfigure(self, address: str | None):
        """Rebind to a new bridge address."""
        self.address = address
        if address:
            self.api_url = f"https://{address}/clip/v2"
            self.event_stream_url = f"https://{address}/eventstream/clip/v2"
        else:
            self.api_url = None
            self.event_stream_url = None

    @property
    def register_url(self) -> str | None:
        """Un-authenticated endpoint used to create a new application key."""
        return f"http://{self.address}/api" if self.address else None

    @classmethod
    def from_credentials(cls, credentials: AuthCredentials) -> 'BridgeConfig':
        return cls(
            address=credentials['bridge_ip'],
            application_key=credentials['application_key'],
            client_key=credentials.get('client_key'),
        )


def is_op_available() -> bool:
    """Check if 1Password CLI is available."""
    try:
        result = subprocess.run(['op', '--version'],
                                capture_output=True,
                                timeout=2)
        return result.returncode == 0
    except (subprocess.TimeoutExpired, FileNotFoundError):
        return False


def load_auth_from_env() -> AuthCredentials | None:
    """Load credentials from HUE_BRIDGE_IP / HUE_APPLICATION_KEY / HUE_CLIENT_KEY."""
    bridge_ip = os.getenv(ENV_BRIDGE_IP)
    application_key = os.getenv(ENV_APPLICATION_KEY)

    if bridge_ip and application_key:
        return {
            'bridge_ip': bridge_ip,
            'application_key': application_key,
            'client_key': os.getenv(ENV_CLIENT_KEY) or None,
        }
    return None


def _read_op_field(item: str, vault: str, field_name: str) -> str | None:
    result = subprocess.run(
        ['op', 'item', 'get', item,
         '--vault', vault,
         '--fields', field_name,
         '--reveal'],
        capture_output=True,
        text=True,
        timeout=10
    )
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def load_auth_from_1password() -> AuthCredentials | None:
    """Load bridge credentials from a 1Password vault.

    Reads vault and item names from environment variables:
    - HUE_1PASSWORD_VAULT (default: "Private")
    - HUE_1PASSWORD_ITEM (default: "Hue")

    Expects fields "bridge-ip", "application-key" and optionally "client-key".

    Returns:
        Credentials dict, or None if not available
    """
    if not is_op_available():
        return None

    vault = os.getenv('HUE_1PASSWORD_VAULT', 'Private')
    item = os.getenv('HUE_1PASSWORD_ITEM', 'Hue')

    try:
        bridge_ip = _read_op_field(item, vault, 'bridge-ip')
        application_key = _read_op_field(item, vault, 'application-key')
        if not (bridge_ip and application_key):
            return None

        return {
            'bridge_ip': bridge_ip,
            'application_key': application_key,
            'client_key': _read_op_field(item, vault, 'client-key'),
        }

    except (subprocess.TimeoutExpired, OSError) as e:
        click.echo(f"Warning: Failed to load from 1Password: {e}", err=True)
        return None


def load_auth_from_user_config() -> AuthCredentials | None:
    """Load bridge credentials from ~/.hue_sync/config.json.

    Returns:
        Credentials dict, or None if the file is missing or incomplete
    """
    try:
        if not USER_CONFIG_FILE.exists():
            return None

        with open(USER_CONFIG_FILE, 'r') as f:
            config = json.load(f)

        bridge_ip = config.get('bridge_ip')
        application_key = config.get('application_key')

        if bridge_ip and application_key and isinstance(bridge_ip, str) and isinstance(application_key, str):
            return {
                'bridge_ip': bridge_ip,
                'application_key': application_key,
                'client_key': config.get('client_key'),
            }

        return None

    except (json.JSONDecodeError, IOError) as e:
        click.echo(f"Warning: Failed to load config from {USER_CONFIG_FILE}: {e}", err=True)
        return None


def get_auth_credentials() -> AuthCredentials | None:
    """Get credentials using the priority system.

    Priority order:
    1. Environment variables
    2. 1Password (if available and configured)
    3. User config file (~/.hue_sync/config.json)

    Returns:
        Credentials dict, or None if all sources fail
    """
    for loader in (load_auth_from_env, load_auth_from_1password, load_auth_from_user_config):
        credentials = loader()
        if credentials:
            return credentials
    return None
