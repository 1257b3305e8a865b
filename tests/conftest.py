"""Pytest configuration and fixtures for Hue Sync tests."""

import pytest
from pathlib import Path

from core.config import BridgeConfig
from models.types import Channel, EntertainmentArea
from models.utils import set_debug

AREA_ID = '1a8d99cc-967b-44f2-9202-43f976c0fa6b'


@pytest.fixture
def project_root():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture(autouse=True)
def quiet_debug():
    """Keep debug output off regardless of HUE_SYNC_DEBUG."""
    set_debug(False)
    yield
    set_debug(False)


@pytest.fixture
def bridge_config():
    return BridgeConfig('192.168.1.10', 'app-key', 'client-key')


@pytest.fixture
def area():
    """Entertainment area with one light on each side of the screen."""
    return EntertainmentArea(
        id=AREA_ID,
        name='TV area',
        channels=(
            Channel(0, x=1.0, y=0.0, z=0.0),
            Channel(1, x=-1.0, y=0.0, z=0.0),
        ),
    )
