"""Type definitions for Hue Sync.

TypedDicts describe the raw CLIP v2 JSON the bridge returns; the dataclasses
are the parsed snapshots the streaming code works with.
"""

from dataclasses import dataclass, field
from typing import TypedDict

from models.colors import brightness_floor, clamp_unit, intensity_to_interval_ms


class AuthCredentials(TypedDict):
    """Authentication credentials for the Hue Bridge."""
    bridge_ip: str
    application_key: str
    client_key: str | None


class NewUserSuccess(TypedDict):
    """Success entry returned by POST /api with generateclientkey."""
    username: str
    clientkey: str


class ChannelPosition(TypedDict):
    x: float
    y: float
    z: float


class RawChannel(TypedDict):
    """Channel entry of an entertainment_configuration resource."""
    channel_id: int
    position: ChannelPosition


@dataclass(frozen=True)
class Channel:
    """One addressable light slot of an entertainment area."""
    channel_id: int
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass(frozen=True)
class EntertainmentArea:
    """Snapshot of an entertainment_configuration resource.

    Channel order is the order the bridge returned and is used as the frame
    channel order.
    """
    id: str
    name: str
    status: str = 'inactive'
    channels: tuple[Channel, ...] = field(default_factory=tuple)

    @property
    def active(self) -> bool:
        return self.status == 'active'


@dataclass
class SyncParameters:
    """Brightness and frame interval read by the running sync engine every frame."""
    brightness: float = 1.0
    interval_ms: float = 100.0

    @classmethod
    def from_settings(cls, brightness: float, intensity: float) -> 'SyncParameters':
        """Derive parameters from the user's brightness and intensity settings.

        Both settings are limited to 0-1, so brightness ends up in 0.1-1.0 and
        the interval in 100-600 ms.
        """
        return cls(
            brightness=brightness_floor(clamp_unit(brightness)),
            interval_ms=intensity_to_interval_ms(clamp_unit(intensity)),
        )


def parse_channel(raw: dict) -> Channel:
    position = raw.get('position', {})
    return Channel(
        channel_id=int(raw['channel_id']),
        x=float(position.get('x', 0.0)),
        y=float(position.get('y', 0.0)),
        z=float(position.get('z', 0.0)),
    )


def parse_entertainment_area(raw: dict) -> EntertainmentArea:
    """Parse one entertainment_configuration resource."""
    return EntertainmentArea(
        id=raw['id'],
        name=raw.get('metadata', {}).get('name', raw.get('name', 'Unknown')),
        status=raw.get('status', 'inactive'),
        channels=tuple(parse_channel(c) for c in raw.get('channels', [])),
    )


def parse_entertainment_areas(resources: list[dict]) -> dict[str, EntertainmentArea]:
    """Build an id -> EntertainmentArea map from a CLIP v2 resource list.

    Resources of other types are skipped, so both the full /resource dataset
    and /resource/entertainment_configuration can be passed in.
    """
    areas = {}
    for resource in resources:
        if resource.get('type') != 'entertainment_configuration':
            continue
        area = parse_entertainment_area(resource)
        areas[area.id] = area
    return areas


def any_area_active(areas: dict[str, EntertainmentArea]) -> bool:
    """True if the bridge reports some entertainment area as streaming."""
    return any(area.active for area in areas.values())
