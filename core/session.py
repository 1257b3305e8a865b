"""StreamSession: one sync engine streaming to one entertainment area.

Sequence of a session:

1. start() starts the event stream reader and, shortly after, asks the bridge
   to enable streaming for the area.
2. The gateway's 'stream-enabled' opens the encrypted transport.
3. The transport's 'connected' starts the engine; 'disconnected' stops it.
4. stop() stops the engine, closes the transport, detaches from it and tells
   the bridge to disable streaming. The gateway's 'stream-disabled' starts a
   mode queued by change_mode().

A 'connection-problem' from the gateway tears the session down and still
asks the bridge to disable the area. The event stream reporting the area
inactive (stopped by another application or by the bridge) tears the session
down without asking the bridge.
"""

from dataclasses import replace
from typing import Callable, Protocol

from core.config import STREAM_PORT
from core.eventstream import EventStreamReader
from core.events import EventBus, Subscriptions, TimerArena
from core.gateway import BridgeGateway
from models.types import EntertainmentArea, SyncParameters, any_area_active, parse_entertainment_areas
from models.utils import log_debug
from sync.base import SyncEngine

SESSION_EVENTS = ('started', 'stopped', 'disabled', 'notify')

# Give the event stream a moment to connect before streaming is enabled
ENABLE_DELAY = 0.2

MSG_OTHER_STREAM_ACTIVE = "Some other stream is active. Disable it first."


class EncryptedTransport(Protocol):
    """DTLS connection to the bridge's entertainment port.

    Publishes 'connected' and 'disconnected'.
    """

    def subscribe(self, name: str, handler: Callable) -> Callable[[], None]:
        ...

    def connect_bridge(self):
        ...

    def close_bridge(self):
        ...

    def send_encrypted(self, data: bytes):
        ...


# (address, psk identity, psk, port) -> transport
TransportFactory = Callable[[str, str, str, int], EncryptedTransport]


class StreamSession:
    """Binds a sync engine and an entertainment area to a live transport."""

    def __init__(self, gateway: BridgeGateway, transport_factory: TransportFactory,
                 reader: EventStreamReader | None = None):
        self.gateway = gateway
        self.reader = reader or EventStreamReader(gateway)
        self.transport_factory = transport_factory
        self.events = EventBus(*SESSION_EVENTS)
        self.timers = TimerArena()

        self.engine: SyncEngine | None = None
        self.area: EntertainmentArea | None = None
        self.transport: EncryptedTransport | None = None
        self.areas: dict[str, EntertainmentArea] = {}
        self._queued: tuple | None = None

        self._transport_subscriptions = Subscriptions()
        self._bridge_subscriptions = Subscriptions()
        for name, handler in (
            ('entertainment-data', self._on_entertainment_data),
            ('stream-enabled', self._on_stream_enabled),
            ('stream-disabled', self._on_stream_disabled),
            ('connection-problem', self._on_connection_problem),
            ('event-stream-data', self._on_event_stream_data),
        ):
            self._bridge_subscriptions.add(gateway.events.subscribe(name, handler))

    @property
    def active(self) -> bool:
        return self.engine is not None

    def _notify(self, message: str):
        log_debug(f"Hue sync: {message}")
        self.events.emit('notify', message)

    def start(self, engine: SyncEngine, area: EntertainmentArea,
              parameters: SyncParameters | None = None) -> bool:
        """Start streaming engine to area.

        Returns:
            False if a stream is already active here or on the bridge
        """
        if self.active or any_area_active(self.areas):
            self._notify(MSG_OTHER_STREAM_ACTIVE)
            return False

        if parameters is not None:
            engine.parameters = parameters

        self.engine = engine
        self.area = area
        log_debug(f"Hue sync: starting {engine.name} on area {area.id}")

        self.reader.start()
        self.timers.call_later(ENABLE_DELAY, self._enable_stream)
        self.events.emit('started', area)
        return True

    def _enable_stream(self):
        if self.area is not None:
            self.gateway.spawn(self.gateway.enable_stream(self.area.id))

    def change_mode(self, engine: SyncEngine, area: EntertainmentArea | None = None,
                    parameters: SyncParameters | None = None) -> bool:
        """Switch to another engine; a running stream is disabled first."""
        area = area or self.area
        if area is None:
            self._notify("Please select entertainment area first.")
            return False

        if not self.active:
            return self.start(engine, area, parameters)

        self._queued = (engine, area, parameters)
        self.stop()
        return True

    def set_parameters(self, brightness: float, intensity: float):
        if self.engine:
            self.engine.set_parameters(brightness, intensity)

    def stop(self):
        """Stop streaming and tell the bridge to disable the area."""
        area = self.area
        if not self._teardown():
            return
        self.gateway.spawn(self.gateway.disable_stream(area.id))

    def _teardown(self) -> bool:
        """Stop the engine, close the transport and detach from it."""
        if self.engine is None:
            return False

        self.clear_timers()
        self.engine.stop()
        if self.transport is not None:
            self.transport.close_bridge()
        self._transport_subscriptions.release()
        self.reader.stop()

        area = self.area
        self.engine = None
        self.area = None
        self.transport = None
        self._set_area_status(area.id, 'inactive')
        self.events.emit('stopped', area)
        return True

    def _on_stream_enabled(self, data):
        if self.engine is None or self.transport is not None:
            return

        config = self.gateway.config
        self.transport = self.transport_factory(
            config.address, config.application_key, config.client_key, STREAM_PORT
        )
        engine = self.engine
        engine.attach(self.transport.send_encrypted)
        self._transport_subscriptions.add(self.transport.subscribe('connected', engine.start))
        self._transport_subscriptions.add(self.transport.subscribe('disconnected', engine.stop))
        self.transport.connect_bridge()

    def _on_stream_disabled(self, data):
        self.events.emit('disabled')

        if self._queued is None or self.active:
            return
        engine, area, parameters = self._queued
        self._queued = None
        self.start(engine, area, parameters)

    def _on_connection_problem(self):
        self._queued = None
        area = self.area
        if not self._teardown():
            return
        log_debug("Hue sync: connection problem, stream closed")
        self.gateway.spawn(self.gateway.disable_stream(area.id))

    def _on_entertainment_data(self, data):
        resources = data.get('data', []) if isinstance(data, dict) else []
        self.areas = parse_entertainment_areas(resources)

    def _set_area_status(self, area_id: str, status: str):
        if area_id in self.areas:
            self.areas[area_id] = replace(self.areas[area_id], status=status)

    def _on_event_stream_data(self, data):
        if not isinstance(data, list):
            return

        for update in data:
            if not isinstance(update, dict):
                continue
            for change in update.get('data', []):
                self._handle_change(change)

    def _handle_change(self, change: dict):
        area_id = change.get('id')
        status = change.get('status')
        if status:
            self._set_area_status(area_id, status)

        if self.area is None or area_id != self.area.id:
            return

        if change.get('active_streamer'):
            log_debug(f"Hue sync: bridge accepted stream for {area_id}")
        if status == 'inactive':
            log_debug(f"Hue sync: area {area_id} became inactive")
            self._teardown()

    def clear_timers(self):
        self.timers.cancel_all()

    def close(self):
        """Stop streaming and detach from the gateway."""
        self._queued = None
        self.stop()
        self.clear_timers()
        self._bridge_subscriptions.release()
