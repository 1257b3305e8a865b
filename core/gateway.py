"""BridgeGateway: requests against the Hue Bridge CLIP v2 REST API.

Every request is tagged with a RequestKind that decides which event fires when
the bridge answers. Failures never raise out of the gateway; they surface as
events (or, for rate limiting past the retry ceiling, as nothing at all).
"""

import asyncio
import enum
import json
import random
from dataclasses import dataclass
from typing import Any

import requests

from core.config import BridgeConfig
from core.events import EventBus, TimerArena
from core.transport import RequestsTransport
from models.utils import device_type, log_debug, log_error

# Initial attempt plus two retries
MAX_ATTEMPTS = 3
RETRY_DELAY_MS = (100, 400)

HTTP_OK = 200
HTTP_TOO_MANY_REQUESTS = 429

GATEWAY_EVENTS = (
    'new-user',
    'change-occurred',
    'all-data',
    'entertainment-data',
    'stream-enabled',
    'stream-disabled',
    'connection-problem',
    'event-stream-data',
)


class RequestKind(enum.Enum):
    """What a response means and which event it triggers."""
    NO_RESPONSE_NEED = 'no-response-need'
    CHANGE_OCCURRED = 'change-occurred'
    ALL_DATA = 'all-data'
    NEW_USER = 'new-user'
    ENTERTAINMENT_DATA = 'entertainment-data'
    STREAM_ENABLED = 'stream-enabled'
    STREAM_DISABLED = 'stream-disabled'
    EVENT = 'event-stream-data'


# Kinds whose response maps directly onto the event of the same name
_DIRECT_EVENTS = {
    RequestKind.CHANGE_OCCURRED,
    RequestKind.ALL_DATA,
    RequestKind.ENTERTAINMENT_DATA,
    RequestKind.STREAM_ENABLED,
    RequestKind.STREAM_DISABLED,
    RequestKind.EVENT,
}


@dataclass
class RequestDescriptor:
    """One outgoing call, carried across retries."""
    method: str
    url: str
    kind: RequestKind
    payload: dict | None = None
    attempt: int = 0


class BridgeGateway:
    """Asynchronous client for one Hue Bridge.

    Events (see GATEWAY_EVENTS) are published on self.events; the parsed JSON
    of the response is passed to handlers and also kept in self.data.
    """

    def __init__(self, config: BridgeConfig, transport=None):
        self.config = config
        self.transport = transport or RequestsTransport()
        self.events = EventBus(*GATEWAY_EVENTS)
        self.timers = TimerArena()
        self.data: Any = []
        self._connected = False
        self._closed = False
        self._tasks: set[asyncio.Task] = set()

    @property
    def connected(self) -> bool:
        return self._connected

    def set_connection_timeout(self, seconds: float):
        self.transport.timeout = seconds

    def auth_headers(self) -> dict:
        """Headers identifying this application to the bridge."""
        if self.config.application_key:
            return {'hue-application-key': self.config.application_key}
        return {}

    def spawn(self, coro) -> asyncio.Task:
        """Run a request coroutine in the background, tracked for teardown."""
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def join(self):
        """Wait until no request or retry is outstanding."""
        while self._tasks or self.timers.pending:
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            else:
                await asyncio.sleep(0.01)

    async def request(self, method: str, url: str, kind: RequestKind,
                      payload: dict | None = None):
        """Send a request; the outcome is delivered as an event."""
        await self._send(RequestDescriptor(method, url, kind, payload))

    async def _send(self, descriptor: RequestDescriptor):
        if not self.config.address:
            log_error("Hue API: missing bridge address.")
            return

        log_debug(f"Hue API: {descriptor.method} request, url: {descriptor.url} "
                  f"data: {json.dumps(descriptor.payload)}")

        try:
            response = await self.transport.send(
                descriptor.method, descriptor.url, self.auth_headers(), descriptor.payload
            )
        except asyncio.CancelledError:
            # Teardown of the whole gateway is silent, a cancelled request is not
            if not self._closed:
                self._connection_problem(descriptor.kind)
            raise
        except requests.exceptions.RequestException as e:
            log_debug(f"Hue API: {descriptor.method} {descriptor.url} failed: {e}")
            self._connection_problem(descriptor.kind)
            return

        if self._closed:
            return

        if response.status == HTTP_TOO_MANY_REQUESTS:
            self._schedule_retry(descriptor)
        elif response.status == HTTP_OK:
            self.parse_response(descriptor.method, descriptor.url, descriptor.kind, response.text)
        else:
            log_debug(f"Hue API: {descriptor.method} {descriptor.url} status {response.status}")
            self._connection_problem(descriptor.kind)

    def _schedule_retry(self, descriptor: RequestDescriptor):
        log_debug("Hue API: too many requests sent to bridge...")

        if descriptor.attempt + 1 >= MAX_ATTEMPTS:
            log_debug(f"Hue API: dropping {descriptor.method} {descriptor.url} "
                      f"after {MAX_ATTEMPTS} attempts")
            return

        retry = RequestDescriptor(descriptor.method, descriptor.url, descriptor.kind,
                                  descriptor.payload, descriptor.attempt + 1)
        delay = random.uniform(*RETRY_DELAY_MS) / 1000
        self.timers.call_later(delay, self._retry, retry)

    def _retry(self, descriptor: RequestDescriptor):
        if self._closed:
            return
        self.spawn(self._send(descriptor))

    def parse_response(self, method: str, url: str, kind: RequestKind, text: str):
        """Decode a response body and fire the event matching its kind."""
        log_debug(f"Hue API: {method} responded, url: {url}")

        try:
            self._connected = True
            self.data = json.loads(text)
        except ValueError:
            log_debug(f"Hue API: {method}, url: {url}, failed to parse JSON.")
            self.data = []
            return

        if kind == RequestKind.NEW_USER:
            self._handle_new_user()
        elif kind in _DIRECT_EVENTS:
            self.events.emit(kind.value, self.data)

    def _handle_new_user(self):
        first = self.data[0] if isinstance(self.data, list) and self.data else {}
        success = first.get('success') if isinstance(first, dict) else None

        if not success:
            self.events.emit('connection-problem')
            return

        self.config.application_key = success.get('username')
        self.config.client_key = success.get('clientkey')
        self.events.emit('new-user', self.config.application_key, self.config.client_key)

    def _connection_problem(self, kind: RequestKind):
        self.data = []
        if not self._connected:
            return
        self._connected = False
        if kind != RequestKind.NO_RESPONSE_NEED:
            self.events.emit('connection-problem')

    # Operations

    def _resource_url(self, path: str = '') -> str:
        return f"{self.config.api_url}/resource{path}"

    async def get_all(self):
        await self.request('GET', self._resource_url(), RequestKind.ALL_DATA)

    async def get_entertainment(self):
        await self.request('GET', self._resource_url('/entertainment_configuration'),
                           RequestKind.ENTERTAINMENT_DATA)

    async def create_user(self, hostname: str | None = None):
        """Register a new application key; press the bridge link button first."""
        devicetype = device_type(hostname)
        log_debug(f"Hue API: new bridge username: {devicetype}")
        payload = {'devicetype': devicetype, 'generateclientkey': True}
        await self.request('POST', self.config.register_url, RequestKind.NEW_USER, payload)

    async def enable_stream(self, area_id: str):
        await self.request('PUT', self._resource_url(f'/entertainment_configuration/{area_id}'),
                           RequestKind.STREAM_ENABLED, {'action': 'start'})

    async def disable_stream(self, area_id: str):
        await self.request('PUT', self._resource_url(f'/entertainment_configuration/{area_id}'),
                           RequestKind.STREAM_DISABLED, {'action': 'stop'})

    async def _set_resource(self, rtype: str, resource_id: str, data: dict, change: bool):
        kind = RequestKind.CHANGE_OCCURRED if change else RequestKind.NO_RESPONSE_NEED
        await self.request('PUT', self._resource_url(f'/{rtype}/{resource_id}'), kind, data)

    async def set_light(self, light_id: str, data: dict, change: bool = True):
        await self._set_resource('light', light_id, data, change)

    async def set_group(self, group_id: str, data: dict, change: bool = True):
        await self._set_resource('grouped_light', group_id, data, change)

    async def set_scene(self, scene_id: str, data: dict, change: bool = True):
        await self._set_resource('scene', scene_id, data, change)

    # Teardown

    def clear_timers(self):
        """Cancel every pending retry."""
        self.timers.cancel_all()

    def close(self):
        """Tear down: cancel retries and in-flight requests without firing events."""
        self._closed = True
        self.clear_timers()
        for task in list(self._tasks):
            task.cancel()
        self._tasks = set()
