"""EventStreamReader: the bridge's long-lived server push event connection.

The bridge sends UTF-8 text records, one `field: value` pair per line. Only
`data` lines are acted on: their value is a JSON array of change entries and
is handed to the gateway's response parser as a RequestKind.EVENT response, so
it fires the gateway's 'event-stream-data' event like any other response.

The reader does not reconnect on its own. Any failure ends the read loop and
fires 'stopped'; whoever wants the stream back calls start() again.
"""

import asyncio
import codecs
import enum
import random

import requests

from core.events import EventBus
from core.gateway import HTTP_OK, HTTP_TOO_MANY_REQUESTS, RETRY_DELAY_MS, BridgeGateway, RequestKind
from models.utils import log_debug

READER_EVENTS = ('started', 'stopped')


class ReaderState(enum.Enum):
    IDLE = 'idle'
    CONNECTING = 'connecting'
    STREAMING = 'streaming'


class EventStreamError(Exception):
    """The event stream connection failed or ended."""


class EventStreamParser:
    """Incremental line parser for text/event-stream bodies.

    Chunks may end anywhere, including inside a line or a multi-byte
    character; the incomplete tail is kept until the next chunk completes it.
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder('utf-8')(errors='replace')
        self.buffer = ''

    def feed(self, chunk: bytes | str) -> list[tuple[str, str]]:
        """Add a chunk and return the (field, value) pairs of completed lines."""
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        self.buffer += chunk

        lines = self.buffer.split('\n')
        # Save incomplete line
        self.buffer = lines.pop()

        records = []
        for line in lines:
            name, _, value = line.partition(':')
            name = name.strip()
            if name:
                records.append((name, value.strip()))
        return records


class EventStreamReader:
    """Keeps the event stream open and feeds records to the gateway."""

    def __init__(self, gateway: BridgeGateway):
        self.gateway = gateway
        self.events = EventBus(*READER_EVENTS)
        self.state = ReaderState.IDLE
        self._task: asyncio.Task | None = None
        self._connection = None
        self._cancelled = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        """Open the event stream unless it is already running."""
        if self.running and not self._cancelled:
            return

        self._cancelled = False
        log_debug(f"Hue event stream: enabling on {self.gateway.config.event_stream_url}")
        self._task = asyncio.get_running_loop().create_task(self._run())
        self.events.emit('started')

    def stop(self):
        """Abort the connection and the pending read. Safe to call repeatedly."""
        self._finish(cancel_task=True)

    def _finish(self, cancel_task: bool):
        if self._task is None:
            return

        log_debug(f"Hue event stream: stopping on {self.gateway.config.event_stream_url}")

        self._cancelled = True
        task, self._task = self._task, None
        self._close_connection()
        if cancel_task:
            task.cancel()
        self.state = ReaderState.IDLE
        self.events.emit('stopped')

    def _close_connection(self):
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    async def _run(self):
        try:
            while not self._cancelled:
                await self._request_event_stream()
        except (EventStreamError, requests.exceptions.RequestException, OSError) as e:
            log_debug(f"Hue event stream: {e}")
            self._finish(cancel_task=False)

    async def _request_event_stream(self):
        url = self.gateway.config.event_stream_url
        headers = {**self.gateway.auth_headers(), 'Accept': 'text/event-stream'}

        self.state = ReaderState.CONNECTING
        log_debug(f"Hue event stream: GET requested, url: {url}")
        connection = await self.gateway.transport.open_stream(url, headers)
        self._connection = connection

        status = connection.status
        if status == HTTP_TOO_MANY_REQUESTS:
            log_debug("Hue event stream: too many requests, reopening...")
            self._close_connection()
            await asyncio.sleep(random.uniform(*RETRY_DELAY_MS) / 1000)
            return

        if status != HTTP_OK:
            raise EventStreamError(f"Event stream {url} status code {status}")

        self.state = ReaderState.STREAMING
        parser = EventStreamParser()

        while not self._cancelled:
            chunk = await connection.read()
            if not chunk:
                raise EventStreamError("Reading event stream ended.")

            for name, value in parser.feed(chunk):
                if name == 'data':
                    self.gateway.parse_response('GET', url, RequestKind.EVENT, value)
                # A handler may have stopped the reader
                if self._cancelled:
                    return
