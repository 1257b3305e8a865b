"""HTTP transport used by the bridge gateway and the event stream reader.

Wraps a requests.Session. The bridge serves a self-signed certificate, so
verification is off. Blocking requests calls run in a worker thread through
asyncio.to_thread so the event loop never blocks; everything above this module
is single-threaded.

Any failure to talk to the bridge surfaces as
requests.exceptions.RequestException.
"""

import asyncio
import json
from dataclasses import dataclass

import requests
from requests.packages.urllib3.exceptions import InsecureRequestWarning

from core.config import DEFAULT_TIMEOUT

# Disable SSL warnings for self-signed certificate
requests.packages.urllib3.disable_warnings(InsecureRequestWarning)


@dataclass
class HttpResponse:
    """Status code and decoded body of a completed request."""
    status: int
    text: str


class EventStreamConnection:
    """An open text/event-stream response read chunk by chunk."""

    def __init__(self, response: requests.Response):
        self._response = response
        self._chunks = response.iter_content(chunk_size=None)
        self._closed = False

    @property
    def status(self) -> int:
        return self._response.status_code

    async def read(self) -> bytes:
        """Read the next chunk as it arrives.

        Returns:
            Chunk bytes; b'' once the bridge ends the response
        """
        if self._closed:
            raise requests.exceptions.ConnectionError("Event stream connection closed")
        return await asyncio.to_thread(next, self._chunks, b'')

    def close(self):
        """Abort the connection; a pending read fails."""
        self._closed = True
        self._response.close()


class RequestsTransport:
    """requests-based transport for the bridge REST and event stream APIs."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, session: requests.Session | None = None):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.verify = False  # Accept self-signed certificate

    def _send_blocking(self, method: str, url: str, headers: dict, payload: dict | None) -> HttpResponse:
        body = json.dumps(payload) if payload is not None else None
        if body is not None:
            headers = {**headers, 'Content-Type': 'application/json'}
        response = self.session.request(method, url, headers=headers, data=body,
                                        timeout=self.timeout, verify=False)
        return HttpResponse(response.status_code, response.text)

    async def send(self, method: str, url: str, headers: dict,
                   payload: dict | None = None) -> HttpResponse:
        """Send one request and wait for the complete response."""
        return await asyncio.to_thread(self._send_blocking, method, url, headers, payload)

    def _open_stream_blocking(self, url: str, headers: dict) -> EventStreamConnection:
        # No read timeout: the bridge keeps the connection open indefinitely
        response = self.session.get(url, headers=headers, stream=True,
                                    timeout=(self.timeout, None), verify=False)
        return EventStreamConnection(response)

    async def open_stream(self, url: str, headers: dict) -> EventStreamConnection:
        """Open a long-lived GET and return once response headers arrived."""
        return await asyncio.to_thread(self._open_stream_blocking, url, headers)

    def close(self):
        self.session.close()
