"""Common behaviour of the sync engines.

An engine turns a signal (screen, music, cursor) into frames for one
entertainment area. The stream session calls start() once the encrypted
transport is connected and stop() when it disconnects or the session ends.
"""

import asyncio
from typing import Callable

from core.events import TimerArena
from models.frames import build_frame
from models.types import EntertainmentArea, SyncParameters


class SyncEngine:
    """Base class: parameters, liveness flag, timers and frame sending."""

    name = 'sync'

    def __init__(self, area: EntertainmentArea, parameters: SyncParameters | None = None):
        self.area_id = area.id
        self.channels = list(area.channels)
        self.parameters = parameters or SyncParameters()
        self.streaming = False
        self.timers = TimerArena()
        self._tasks: set[asyncio.Task] = set()
        self._send: Callable[[bytes], None] | None = None

    def attach(self, send: Callable[[bytes], None]):
        """Set the function that pushes a frame to the bridge."""
        self._send = send

    def set_parameters(self, brightness: float, intensity: float):
        self.parameters = SyncParameters.from_settings(brightness, intensity)

    @property
    def brightness(self) -> float:
        return self.parameters.brightness

    @property
    def interval(self) -> float:
        """Delay between frames in seconds."""
        return self.parameters.interval_ms / 1000

    def start(self):
        self.streaming = True
        self.on_start()

    def stop(self):
        self.streaming = False
        self.clear_timers()
        for task in list(self._tasks):
            task.cancel()
        self._tasks = set()
        self.on_stop()

    def on_start(self):
        """Begin producing frames."""

    def on_stop(self):
        """Release sampling resources."""

    def clear_timers(self):
        self.timers.cancel_all()

    def spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def schedule(self, tick: Callable):
        """Run the async tick again after the current interval."""
        self.timers.call_later(self.interval, self._fire, tick)

    def _fire(self, tick: Callable):
        if self.streaming:
            self.spawn(tick())

    def send_frame(self, colors: list[tuple[int, int, int, int]]) -> bool:
        """Build and send a frame unless the engine was stopped meanwhile.

        Args:
            colors: (channel_id, red, green, blue) per channel, in channel order

        Returns:
            True if the frame was sent
        """
        if not self.streaming or self._send is None:
            return False
        self._send(build_frame(self.area_id, colors))
        return True
