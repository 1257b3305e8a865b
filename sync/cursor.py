"""Cursor sync: every channel shows the colour under the pointer."""

from models.colors import adjust_color
from models.utils import log_error
from models.types import EntertainmentArea, SyncParameters
from sync.base import SyncEngine
from sync.samplers import PointerSampler


class CursorSync(SyncEngine):
    name = 'sync-cursor'

    def __init__(self, area: EntertainmentArea, pointer: PointerSampler,
                 parameters: SyncParameters | None = None):
        super().__init__(area, parameters)
        self.pointer = pointer

    def on_start(self):
        self.spawn(self.track_cursor())

    async def track_cursor(self):
        if not self.streaming:
            return

        try:
            x, y = self.pointer.pointer_position()
            color = await self.pointer.pixel_color(x, y)
        except Exception as e:
            log_error(f"Hue sync: pointer sampling failed: {e}")
            self.schedule(self.track_cursor)
            return

        red, green, blue = adjust_color(color, self.brightness)

        colors = [(channel.channel_id, red, green, blue) for channel in self.channels]

        if self.send_frame(colors):
            self.schedule(self.track_cursor)
