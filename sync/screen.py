"""Screen sync: light each channel with the screen colour nearest its position."""

from models.colors import adjust_color
from models.types import Channel, EntertainmentArea, SyncParameters
from models.utils import log_error
from sync.base import SyncEngine
from sync.samplers import Rect, ScreenSampler

# Black border detection runs on every 9th frame
BORDER_CHECK_FRAMES = 9

# Sampling rectangle size as a fraction of the screen
SAMPLE_NARROW = 0.02
SAMPLE_WIDE = 0.05


def _clamp(value: float, low: float = -1.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def channel_screen_point(channel: Channel, width: int, height: int) -> tuple[int, int]:
    """Project a channel position onto the screen.

    x runs left to right, z bottom to top; both are doubled and clamped to
    [-1, 1] so lights at the edge of the room map to the edge of the screen.
    """
    rel_x = _clamp(channel.x * 2)
    rel_y = _clamp(channel.z * -2)

    width_middle = round(width / 2)
    height_middle = round(height / 2)

    x = round(width_middle + width_middle * rel_x)
    y = round(height_middle + height_middle * rel_y)
    return x - 1, y - 1


def channel_sampling_rect(channel: Channel, area: Rect) -> Rect:
    """Rectangle of area to average for a channel.

    Lights to the left or right (|x| > |z|) sample a horizontally wider
    strip, lights above or below a vertically taller one.
    """
    if abs(channel.x) > abs(channel.z):
        percent_width, percent_height = SAMPLE_WIDE, SAMPLE_NARROW
    else:
        percent_width, percent_height = SAMPLE_NARROW, SAMPLE_WIDE

    x, y = channel_screen_point(channel, area.width, area.height)
    width = max(1, round(area.width * percent_width))
    height = max(1, round(area.height * percent_height))

    if x - width / 2 < 0:
        x0 = 0
    elif x + width / 2 > area.width:
        x0 = area.width - width - 1
    else:
        x0 = round(x - width / 2)

    if y - height / 2 < 0:
        y0 = 0
    elif y + height / 2 > area.height:
        y0 = area.height - height - 1
    else:
        y0 = round(y - height / 2)

    return Rect(area.x + max(0, x0), area.y + max(0, y0), width, height)


class ScreenSync(SyncEngine):
    name = 'sync-screen'

    def __init__(self, area: EntertainmentArea, sampler: ScreenSampler,
                 parameters: SyncParameters | None = None):
        super().__init__(area, parameters)
        self.sampler = sampler
        self.geometry: Rect | None = None
        self.active_rect: Rect | None = None
        self._frame_counter = 0

    def on_start(self):
        self.geometry = self.sampler.geometry()
        self.active_rect = self.geometry
        self._frame_counter = 0
        self.spawn(self.sync_screen())

    async def _sample_colors(self) -> list[tuple[int, int, int, int]]:
        image = await self.sampler.snapshot()

        if self._frame_counter % BORDER_CHECK_FRAMES == 0:
            self.active_rect = self.sampler.detect_borders(image, self.geometry)
        self._frame_counter += 1

        colors = []
        for channel in self.channels:
            rect = channel_sampling_rect(channel, self.active_rect)
            rgb = self.sampler.average_color(image, rect)
            colors.append((channel.channel_id, *adjust_color(rgb, self.brightness)))
        return colors

    async def sync_screen(self):
        if not self.streaming:
            return

        try:
            colors = await self._sample_colors()
        except Exception as e:
            log_error(f"Hue sync: screen sampling failed: {e}")
            self.schedule(self.sync_screen)
            return

        if self.send_frame(colors):
            self.schedule(self.sync_screen)
