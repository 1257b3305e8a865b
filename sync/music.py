"""Music sync: colour each channel from one band of the audio spectrum.

Frames are produced whenever the spectrum source reports new band values;
there is no timer of our own.
"""

import random
from typing import Callable

from models.colors import FREQUENCY_SCALE, adjust_color, frequency_to_color
from models.types import EntertainmentArea, SyncParameters
from sync.base import SyncEngine
from sync.samplers import SpectrumSource

ELEMENTS = ('red', 'green', 'blue')

# Updates between re-rolls of the dampened colour element
DRIFT_UPDATES = 10


def spectrum_interval(interval_ms: float) -> float:
    """Spectrum source interval for a frame interval."""
    return (interval_ms - 40) / 255


class MusicSync(SyncEngine):
    name = 'sync-music'

    def __init__(self, area: EntertainmentArea, spectrum_factory: Callable[[], SpectrumSource],
                 parameters: SyncParameters | None = None):
        super().__init__(area, parameters)
        self.spectrum_factory = spectrum_factory
        self.spectrum: SpectrumSource | None = None
        self._reset_drift()

    def _reset_drift(self):
        self._update_counter = 0
        self._average_freq = 0.0
        self.element_coef = {element: 1.0 for element in ELEMENTS}

    def set_parameters(self, brightness: float, intensity: float):
        super().set_parameters(brightness, intensity)
        if self.spectrum:
            self.spectrum.set_interval(spectrum_interval(self.parameters.interval_ms))

    def on_start(self):
        if self.spectrum:
            self.spectrum.stop()
        self.spectrum = self.spectrum_factory()
        self._reset_drift()

        self.spectrum.set_bands(len(self.channels))
        self.spectrum.set_interval(spectrum_interval(self.parameters.interval_ms))
        self.spectrum.set_handler(self.sync_music)
        self.spectrum.start()

    def on_stop(self):
        if self.spectrum:
            self.spectrum.stop()
            self.spectrum = None

    def _drift(self, freqs: list[float]):
        """Every 10th update dampen one random element by the recent energy."""
        if freqs:
            self._average_freq += sum(f / FREQUENCY_SCALE for f in freqs) / len(freqs)

        self._update_counter += 1
        if self._update_counter >= DRIFT_UPDATES:
            average = self._average_freq
            self._reset_drift()
            self.element_coef[random.choice(ELEMENTS)] = 1 - average / DRIFT_UPDATES

    def channel_color(self, freq: float) -> tuple[int, int, int]:
        red, green, blue = frequency_to_color(freq)
        rgb = (
            round(red * self.element_coef['red']),
            round(green * self.element_coef['green']),
            round(blue * self.element_coef['blue']),
        )
        return adjust_color(rgb, self.brightness)

    def sync_music(self, freqs: list[float]):
        if not self.streaming:
            return

        self._drift(freqs)

        colors = []
        for i, channel in enumerate(self.channels):
            # A missing band maps to hue 0, which is black
            freq = freqs[i] if i < len(freqs) else FREQUENCY_SCALE
            colors.append((channel.channel_id, *self.channel_color(freq)))

        self.send_frame(colors)
