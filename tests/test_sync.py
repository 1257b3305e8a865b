"""Tests for the screen, music and cursor sync engines in sync/"""

import asyncio

from unittest.mock import patch

from models.frames import build_frame, frame_length
from models.types import Channel, SyncParameters
from sync.cursor import CursorSync
from sync.music import MusicSync, spectrum_interval
from sync.samplers import Rect
from sync.screen import ScreenSync, channel_sampling_rect, channel_screen_point
from fakes import FakePointer, FakeScreenSampler, FakeSpectrum

FAST = SyncParameters(brightness=1.0, interval_ms=10)


def run_engine(engine, seconds=0.05):
    """Stream for a while, stop, and return (frames while running, frames after stop)."""
    sent = []
    engine.attach(sent.append)

    async def main():
        engine.start()
        await asyncio.sleep(seconds)
        engine.stop()
        count = len(sent)
        await asyncio.sleep(seconds)
        return count

    count = asyncio.run(main())
    return sent, count


class TestScreenGeometry:
    def test_screen_point_edges(self):
        assert channel_screen_point(Channel(0, x=1.0), 100, 100) == (99, 49)
        assert channel_screen_point(Channel(0, x=-1.0), 100, 100) == (-1, 49)
        assert channel_screen_point(Channel(0, z=0.5), 100, 100) == (49, -1)

    def test_positions_are_doubled_and_clamped(self):
        assert channel_screen_point(Channel(0, x=0.25), 100, 100) == (74, 49)
        assert channel_screen_point(Channel(0, x=3.0), 100, 100) == (99, 49)

    def test_side_light_samples_wide_strip(self):
        rect = channel_sampling_rect(Channel(0, x=1.0), Rect(0, 0, 100, 100))
        assert rect == Rect(94, 48, 5, 2)

    def test_top_light_samples_tall_strip(self):
        rect = channel_sampling_rect(Channel(0, z=0.5), Rect(0, 0, 100, 100))
        assert rect == Rect(48, 0, 2, 5)

    def test_rect_offset_by_monitor_position(self):
        rect = channel_sampling_rect(Channel(0, x=1.0), Rect(10, 20, 100, 100))
        assert rect == Rect(104, 68, 5, 2)

    def test_tiny_area_keeps_one_pixel(self):
        rect = channel_sampling_rect(Channel(0), Rect(0, 0, 10, 10))
        assert rect.width >= 1 and rect.height >= 1


class TestScreenSync:
    def test_white_screen_end_to_end(self, area):
        sampler = FakeScreenSampler((255, 255, 255))
        engine = ScreenSync(area, sampler, FAST)

        sent, count = run_engine(engine)

        assert count >= 2
        assert len(sent) == count
        assert sent[0] == build_frame(area.id, [(0, 255, 255, 255), (1, 255, 255, 255)])
        assert len(sent[0]) == frame_length(area.id, 2)
        assert sampler.border_checks >= 1

    def test_brightness_scales_colour(self, area):
        engine = ScreenSync(area, FakeScreenSampler((255, 255, 255)),
                            SyncParameters(brightness=0.5, interval_ms=10))

        sent, _ = run_engine(engine)

        assert sent[0][-7:] == bytes([1, 128, 128, 128, 128, 128, 128])

    def test_border_check_every_ninth_frame(self, area):
        sampler = FakeScreenSampler()
        engine = ScreenSync(area, sampler, FAST)
        sent = []
        engine.attach(sent.append)

        async def main():
            engine.streaming = True
            engine.geometry = engine.active_rect = sampler.geometry()
            for _ in range(10):
                await engine.sync_screen()
            engine.stop()

        asyncio.run(main())

        assert len(sent) == 10
        assert sampler.border_checks == 2

    def test_no_frames_without_transport(self, area):
        engine = ScreenSync(area, FakeScreenSampler(), FAST)

        async def main():
            engine.start()
            await asyncio.sleep(0.03)
            engine.stop()

        asyncio.run(main())

        assert engine.timers.pending == 0


class TestMusicSync:
    def make_engine(self, area, parameters=None):
        spectrum = FakeSpectrum()
        engine = MusicSync(area, lambda: spectrum, parameters)
        sent = []
        engine.attach(sent.append)
        return engine, spectrum, sent

    def test_start_configures_spectrum(self, area):
        engine, spectrum, _ = self.make_engine(area)
        engine.start()

        assert spectrum.bands == 2
        assert spectrum.intervals == [spectrum_interval(100)]
        assert spectrum.handler == engine.sync_music
        assert spectrum.running is True

    def test_band_values_become_frame(self, area):
        engine, spectrum, sent = self.make_engine(area)
        engine.start()

        spectrum.handler([0.0, 80.0])

        assert len(sent) == 1
        assert len(sent[0]) == frame_length(area.id, 2)
        # Band value 80 maps to black
        assert sent[0][-7:] == bytes([1, 0, 0, 0, 0, 0, 0])
        red = sent[0][-13]
        assert red > 0

    def test_missing_band_is_black(self, area):
        engine, spectrum, sent = self.make_engine(area)
        engine.start()

        spectrum.handler([10.0])

        assert sent[0][-7:] == bytes([1, 0, 0, 0, 0, 0, 0])

    def test_stop_releases_spectrum(self, area):
        engine, spectrum, sent = self.make_engine(area)
        engine.start()
        handler = spectrum.handler
        engine.stop()

        handler([1.0, 2.0])

        assert spectrum.running is False
        assert engine.spectrum is None
        assert sent == []

    def test_set_parameters_updates_interval(self, area):
        engine, spectrum, _ = self.make_engine(area)
        engine.start()

        engine.set_parameters(brightness=1.0, intensity=0.0)

        assert spectrum.intervals[-1] == spectrum_interval(600)
        assert spectrum_interval(600) == (600 - 40) / 255

    @patch('sync.music.random.choice', return_value='blue')
    def test_drift_dampens_one_element(self, mock_choice, area):
        engine, _, _ = self.make_engine(area)

        for _ in range(10):
            engine._drift([40.0, 40.0])

        assert engine.element_coef == {'red': 1.0, 'green': 1.0, 'blue': 0.5}


class TestCursorSync:
    def test_all_channels_follow_pointer(self, area):
        pointer = FakePointer((250, 3, 128))
        engine = CursorSync(area, pointer, FAST)

        sent, count = run_engine(engine)

        assert count >= 2
        assert len(sent) == count
        assert sent[0] == build_frame(area.id, [(0, 255, 0, 128), (1, 255, 0, 128)])
        assert pointer.lookups[0] == (5, 7)

    def test_keeps_sending_after_out_of_range_settings(self, area):
        """Brightness above 1 is held at 1, so frames stay packable."""
        engine = CursorSync(area, FakePointer((250, 3, 128)), FAST)
        sent = []
        engine.attach(sent.append)

        async def main():
            engine.start()
            await asyncio.sleep(0.03)
            engine.set_parameters(2.0, 1.0)
            before = len(sent)
            await asyncio.sleep(0.25)
            engine.stop()
            return before

        before = asyncio.run(main())

        assert engine.brightness == 1.0
        assert len(sent) > before
        assert sent[-1] == build_frame(area.id, [(0, 255, 0, 128), (1, 255, 0, 128)])

    @patch('sync.cursor.log_error')
    def test_pointer_failure_is_retried(self, mock_log_error, area):
        pointer = FlakyPointer((0, 0, 255))
        engine = CursorSync(area, pointer, FAST)

        sent, count = run_engine(engine)

        mock_log_error.assert_called_once()
        assert count >= 1
        assert sent[0] == build_frame(area.id, [(0, 0, 0, 255), (1, 0, 0, 255)])


class FlakyPointer(FakePointer):
    """Fails the first colour lookup, then recovers."""

    async def pixel_color(self, x, y):
        if not self.lookups:
            self.lookups.append(None)
            raise OSError("display unavailable")
        return await super().pixel_color(x, y)


class FlakyScreenSampler(FakeScreenSampler):
    """Fails the first snapshot, then recovers."""

    async def snapshot(self):
        if not self.snapshots:
            self.snapshots += 1
            raise OSError("capture failed")
        return await super().snapshot()


class TestSamplerFailure:
    @patch('sync.screen.log_error')
    def test_screen_capture_failure_is_retried(self, mock_log_error, area):
        sampler = FlakyScreenSampler((255, 0, 0))
        engine = ScreenSync(area, sampler, FAST)

        sent, count = run_engine(engine)

        mock_log_error.assert_called_once()
        assert count >= 1
        assert sent[0] == build_frame(area.id, [(0, 255, 0, 0), (1, 255, 0, 0)])
        assert engine.timers.pending == 0
