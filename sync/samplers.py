"""Interfaces of the signal sources the sync engines sample.

Screen capture, pointer tracking and audio spectrum analysis are provided by
the desktop environment; the engines only depend on these protocols.
"""

from dataclasses import dataclass
from typing import Any, Callable, Protocol


@dataclass(frozen=True)
class Rect:
    """Screen rectangle in pixels."""
    x: int
    y: int
    width: int
    height: int


class ScreenSampler(Protocol):
    def geometry(self) -> Rect:
        """Geometry of the configured monitor (or the whole desktop)."""

    async def snapshot(self) -> Any:
        """Capture the full display."""

    def detect_borders(self, image: Any, geometry: Rect) -> Rect:
        """Return the part of geometry that is not black border (letterboxing)."""

    def average_color(self, image: Any, rect: Rect) -> tuple[int, int, int]:
        """Average RGB colour of a rectangle of the captured image."""


class PointerSampler(Protocol):
    def pointer_position(self) -> tuple[int, int]:
        """Current pointer position in screen pixels."""

    async def pixel_color(self, x: int, y: int) -> tuple[int, int, int]:
        """RGB colour of the pixel at (x, y)."""


class SpectrumSource(Protocol):
    """Audio spectrum analyser producing a fixed number of bands."""

    def set_bands(self, bands: int):
        ...

    def set_interval(self, interval: float):
        ...

    def set_handler(self, handler: Callable[[list[float]], None]):
        ...

    def start(self):
        ...

    def stop(self):
        ...
