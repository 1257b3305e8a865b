"""Colour transforms shared by the sync engines and the light commands.

All functions are pure. Colour elements are integers in 0-255.
"""

import colorsys

MIN_BRIGHTNESS = 0.1
MIN_INTERVAL_MS = 100
INTERVAL_RANGE_MS = 500

# Fixed saturation/lightness for music colours; lightness 1.0 would be white
MUSIC_SATURATION = 0.8
MUSIC_LIGHTNESS = 0.5
FREQUENCY_SCALE = 80


def clamp_near_extremes(c: int) -> int:
    """Snap colour elements close to 0 or 255, fixing colours like rgb(1, 0, 1)."""
    if c <= 5:
        return 0
    if c >= 249:
        return 255
    return c


def hsl_to_rgb(h: float, s: float, l: float) -> tuple[int, int, int]:
    """Convert HSL (each 0-1) to an RGB triple of 0-255 integers."""
    r, g, b = colorsys.hls_to_rgb(h, l, s)
    return round(r * 255), round(g * 255), round(b * 255)


def frequency_to_color(freq: float) -> tuple[int, int, int]:
    """Map a spectrum band value to a colour.

    The band value picks the hue (hue = 1 - freq / 80); a hue of exactly 0
    yields black.
    """
    hue = 1 - freq / FREQUENCY_SCALE
    if not hue:
        return 0, 0, 0
    return hsl_to_rgb(hue, MUSIC_SATURATION, MUSIC_LIGHTNESS)


def clamp_unit(value: float) -> float:
    """Limit a user setting to 0-1."""
    return max(0.0, min(1.0, value))


def intensity_to_interval_ms(intensity: float) -> float:
    """Per-frame delay in milliseconds: intensity 1 -> 100 ms, intensity 0 -> 600 ms."""
    return (1 - intensity) * INTERVAL_RANGE_MS + MIN_INTERVAL_MS


def brightness_floor(brightness: float) -> float:
    """Keep brightness above the point where the stream goes fully dark."""
    return max(brightness, MIN_BRIGHTNESS)


def scale_brightness(rgb: tuple[int, int, int], brightness: float) -> tuple[int, int, int]:
    return tuple(min(255, round(c * brightness)) for c in rgb)


def adjust_color(rgb: tuple[int, int, int], brightness: float) -> tuple[int, int, int]:
    """Clamp near-extreme elements, then scale by brightness."""
    clamped = tuple(clamp_near_extremes(c) for c in rgb)
    return scale_brightness(clamped, brightness)


# Colour temperature range of Hue white ambiance lights
MIN_KELVIN = 2000
MAX_KELVIN = 6500
MIN_MIREK = 153
MAX_MIREK = 500


def ct_to_kelvin(ct: int) -> int:
    """Convert a Hue colour temperature (mirek, 153-500) to kelvin (6500-2000)."""
    ct = max(MIN_MIREK, min(MAX_MIREK, ct))
    return round(MAX_KELVIN - (ct - MIN_MIREK) / (347 / 4500))


def kelvin_to_ct(kelvin: int) -> int:
    """Convert kelvin (2000-6500) to a Hue colour temperature in mirek."""
    kelvin = max(MIN_KELVIN, min(MAX_KELVIN, kelvin))
    return round(MAX_MIREK - (kelvin - MIN_KELVIN) / (4500 / 347))


def _gamma_expand(c: float) -> float:
    if c > 0.04045:
        return ((c + 0.055) / 1.055) ** 2.4
    return c / 12.92


def _gamma_compress(c: float) -> float:
    if c <= 0.0031308:
        return 12.92 * c
    return 1.055 * c ** (1 / 2.4) - 0.055


def rgb_to_xy(red: int, green: int, blue: int) -> tuple[float, float]:
    """Convert RGB to CIE xy using the wide gamut matrix of Hue lights.

    Black has no chromaticity and maps to (0.0, 0.0).
    """
    r, g, b = (_gamma_expand(c / 255) for c in (red, green, blue))

    x = r * 0.649926 + g * 0.103455 + b * 0.197109
    y = r * 0.234327 + g * 0.743075 + b * 0.022598
    z = g * 0.053077 + b * 1.035763

    total = x + y + z
    if not total:
        return 0.0, 0.0
    return x / total, y / total


def xy_bri_to_rgb(x: float, y: float, bri: int) -> tuple[int, int, int]:
    """Convert CIE xy plus brightness (0-255) back to RGB.

    The result is normalised so the strongest element is 255.
    """
    if not y or not bri:
        return 0, 0, 0

    big_y = bri / 255
    big_x = big_y / y * x
    big_z = big_y / y * (1 - x - y)

    rgb = (
        big_x * 1.612 - big_y * 0.203 - big_z * 0.302,
        -big_x * 0.509 + big_y * 1.412 + big_z * 0.066,
        big_x * 0.026 - big_y * 0.072 + big_z * 0.962,
    )
    rgb = [_gamma_compress(c) for c in rgb]

    peak = max(rgb)
    if peak <= 0:
        return 0, 0, 0
    return tuple(round(max(0.0, min(1.0, c / peak)) * 255) for c in rgb)
