"""Entertainment streaming frame construction.

A frame is the binary message pushed to the bridge over the encrypted
transport. Layout (protocol version 2.0):

    "HueStream"         9 bytes, protocol name
    0x02 0x00           version 2.0
    sequence            1 byte, ignored by the bridge
    0x00 0x00           reserved
    mode                1 byte, 0x00 = RGB colour, 0x01 = brightness
    0x00                reserved
    area id             ASCII entertainment configuration id (36 bytes for a UUID)
    channel blocks      7 bytes each: channel id, red, red, green, green, blue, blue

Each colour element is sent as two identical bytes; the bridge reads them as a
16-bit value, so an 8-bit colour is simply repeated.
"""

import struct

PROTOCOL_NAME = b'HueStream'
PROTOCOL_VERSION = (0x02, 0x00)
HEADER_SIZE = 16
CHANNEL_BLOCK_SIZE = 7

MODE_COLOR = 'color'
MODE_BRIGHTNESS = 'brightness'


def build_header(mode: str = MODE_COLOR, sequence: int = 0) -> bytes:
    """Build the fixed 16 byte frame header.

    Args:
        mode: 'color' for RGB frames, 'brightness' for brightness frames
        sequence: Sequence number (the bridge ignores it)

    Returns:
        Header bytes, to be followed by the area id and channel blocks
    """
    mode_byte = 0x00 if mode == MODE_COLOR else 0x01
    return PROTOCOL_NAME + bytes([
        *PROTOCOL_VERSION,
        sequence & 0xFF,
        0x00, 0x00,
        mode_byte,
        0x00,
    ])


def build_channel_block(channel_id: int, red: int, green: int, blue: int) -> bytes:
    """Build the 7 byte block for one channel."""
    return struct.pack('>7B', channel_id, red, red, green, green, blue, blue)


def encode_area_id(area_id: str) -> bytes:
    """Encode the entertainment configuration id the way the frame carries it."""
    return area_id.encode('ascii')


def build_frame(area_id: str, colors: list[tuple[int, int, int, int]],
                mode: str = MODE_COLOR) -> bytes:
    """Build a complete frame.

    Args:
        area_id: Entertainment configuration id
        colors: (channel_id, red, green, blue) tuples in channel order

    Returns:
        Frame bytes of length 16 + len(area_id) + 7 * len(colors)
    """
    parts = [build_header(mode), encode_area_id(area_id)]
    for channel_id, red, green, blue in colors:
        parts.append(build_channel_block(channel_id, red, green, blue))
    return b''.join(parts)


def frame_length(area_id: str, channel_count: int) -> int:
    """Expected length in bytes of a frame for the given area."""
    return HEADER_SIZE + len(encode_area_id(area_id)) + CHANNEL_BLOCK_SIZE * channel_count
