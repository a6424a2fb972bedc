import struct

import numpy as np
import pytest

from consoletex.image_buffer import ImageBuffer

GIM_MAGIC = b"MIG.00.1PSP\x00"

FOUR_COLORS = [
    (255, 0, 0, 255),
    (0, 255, 0, 255),
    (0, 0, 255, 255),
    (255, 255, 255, 255),
]


def gradient(width, height, alpha=255):
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    for y in range(height):
        for x in range(width):
            pixels[y, x] = ((x * 16) & 0xFF, (y * 16) & 0xFF, (x * y) & 0xFF, alpha)
    return pixels


def four_color_pixels(width=8, height=8):
    """Colors 2, 0, 3, 1 appear in that raster order."""
    order = [FOUR_COLORS[2], FOUR_COLORS[0], FOUR_COLORS[3], FOUR_COLORS[1]]
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    for y in range(height):
        for x in range(width):
            pixels[y, x] = order[(x // 2 + y) % 4]
    return pixels


@pytest.fixture
def gradient_image():
    return ImageBuffer(gradient(16, 16))


@pytest.fixture
def four_color_image():
    return ImageBuffer(four_color_pixels())


def psp_swizzle_reference(linear, byte_width, height):
    """Straightforward per-byte PSP swizzle, written independently of the library."""
    out = bytearray(len(linear))
    row_blocks = byte_width // 16
    for y in range(height):
        for x in range(byte_width):
            block_index = (x // 16) + (y // 8) * row_blocks
            out[block_index * 128 + (x % 16) + (y % 8) * 16] = linear[y * byte_width + x]
    return bytes(out)


def gim_block(chunk_type, length, body=b""):
    return struct.pack("<HHIII", chunk_type, 0, length, length, 0x10) + body


def gim_pixel_chunk(fmt, swizzled, width, height, payload, length=None):
    info = bytearray(0x40)
    struct.pack_into("<HHHH", info, 4, fmt, swizzled, width, height)
    size = 0x50 + len(payload)
    return gim_block(0x04, size if length is None else length, bytes(info) + payload)


def gim_palette_chunk(fmt, entries, payload):
    info = bytearray(0x40)
    struct.pack_into("<H", info, 4, fmt)
    struct.pack_into("<H", info, 8, entries)
    return gim_block(0x05, 0x50 + len(payload), bytes(info) + payload)


def build_gim(*chunks):
    """Preamble and root chunk with a correct end-of-file offset, then chunks."""
    body = b"".join(chunks)
    root = struct.pack("<HHIII", 0x02, 0, 0x10 + len(body), 0x10, 0x10)
    return GIM_MAGIC + b"\x00" * 4 + root + body
