# pixel_codec.py
from abc import ABC, abstractmethod

import numpy as np

from .errors import MalformedContainer, InvariantViolation


def expand_channel(value, bits):
    """Scale an n-bit channel up to 0..255."""
    mask = (1 << bits) - 1
    return value * 255 // mask


def reduce_channel(value, bits):
    """Scale a 0..255 channel down to n bits, rounding to nearest."""
    mask = (1 << bits) - 1
    return (value * mask + 127) // 255


class PixelCodec(ABC):
    """Converts one packed pixel (or palette entry) encoding to and from RGBA-8888.

    Codecs hold no per-image state, so a single instance is shared by every
    texture that uses the format.
    """

    name = None
    bpp = None
    dtype = None

    @property
    def bytes_per_pixel(self):
        return self.bpp // 8

    @abstractmethod
    def unpack(self, words):
        """Expand an array of packed words into an (n, 4) uint8 RGBA array."""
        pass

    @abstractmethod
    def pack(self, rgba):
        """Pack an (n, 4) uint32 RGBA array into an array of words."""
        pass

    def decode(self, data, offset=0, count=None):
        if count is None:
            count = (len(data) - offset) // self.bytes_per_pixel
        end = offset + count * self.bytes_per_pixel
        if offset < 0 or end > len(data):
            raise MalformedContainer(
                f"{self.name}: need {count * self.bytes_per_pixel} bytes at offset 0x{offset:X}, "
                f"buffer holds {len(data)}"
            )
        words = np.frombuffer(data, dtype=self.dtype, count=count, offset=offset)
        return self.unpack(words.astype(np.uint32))

    def encode(self, rgba):
        rgba = np.asarray(rgba, dtype=np.uint8)
        if rgba.size % 4 != 0:
            raise InvariantViolation(f"{self.name}: RGBA data size {rgba.size} is not a multiple of 4")
        words = self.pack(rgba.reshape(-1, 4).astype(np.uint32))
        return words.astype(self.dtype).tobytes()

    def decode_pixel(self, data, offset=0):
        return tuple(int(c) for c in self.decode(data, offset, 1)[0])

    def encode_pixel(self, source, source_offset, destination, destination_offset):
        """Pack the RGBA entry at source[source_offset:+4] into destination."""
        rgba = np.frombuffer(bytes(source[source_offset:source_offset + 4]), dtype=np.uint8)
        if len(rgba) != 4:
            raise InvariantViolation(f"{self.name}: no RGBA entry at offset {source_offset}")
        packed = self.encode(rgba)
        destination[destination_offset:destination_offset + len(packed)] = packed

    def __repr__(self):
        return f"<{type(self).__name__} {self.name} {self.bpp}bpp>"


class BitfieldPixelCodec(PixelCodec):
    """Little-endian packed pixel described by (shift, bits) per channel.

    A channel given as None is not stored; alpha then decodes as 255.
    """

    def __init__(self, name, bpp, red, green, blue, alpha=None):
        if bpp not in (16, 32):
            raise ValueError(f"Unsupported word size {bpp}")
        self.name = name
        self.bpp = bpp
        self.dtype = "<u2" if bpp == 16 else "<u4"
        self.fields = (red, green, blue, alpha)

    def unpack(self, words):
        rgba = np.empty((len(words), 4), dtype=np.uint8)
        for channel, field in enumerate(self.fields):
            if field is None:
                rgba[:, channel] = 255
                continue
            shift, bits = field
            rgba[:, channel] = expand_channel((words >> shift) & ((1 << bits) - 1), bits)
        return rgba

    def pack(self, rgba):
        words = np.zeros(len(rgba), dtype=np.uint32)
        for channel, field in enumerate(self.fields):
            if field is None:
                continue
            shift, bits = field
            words |= reduce_channel(rgba[:, channel], bits).astype(np.uint32) << np.uint32(shift)
        return words


class Rgb5a3PixelCodec(PixelCodec):
    """16-bit color with two layouts selected by the top bit.

    Bit 15 set: opaque RGB555 (R 10-14, G 5-9, B 0-4).
    Bit 15 clear: ARGB3444 (A 12-14, R 8-11, G 4-7, B 0-3).
    """

    name = "RGB5A3"
    bpp = 16
    dtype = "<u2"

    # Alpha values above this are written as opaque RGB555.
    OPAQUE_THRESHOLD = 0xDA

    def unpack(self, words):
        opaque = (words & 0x8000) != 0
        rgba = np.empty((len(words), 4), dtype=np.uint8)
        rgba[:, 0] = np.where(opaque, expand_channel((words >> 10) & 0x1F, 5), expand_channel((words >> 8) & 0x0F, 4))
        rgba[:, 1] = np.where(opaque, expand_channel((words >> 5) & 0x1F, 5), expand_channel((words >> 4) & 0x0F, 4))
        rgba[:, 2] = np.where(opaque, expand_channel(words & 0x1F, 5), expand_channel(words & 0x0F, 4))
        rgba[:, 3] = np.where(opaque, 255, expand_channel((words >> 12) & 0x07, 3))
        return rgba

    def pack(self, rgba):
        r, g, b, a = rgba[:, 0], rgba[:, 1], rgba[:, 2], rgba[:, 3]
        rgb555 = 0x8000 | (reduce_channel(r, 5) << 10) | (reduce_channel(g, 5) << 5) | reduce_channel(b, 5)
        argb3444 = (reduce_channel(a, 3) << 12) | (reduce_channel(r, 4) << 8) | (reduce_channel(g, 4) << 4) | reduce_channel(b, 4)
        return np.where(a > self.OPAQUE_THRESHOLD, rgb555, argb3444).astype(np.uint32)


class Ps2Argb8888PixelCodec(PixelCodec):
    """Bytes R, G, B, A where the stored alpha runs 0..0x80 (0x80 is opaque)."""

    name = "ARGB8888"
    bpp = 32
    dtype = "<u4"

    def unpack(self, words):
        rgba = np.empty((len(words), 4), dtype=np.uint8)
        rgba[:, 0] = words & 0xFF
        rgba[:, 1] = (words >> 8) & 0xFF
        rgba[:, 2] = (words >> 16) & 0xFF
        rgba[:, 3] = np.minimum((words >> 24) * 255 // 0x80, 255)
        return rgba

    def pack(self, rgba):
        alpha = (rgba[:, 3] * 0x80 + 127) // 255
        return rgba[:, 0] | (rgba[:, 1] << 8) | (rgba[:, 2] << 16) | (alpha << 24)
