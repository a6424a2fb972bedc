# svr/svr_palette.py
import struct

from ..errors import MalformedContainer, UnsupportedFormat
from ..palette import Palette
from ..registry import REGISTRY
from .svr_formats import SvrPixelFormat

MAGIC = b"PVPL"
HEADER_SIZE = 0x10


class SvrPaletteDecoder:
    """Reads a PVPL palette file, the companion of external-palette SVR textures."""

    OFFSET_LENGTH = 0x04
    OFFSET_PIXEL_FORMAT = 0x08
    OFFSET_ENTRIES = 0x0E

    @staticmethod
    def is_format(data):
        return (
            len(data) >= HEADER_SIZE
            and bytes(data[:4]) == MAGIC
            and struct.unpack_from("<i", data, 0x04)[0] == len(data) - 8
        )

    def decode(self, data):
        if len(data) < HEADER_SIZE or bytes(data[:4]) != MAGIC:
            raise MalformedContainer("Not a valid PVPL palette")
        length = struct.unpack_from("<i", data, self.OFFSET_LENGTH)[0]
        if length != len(data) - 8:
            raise MalformedContainer(f"PVPL length field is 0x{length:X}, expected 0x{len(data) - 8:X}")

        pixel_format = REGISTRY.coerce(SvrPixelFormat, data[self.OFFSET_PIXEL_FORMAT])
        codec = REGISTRY.resolve(SvrPixelFormat, pixel_format)
        if codec is None:
            raise UnsupportedFormat(f"PVPL pixel format 0x{int(pixel_format):X} is not supported for decoding")
        entries = struct.unpack_from("<H", data, self.OFFSET_ENTRIES)[0]
        if HEADER_SIZE + entries * codec.bytes_per_pixel != len(data):
            raise MalformedContainer(
                f"PVPL declares {entries} entries ({entries * codec.bytes_per_pixel} bytes), "
                f"file holds {len(data) - HEADER_SIZE}"
            )
        return Palette.from_bytes(data, HEADER_SIZE, entries, codec)


class SvrPaletteEncoder:
    """Writes a PVPL palette file."""

    def __init__(self, pixel_format):
        self.pixel_format = pixel_format
        self.codec = REGISTRY.require(SvrPixelFormat, pixel_format, "encoding")

    def encode(self, palette):
        palette_bytes = palette.to_bytes(self.codec)
        header = MAGIC + struct.pack("<iBBhHH", len(palette_bytes) + 8, int(self.pixel_format), 0, 0, 0, len(palette))
        return header + palette_bytes
