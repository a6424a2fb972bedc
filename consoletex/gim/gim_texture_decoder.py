# gim/gim_texture_decoder.py
import logging
import struct
from dataclasses import dataclass
from functools import partial

from ..chunks import ChunkAccumulator, ChunkedContainerParser
from ..errors import MalformedContainer, UnsupportedFormat
from ..image_buffer import ImageBuffer
from ..palette import Palette
from ..registry import REGISTRY
from ..swizzle import PSP_LINEAR, PSP_SWIZZLED
from ..texture_decoder import Texture, TextureDecoder
from .gim_formats import GimDataFormat, GimPaletteFormat

logger = logging.getLogger(__name__)

MAGIC = b"MIG.00.1PSP\x00"
PREAMBLE_SIZE = 0x10

CHUNK_EOF = 0x02
CHUNK_METADATA_OFFSET = 0x03
CHUNK_PIXEL_DATA = 0x04
CHUNK_PALETTE_DATA = 0x05
CHUNK_METADATA = 0xFF


@dataclass(frozen=True)
class GimMetadata:
    original_filename: str = ""
    user: str = ""
    timestamp: str = ""
    program: str = ""


class GimTextureDecoder(TextureDecoder):
    family = "gim"

    OFFSET_EOF = 0x04
    OFFSET_LENGTH = 0x08
    OFFSET_FORMAT = 0x14
    OFFSET_SWIZZLE = 0x16
    OFFSET_WIDTH = 0x18
    OFFSET_HEIGHT = 0x1A
    OFFSET_PALETTE_ENTRIES = 0x18
    OFFSET_PAYLOAD = 0x50
    OFFSET_STRINGS = 0x10

    def __init__(self):
        self.parser = ChunkedContainerParser(
            {
                CHUNK_EOF: self._read_eof,
                CHUNK_METADATA_OFFSET: self._skip,
                CHUNK_PIXEL_DATA: self._read_pixel_data,
                CHUNK_PALETTE_DATA: self._read_palette_data,
                CHUNK_METADATA: self._read_metadata,
            },
            preamble_size=PREAMBLE_SIZE,
            length_offset=self.OFFSET_LENGTH,
            name="GIM",
        )

    def is_format(self, data, start=0):
        remaining = len(data) - start
        return (
            remaining > 24
            and bytes(data[start:start + len(MAGIC)]) == MAGIC
            and struct.unpack_from("<I", data, start + 0x14)[0] == remaining - 16
        )

    def _read_eof(self, chunk, acc):
        acc.eof_offset = chunk.i32(self.OFFSET_EOF) + 16

    def _skip(self, chunk, acc):
        pass

    def _read_pixel_data(self, chunk, acc):
        fields = acc.fields
        fields["pixel_format"] = REGISTRY.coerce(GimDataFormat, chunk.u16(self.OFFSET_FORMAT))
        fields["swizzled"] = chunk.u16(self.OFFSET_SWIZZLE) == 1
        fields["width"] = width = chunk.u16(self.OFFSET_WIDTH)
        fields["height"] = height = chunk.u16(self.OFFSET_HEIGHT)

        # Without a codec the size of the payload is unknown. The properties
        # stay readable and decoding fails later.
        codec = REGISTRY.resolve(GimDataFormat, fields["pixel_format"])
        if codec is None or width == 0 or height == 0:
            return
        layout = PSP_SWIZZLED if fields["swizzled"] else PSP_LINEAR
        size = codec.payload_size(width, height, layout)
        fields["pixel_data"] = chunk.payload(self.OFFSET_PAYLOAD, size)

    def _read_palette_data(self, chunk, acc):
        fields = acc.fields
        fields["palette_format"] = REGISTRY.coerce(GimPaletteFormat, chunk.u16(self.OFFSET_FORMAT))
        fields["palette_entries"] = entries = chunk.u16(self.OFFSET_PALETTE_ENTRIES)

        codec = REGISTRY.resolve(GimPaletteFormat, fields["palette_format"])
        if codec is None:
            return
        fields["palette_data"] = chunk.payload(self.OFFSET_PAYLOAD, entries * codec.bytes_per_pixel)

    def _read_metadata(self, chunk, acc):
        acc.fields["metadata"] = GimMetadata(*chunk.cstrings(self.OFFSET_STRINGS, 4))

    def parse_texture_header(self, data, start=0):
        if not self.is_format(data, start):
            raise MalformedContainer("Not a valid GIM texture")

        fields = self.parser.walk(data, start, ChunkAccumulator()).fields
        if "pixel_format" not in fields:
            raise MalformedContainer("GIM texture has no pixel data chunk")

        codec = REGISTRY.resolve(GimDataFormat, fields["pixel_format"])
        palette_codec = REGISTRY.resolve(GimPaletteFormat, fields.get("palette_format"))
        if codec is not None and codec.palette_entries:
            if "palette_format" not in fields:
                raise MalformedContainer(f"GIM {codec.name} texture has no palette chunk")
            if palette_codec is not None and fields["palette_entries"] > codec.palette_entries:
                raise MalformedContainer(
                    f"GIM palette has {fields['palette_entries']} entries, "
                    f"{codec.name} allows at most {codec.palette_entries}"
                )

        logger.debug(
            "GIM %dx%d, format %r, palette %r, swizzled %s",
            fields["width"], fields["height"], fields["pixel_format"],
            fields.get("palette_format"), fields["swizzled"],
        )
        return Texture(
            family=self.family,
            width=fields["width"],
            height=fields["height"],
            pixel_format=fields["pixel_format"],
            data_format=fields["pixel_format"],
            palette_format=fields.get("palette_format"),
            palette_entries=fields.get("palette_entries", 0),
            swizzled=fields["swizzled"],
            metadata=fields.get("metadata"),
            _decode=partial(self._decode_pixels, dict(fields)),
        )

    @staticmethod
    def _decode_pixels(fields):
        pixel_format = fields["pixel_format"]
        codec = REGISTRY.resolve(GimDataFormat, pixel_format)
        if codec is None:
            raise UnsupportedFormat(f"GIM pixel format 0x{int(pixel_format):X} is not supported for decoding")

        if codec.palette_entries:
            palette_format = fields["palette_format"]
            palette_codec = REGISTRY.resolve(GimPaletteFormat, palette_format)
            if palette_codec is None:
                raise UnsupportedFormat(f"GIM palette format 0x{int(palette_format):X} is not supported for decoding")
            palette = Palette.from_bytes(fields["palette_data"], 0, fields["palette_entries"], palette_codec)
            codec = codec.with_palette(palette)

        layout = PSP_SWIZZLED if fields["swizzled"] else PSP_LINEAR
        pixels = codec.decode(fields.get("pixel_data", b""), 0, fields["width"], fields["height"], layout)
        return ImageBuffer(pixels)
