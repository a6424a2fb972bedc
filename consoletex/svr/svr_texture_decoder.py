# svr/svr_texture_decoder.py
import logging
import struct
from functools import partial

from ..errors import ExternalPaletteRequired, MalformedContainer, UnsupportedFormat
from ..image_buffer import ImageBuffer
from ..palette import Palette
from ..registry import REGISTRY
from ..texture_decoder import Texture, TextureDecoder
from .svr_formats import SvrDataFormat, SvrPixelFormat
from .svr_palette import SvrPaletteDecoder

logger = logging.getLogger(__name__)

GBIX_MAGIC = b"GBIX"
PVRT_MAGIC = b"PVRT"
GBIX_SIZE = 0x10
PVRT_HEADER_SIZE = 0x10

DATA_FORMAT_RANGE = range(0x60, 0x6E)


class SvrTextureDecoder(TextureDecoder):
    family = "svr"

    OFFSET_LENGTH = 0x04
    OFFSET_GLOBAL_INDEX = 0x08
    OFFSET_PIXEL_FORMAT = 0x08
    OFFSET_DATA_FORMAT = 0x09
    OFFSET_WIDTH = 0x0C
    OFFSET_HEIGHT = 0x0E

    @staticmethod
    def _pvrt_offset(data):
        return GBIX_SIZE if bytes(data[:4]) == GBIX_MAGIC else 0

    def is_format(self, data):
        pvrt = self._pvrt_offset(data)
        return (
            len(data) >= pvrt + PVRT_HEADER_SIZE
            and bytes(data[pvrt:pvrt + 4]) == PVRT_MAGIC
            and data[pvrt + self.OFFSET_DATA_FORMAT] in DATA_FORMAT_RANGE
            and struct.unpack_from("<i", data, pvrt + self.OFFSET_LENGTH)[0] == len(data) - pvrt - 8
        )

    def parse_texture_header(self, data, external_palette=None):
        """Parse an SVR texture.

        external_palette is a Palette or the bytes of a PVPL file; it is only
        consulted for the external-palette data formats.
        """
        pvrt = self._pvrt_offset(data)
        if len(data) < pvrt + PVRT_HEADER_SIZE or bytes(data[pvrt:pvrt + 4]) != PVRT_MAGIC:
            raise MalformedContainer("Not a valid SVR texture")

        global_index = None
        if pvrt:
            global_index = struct.unpack_from("<I", data, self.OFFSET_GLOBAL_INDEX)[0]

        length = struct.unpack_from("<i", data, pvrt + self.OFFSET_LENGTH)[0]
        if length != len(data) - pvrt - 8:
            raise MalformedContainer(
                f"PVRT chunk at 0x{pvrt:X} declares length 0x{length:X}, "
                f"0x{len(data) - pvrt - 8:X} bytes follow"
            )

        pixel_format = REGISTRY.coerce(SvrPixelFormat, data[pvrt + self.OFFSET_PIXEL_FORMAT])
        data_format = REGISTRY.coerce(SvrDataFormat, data[pvrt + self.OFFSET_DATA_FORMAT])
        width, height = struct.unpack_from("<HH", data, pvrt + self.OFFSET_WIDTH)

        pixel_codec = REGISTRY.resolve(SvrPixelFormat, pixel_format)
        codec = REGISTRY.resolve(SvrDataFormat, data_format)
        palette_offset = pvrt + PVRT_HEADER_SIZE
        pixel_offset = palette_offset
        palette_entries = 0

        # With both codecs known the payload size is known and must fill the chunk exactly.
        if pixel_codec is not None and codec is not None and width and height:
            codec = codec.with_pixel_codec(pixel_codec)
            if codec.palette_entries and not codec.needs_external_palette:
                palette_entries = codec.palette_entries
                pixel_offset += palette_entries * pixel_codec.bytes_per_pixel
            expected = pixel_offset + codec.payload_size(width, height)
            if expected != len(data):
                raise MalformedContainer(
                    f"SVR {codec.name} {width}x{height} needs 0x{expected:X} bytes, file holds 0x{len(data):X}"
                )

        logger.debug("SVR %dx%d, pixel format %r, data format %r", width, height, pixel_format, data_format)
        return Texture(
            family=self.family,
            width=width,
            height=height,
            pixel_format=pixel_format,
            data_format=data_format,
            palette_format=pixel_format if codec is not None and codec.palette_entries else None,
            palette_entries=palette_entries,
            global_index=global_index,
            _decode=partial(
                self._decode_pixels, bytes(data), pixel_format, data_format,
                width, height, palette_offset, pixel_offset, external_palette,
            ),
        )

    @staticmethod
    def _decode_pixels(data, pixel_format, data_format, width, height, palette_offset, pixel_offset, external_palette):
        pixel_codec = REGISTRY.resolve(SvrPixelFormat, pixel_format)
        if pixel_codec is None:
            raise UnsupportedFormat(f"SVR pixel format 0x{int(pixel_format):X} is not supported for decoding")
        codec = REGISTRY.resolve(SvrDataFormat, data_format)
        if codec is None:
            raise UnsupportedFormat(f"SVR data format 0x{int(data_format):X} is not supported for decoding")
        codec = codec.with_pixel_codec(pixel_codec)

        if codec.palette_entries:
            if not codec.needs_external_palette:
                palette = Palette.from_bytes(data, palette_offset, codec.palette_entries, pixel_codec)
            elif external_palette is None:
                raise ExternalPaletteRequired(f"SVR {codec.name} texture needs its PVPL palette file")
            elif isinstance(external_palette, Palette):
                palette = external_palette
            else:
                palette = SvrPaletteDecoder().decode(external_palette)
            if len(palette) > codec.palette_entries:
                raise MalformedContainer(
                    f"Palette has {len(palette)} entries, {codec.name} allows at most {codec.palette_entries}"
                )
            codec = codec.with_palette(palette)

        return ImageBuffer(codec.decode(data, pixel_offset, width, height))
