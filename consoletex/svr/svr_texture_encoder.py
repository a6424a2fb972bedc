# svr/svr_texture_encoder.py
import logging
import struct

from ..config import load_config
from ..errors import UnsupportedFormat
from ..palette import build_palette
from ..registry import REGISTRY
from ..texture_encoder import EncodeResult, TextureEncoder
from .svr_formats import EMBEDDED_PALETTE_FORMATS, SvrDataFormat, SvrPixelFormat
from .svr_palette import SvrPaletteEncoder
from .svr_texture_decoder import GBIX_MAGIC, PVRT_MAGIC

logger = logging.getLogger(__name__)

SQUARE_TILE = 16


class SvrTextureEncoder(TextureEncoder):
    """Writes an SVR texture, plus a PVPL palette for external-palette formats.

    Unlike the decoder, an unsupported pixel or data format fails here,
    before any image is looked at.
    """

    family = "svr"

    def __init__(self, pixel_format, data_format, global_index=None, allow_quantize=True, config=None):
        config = config or load_config()
        self.pixel_format = REGISTRY.coerce(SvrPixelFormat, pixel_format)
        self.data_format = REGISTRY.coerce(SvrDataFormat, data_format)

        self.pixel_codec = REGISTRY.resolve(SvrPixelFormat, self.pixel_format)
        if self.pixel_codec is None:
            raise UnsupportedFormat(f"SVR pixel format {pixel_format!r} is invalid or not supported for encoding")
        if REGISTRY.resolve(SvrDataFormat, self.data_format) is None:
            raise UnsupportedFormat(f"SVR data format {data_format!r} is invalid or not supported for encoding")

        self.global_index = config['svr_global_index'] if global_index is None else global_index
        self.allow_quantize = allow_quantize

    @property
    def needs_external_palette(self):
        return REGISTRY.resolve(SvrDataFormat, self.data_format).needs_external_palette

    def resolve_data_format(self, width, height):
        """Match an embedded-palette data format to the pixel format and the image shape."""
        if self.data_format not in EMBEDDED_PALETTE_FORMATS.values():
            return self.data_format
        bits = REGISTRY.resolve(SvrDataFormat, self.data_format).bpp
        square = width == height and width % SQUARE_TILE == 0
        return EMBEDDED_PALETTE_FORMATS[(bits, self.pixel_format, square)]

    def encode(self, image):
        data_format = self.resolve_data_format(image.width, image.height)
        codec = REGISTRY.resolve(SvrDataFormat, data_format).with_pixel_codec(self.pixel_codec)
        if data_format != self.data_format:
            logger.debug("SVR data format %s adjusted to %s for %dx%d", self.data_format.name,
                         data_format.name, image.width, image.height)

        palette_bytes = b""
        external_palette = None
        if codec.palette_entries:
            quantized = build_palette(image, codec.palette_entries, self.allow_quantize)
            if codec.needs_external_palette:
                external_palette = SvrPaletteEncoder(self.pixel_format).encode(quantized.palette)
            else:
                palette_bytes = quantized.palette.to_bytes(self.pixel_codec, capacity=codec.palette_entries)
            samples = quantized.indices
        else:
            samples = image.pixels

        pixel_bytes = codec.encode(samples, 0, image.width, image.height)
        expected_length = len(palette_bytes) + len(pixel_bytes)

        header = b""
        if self.global_index is not None:
            header += GBIX_MAGIC + struct.pack("<iIi", 8, self.global_index, 0)
        header += PVRT_MAGIC + struct.pack(
            "<iBBhHH", expected_length + 8, int(self.pixel_format), int(data_format), 0,
            image.width, image.height,
        )

        data = header + palette_bytes + pixel_bytes
        logger.info("Encoded SVR %dx%d as %s (%d bytes)", image.width, image.height, codec.name, len(data))
        return EncodeResult(data, external_palette)
