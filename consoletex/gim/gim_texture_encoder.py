# gim/gim_texture_encoder.py
import logging
import struct
import time

from ..config import load_config
from ..errors import UnsupportedFormat
from ..palette import build_palette
from ..registry import REGISTRY
from ..swizzle import PSP_LINEAR, PSP_SWIZZLED
from ..texture_encoder import EncodeResult, TextureEncoder
from .gim_formats import GimDataFormat, GimPaletteFormat
from .gim_texture_decoder import (
    CHUNK_EOF,
    CHUNK_METADATA,
    CHUNK_METADATA_OFFSET,
    CHUNK_PALETTE_DATA,
    CHUNK_PIXEL_DATA,
    MAGIC,
    GimMetadata,
)

logger = logging.getLogger(__name__)

BLOCK_HEADER_SIZE = 0x10
INFO_SIZE = 0x40


def _block_header(chunk_type, size, next_offset):
    return struct.pack("<HHIII", chunk_type, 0, size, next_offset, BLOCK_HEADER_SIZE)


def _image_info(fmt, order, width, height, bpp, height_align, payload_size):
    return struct.pack(
        "<12H4I4HI12x",
        0x30, 0, fmt, order, width, height, bpp, 16, height_align, 2, 0, 0,
        0x30, 0x40, 0x40 + payload_size, 0,
        0x01, 1, 0x03, 1,
        0x40,
    )


def _data_block(chunk_type, info, payload):
    size = BLOCK_HEADER_SIZE + INFO_SIZE + len(payload)
    return _block_header(chunk_type, size, size) + info + payload


def make_metadata(original_filename="", config=None):
    """Metadata record stamped with the configured user and program and the current time."""
    config = config or load_config()
    return GimMetadata(
        original_filename=original_filename,
        user=config['gim_user'],
        timestamp=time.strftime("%a %b %d %H:%M:%S %Y"),
        program=config['gim_program'],
    )


class GimTextureEncoder(TextureEncoder):
    """Writes a GIM texture: root, picture, image, optional palette and metadata blocks.

    The palette format is only used for indexed data formats and defaults to
    ARGB8888. The swizzle flag defaults to the configured value.
    """

    family = "gim"

    def __init__(self, data_format, palette_format=None, swizzle=None, metadata=None,
                 allow_quantize=True, config=None):
        config = config or load_config()
        self.data_format = data_format
        self.codec = REGISTRY.resolve(GimDataFormat, data_format)
        if self.codec is None:
            raise UnsupportedFormat(f"GIM data format {data_format!r} is invalid or not supported for encoding")

        self.palette_format = None
        self.palette_codec = None
        if self.codec.palette_entries:
            self.palette_format = GimPaletteFormat.ARGB8888 if palette_format is None else palette_format
            self.palette_codec = REGISTRY.resolve(GimPaletteFormat, self.palette_format)
            if self.palette_codec is None:
                raise UnsupportedFormat(
                    f"GIM palette format {self.palette_format!r} is invalid or not supported for encoding"
                )

        self.swizzle = config['gim_swizzle'] if swizzle is None else swizzle
        self.metadata = metadata
        self.allow_quantize = allow_quantize

    def encode(self, image):
        layout = PSP_SWIZZLED if self.swizzle else PSP_LINEAR
        palette_block = b""

        if self.codec.palette_entries:
            quantized = build_palette(image, self.codec.palette_entries, self.allow_quantize)
            palette = quantized.palette
            palette_bytes = palette.to_bytes(self.palette_codec)
            info = _image_info(
                int(self.palette_format), 0, len(palette), 1,
                self.palette_codec.bpp, 1, len(palette_bytes),
            )
            palette_block = _data_block(CHUNK_PALETTE_DATA, info, palette_bytes)
            samples = quantized.indices
        else:
            samples = image.pixels

        payload = self.codec.encode(samples, 0, image.width, image.height, layout)
        info = _image_info(
            int(self.data_format), 1 if self.swizzle else 0, image.width, image.height,
            self.codec.bpp, 8, len(payload),
        )
        image_block = _data_block(CHUNK_PIXEL_DATA, info, payload)

        picture_size = BLOCK_HEADER_SIZE + len(image_block) + len(palette_block)
        picture = _block_header(CHUNK_METADATA_OFFSET, picture_size, BLOCK_HEADER_SIZE)

        metadata_block = b""
        if self.metadata is not None:
            strings = b"".join(
                value.encode("utf-8") + b"\x00"
                for value in (
                    self.metadata.original_filename,
                    self.metadata.user,
                    self.metadata.timestamp,
                    self.metadata.program,
                )
            )
            strings += b"\x00" * (-len(strings) % 4)
            size = BLOCK_HEADER_SIZE + len(strings)
            metadata_block = _block_header(CHUNK_METADATA, size, size) + strings

        root_size = BLOCK_HEADER_SIZE + picture_size + len(metadata_block)
        root = _block_header(CHUNK_EOF, root_size, BLOCK_HEADER_SIZE)

        data = b"".join([
            MAGIC, b"\x00" * 4,
            root, picture, image_block, palette_block, metadata_block,
        ])
        logger.info(
            "Encoded GIM %dx%d as %s (%d bytes)",
            image.width, image.height, self.codec.name, len(data),
        )
        return EncodeResult(data)
