# svr/svr_formats.py
from enum import IntEnum

from ..data_codec import DirectDataCodec, Index4DataCodec, Index8DataCodec
from ..pixel_codec import Ps2Argb8888PixelCodec, Rgb5a3PixelCodec
from ..swizzle import PS2_SWIZZLED


class SvrPixelFormat(IntEnum):
    RGB5A3 = 0x08
    ARGB8888 = 0x09


class SvrDataFormat(IntEnum):
    RECTANGLE = 0x60
    SWIZZLED = 0x61
    INDEX4_EXTERNAL_PALETTE = 0x62
    INDEX8_EXTERNAL_PALETTE = 0x64
    INDEX4_RGB5A3_RECTANGLE = 0x66
    INDEX4_RGB5A3_SQUARE = 0x67
    INDEX4_ARGB8_RECTANGLE = 0x68
    INDEX4_ARGB8_SQUARE = 0x69
    INDEX8_RGB5A3_RECTANGLE = 0x6A
    INDEX8_RGB5A3_SQUARE = 0x6B
    INDEX8_ARGB8_RECTANGLE = 0x6C
    INDEX8_ARGB8_SQUARE = 0x6D


SVR_PIXEL_CODECS = {
    SvrPixelFormat.RGB5A3: Rgb5a3PixelCodec(),
    SvrPixelFormat.ARGB8888: Ps2Argb8888PixelCodec(),
}

# Data codecs carry no pixel codec here; the decoder and encoder bind the
# one named by the pixel format byte.
SVR_DATA_CODECS = {
    SvrDataFormat.RECTANGLE: DirectDataCodec("RECTANGLE"),
    SvrDataFormat.INDEX4_EXTERNAL_PALETTE: Index4DataCodec("INDEX4_EXTERNAL_PALETTE", needs_external_palette=True),
    SvrDataFormat.INDEX8_EXTERNAL_PALETTE: Index8DataCodec("INDEX8_EXTERNAL_PALETTE", needs_external_palette=True),
    SvrDataFormat.INDEX4_RGB5A3_RECTANGLE: Index4DataCodec("INDEX4_RGB5A3_RECTANGLE"),
    SvrDataFormat.INDEX4_RGB5A3_SQUARE: Index4DataCodec("INDEX4_RGB5A3_SQUARE", layout=PS2_SWIZZLED),
    SvrDataFormat.INDEX4_ARGB8_RECTANGLE: Index4DataCodec("INDEX4_ARGB8_RECTANGLE"),
    SvrDataFormat.INDEX4_ARGB8_SQUARE: Index4DataCodec("INDEX4_ARGB8_SQUARE", layout=PS2_SWIZZLED),
    SvrDataFormat.INDEX8_RGB5A3_RECTANGLE: Index8DataCodec("INDEX8_RGB5A3_RECTANGLE"),
    SvrDataFormat.INDEX8_RGB5A3_SQUARE: Index8DataCodec("INDEX8_RGB5A3_SQUARE", layout=PS2_SWIZZLED),
    SvrDataFormat.INDEX8_ARGB8_RECTANGLE: Index8DataCodec("INDEX8_ARGB8_RECTANGLE"),
    SvrDataFormat.INDEX8_ARGB8_SQUARE: Index8DataCodec("INDEX8_ARGB8_SQUARE", layout=PS2_SWIZZLED),
}

# Embedded-palette data formats keyed by (index bits, pixel format, square layout).
EMBEDDED_PALETTE_FORMATS = {
    (4, SvrPixelFormat.RGB5A3, False): SvrDataFormat.INDEX4_RGB5A3_RECTANGLE,
    (4, SvrPixelFormat.RGB5A3, True): SvrDataFormat.INDEX4_RGB5A3_SQUARE,
    (4, SvrPixelFormat.ARGB8888, False): SvrDataFormat.INDEX4_ARGB8_RECTANGLE,
    (4, SvrPixelFormat.ARGB8888, True): SvrDataFormat.INDEX4_ARGB8_SQUARE,
    (8, SvrPixelFormat.RGB5A3, False): SvrDataFormat.INDEX8_RGB5A3_RECTANGLE,
    (8, SvrPixelFormat.RGB5A3, True): SvrDataFormat.INDEX8_RGB5A3_SQUARE,
    (8, SvrPixelFormat.ARGB8888, False): SvrDataFormat.INDEX8_ARGB8_RECTANGLE,
    (8, SvrPixelFormat.ARGB8888, True): SvrDataFormat.INDEX8_ARGB8_SQUARE,
}
