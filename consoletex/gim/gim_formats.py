# gim/gim_formats.py
from enum import IntEnum

from ..data_codec import DirectDataCodec, Index4DataCodec, Index8DataCodec
from ..pixel_codec import BitfieldPixelCodec


class GimPaletteFormat(IntEnum):
    RGB565 = 0x00
    ARGB1555 = 0x01
    ARGB4444 = 0x02
    ARGB8888 = 0x03


class GimDataFormat(IntEnum):
    RGB565 = 0x00
    ARGB1555 = 0x01
    ARGB4444 = 0x02
    ARGB8888 = 0x03
    INDEX4 = 0x04
    INDEX8 = 0x05
    INDEX16 = 0x06
    INDEX32 = 0x07
    DXT1 = 0x08
    DXT3 = 0x09
    DXT5 = 0x0A


# The PSP stores channels red-first from the least significant bit.
RGB565 = BitfieldPixelCodec("RGB565", 16, red=(0, 5), green=(5, 6), blue=(11, 5))
ARGB1555 = BitfieldPixelCodec("ARGB1555", 16, red=(0, 5), green=(5, 5), blue=(10, 5), alpha=(15, 1))
ARGB4444 = BitfieldPixelCodec("ARGB4444", 16, red=(0, 4), green=(4, 4), blue=(8, 4), alpha=(12, 4))
ARGB8888 = BitfieldPixelCodec("ARGB8888", 32, red=(0, 8), green=(8, 8), blue=(16, 8), alpha=(24, 8))

GIM_PIXEL_CODECS = {
    GimPaletteFormat.RGB565: RGB565,
    GimPaletteFormat.ARGB1555: ARGB1555,
    GimPaletteFormat.ARGB4444: ARGB4444,
    GimPaletteFormat.ARGB8888: ARGB8888,
}

# INDEX16, INDEX32 and the DXT formats are recognized but have no codec.
GIM_DATA_CODECS = {
    GimDataFormat.RGB565: DirectDataCodec("RGB565", pixel_codec=RGB565),
    GimDataFormat.ARGB1555: DirectDataCodec("ARGB1555", pixel_codec=ARGB1555),
    GimDataFormat.ARGB4444: DirectDataCodec("ARGB4444", pixel_codec=ARGB4444),
    GimDataFormat.ARGB8888: DirectDataCodec("ARGB8888", pixel_codec=ARGB8888),
    GimDataFormat.INDEX4: Index4DataCodec("INDEX4"),
    GimDataFormat.INDEX8: Index8DataCodec("INDEX8"),
}
