"""Codecs for PSP GIM and PS2 SVR textures."""
from .errors import (
    CapacityExceeded,
    ExternalPaletteRequired,
    InvariantViolation,
    MalformedContainer,
    TextureError,
    UnsupportedFormat,
)
from .gim.gim_formats import GimDataFormat, GimPaletteFormat
from .image_buffer import ImageBuffer
from .svr.svr_formats import SvrDataFormat, SvrPixelFormat
from .texture_decoder import Texture
from .texture_encoder import EncodeResult
from .textures import decode, encode, identify, probe_format

__version__ = "0.1.0"
