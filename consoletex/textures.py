# textures.py
from .errors import MalformedContainer, UnsupportedFormat
from .gim.gim_texture_decoder import GimTextureDecoder
from .gim.gim_texture_encoder import GimTextureEncoder
from .svr.svr_texture_decoder import SvrTextureDecoder
from .svr.svr_texture_encoder import SvrTextureEncoder

DECODERS = {
    "gim": GimTextureDecoder(),
    "svr": SvrTextureDecoder(),
}


def identify(data):
    """Return the family name of a texture ("gim" or "svr"), or None."""
    for family, decoder in DECODERS.items():
        if decoder.is_format(data):
            return family
    return None


def probe_format(data):
    return identify(data) is not None


def decode(data, external_palette=None):
    """Parse a texture. Pixels are decoded by the returned Texture on first use."""
    family = identify(data)
    if family is None:
        raise MalformedContainer("Data is not a recognized texture format")
    if family == "svr":
        return DECODERS[family].parse_texture_header(data, external_palette=external_palette)
    return DECODERS[family].parse_texture_header(data)


def encode(image, family, pixel_format, data_format, **options):
    """Encode an ImageBuffer.

    For GIM, pixel_format is the palette format (ignored for direct-color
    data formats); options are swizzle, metadata, allow_quantize, config.
    For SVR, options are global_index, allow_quantize, config.
    Returns an EncodeResult; its palette holds the PVPL file when the SVR
    data format keeps the palette outside the texture.
    """
    if family == "gim":
        encoder = GimTextureEncoder(data_format, palette_format=pixel_format, **options)
    elif family == "svr":
        encoder = SvrTextureEncoder(pixel_format, data_format, **options)
    else:
        raise UnsupportedFormat(f"Unknown texture family {family!r}")
    return encoder.encode(image)
