import struct

import numpy as np
import pytest

from conftest import (
    FOUR_COLORS,
    build_gim,
    gim_block,
    gim_palette_chunk,
    gim_pixel_chunk,
    gradient,
    psp_swizzle_reference,
)
from consoletex.errors import MalformedContainer, UnsupportedFormat
from consoletex.gim.gim_formats import ARGB4444, GimDataFormat, GimPaletteFormat
from consoletex.gim.gim_texture_decoder import GimMetadata, GimTextureDecoder
from consoletex.gim.gim_texture_encoder import GimTextureEncoder, make_metadata
from consoletex.image_buffer import ImageBuffer

decoder = GimTextureDecoder()


def argb8888_16x16():
    reference = gradient(16, 16)
    stored = psp_swizzle_reference(reference.tobytes(), 64, 16)
    return reference, build_gim(gim_pixel_chunk(0x03, 1, 16, 16, stored))


def test_decodes_swizzled_argb8888():
    reference, data = argb8888_16x16()
    texture = decoder.parse_texture_header(data)
    assert (texture.width, texture.height) == (16, 16)
    assert texture.pixel_format is GimDataFormat.ARGB8888
    assert texture.swizzled
    assert np.array_equal(texture.get_pixel_data().pixels, reference)


def test_root_chunk_gives_end_of_file():
    _, data = argb8888_16x16()
    assert struct.unpack_from("<I", data, 0x14)[0] + 16 == len(data)
    assert decoder.is_format(data)


def test_pixels_are_decoded_once():
    _, data = argb8888_16x16()
    texture = decoder.parse_texture_header(data)
    assert texture.get_pixel_data() is texture.get_pixel_data()


def test_decodes_linear_rgb565_with_padding():
    # 10x5 pads to 16x8 in texture memory
    words = np.zeros((8, 16), dtype="<u2")
    words[:5, :10] = 0x001F
    data = build_gim(gim_pixel_chunk(0x00, 0, 10, 5, words.tobytes()))
    image = decoder.decode_texture(data)
    assert (image.width, image.height) == (10, 5)
    assert (image.pixels == (255, 0, 0, 255)).all()


def test_decodes_index8_with_palette():
    palette = bytes([1, 2, 3, 255, 4, 5, 6, 255])
    indices = np.zeros((8, 16), dtype=np.uint8)
    indices[0, 1] = 1
    data = build_gim(
        gim_pixel_chunk(0x05, 0, 16, 8, indices.tobytes()),
        gim_palette_chunk(0x03, 2, palette),
    )
    texture = decoder.parse_texture_header(data)
    assert texture.palette_format is GimPaletteFormat.ARGB8888
    assert texture.palette_entries == 2
    pixels = texture.get_pixel_data().pixels
    assert tuple(pixels[0, 0]) == (1, 2, 3, 255)
    assert tuple(pixels[0, 1]) == (4, 5, 6, 255)


def test_palette_index_out_of_range_fails_at_decode():
    indices = np.full((8, 16), 5, dtype=np.uint8)
    data = build_gim(
        gim_pixel_chunk(0x05, 0, 16, 8, indices.tobytes()),
        gim_palette_chunk(0x03, 2, bytes(8)),
    )
    texture = decoder.parse_texture_header(data)
    with pytest.raises(MalformedContainer, match="outside the palette"):
        texture.get_pixel_data()


def test_unsupported_pixel_format_keeps_properties_readable():
    data = build_gim(gim_pixel_chunk(0x08, 0, 64, 32, bytes(64 * 32 // 2)))
    texture = decoder.parse_texture_header(data)
    assert (texture.width, texture.height) == (64, 32)
    assert texture.pixel_format is GimDataFormat.DXT1
    with pytest.raises(UnsupportedFormat):
        texture.get_pixel_data()


def test_unknown_pixel_format_is_kept_as_number():
    data = build_gim(gim_pixel_chunk(0x30, 0, 4, 4, bytes(16)))
    texture = decoder.parse_texture_header(data)
    assert texture.pixel_format == 0x30
    with pytest.raises(UnsupportedFormat):
        texture.get_pixel_data()


def test_unsupported_palette_format_fails_at_decode():
    data = build_gim(
        gim_pixel_chunk(0x05, 0, 16, 8, bytes(128)),
        gim_palette_chunk(0x07, 2, bytes(8)),
    )
    texture = decoder.parse_texture_header(data)
    assert texture.palette_format == 0x07
    with pytest.raises(UnsupportedFormat):
        texture.get_pixel_data()


def test_end_of_file_mismatch_rejected():
    payload = bytes(16 * 8 * 4)
    size = 0x50 + len(payload)
    data = build_gim(gim_pixel_chunk(0x03, 0, 16, 8, payload, length=size + 16))
    with pytest.raises(MalformedContainer, match="end-of-file"):
        decoder.parse_texture_header(data)


def test_unknown_chunk_rejected():
    _, data = argb8888_16x16()
    data = build_gim(gim_block(0x06, 0x10), data[0x20:])
    with pytest.raises(MalformedContainer, match="unknown chunk type 0x6"):
        decoder.parse_texture_header(data)


def test_zero_length_chunk_rejected():
    data = build_gim(gim_block(0x03, 0))
    with pytest.raises(MalformedContainer, match="must be positive"):
        decoder.parse_texture_header(data)


def test_pixel_payload_overrunning_chunk_rejected():
    payload = bytes(16 * 8 * 4)
    data = build_gim(gim_pixel_chunk(0x03, 0, 16, 8, payload, length=0x50 + len(payload) - 16))
    with pytest.raises(MalformedContainer, match="overruns"):
        decoder.parse_texture_header(data)


def test_missing_pixel_chunk_rejected():
    with pytest.raises(MalformedContainer, match="no pixel data"):
        decoder.parse_texture_header(build_gim(gim_block(0x03, 0x10)))


def test_indexed_without_palette_rejected():
    data = build_gim(gim_pixel_chunk(0x04, 0, 32, 8, bytes(128)))
    with pytest.raises(MalformedContainer, match="no palette chunk"):
        decoder.parse_texture_header(data)


def test_oversized_palette_rejected():
    data = build_gim(
        gim_pixel_chunk(0x04, 0, 32, 8, bytes(128)),
        gim_palette_chunk(0x03, 17, bytes(17 * 4)),
    )
    with pytest.raises(MalformedContainer, match="at most 16"):
        decoder.parse_texture_header(data)


def test_bad_magic_rejected():
    _, data = argb8888_16x16()
    assert not decoder.is_format(b"MIG.00.1PS3\x00" + data[12:])
    with pytest.raises(MalformedContainer):
        decoder.parse_texture_header(b"MIG.00.1PS3\x00" + data[12:])


def test_container_at_offset():
    reference, data = argb8888_16x16()
    texture = decoder.parse_texture_header(b"\x00" * 32 + data, start=32)
    assert np.array_equal(texture.get_pixel_data().pixels, reference)


@pytest.mark.parametrize("data_format", [
    GimDataFormat.ARGB8888, GimDataFormat.ARGB4444, GimDataFormat.ARGB1555, GimDataFormat.RGB565,
])
@pytest.mark.parametrize("swizzle", [True, False])
def test_encode_direct_formats(data_format, swizzle):
    # values every 16-bit format represents exactly
    pixels = np.zeros((5, 10, 4), dtype=np.uint8)
    pixels[..., 3] = 255
    pixels[::2, ::3, 0] = 255
    pixels[1::2, :, 2] = 255
    image = ImageBuffer(pixels)
    data = GimTextureEncoder(data_format, swizzle=swizzle).encode(image).data
    texture = decoder.parse_texture_header(data)
    assert texture.pixel_format is data_format
    assert texture.swizzled is swizzle
    assert texture.get_pixel_data() == image


def test_encode_index4_keeps_exact_palette(four_color_image):
    data = GimTextureEncoder(GimDataFormat.INDEX4).encode(four_color_image).data
    texture = decoder.parse_texture_header(data)
    assert texture.palette_entries == 4
    assert texture.palette_format is GimPaletteFormat.ARGB8888
    assert texture.get_pixel_data() == four_color_image


def test_encode_index8_with_16bit_palette(four_color_image):
    encoder = GimTextureEncoder(GimDataFormat.INDEX8, palette_format=GimPaletteFormat.ARGB4444)
    texture = decoder.parse_texture_header(encoder.encode(four_color_image).data)
    assert texture.palette_format is GimPaletteFormat.ARGB4444
    assert set(map(tuple, texture.get_pixel_data().pixels.reshape(-1, 4))) == set(FOUR_COLORS)


def test_encode_quantizes_many_colors():
    image = ImageBuffer(gradient(32, 32))
    texture = decoder.parse_texture_header(GimTextureEncoder(GimDataFormat.INDEX4).encode(image).data)
    assert 0 < texture.palette_entries <= 16
    assert texture.get_pixel_data().pixels.shape == (32, 32, 4)


def test_metadata_round_trip(four_color_image):
    metadata = GimMetadata("tree.png", "artist", "Mon Oct 19 12:00:00 2026", "consoletex")
    data = GimTextureEncoder(GimDataFormat.ARGB8888, metadata=metadata).encode(four_color_image).data
    assert decoder.parse_texture_header(data).metadata == metadata


def test_make_metadata_uses_config():
    config = {"gim_user": "someone", "gim_program": "batch"}
    metadata = make_metadata("a.png", config=config)
    assert (metadata.original_filename, metadata.user, metadata.program) == ("a.png", "someone", "batch")
    assert metadata.timestamp


def test_swizzle_default_from_config(four_color_image):
    config = {"gim_swizzle": False}
    data = GimTextureEncoder(GimDataFormat.ARGB8888, config=config).encode(four_color_image).data
    assert not decoder.parse_texture_header(data).swizzled


@pytest.mark.parametrize("data_format", [GimDataFormat.DXT1, GimDataFormat.INDEX16, 0x30])
def test_encoder_rejects_formats_without_codec(data_format):
    with pytest.raises(UnsupportedFormat):
        GimTextureEncoder(data_format)


def test_encoder_rejects_unknown_palette_format():
    with pytest.raises(UnsupportedFormat):
        GimTextureEncoder(GimDataFormat.INDEX8, palette_format=0x09)


def test_argb4444_texture_decodes_with_codec_rounding():
    pixels = gradient(16, 8)
    image = ImageBuffer(pixels)
    data = GimTextureEncoder(GimDataFormat.ARGB4444).encode(image).data
    decoded = decoder.decode_texture(data).pixels
    expected = ARGB4444.decode(ARGB4444.encode(pixels)).reshape(8, 16, 4)
    assert np.array_equal(decoded, expected)
