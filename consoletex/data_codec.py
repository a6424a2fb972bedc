# data_codec.py
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Optional

import numpy as np

from .errors import (
    CapacityExceeded,
    ExternalPaletteRequired,
    InvariantViolation,
    MalformedContainer,
)
from .palette import Palette
from .pixel_codec import PixelCodec
from .swizzle import LINEAR, Layout


@dataclass(frozen=True, eq=False)
class DataCodec(ABC):
    """Encodes and decodes a whole image's worth of samples.

    For direct-color formats pixel_codec packs the pixels themselves; for
    indexed formats it packs the palette entries and the samples are indices.
    Instances are immutable: with_palette() and with_pixel_codec() return
    bound copies for one decode or encode pass.
    """

    name: str
    pixel_codec: Optional[PixelCodec] = None
    layout: Layout = LINEAR
    needs_external_palette: bool = False
    palette: Optional[Palette] = None

    palette_entries = 0
    samples_per_pixel = 1

    @property
    @abstractmethod
    def bpp(self):
        pass

    def with_palette(self, palette):
        if len(palette) > self.palette_entries:
            raise CapacityExceeded(f"{self.name}: palette has {len(palette)} entries, the format holds {self.palette_entries}")
        return replace(self, palette=palette)

    def with_pixel_codec(self, pixel_codec):
        return replace(self, pixel_codec=pixel_codec)

    def _raster_size(self, width, height, layout):
        aligned_width, aligned_height = layout.aligned_size(width, height, self.bpp)
        if (aligned_width * aligned_height * self.bpp) % 8:
            raise InvariantViolation(f"{self.name}: {aligned_width}x{aligned_height} is not a whole number of bytes")
        return aligned_width, aligned_height, aligned_width * aligned_height * self.bpp // 8

    def payload_size(self, width, height, layout=None):
        return self._raster_size(width, height, layout or self.layout)[2]

    def decode(self, data, offset, width, height, layout=None):
        """Decode to a (height, width, 4) RGBA array, cropping any tile padding."""
        layout = layout or self.layout
        aligned_width, aligned_height, size = self._raster_size(width, height, layout)
        if offset < 0 or offset + size > len(data):
            raise MalformedContainer(
                f"{self.name}: {width}x{height} needs {size} bytes at offset 0x{offset:X}, "
                f"only {max(0, len(data) - offset)} available"
            )
        raster = layout.unswizzle(bytes(data[offset:offset + size]), aligned_width, aligned_height, self.bpp)
        pixels = self.decode_raster(raster, aligned_width, aligned_height)
        return np.ascontiguousarray(pixels[:height, :width])

    def encode(self, samples, offset, width, height, layout=None):
        """Encode RGBA samples (direct formats) or indices (indexed formats)."""
        layout = layout or self.layout
        aligned_width, aligned_height, _size = self._raster_size(width, height, layout)
        count = width * height * self.samples_per_pixel
        if isinstance(samples, np.ndarray):
            flat = samples.reshape(-1)[offset:offset + count]
        else:
            flat = np.frombuffer(bytes(samples), dtype=np.uint8)[offset:offset + count]
        if len(flat) != count:
            raise InvariantViolation(f"{self.name}: expected {count} samples for {width}x{height}, got {len(flat)}")
        shape = (height, width) if self.samples_per_pixel == 1 else (height, width, self.samples_per_pixel)
        padded = np.zeros((aligned_height, aligned_width) + shape[2:], dtype=np.uint8)
        padded[:height, :width] = flat.reshape(shape)
        raster = self.encode_raster(padded)
        return layout.swizzle(raster, aligned_width, aligned_height, self.bpp)

    @abstractmethod
    def decode_raster(self, raster, width, height):
        pass

    @abstractmethod
    def encode_raster(self, samples):
        pass


@dataclass(frozen=True, eq=False)
class DirectDataCodec(DataCodec):
    samples_per_pixel = 4

    @property
    def bpp(self):
        return self.pixel_codec.bpp

    def decode_raster(self, raster, width, height):
        return self.pixel_codec.decode(raster, 0, width * height).reshape(height, width, 4)

    def encode_raster(self, samples):
        return self.pixel_codec.encode(samples)


@dataclass(frozen=True, eq=False)
class IndexDataCodec(DataCodec):

    def _bound_palette(self):
        if self.palette is not None:
            return self.palette
        if self.needs_external_palette:
            raise ExternalPaletteRequired(f"{self.name} keeps its palette in a separate file")
        raise MalformedContainer(f"{self.name}: texture has no palette")

    def decode_raster(self, raster, width, height):
        indices = self.unpack_indices(np.frombuffer(raster, dtype=np.uint8))
        return self._bound_palette().lookup(indices.reshape(height, width))

    def encode_raster(self, samples):
        if samples.size and int(samples.max()) >= self.palette_entries:
            raise InvariantViolation(f"{self.name}: index {int(samples.max())} does not fit in {self.bpp} bits")
        return self.pack_indices(samples.reshape(-1))

    @abstractmethod
    def unpack_indices(self, raw):
        pass

    @abstractmethod
    def pack_indices(self, indices):
        pass


@dataclass(frozen=True, eq=False)
class Index4DataCodec(IndexDataCodec):
    """Two indices per byte, low nibble first."""

    palette_entries = 16

    @property
    def bpp(self):
        return 4

    def unpack_indices(self, raw):
        indices = np.empty(len(raw) * 2, dtype=np.uint8)
        indices[0::2] = raw & 0x0F
        indices[1::2] = raw >> 4
        return indices

    def pack_indices(self, indices):
        return (indices[0::2] | (indices[1::2] << 4)).astype(np.uint8).tobytes()


@dataclass(frozen=True, eq=False)
class Index8DataCodec(IndexDataCodec):
    palette_entries = 256

    @property
    def bpp(self):
        return 8

    def unpack_indices(self, raw):
        return raw

    def pack_indices(self, indices):
        return indices.astype(np.uint8).tobytes()
