# palette.py
import logging
from dataclasses import dataclass

import numpy as np
from PIL import Image

from .errors import CapacityExceeded, InvariantViolation, MalformedContainer

logger = logging.getLogger(__name__)

# Pixels per block when searching for the nearest palette entry.
_NEAREST_BLOCK = 4096


@dataclass(frozen=True, eq=False)
class Palette:
    """Ordered, read-only RGBA palette entries."""

    colors: np.ndarray

    def __post_init__(self):
        colors = np.array(self.colors, dtype=np.uint8).reshape(-1, 4)
        colors.flags.writeable = False
        object.__setattr__(self, "colors", colors)

    def __len__(self):
        return len(self.colors)

    def __eq__(self, other):
        if not isinstance(other, Palette):
            return NotImplemented
        return bool(np.array_equal(self.colors, other.colors))

    def entries(self):
        return [tuple(int(c) for c in color) for color in self.colors]

    @classmethod
    def from_bytes(cls, data, offset, count, pixel_codec):
        return cls(pixel_codec.decode(data, offset, count))

    def to_bytes(self, pixel_codec, capacity=None):
        """Encode the entries, padding with zero entries up to capacity when given."""
        colors = self.colors
        if capacity is not None:
            if len(colors) > capacity:
                raise CapacityExceeded(f"Palette has {len(colors)} entries, the format holds {capacity}")
            colors = np.concatenate([colors, np.zeros((capacity - len(colors), 4), dtype=np.uint8)])
        return pixel_codec.encode(colors)

    def lookup(self, indices):
        """Resolve an array of indices to RGBA colors."""
        indices = np.asarray(indices)
        if indices.size and int(indices.max()) >= len(self.colors):
            bad = int(indices.max())
            position = int(np.argmax(indices.reshape(-1) >= len(self.colors)))
            raise MalformedContainer(
                f"Palette index {bad} at pixel {position} is outside the palette ({len(self.colors)} entries)"
            )
        return self.colors[indices]


@dataclass(frozen=True, eq=False)
class QuantizedImage:
    """A palette plus one palette index per pixel, row-major."""

    palette: Palette
    indices: np.ndarray


def _pack_colors(pixels):
    flat = np.ascontiguousarray(pixels, dtype=np.uint8).reshape(-1, 4)
    return flat.view("<u4").reshape(-1)


def try_build_exact_palette(image, capacity):
    """Return the distinct colors of image in first-seen raster order.

    Returns None when the image has more than capacity distinct colors.
    """
    packed = _pack_colors(image.pixels)
    unique, first_seen, inverse = np.unique(packed, return_index=True, return_inverse=True)
    if len(unique) > capacity:
        logger.debug("Image has %d colors, more than the %d palette entries", len(unique), capacity)
        return None
    order = np.argsort(first_seen, kind="stable")
    rank = np.empty_like(order)
    rank[order] = np.arange(len(order))
    colors = unique[order].astype("<u4").view(np.uint8).reshape(-1, 4)
    indices = rank[inverse.reshape(-1)].reshape(image.height, image.width).astype(np.uint8)
    return QuantizedImage(Palette(colors), indices)


def nearest_indices(pixels, colors):
    """Index of the nearest color for every pixel (squared RGBA distance, ties to lowest index)."""
    flat = pixels.reshape(-1, 4).astype(np.int32)
    colors = colors.astype(np.int32)
    indices = np.empty(len(flat), dtype=np.uint8)
    for start in range(0, len(flat), _NEAREST_BLOCK):
        block = flat[start:start + _NEAREST_BLOCK]
        distances = ((block[:, None, :] - colors[None, :, :]) ** 2).sum(axis=2)
        indices[start:start + _NEAREST_BLOCK] = np.argmin(distances, axis=1)
    return indices.reshape(pixels.shape[:2])


def quantize(image, capacity):
    """Approximate palette through Pillow's octree quantizer."""
    quantized = image.to_pil().quantize(
        colors=capacity,
        method=Image.Quantize.FASTOCTREE,
        dither=Image.Dither.NONE,
    )
    colors = np.array(quantized.getpalette("RGBA"), dtype=np.uint8).reshape(-1, 4)[:capacity]
    used = np.unique(np.asarray(quantized))
    colors = colors[used[used < len(colors)]]
    if len(colors) == 0:
        raise InvariantViolation("Quantizer returned an empty palette")
    return QuantizedImage(Palette(colors), nearest_indices(image.pixels, colors))


def build_palette(image, capacity, allow_quantize=True):
    """Build a palette of at most capacity entries plus one index per pixel."""
    if capacity <= 0 or capacity > 256:
        raise InvariantViolation(f"Palette capacity {capacity} is outside 1..256")
    exact = try_build_exact_palette(image, capacity)
    if exact is not None:
        logger.debug("Exact palette: %d colors", len(exact.palette))
        return exact
    if not allow_quantize:
        raise CapacityExceeded(f"Image needs more than {capacity} palette entries and quantizing is disabled")
    result = quantize(image, capacity)
    logger.debug("Quantized palette: %d colors", len(result.palette))
    return result
