# image_buffer.py
from dataclasses import dataclass

import numpy as np
from PIL import Image

from .errors import InvariantViolation


@dataclass(frozen=True, eq=False)
class ImageBuffer:
    """A width x height grid of RGBA-8888 samples in row-major order."""

    pixels: np.ndarray

    def __post_init__(self):
        pixels = np.asarray(self.pixels, dtype=np.uint8)
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise InvariantViolation(f"Expected a (height, width, 4) array, got shape {pixels.shape}")
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise InvariantViolation("Image dimensions cannot be zero")
        view = np.ascontiguousarray(pixels).view()
        view.flags.writeable = False
        object.__setattr__(self, "pixels", view)

    @property
    def width(self):
        return self.pixels.shape[1]

    @property
    def height(self):
        return self.pixels.shape[0]

    def rows(self):
        """Yield each row as a read-only (width, 4) view."""
        for y in range(self.height):
            yield self.pixels[y]

    def tobytes(self):
        return self.pixels.tobytes()

    @classmethod
    def from_bytes(cls, data, width, height):
        expected = width * height * 4
        if len(data) != expected:
            raise InvariantViolation(f"Expected {expected} bytes of RGBA data for {width}x{height}, got {len(data)}")
        return cls(np.frombuffer(bytes(data), dtype=np.uint8).reshape(height, width, 4))

    @classmethod
    def from_pil(cls, image):
        return cls(np.array(image.convert("RGBA"), dtype=np.uint8))

    def to_pil(self):
        return Image.fromarray(np.array(self.pixels))

    def __eq__(self, other):
        if not isinstance(other, ImageBuffer):
            return NotImplemented
        return self.pixels.shape == other.pixels.shape and bool(np.array_equal(self.pixels, other.pixels))
