# texture_decoder.py
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .image_buffer import ImageBuffer


@dataclass(frozen=True)
class Texture:
    """Properties of a parsed texture; pixels are decoded on first request.

    Parsing tolerates formats without a codec so the properties stay
    readable; get_pixel_data() is where UnsupportedFormat surfaces.
    """

    family: str
    width: int
    height: int
    pixel_format: Any
    data_format: Any = None
    palette_format: Any = None
    palette_entries: int = 0
    swizzled: bool = False
    metadata: Any = None
    global_index: Optional[int] = None
    _decode: Optional[Callable[[], ImageBuffer]] = field(default=None, repr=False, compare=False)
    _cache: dict = field(default_factory=dict, repr=False, compare=False)

    def get_pixel_data(self):
        """Decode the texture, or return the image decoded by an earlier call."""
        if "image" not in self._cache:
            self._cache["image"] = self._decode()
        return self._cache["image"]


class TextureDecoder(ABC):
    family = None

    @abstractmethod
    def is_format(self, data):
        """Cheap magic and structure check; does not parse the whole container."""
        pass

    @abstractmethod
    def parse_texture_header(self, data):
        """Parse the container and return a Texture."""
        pass

    def decode_texture(self, data):
        """Parse and decode in one go, returning an ImageBuffer."""
        return self.parse_texture_header(data).get_pixel_data()
