# texture_encoder.py
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class EncodeResult:
    """Encoded texture bytes plus the external palette file, when the format has one."""

    data: bytes
    palette: Optional[bytes] = None


class TextureEncoder(ABC):
    family = None

    @abstractmethod
    def encode(self, image):
        """Encode an ImageBuffer and return an EncodeResult."""
        pass
