# registry.py
from types import MappingProxyType

from .errors import UnsupportedFormat
from .gim.gim_formats import GIM_DATA_CODECS, GIM_PIXEL_CODECS, GimDataFormat, GimPaletteFormat
from .svr.svr_formats import SVR_DATA_CODECS, SVR_PIXEL_CODECS, SvrDataFormat, SvrPixelFormat


class FormatRegistry:
    """Read-only lookup from format identifiers to codec instances.

    Keys are (enum class, numeric id) so identically numbered formats of
    different families never collide. A recognized id without a codec
    resolves to None; callers decide whether that blocks them.
    """

    def __init__(self, tables):
        codecs = {}
        for enum_cls, table in tables:
            for fmt, codec in table.items():
                codecs[(enum_cls, int(fmt))] = codec
        self._codecs = MappingProxyType(codecs)

    @staticmethod
    def coerce(enum_cls, value):
        """Return the enum member for value, or the raw int when the id is unknown."""
        try:
            return enum_cls(value)
        except ValueError:
            return int(value)

    def is_recognized(self, enum_cls, value):
        return isinstance(self.coerce(enum_cls, value), enum_cls)

    def resolve(self, enum_cls, value):
        if value is None:
            return None
        return self._codecs.get((enum_cls, int(value)))

    def require(self, enum_cls, value, purpose="decoding"):
        codec = self.resolve(enum_cls, value)
        if codec is None:
            raise UnsupportedFormat(f"{enum_cls.__name__} 0x{int(value):X} is not supported for {purpose}")
        return codec

    def formats(self, enum_cls):
        """Members of enum_cls that have a codec."""
        return [enum_cls(value) for cls, value in self._codecs if cls is enum_cls]


REGISTRY = FormatRegistry([
    (GimPaletteFormat, GIM_PIXEL_CODECS),
    (GimDataFormat, GIM_DATA_CODECS),
    (SvrPixelFormat, SVR_PIXEL_CODECS),
    (SvrDataFormat, SVR_DATA_CODECS),
])
