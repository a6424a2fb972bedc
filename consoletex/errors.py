# errors.py


class TextureError(Exception):
    """Base class for every error raised while decoding or encoding a texture."""


class MalformedContainer(TextureError):
    """The container bytes are corrupt: bad magic, bad lengths, bad indices."""


class UnsupportedFormat(TextureError):
    """The format id is readable but there is no codec for it."""


class ExternalPaletteRequired(UnsupportedFormat):
    """The data format keeps its palette in a separate file that was not given."""


class CapacityExceeded(TextureError):
    """The palette needs more entries than the target format can hold."""


class InvariantViolation(TextureError):
    """A size or shape assumption does not hold (zero dimensions, bad buffer size)."""
