# chunks.py
import logging
import struct
from dataclasses import dataclass, field
from typing import Optional

from .errors import MalformedContainer

logger = logging.getLogger(__name__)


@dataclass
class ChunkAccumulator:
    """Values collected while walking the chunks of one container.

    Lives only for the duration of a single parse; the caller turns it into
    an immutable result once the walk has been verified.
    """

    eof_offset: Optional[int] = None
    fields: dict = field(default_factory=dict)


class Chunk:
    """A tagged region of the container, with bounds-checked field readers."""

    def __init__(self, data, chunk_type, offset, length):
        self.data = data
        self.type = chunk_type
        self.offset = offset
        self.length = length

    @property
    def end(self):
        return self.offset + self.length

    def _span(self, relative, size):
        start = self.offset + relative
        if relative < 0 or relative + size > self.length or start + size > len(self.data):
            raise MalformedContainer(
                f"Chunk 0x{self.type:02X} at 0x{self.offset:X}: read of {size} bytes at +0x{relative:X} "
                f"overruns the chunk (length 0x{self.length:X}, buffer 0x{len(self.data):X})"
            )
        return start

    def unpack(self, fmt, relative):
        start = self._span(relative, struct.calcsize(fmt))
        return struct.unpack_from(fmt, self.data, start)

    def u16(self, relative):
        return self.unpack("<H", relative)[0]

    def i32(self, relative):
        return self.unpack("<i", relative)[0]

    def u32(self, relative):
        return self.unpack("<I", relative)[0]

    def payload(self, relative, size):
        start = self._span(relative, size)
        return bytes(self.data[start:start + size])

    def cstrings(self, relative, count):
        """Read count NUL-terminated strings starting at relative."""
        start = self._span(relative, 0)
        raw = bytes(self.data[start:self.end])
        parts = raw.split(b"\x00")
        if len(parts) <= count:
            raise MalformedContainer(
                f"Chunk 0x{self.type:02X} at 0x{self.offset:X}: expected {count} NUL-terminated strings"
            )
        return [part.decode("utf-8", errors="ignore") for part in parts[:count]]


class ChunkedContainerParser:
    """Walks a sequence of tagged, length-prefixed chunks in stream order.

    Each chunk starts with a u16 type and carries an i32 length at
    length_offset. The handler for the type reads what it needs, then the
    walk continues at chunk start + length no matter how much the handler
    read. Unknown types are fatal; so is a final position that does not
    match the end-of-file offset a handler stored in the accumulator.
    """

    def __init__(self, handlers, preamble_size, length_offset, name="container"):
        self.handlers = dict(handlers)
        self.preamble_size = preamble_size
        self.length_offset = length_offset
        self.name = name

    def walk(self, data, start=0, accumulator=None):
        if accumulator is None:
            accumulator = ChunkAccumulator()
        header_size = self.length_offset + 4
        position = start + self.preamble_size

        while position < len(data):
            if position + header_size > len(data):
                raise MalformedContainer(
                    f"{self.name}: truncated chunk header at 0x{position:X} "
                    f"(need {header_size} bytes, {len(data) - position} left)"
                )
            chunk_type = struct.unpack_from("<H", data, position)[0]
            length = struct.unpack_from("<i", data, position + self.length_offset)[0]

            handler = self.handlers.get(chunk_type)
            if handler is None:
                raise MalformedContainer(f"{self.name}: unknown chunk type 0x{chunk_type:X} at 0x{position:X}")
            if length <= 0:
                raise MalformedContainer(
                    f"{self.name}: chunk 0x{chunk_type:X} at 0x{position:X} has length {length}, must be positive"
                )

            logger.debug("%s: chunk 0x%02X at 0x%X, length 0x%X", self.name, chunk_type, position, length)
            handler(Chunk(data, chunk_type, position, length), accumulator)
            position += length

        consumed = position - start
        if accumulator.eof_offset is None:
            raise MalformedContainer(f"{self.name}: no end-of-file chunk")
        if consumed != accumulator.eof_offset:
            raise MalformedContainer(
                f"{self.name}: stream ends at 0x{consumed:X}, expected end-of-file offset 0x{accumulator.eof_offset:X}"
            )
        return accumulator
