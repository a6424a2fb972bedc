# swizzle.py
from abc import ABC, abstractmethod

import numpy as np

from .errors import InvariantViolation


def round_up(value, multiple):
    return (value + multiple - 1) // multiple * multiple


class Layout(ABC):
    """Maps a linear raster to the byte order a texture stores it in.

    Layouts are pure: swizzle and unswizzle with the same (width, height, bpp)
    invert each other and never touch anything outside the given buffer.
    """

    name = None

    def granularity(self, bpp):
        """Return the (horizontal, vertical) pixel multiples the layout needs."""
        return 1, 1

    def aligned_size(self, width, height, bpp):
        if width <= 0 or height <= 0:
            raise InvariantViolation(f"Texture dimensions must be positive, got {width}x{height}")
        h_align, v_align = self.granularity(bpp)
        return round_up(width, h_align), round_up(height, v_align)

    def check(self, data, width, height, bpp):
        if width <= 0 or height <= 0:
            raise InvariantViolation(f"Texture dimensions must be positive, got {width}x{height}")
        h_align, v_align = self.granularity(bpp)
        if width % h_align or height % v_align:
            raise InvariantViolation(
                f"{self.name}: {width}x{height} is not a multiple of the {h_align}x{v_align} tile at {bpp}bpp"
            )
        if (width * height * bpp) % 8:
            raise InvariantViolation(f"{self.name}: {width}x{height} at {bpp}bpp is not a whole number of bytes")
        expected = width * height * bpp // 8
        if len(data) != expected:
            raise InvariantViolation(f"{self.name}: expected {expected} bytes for {width}x{height}, got {len(data)}")

    @abstractmethod
    def swizzle(self, data, width, height, bpp):
        """Reorder a linear raster into stored order."""
        pass

    @abstractmethod
    def unswizzle(self, data, width, height, bpp):
        """Reorder stored data back into a linear raster."""
        pass

    def __repr__(self):
        return f"<{type(self).__name__} {self.name}>"


class LinearLayout(Layout):
    """Raster order, no reordering."""

    name = "linear"

    def swizzle(self, data, width, height, bpp):
        self.check(data, width, height, bpp)
        return bytes(data)

    def unswizzle(self, data, width, height, bpp):
        self.check(data, width, height, bpp)
        return bytes(data)


class PspLayout(Layout):
    """PSP texture memory: 16-byte x 8-row blocks, row of blocks after row of blocks.

    Rows are padded to whole blocks whether or not the data is swizzled,
    and never narrower than 16 pixels.
    """

    BLOCK_WIDTH = 16
    BLOCK_HEIGHT = 8

    def __init__(self, swizzled=True):
        self.swizzled = swizzled
        self.name = "psp-swizzled" if swizzled else "psp-linear"

    def granularity(self, bpp):
        return max(16, self.BLOCK_WIDTH * 8 // bpp), self.BLOCK_HEIGHT

    def _blocks(self, width, height, bpp):
        byte_width = width * bpp // 8
        return height // self.BLOCK_HEIGHT, byte_width // self.BLOCK_WIDTH

    def swizzle(self, data, width, height, bpp):
        self.check(data, width, height, bpp)
        if not self.swizzled:
            return bytes(data)
        rows, columns = self._blocks(width, height, bpp)
        raster = np.frombuffer(data, dtype=np.uint8).reshape(rows, self.BLOCK_HEIGHT, columns, self.BLOCK_WIDTH)
        return raster.transpose(0, 2, 1, 3).tobytes()

    def unswizzle(self, data, width, height, bpp):
        self.check(data, width, height, bpp)
        if not self.swizzled:
            return bytes(data)
        rows, columns = self._blocks(width, height, bpp)
        blocks = np.frombuffer(data, dtype=np.uint8).reshape(rows, columns, self.BLOCK_HEIGHT, self.BLOCK_WIDTH)
        return blocks.transpose(0, 2, 1, 3).tobytes()


class Ps2Layout(Layout):
    """PS2 GS 8-bit column swizzle applied to the index grid.

    The permutation works on one index per element, so 4-bit data is
    unpacked (low nibble first), reordered and packed again.
    """

    name = "ps2-swizzled"

    def granularity(self, bpp):
        return 16, 16

    @staticmethod
    def swizzle_table(width, height):
        """Stored position of every linear (y, x) index."""
        y, x = np.mgrid[0:height, 0:width]
        block_location = (y & ~0xF) * width + (x & ~0xF) * 2
        swap_selector = (((y + 2) >> 2) & 0x1) * 4
        pos_y = (((y & ~3) >> 1) + (y & 1)) & 0x7
        column_location = pos_y * width * 2 + ((x + swap_selector) & 0x7) * 4
        byte_num = ((y >> 1) & 1) + ((x >> 2) & 2)
        return (block_location + column_location + byte_num).reshape(-1)

    @staticmethod
    def _unpack(data, bpp):
        raw = np.frombuffer(data, dtype=np.uint8)
        if bpp == 8:
            return raw
        indices = np.empty(len(raw) * 2, dtype=np.uint8)
        indices[0::2] = raw & 0x0F
        indices[1::2] = raw >> 4
        return indices

    @staticmethod
    def _pack(indices, bpp):
        if bpp == 8:
            return indices.tobytes()
        return (indices[0::2] | (indices[1::2] << 4)).astype(np.uint8).tobytes()

    def check(self, data, width, height, bpp):
        if bpp not in (4, 8):
            raise InvariantViolation(f"{self.name}: only 4 and 8 bpp index data can be swizzled, got {bpp}bpp")
        super().check(data, width, height, bpp)

    def swizzle(self, data, width, height, bpp):
        self.check(data, width, height, bpp)
        linear = self._unpack(data, bpp)
        stored = np.empty_like(linear)
        stored[self.swizzle_table(width, height)] = linear
        return self._pack(stored, bpp)

    def unswizzle(self, data, width, height, bpp):
        self.check(data, width, height, bpp)
        stored = self._unpack(data, bpp)
        return self._pack(stored[self.swizzle_table(width, height)], bpp)


LINEAR = LinearLayout()
PSP_SWIZZLED = PspLayout(swizzled=True)
PSP_LINEAR = PspLayout(swizzled=False)
PS2_SWIZZLED = Ps2Layout()
