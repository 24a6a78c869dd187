"""
Memory Subsystem for CHIP-8 Emulator
====================================

Memory Map:
    $000-$04F  Reserved for the interpreter
    $050-$09F  Built-in hexadecimal font (16 glyphs x 5 bytes)
    $0A0-$1FF  Reserved for the interpreter
    $200-$FFF  Program and working data

The whole 4KB address space is plain RAM; there is no ROM region and no
bank switching. Addresses outside $000-$FFF are either reduced modulo the
memory size or rejected, depending on the configured MemoryPolicy.
"""

from typing import Iterable

from ..errors import LoadError, MemoryAccessError
from .models import MemoryPolicy


# Built-in font: 0-F, 5 bytes each, 4 pixels wide (high nibble)
FONT_SET = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])

FONT_ADDRESS = 0x050
FONT_GLYPH_SIZE = 5


class Memory:
    """
    4KB flat RAM with the font preloaded.

    Every access goes through _resolve(), which applies the memory policy,
    so no instruction can ever touch an index outside the buffer.

    Attributes:
        policy: MemoryPolicy applied to out-of-range addresses

    Example:
        >>> mem = Memory()
        >>> mem.load_program(bytes([0x00, 0xE0]))
        >>> f"{mem.read_word(0x200):04X}"
        '00E0'
    """

    SIZE = 0x1000
    PROGRAM_START = 0x200
    MAX_PROGRAM_SIZE = SIZE - PROGRAM_START

    def __init__(self, policy: MemoryPolicy = MemoryPolicy.WRAP):
        self.policy = policy
        self._data = bytearray(self.SIZE)
        self.reset()

    def reset(self) -> None:
        """Clear memory and reinstall the font."""
        self._data[:] = bytes(self.SIZE)
        self._data[FONT_ADDRESS:FONT_ADDRESS + len(FONT_SET)] = FONT_SET

    def _resolve(self, address: int) -> int:
        if 0 <= address < self.SIZE:
            return address
        if self.policy is MemoryPolicy.FAULT:
            raise MemoryAccessError(address)
        return address % self.SIZE

    def check_range(self, address: int, count: int) -> None:
        """
        Validate a block access before any byte of it is touched.

        A no-op under WRAP. Under FAULT, raises MemoryAccessError for the
        first out-of-range address so multi-byte instructions fail without
        partial effects.
        """
        if count <= 0:
            return
        self._resolve(address)
        self._resolve(address + count - 1)

    def read(self, address: int) -> int:
        """Read one byte."""
        return self._data[self._resolve(address)]

    def write(self, address: int, value: int) -> None:
        """Write one byte (value is masked to 8 bits)."""
        self._data[self._resolve(address)] = value & 0xFF

    def read_word(self, address: int) -> int:
        """Read a big-endian 16-bit word."""
        return (self.read(address) << 8) | self.read(address + 1)

    def read_bytes(self, address: int, count: int) -> bytes:
        """Read count consecutive bytes starting at address."""
        return bytes(self.read(address + i) for i in range(count))

    def write_bytes(self, address: int, data: Iterable[int]) -> None:
        """Write consecutive bytes starting at address."""
        for i, byte in enumerate(data):
            self.write(address + i, byte)

    def load_program(self, data: bytes) -> None:
        """
        Copy a program image to $200.

        Args:
            data: Raw ROM bytes (big-endian opcode stream, no header)

        Raises:
            LoadError: If the image does not fit in $200-$FFF
        """
        if len(data) > self.MAX_PROGRAM_SIZE:
            raise LoadError(
                f"program is {len(data)} bytes, "
                f"maximum is {self.MAX_PROGRAM_SIZE} bytes",
                size=len(data),
            )
        start = self.PROGRAM_START
        self._data[start:start + len(data)] = data

    @staticmethod
    def font_address(digit: int) -> int:
        """Address of the font glyph for a hex digit (low nibble used)."""
        return FONT_ADDRESS + FONT_GLYPH_SIZE * (digit & 0x0F)

    def get_snapshot_data(self) -> list[int]:
        """Get memory contents for snapshot."""
        return list(self._data)

    def apply_snapshot_data(self, data: list[int], offset: int = 0) -> int:
        """Restore memory contents from snapshot."""
        chunk = data[offset:offset + self.SIZE]
        if len(chunk) != self.SIZE:
            raise ValueError("truncated memory image")
        self._data[:] = bytes(chunk)
        return self.SIZE
