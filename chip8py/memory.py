"""
CHIP-8 memory map
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .errors import OutOfBounds


# CHIP-8 Memory Map Constants
MEMORY_SIZE = 0x1000
PROGRAM_START = 0x200
MAX_PROGRAM_SIZE = MEMORY_SIZE - PROGRAM_START  # 3584 bytes

# Font glyphs live in the reserved interpreter area
FONT_START = 0x050
GLYPH_SIZE = 5

FONT = bytes([
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


def font_address(digit: int) -> int:
    """Address of the built-in glyph for a hex digit (only the low nibble counts)"""
    return FONT_START + (digit & 0x0F) * GLYPH_SIZE


@dataclass
class Memory:
    """Flat 4K byte store holding the font and the loaded program"""
    ram: bytearray = field(default_factory=lambda: bytearray(MEMORY_SIZE))
    program_size: int = 0

    def __post_init__(self) -> None:
        self.load_font()

    def load_font(self) -> None:
        self.ram[FONT_START:FONT_START + len(FONT)] = FONT

    def _check(self, addr: int) -> None:
        if not 0 <= addr < MEMORY_SIZE:
            raise OutOfBounds(addr)

    def read_byte(self, addr: int) -> int:
        self._check(addr)
        return self.ram[addr]

    def read_word(self, addr: int) -> int:
        """Read 16-bit word (big-endian: high byte at addr)"""
        self._check(addr)
        self._check(addr + 1)
        return (self.ram[addr] << 8) | self.ram[addr + 1]

    def write_byte(self, addr: int, value: int) -> None:
        self._check(addr)
        self.ram[addr] = value & 0xFF

    def load_program(self, data: bytes) -> None:
        """Copy a program to $200. Memory is left untouched if it does not fit."""
        data = bytes(data)
        end = PROGRAM_START + len(data)
        if end > MEMORY_SIZE:
            raise OutOfBounds(
                end - 1,
                f"program of {len(data)} bytes does not fit "
                f"(maximum {MAX_PROGRAM_SIZE} bytes at ${PROGRAM_START:03X})",
            )
        self.ram[PROGRAM_START:end] = data
        self.program_size = len(data)

    def dump(self, start: int = 0x000, end: int = MEMORY_SIZE) -> bytes:
        """Copy of the range [start, end)"""
        if start < 0 or start > MEMORY_SIZE:
            raise OutOfBounds(start)
        if end < start or end > MEMORY_SIZE:
            raise OutOfBounds(end)
        return bytes(self.ram[start:end])
