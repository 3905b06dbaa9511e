"""
Emulator error hierarchy

Everything here except RomLoadError is fatal: it means PC, I or the
interpreter itself is corrupted and emulation must stop.
"""

from __future__ import annotations


class Chip8Error(Exception):
    """Base class for all emulator errors"""


class OutOfBounds(Chip8Error):
    """Memory access (or program load) outside the 4K address space"""

    def __init__(self, addr: int, message: str = ""):
        self.addr = addr
        super().__init__(message or f"memory access out of bounds at ${addr:04X}")


class StackOverflow(Chip8Error):
    """CALL with a full call stack"""


class StackUnderflow(Chip8Error):
    """RET with an empty call stack"""


class InvalidRegister(Chip8Error):
    """Register id outside V0-VF"""


class RomLoadError(Chip8Error):
    """ROM file could not be read"""
