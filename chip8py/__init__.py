"""
chip8py - CHIP-8 interpreter with a Textual terminal front end
"""

from .emulator import Chip8Emulator
from .errors import Chip8Error, InvalidRegister, OutOfBounds, RomLoadError, StackOverflow, StackUnderflow
from .interpreter import Interpreter, Quirks

__all__ = [
    "Chip8Emulator",
    "Interpreter",
    "Quirks",
    "Chip8Error",
    "OutOfBounds",
    "StackOverflow",
    "StackUnderflow",
    "InvalidRegister",
    "RomLoadError",
]
