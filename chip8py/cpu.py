"""
CHIP-8 register file, call stack and CPU state
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List

from .errors import InvalidRegister, StackOverflow, StackUnderflow
from .memory import PROGRAM_START


REGISTER_COUNT = 16
VF = 0xF
STACK_DEPTH = 16


class Registers:
    """Sixteen 8-bit registers V0-VF. VF doubles as the carry/borrow/collision flag."""

    def __init__(self):
        self._v = bytearray(REGISTER_COUNT)

    def _check(self, reg: int) -> None:
        if not 0 <= reg < REGISTER_COUNT:
            raise InvalidRegister(f"no such register V{reg}")

    def get(self, reg: int) -> int:
        self._check(reg)
        return self._v[reg]

    def set(self, reg: int, value: int) -> None:
        self._check(reg)
        self._v[reg] = value & 0xFF

    def snapshot(self) -> List[int]:
        return list(self._v)

    def reset(self) -> None:
        for reg in range(REGISTER_COUNT):
            self._v[reg] = 0

    def __repr__(self) -> str:
        return "Registers(" + " ".join(f"V{r:X}={v:02X}" for r, v in enumerate(self._v)) + ")"


class CallStack:
    """Bounded stack of return addresses"""

    def __init__(self, depth: int = STACK_DEPTH):
        self.depth = depth
        self._frames: List[int] = []

    def push(self, addr: int) -> None:
        if len(self._frames) >= self.depth:
            raise StackOverflow(f"call stack full ({self.depth} return addresses) pushing ${addr:03X}")
        self._frames.append(addr & 0xFFFF)

    def pop(self) -> int:
        if not self._frames:
            raise StackUnderflow("return with an empty call stack")
        return self._frames.pop()

    def snapshot(self) -> List[int]:
        return list(self._frames)

    def reset(self) -> None:
        self._frames.clear()

    def __len__(self) -> int:
        return len(self._frames)


class RunMode(Enum):
    RUNNING = 'RUNNING'
    WAITING_FOR_KEY = 'WAITING_FOR_KEY'


@dataclass
class CPUState:
    """CHIP-8 CPU state"""
    pc: int = PROGRAM_START  # Program counter
    i: int = 0  # Index register (low 12 bits significant)
    v: Registers = field(default_factory=Registers)
    stack: CallStack = field(default_factory=CallStack)
    mode: RunMode = RunMode.RUNNING
    wait_register: int = 0  # Target of Fx0A while waiting
    steps: int = 0  # Instructions executed
    unknown_opcodes: int = 0

    def reset(self) -> None:
        self.pc = PROGRAM_START
        self.i = 0
        self.v.reset()
        self.stack.reset()
        self.mode = RunMode.RUNNING
        self.wait_register = 0
        self.steps = 0
        self.unknown_opcodes = 0
