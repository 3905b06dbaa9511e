"""
CHIP-8 opcode decoder

decode() is a pure function: it splits the 16-bit word into its operand
fields and classifies it. Anything outside the base CHIP-8 set comes
back as Op.UNKNOWN so the interpreter can skip it.

Field layout:
    nnn = opcode & 0x0FFF    12-bit address
    x   = (opcode >> 8) & 0xF
    y   = (opcode >> 4) & 0xF
    n   = opcode & 0x000F
    kk  = opcode & 0x00FF
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Op(Enum):
    CLS = 'CLS'              # 00E0
    RET = 'RET'              # 00EE
    JP = 'JP'                # 1nnn
    CALL = 'CALL'            # 2nnn
    SE_BYTE = 'SE_BYTE'      # 3xkk
    SNE_BYTE = 'SNE_BYTE'    # 4xkk
    SE_REG = 'SE_REG'        # 5xy0
    LD_BYTE = 'LD_BYTE'      # 6xkk
    ADD_BYTE = 'ADD_BYTE'    # 7xkk
    LD_REG = 'LD_REG'        # 8xy0
    OR = 'OR'                # 8xy1
    AND = 'AND'              # 8xy2
    XOR = 'XOR'              # 8xy3
    ADD_REG = 'ADD_REG'      # 8xy4
    SUB = 'SUB'              # 8xy5
    SHR = 'SHR'              # 8xy6
    SUBN = 'SUBN'            # 8xy7
    SHL = 'SHL'              # 8xyE
    SNE_REG = 'SNE_REG'      # 9xy0
    LD_I = 'LD_I'            # Annn
    JP_V0 = 'JP_V0'          # Bnnn
    RND = 'RND'              # Cxkk
    DRW = 'DRW'              # Dxyn
    SKP = 'SKP'              # Ex9E
    SKNP = 'SKNP'            # ExA1
    LD_VX_DT = 'LD_VX_DT'    # Fx07
    LD_VX_K = 'LD_VX_K'      # Fx0A
    LD_DT_VX = 'LD_DT_VX'    # Fx15
    LD_ST_VX = 'LD_ST_VX'    # Fx18
    ADD_I = 'ADD_I'          # Fx1E
    LD_F = 'LD_F'            # Fx29
    LD_B = 'LD_B'            # Fx33
    LD_MEM_REGS = 'LD_MEM_REGS'  # Fx55
    LD_REGS_MEM = 'LD_REGS_MEM'  # Fx65
    UNKNOWN = 'UNKNOWN'


@dataclass(frozen=True)
class Instruction:
    """Decoded instruction: class tag plus every operand field"""
    op: Op
    opcode: int
    x: int
    y: int
    n: int
    kk: int
    nnn: int

    def __str__(self) -> str:
        return f"{self.op.value} (${self.opcode:04X})"


# Lookup tables for the families selected by a sub-field
_SYSTEM_OPS = {
    0x00E0: Op.CLS,
    0x00EE: Op.RET,
}

_ALU_OPS = {
    0x0: Op.LD_REG,
    0x1: Op.OR,
    0x2: Op.AND,
    0x3: Op.XOR,
    0x4: Op.ADD_REG,
    0x5: Op.SUB,
    0x6: Op.SHR,
    0x7: Op.SUBN,
    0xE: Op.SHL,
}

_KEY_OPS = {
    0x9E: Op.SKP,
    0xA1: Op.SKNP,
}

_MISC_OPS = {
    0x07: Op.LD_VX_DT,
    0x0A: Op.LD_VX_K,
    0x15: Op.LD_DT_VX,
    0x18: Op.LD_ST_VX,
    0x1E: Op.ADD_I,
    0x29: Op.LD_F,
    0x33: Op.LD_B,
    0x55: Op.LD_MEM_REGS,
    0x65: Op.LD_REGS_MEM,
}

# Families fully determined by the top nibble
_SIMPLE_OPS = {
    0x1: Op.JP,
    0x2: Op.CALL,
    0x3: Op.SE_BYTE,
    0x4: Op.SNE_BYTE,
    0x6: Op.LD_BYTE,
    0x7: Op.ADD_BYTE,
    0xA: Op.LD_I,
    0xB: Op.JP_V0,
    0xC: Op.RND,
    0xD: Op.DRW,
}


def classify(opcode: int) -> Op:
    family = opcode >> 12
    n = opcode & 0x000F
    kk = opcode & 0x00FF

    if family in _SIMPLE_OPS:
        return _SIMPLE_OPS[family]
    if family == 0x0:
        # 0nnn (SYS) is not supported
        return _SYSTEM_OPS.get(opcode, Op.UNKNOWN)
    if family == 0x5:
        return Op.SE_REG if n == 0 else Op.UNKNOWN
    if family == 0x8:
        return _ALU_OPS.get(n, Op.UNKNOWN)
    if family == 0x9:
        return Op.SNE_REG if n == 0 else Op.UNKNOWN
    if family == 0xE:
        return _KEY_OPS.get(kk, Op.UNKNOWN)
    if family == 0xF:
        return _MISC_OPS.get(kk, Op.UNKNOWN)
    return Op.UNKNOWN


def decode(opcode: int) -> Instruction:
    """Split a 16-bit opcode into an Instruction"""
    opcode &= 0xFFFF
    return Instruction(
        op=classify(opcode),
        opcode=opcode,
        x=(opcode >> 8) & 0x0F,
        y=(opcode >> 4) & 0x0F,
        n=opcode & 0x000F,
        kk=opcode & 0x00FF,
        nnn=opcode & 0x0FFF,
    )
