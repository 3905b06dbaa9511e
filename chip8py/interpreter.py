"""
CHIP-8 interpreter

Owns the whole machine (memory, CPU state, timers, keypad, framebuffer)
and exposes the two host entry points:

  step_instruction()  fetch/decode/execute one instruction
  tick_timers()       60Hz timer decrement

The host decides how many steps to run per tick. Nothing here sleeps,
spawns threads or touches global state, so independent Interpreter
instances can run side by side.
"""

from __future__ import annotations

import random
import sys
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .cpu import CPUState, RunMode, VF
from .decoder import Instruction, Op, decode
from .display import Framebuffer
from .keypad import Keypad
from .memory import Memory, font_address
from .timers import TimerUnit


@dataclass
class Quirks:
    """Instruction semantics that differ between CHIP-8 dialects.

    The defaults follow the common modern convention. Turning both on
    gives original COSMAC VIP behaviour.
    """
    shift_uses_vy: bool = False  # 8xy6/8xyE shift Vy into Vx instead of shifting Vx
    load_store_increments_i: bool = False  # Fx55/Fx65 leave I = I + x + 1


class Interpreter:
    """Fetch/decode/execute engine"""

    STEP_LOG_INTERVAL = 100  # Sample cpu_step debug events

    def __init__(self, memory: Optional[Memory] = None, quirks: Optional[Quirks] = None,
                 rng: Optional[random.Random] = None, interface=None, udp_debug=None):
        self.memory = memory if memory is not None else Memory()
        self.state = CPUState()
        self.timers = TimerUnit()
        self.keypad = Keypad()
        self.framebuffer = Framebuffer()
        self.quirks = quirks or Quirks()
        self.rng = rng or random.Random()
        self.interface = interface
        self.udp_debug = udp_debug
        self._dispatch = self._build_dispatch()

    def _build_dispatch(self) -> Dict[Op, Callable[[Instruction], None]]:
        return {
            Op.CLS: self._cls,
            Op.RET: self._ret,
            Op.JP: self._jp,
            Op.CALL: self._call,
            Op.SE_BYTE: self._se_byte,
            Op.SNE_BYTE: self._sne_byte,
            Op.SE_REG: self._se_reg,
            Op.LD_BYTE: self._ld_byte,
            Op.ADD_BYTE: self._add_byte,
            Op.LD_REG: self._ld_reg,
            Op.OR: self._or,
            Op.AND: self._and,
            Op.XOR: self._xor,
            Op.ADD_REG: self._add_reg,
            Op.SUB: self._sub,
            Op.SHR: self._shr,
            Op.SUBN: self._subn,
            Op.SHL: self._shl,
            Op.SNE_REG: self._sne_reg,
            Op.LD_I: self._ld_i,
            Op.JP_V0: self._jp_v0,
            Op.RND: self._rnd,
            Op.DRW: self._drw,
            Op.SKP: self._skp,
            Op.SKNP: self._sknp,
            Op.LD_VX_DT: self._ld_vx_dt,
            Op.LD_VX_K: self._ld_vx_k,
            Op.LD_DT_VX: self._ld_dt_vx,
            Op.LD_ST_VX: self._ld_st_vx,
            Op.ADD_I: self._add_i,
            Op.LD_F: self._ld_f,
            Op.LD_B: self._ld_b,
            Op.LD_MEM_REGS: self._ld_mem_regs,
            Op.LD_REGS_MEM: self._ld_regs_mem,
            Op.UNKNOWN: self._unknown,
        }

    # ══════════════════════════════════════════════
    # Host entry points
    # ══════════════════════════════════════════════

    def load_program(self, data: bytes) -> None:
        self.memory.load_program(data)

    def step_instruction(self) -> None:
        """Execute one instruction.

        While waiting for a key (Fx0A) this only checks the keypad for a
        new press; PC does not move and no instruction is fetched.
        """
        state = self.state
        if state.mode is RunMode.WAITING_FOR_KEY:
            key = self.keypad.take_press()
            if key is None:
                return
            state.v.set(state.wait_register, key)
            state.mode = RunMode.RUNNING
            self._event('key_received', {'key': key, 'register': state.wait_register})
            return

        pc = state.pc
        opcode = self.memory.read_word(pc)
        state.pc = (pc + 2) & 0xFFFF
        instruction = decode(opcode)

        if self.udp_debug and self.udp_debug.enabled and state.steps % self.STEP_LOG_INTERVAL == 0:
            self.udp_debug.send('cpu_step', {'pc': pc, 'opcode': opcode, 'steps': state.steps})

        self._dispatch[instruction.op](instruction)
        state.steps += 1

    def tick_timers(self) -> None:
        self.timers.tick()

    def reset(self) -> None:
        """Power-on state. Memory (program and font) is kept."""
        self.state.reset()
        self.timers.reset()
        self.keypad.reset()
        self.framebuffer.clear()

    @property
    def waiting_for_key(self) -> bool:
        return self.state.mode is RunMode.WAITING_FOR_KEY

    def snapshot(self) -> Dict:
        """Current CPU state as plain values"""
        state = self.state
        return {
            'pc': state.pc,
            'i': state.i,
            'v': state.v.snapshot(),
            'stack': state.stack.snapshot(),
            'sp': len(state.stack),
            'delay': self.timers.delay,
            'sound': self.timers.sound,
            'mode': state.mode.value,
            'steps': state.steps,
            'unknown_opcodes': state.unknown_opcodes,
        }

    # ══════════════════════════════════════════════
    # Logging
    # ══════════════════════════════════════════════

    def _log(self, message: str) -> None:
        if self.interface is not None:
            self.interface.add_debug_log(message)
        else:
            print(message, file=sys.stderr)

    def _event(self, event_type: str, data: Dict) -> None:
        if self.udp_debug and self.udp_debug.enabled:
            self.udp_debug.send(event_type, data)

    # ══════════════════════════════════════════════
    # Helpers
    # ══════════════════════════════════════════════

    def _skip_if(self, condition: bool) -> None:
        if condition:
            self.state.pc = (self.state.pc + 2) & 0xFFFF

    def _set_with_flag(self, reg: int, value: int, flag: int) -> None:
        """Store a result and then VF, so VF wins when reg is VF"""
        self.state.v.set(reg, value)
        self.state.v.set(VF, flag)

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════

    def _cls(self, ins: Instruction) -> None:
        self.framebuffer.clear()

    def _ret(self, ins: Instruction) -> None:
        self.state.pc = self.state.stack.pop()

    def _jp(self, ins: Instruction) -> None:
        self.state.pc = ins.nnn

    def _call(self, ins: Instruction) -> None:
        self.state.stack.push(self.state.pc)
        self.state.pc = ins.nnn

    def _se_byte(self, ins: Instruction) -> None:
        self._skip_if(self.state.v.get(ins.x) == ins.kk)

    def _sne_byte(self, ins: Instruction) -> None:
        self._skip_if(self.state.v.get(ins.x) != ins.kk)

    def _se_reg(self, ins: Instruction) -> None:
        v = self.state.v
        self._skip_if(v.get(ins.x) == v.get(ins.y))

    def _sne_reg(self, ins: Instruction) -> None:
        v = self.state.v
        self._skip_if(v.get(ins.x) != v.get(ins.y))

    def _ld_byte(self, ins: Instruction) -> None:
        self.state.v.set(ins.x, ins.kk)

    def _add_byte(self, ins: Instruction) -> None:
        v = self.state.v
        v.set(ins.x, (v.get(ins.x) + ins.kk) & 0xFF)

    def _ld_reg(self, ins: Instruction) -> None:
        v = self.state.v
        v.set(ins.x, v.get(ins.y))

    def _or(self, ins: Instruction) -> None:
        v = self.state.v
        v.set(ins.x, v.get(ins.x) | v.get(ins.y))

    def _and(self, ins: Instruction) -> None:
        v = self.state.v
        v.set(ins.x, v.get(ins.x) & v.get(ins.y))

    def _xor(self, ins: Instruction) -> None:
        v = self.state.v
        v.set(ins.x, v.get(ins.x) ^ v.get(ins.y))

    def _add_reg(self, ins: Instruction) -> None:
        v = self.state.v
        total = v.get(ins.x) + v.get(ins.y)
        self._set_with_flag(ins.x, total & 0xFF, 1 if total > 0xFF else 0)

    def _sub(self, ins: Instruction) -> None:
        v = self.state.v
        vx, vy = v.get(ins.x), v.get(ins.y)
        self._set_with_flag(ins.x, (vx - vy) & 0xFF, 1 if vx >= vy else 0)

    def _subn(self, ins: Instruction) -> None:
        v = self.state.v
        vx, vy = v.get(ins.x), v.get(ins.y)
        self._set_with_flag(ins.x, (vy - vx) & 0xFF, 1 if vy >= vx else 0)

    def _shift_source(self, ins: Instruction) -> int:
        return self.state.v.get(ins.y if self.quirks.shift_uses_vy else ins.x)

    def _shr(self, ins: Instruction) -> None:
        source = self._shift_source(ins)
        self._set_with_flag(ins.x, source >> 1, source & 0x01)

    def _shl(self, ins: Instruction) -> None:
        source = self._shift_source(ins)
        self._set_with_flag(ins.x, (source << 1) & 0xFF, (source >> 7) & 0x01)

    def _ld_i(self, ins: Instruction) -> None:
        self.state.i = ins.nnn

    def _jp_v0(self, ins: Instruction) -> None:
        # Past $FFF the next fetch raises OutOfBounds
        self.state.pc = ins.nnn + self.state.v.get(0)

    def _rnd(self, ins: Instruction) -> None:
        self.state.v.set(ins.x, self.rng.randrange(256) & ins.kk)

    def _drw(self, ins: Instruction) -> None:
        v = self.state.v
        x, y = v.get(ins.x), v.get(ins.y)
        base = self.state.i
        sprite = [self.memory.read_byte(base + row) for row in range(ins.n)]
        collision = self.framebuffer.draw_sprite(x, y, sprite)
        v.set(VF, 1 if collision else 0)

    def _skp(self, ins: Instruction) -> None:
        key = self.state.v.get(ins.x) & 0x0F
        self._skip_if(self.keypad.is_pressed(key))

    def _sknp(self, ins: Instruction) -> None:
        key = self.state.v.get(ins.x) & 0x0F
        self._skip_if(not self.keypad.is_pressed(key))

    def _ld_vx_dt(self, ins: Instruction) -> None:
        self.state.v.set(ins.x, self.timers.delay)

    def _ld_vx_k(self, ins: Instruction) -> None:
        # Only presses that happen from now on count
        self.keypad.clear_presses()
        self.state.mode = RunMode.WAITING_FOR_KEY
        self.state.wait_register = ins.x
        self._event('key_wait', {'register': ins.x, 'pc': self.state.pc})

    def _ld_dt_vx(self, ins: Instruction) -> None:
        self.timers.delay = self.state.v.get(ins.x)

    def _ld_st_vx(self, ins: Instruction) -> None:
        self.timers.sound = self.state.v.get(ins.x)

    def _add_i(self, ins: Instruction) -> None:
        self.state.i = (self.state.i + self.state.v.get(ins.x)) & 0x0FFF

    def _ld_f(self, ins: Instruction) -> None:
        self.state.i = font_address(self.state.v.get(ins.x))

    def _ld_b(self, ins: Instruction) -> None:
        value = self.state.v.get(ins.x)
        base = self.state.i
        self.memory.write_byte(base, value // 100)
        self.memory.write_byte(base + 1, (value // 10) % 10)
        self.memory.write_byte(base + 2, value % 10)

    def _ld_mem_regs(self, ins: Instruction) -> None:
        base = self.state.i
        for reg in range(ins.x + 1):
            self.memory.write_byte(base + reg, self.state.v.get(reg))
        if self.quirks.load_store_increments_i:
            self.state.i = (base + ins.x + 1) & 0x0FFF

    def _ld_regs_mem(self, ins: Instruction) -> None:
        base = self.state.i
        values = [self.memory.read_byte(base + reg) for reg in range(ins.x + 1)]
        for reg, value in enumerate(values):
            self.state.v.set(reg, value)
        if self.quirks.load_store_increments_i:
            self.state.i = (base + ins.x + 1) & 0x0FFF

    def _unknown(self, ins: Instruction) -> None:
        pc = (self.state.pc - 2) & 0xFFFF
        self.state.unknown_opcodes += 1
        self._log(f"⚠️ Unknown opcode ${ins.opcode:04X} at ${pc:03X}, skipped")
        self._event('unknown_opcode', {'pc': pc, 'opcode': ins.opcode})
