"""
Emulator shell around the interpreter core

Handles everything the core leaves to the host: reading ROM files,
pacing instructions against the 60Hz timer, rendering the framebuffer
as text, and serialising access from the UI, run loop and control
server threads.
"""

from __future__ import annotations

import sys
import threading
import time
from pathlib import Path
from typing import Dict, List, Optional, Union

from rich.console import Console
from rich.text import Text

from .errors import Chip8Error, RomLoadError
from .interpreter import Interpreter, Quirks
from .memory import MEMORY_SIZE, Memory
from .timers import TIMER_HZ


DEFAULT_INSTRUCTIONS_PER_SECOND = 600

# Two pixel rows per character cell: (top, bottom) -> glyph
HALF_BLOCKS = {
    (0, 0): ' ',
    (1, 0): '▀',
    (0, 1): '▄',
    (1, 1): '█',
}


class Chip8Emulator:
    """Main CHIP-8 emulator"""

    def __init__(self, quirks: Optional[Quirks] = None, rng=None):
        self.cpu = Interpreter(quirks=quirks, rng=rng)
        self.interface = None
        self.udp_debug = None  # Will be set if UDP debugging is enabled

        self.running = False
        self.debug = False
        self.autoquit = False
        self.no_colors = False
        self.throttle = True  # Sleep to hold the 60Hz cadence
        self.instructions_per_tick = DEFAULT_INSTRUCTIONS_PER_SECOND // TIMER_HZ
        self.screen_update_interval = 0.1
        self.pixel_color = "bright_green"

        self.rom_path: Optional[str] = None
        self.rom_data = b""
        self.fault: Optional[Chip8Error] = None
        self.current_steps = 0
        self.frames = 0

        # Core is not re-entrant; every mutation goes through this lock
        self.lock = threading.Lock()

    @property
    def memory(self) -> Memory:
        return self.cpu.memory

    def attach_interface(self, interface) -> None:
        self.interface = interface
        self.cpu.interface = interface

    def attach_udp_debug(self, udp_debug) -> None:
        self.udp_debug = udp_debug
        self.cpu.udp_debug = udp_debug

    def add_debug_log(self, message: str) -> None:
        if self.interface is not None:
            self.interface.add_debug_log(message)
        else:
            print(message, file=sys.stderr)

    def verbose_log(self, message: str) -> None:
        """Log only when debug output is enabled"""
        if self.debug:
            self.add_debug_log(message)

    def _event(self, event_type: str, data: Dict) -> None:
        if self.udp_debug and self.udp_debug.enabled:
            self.udp_debug.send(event_type, data)

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def load_rom(self, path: Union[str, Path]) -> None:
        """Load a ROM file and power-cycle the machine"""
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            raise RomLoadError(f"cannot read ROM {path}: {e.strerror or e}") from e
        self.load_bytes(data)
        self.rom_path = str(path)
        self.add_debug_log(f"💾 Loaded ROM: {path} ({len(data)} bytes)")
        self._event('rom_loaded', {'path': str(path), 'size': len(data)})

    def load_bytes(self, data: bytes) -> None:
        """Install a program image in fresh memory.

        The current machine is untouched if the image does not fit.
        """
        memory = Memory()
        memory.load_program(data)
        with self.lock:
            self.cpu.memory = memory
            self.cpu.reset()
            self.rom_data = bytes(data)
            self.fault = None
            self.current_steps = 0
            self.frames = 0

    def reset(self) -> None:
        """Restart the current ROM from power-on state"""
        self.load_bytes(self.rom_data)
        self.add_debug_log("🔄 Reset")

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> None:
        with self.lock:
            self.cpu.step_instruction()
            self.current_steps += 1

    def tick(self) -> None:
        with self.lock:
            self.cpu.tick_timers()
            self.frames += 1

    def run(self, max_steps: Optional[int] = None) -> int:
        """Run until stopped, a fault, or max_steps step calls. Returns steps taken.

        Each 60Hz frame runs instructions_per_tick steps followed by one
        timer tick. Fatal errors stop the loop and are re-raised.
        """
        self.running = True
        self.fault = None
        steps = 0
        frame_time = 1.0 / TIMER_HZ
        next_frame = time.monotonic()

        self.verbose_log(f"▶️ Run: {self.instructions_per_tick} instructions per tick, PC=${self.cpu.state.pc:03X}")
        self._event('execution_start', {
            'max_steps': max_steps,
            'initial_pc': self.cpu.state.pc,
            'instructions_per_tick': self.instructions_per_tick,
        })

        try:
            while self.running:
                for _ in range(self.instructions_per_tick):
                    if max_steps is not None and steps >= max_steps:
                        self.running = False
                        break
                    self.step()
                    steps += 1
                if not self.running:
                    break
                self.tick()

                if self.throttle:
                    next_frame += frame_time
                    delay = next_frame - time.monotonic()
                    if delay > 0:
                        time.sleep(delay)
                    else:
                        # Fell behind; don't try to catch up
                        next_frame = time.monotonic()
        except Chip8Error as e:
            self.fault = e
            self.add_debug_log(f"❌ Emulator fault at PC=${self.cpu.state.pc:03X}: {e}")
            self._event('fatal', {
                'error': type(e).__name__,
                'message': str(e),
                'pc': self.cpu.state.pc,
            })
            raise
        finally:
            self.running = False
            self._event('execution_stop', {'steps': steps, 'pc': self.cpu.state.pc})

        return steps

    @property
    def sound_active(self) -> bool:
        return self.cpu.timers.sound_active

    def press_key(self, key: int) -> None:
        with self.lock:
            self.cpu.keypad.press(key)

    def release_key(self, key: int) -> None:
        with self.lock:
            self.cpu.keypad.release(key)

    # ══════════════════════════════════════════════
    # Rendering
    # ══════════════════════════════════════════════

    def text_rows(self) -> List[str]:
        """Framebuffer as half-block characters, two pixel rows per line"""
        with self.lock:
            grid = self.cpu.framebuffer.rows()
            self.cpu.framebuffer.dirty = False
        lines = []
        for top in range(0, len(grid), 2):
            upper = grid[top]
            lower = grid[top + 1] if top + 1 < len(grid) else [0] * len(upper)
            lines.append(''.join(HALF_BLOCKS[(a, b)] for a, b in zip(upper, lower)))
        return lines

    def screen_text(self) -> Text:
        screen_text = Text()
        rows = self.text_rows()
        for n, line in enumerate(rows):
            screen_text.append(line, style=f"bold {self.pixel_color} on black")
            if n < len(rows) - 1:
                screen_text.append("\n")
        return screen_text

    def render_text_screen(self, no_colors: Optional[bool] = None) -> str:
        if no_colors is None:
            no_colors = self.no_colors
        if no_colors:
            return '\n'.join(self.text_rows())
        return self._render_with_rich()

    def _render_with_rich(self) -> str:
        console = Console(legacy_windows=False)
        with console.capture() as capture:
            console.print(self.screen_text())
        return capture.get()

    # ══════════════════════════════════════════════
    # State access
    # ══════════════════════════════════════════════

    def dump_memory(self, start: int = 0x000, end: int = MEMORY_SIZE) -> bytes:
        with self.lock:
            return self.memory.dump(start, end)

    def get_cpu_state(self) -> Dict:
        with self.lock:
            state = self.cpu.snapshot()
        state['frames'] = self.frames
        state['program_size'] = self.memory.program_size
        return state

    def set_cpu_state(self, state: Dict) -> None:
        with self.lock:
            cpu = self.cpu
            if 'pc' in state:
                cpu.state.pc = state['pc'] & 0xFFFF
            if 'i' in state:
                cpu.state.i = state['i'] & 0xFFFF
            if 'v' in state:
                for reg, value in enumerate(state['v']):
                    cpu.state.v.set(reg, value)
            if 'delay' in state:
                cpu.timers.delay = state['delay'] & 0xFF
            if 'sound' in state:
                cpu.timers.sound = state['sound'] & 0xFF
