"""
Textual User Interface
"""

from __future__ import annotations

import threading
from collections import deque
from datetime import datetime
from typing import TYPE_CHECKING, Dict, List, Optional

from textual import events
from textual.app import App, ComposeResult
from textual.timer import Timer
from textual.widgets import Footer, Header, RichLog, Static

from .errors import Chip8Error

if TYPE_CHECKING:
    from .emulator import Chip8Emulator


# COSMAC VIP hex keypad on the left side of a QWERTY keyboard:
#   1 2 3 C      1 2 3 4
#   4 5 6 D  <-  q w e r
#   7 8 9 E      a s d f
#   A 0 B F      z x c v
KEYMAP: Dict[str, int] = {
    '1': 0x1, '2': 0x2, '3': 0x3, '4': 0xC,
    'q': 0x4, 'w': 0x5, 'e': 0x6, 'r': 0xD,
    'a': 0x7, 's': 0x8, 'd': 0x9, 'f': 0xE,
    'z': 0xA, 'x': 0x0, 'c': 0xB, 'v': 0xF,
}

# Terminals report presses only, so a key is held for this long
KEY_HOLD_SECONDS = 0.15


class TextualInterface(App):
    """Textual-based interface with TCSS styling"""

    BINDINGS = [
        ("ctrl+x", "quit", "Quit the emulator"),
        ("ctrl+r", "reset", "Reset"),
        ("ctrl+p", "toggle_pause", "Pause/resume"),
    ]

    CSS = """
    Screen {
        background: $surface;
        layout: vertical;
    }

    #chip8-display {
        border: solid $primary;
        margin: 0 1;
        padding: 0;
        height: 18;
        width: 66;
        background: black;
    }

    Screen.fullscreen #chip8-display {
        border: none;
        margin: 0;
    }

    #debug-panel {
        border: solid $secondary;
        margin: 0 1;
        overflow-y: scroll;
        padding: 0 1;
        height: 1fr;
    }

    #status-bar {
        border: solid $primary;
        margin: 0 1;
        padding: 0 1;
        height: 3;
        background: $primary;
        color: $surface;
    }
    """

    def __init__(self, emulator: "Chip8Emulator", max_steps: Optional[int] = None, fullscreen: bool = False):
        super().__init__()
        self.emulator = emulator
        self.max_steps = max_steps
        self.fullscreen = fullscreen
        self.max_logs = 1000
        self.debug_messages: deque = deque(maxlen=self.max_logs)
        self._pending_logs: List[str] = []
        self._log_lock = threading.Lock()
        self._release_timers: Dict[int, Timer] = {}
        self._sound_on = False
        self.paused = False
        self.emulator_thread: Optional[threading.Thread] = None
        # Widget references (set in on_mount)
        self.chip8_display: Optional[Static] = None
        self.debug_logs: Optional[RichLog] = None
        self.status_bar: Optional[Static] = None

    def compose(self) -> ComposeResult:
        if not self.fullscreen:
            yield Header()
        yield Static(id="chip8-display")
        if not self.fullscreen:
            yield RichLog(id="debug-panel", auto_scroll=True)
            yield Static("Initializing...", id="status-bar")
            yield Footer()

    def on_mount(self) -> None:
        if self.fullscreen:
            self.screen.add_class("fullscreen")

        self.chip8_display = self.query_one("#chip8-display", Static)
        if not self.fullscreen:
            self.debug_logs = self.query_one("#debug-panel", RichLog)
            self.status_bar = self.query_one("#status-bar", Static)

        self._start_emulator()
        self.set_interval(self.emulator.screen_update_interval, self._update_ui)

    def _start_emulator(self) -> None:
        if self.emulator_thread is not None and self.emulator_thread.is_alive():
            self.emulator_thread.join(timeout=1.0)
        self.emulator.running = True
        self.emulator_thread = threading.Thread(target=self._run_emulator, daemon=True)
        self.emulator_thread.start()

    def _run_emulator(self) -> None:
        """Run the emulator in background thread"""
        try:
            steps = self.emulator.run(self.max_steps)
            self.add_debug_log(f"🛑 Stopped after {steps:,} steps")
        except Chip8Error as e:
            # Already logged by the run loop; the UI closes on its next update
            self.add_debug_log(f"❌ Emulation halted: {type(e).__name__}")

    def _should_exit(self) -> bool:
        """A fault always closes the app; a clean stop only with autoquit"""
        emu = self.emulator
        if emu.running or self.paused:
            return False
        return emu.fault is not None or emu.autoquit

    def _update_ui(self) -> None:
        """Update the UI periodically"""
        emu = self.emulator
        self._flush_logs()

        if self._should_exit():
            self.exit()
            return

        if emu.cpu.framebuffer.dirty:
            self.chip8_display.update(emu.screen_text())

        if emu.sound_active and not self._sound_on:
            self.bell()
        self._sound_on = emu.sound_active

        if self.status_bar is not None:
            state = emu.get_cpu_state()
            if emu.fault is not None:
                mode = f"FAULT: {emu.fault}"
            elif self.paused:
                mode = "PAUSED"
            else:
                mode = state['mode']
            sound = " 🔊" if emu.sound_active else ""
            self.status_bar.update(
                f"🎮 CHIP-8 | Steps: {state['steps']:,} | PC: ${state['pc']:03X} | I: ${state['i']:03X} "
                f"| SP: {state['sp']} | DT: {state['delay']} | ST: {state['sound']}{sound} | {mode}"
            )

    def add_debug_log(self, message: str) -> None:
        """Add a debug message (safe to call from any thread)"""
        if self.fullscreen:
            return

        timestamp = datetime.now().strftime("%H:%M:%S")
        formatted_message = f"[{timestamp}] {message}"
        with self._log_lock:
            self.debug_messages.append(formatted_message)
            self._pending_logs.append(formatted_message)

    def _flush_logs(self) -> None:
        with self._log_lock:
            pending, self._pending_logs = self._pending_logs, []
        if self.debug_logs is not None:
            for message in pending:
                self.debug_logs.write(message)

    def get_last_log_lines(self, count: int = 20) -> List[str]:
        with self._log_lock:
            return list(self.debug_messages)[-count:]

    def on_key(self, event: events.Key) -> None:
        key = KEYMAP.get((event.character or event.key).lower())
        if key is None:
            return
        self.emulator.press_key(key)
        timer = self._release_timers.pop(key, None)
        if timer is not None:
            timer.stop()
        self._release_timers[key] = self.set_timer(KEY_HOLD_SECONDS, lambda: self._release(key))

    def _release(self, key: int) -> None:
        self._release_timers.pop(key, None)
        self.emulator.release_key(key)

    def action_toggle_pause(self) -> None:
        if self.paused:
            self.paused = False
            self.add_debug_log("▶️ Resumed")
            self._start_emulator()
        else:
            self.paused = True
            self.emulator.running = False
            self.add_debug_log("⏸️ Paused")

    def action_reset(self) -> None:
        self.emulator.reset()
        # A faulted or finished run loop has exited; start a new one
        if not self.emulator.running and not self.paused:
            self._start_emulator()

    def action_quit(self) -> None:
        """Quit the emulator"""
        self.emulator.running = False
        self.exit()
