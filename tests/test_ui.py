"""
Textual interface tests that do not start the app
"""

import pytest

from chip8py.emulator import Chip8Emulator
from chip8py.errors import StackUnderflow
from chip8py.ui import TextualInterface

from .conftest import assemble


@pytest.fixture
def ui():
    emu = Chip8Emulator()
    emu.throttle = False
    interface = TextualInterface(emu, max_steps=50)
    emu.attach_interface(interface)
    return interface


class TestEmulatorThread:
    def test_fault_is_shown_and_closes_app(self, ui):
        """A fatal error is logged and the app asks to close"""
        ui.emulator.load_bytes(assemble(0x00EE))
        ui._run_emulator()
        assert isinstance(ui.emulator.fault, StackUnderflow)
        assert "Emulation halted: StackUnderflow" in ui.get_last_log_lines(1)[0]
        assert ui._should_exit()

    def test_clean_stop_stays_open_without_autoquit(self, ui):
        ui.emulator.load_bytes(assemble(0x1200))
        ui._run_emulator()
        assert ui.emulator.fault is None
        assert "Stopped after 50 steps" in ui.get_last_log_lines(1)[0]
        assert not ui._should_exit()

        ui.emulator.autoquit = True
        assert ui._should_exit()

    def test_paused_never_closes(self, ui):
        ui.emulator.autoquit = True
        ui.paused = True
        assert not ui._should_exit()
