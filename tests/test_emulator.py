"""
Emulator shell tests: ROM loading, the paced run loop, rendering
"""

import random

import pytest

from chip8py.emulator import Chip8Emulator
from chip8py.errors import OutOfBounds, RomLoadError, StackUnderflow
from chip8py.memory import MAX_PROGRAM_SIZE

from .conftest import RecordingInterface, RecordingUdpDebug, assemble


@pytest.fixture
def emu():
    emu = Chip8Emulator(rng=random.Random(7))
    emu.throttle = False
    emu.attach_interface(RecordingInterface())
    return emu


class TestLoading:
    def test_load_rom(self, emu, tmp_path):
        rom = tmp_path / "test.ch8"
        rom.write_bytes(assemble(0x6A05, 0x1202))
        emu.load_rom(rom)
        assert emu.memory.read_word(0x200) == 0x6A05
        assert emu.rom_path == str(rom)
        assert any("Loaded ROM" in m for m in emu.interface.messages)

    def test_missing_rom(self, emu, tmp_path):
        with pytest.raises(RomLoadError):
            emu.load_rom(tmp_path / "missing.ch8")

    def test_oversized_rom_keeps_current_program(self, emu, tmp_path):
        emu.load_bytes(assemble(0x1200))
        rom = tmp_path / "big.ch8"
        rom.write_bytes(bytes(MAX_PROGRAM_SIZE + 1))
        with pytest.raises(OutOfBounds):
            emu.load_rom(rom)
        assert emu.memory.read_word(0x200) == 0x1200

    def test_load_power_cycles(self, emu):
        emu.load_bytes(assemble(0x6A05, 0x2300))
        emu.step()
        emu.step()
        emu.load_bytes(assemble(0x6B01))
        state = emu.get_cpu_state()
        assert state['pc'] == 0x200
        assert state['v'] == [0] * 16
        assert state['stack'] == []
        # Old program bytes do not survive in the new image
        assert emu.memory.read_word(0x202) == 0x0000

    def test_reset_restarts_current_rom(self, emu):
        emu.load_bytes(assemble(0x6A05, 0x1202))
        emu.step()
        emu.reset()
        assert emu.cpu.state.pc == 0x200
        assert emu.cpu.state.v.get(0xA) == 0
        assert emu.memory.read_word(0x200) == 0x6A05


class TestRun:
    def test_max_steps(self, emu):
        emu.load_bytes(assemble(0x1200))
        steps = emu.run(max_steps=25)
        assert steps == 25
        assert emu.frames == 2
        assert not emu.running

    def test_timers_tick_once_per_frame(self, emu):
        emu.load_bytes(assemble(0x603C, 0xF015, 0x1204))
        emu.instructions_per_tick = 5
        emu.run(max_steps=50)
        # Ten full frames, one tick each
        assert emu.frames == 10
        assert emu.cpu.timers.delay == 50

    def test_fault_stops_and_propagates(self, emu):
        udp = RecordingUdpDebug()
        emu.attach_udp_debug(udp)
        emu.load_bytes(assemble(0x00EE))
        with pytest.raises(StackUnderflow):
            emu.run(max_steps=100)
        assert isinstance(emu.fault, StackUnderflow)
        assert not emu.running
        assert any("fault" in m for m in emu.interface.messages)
        event_types = [e[0] for e in udp.events]
        assert 'fatal' in event_types
        assert event_types[-1] == 'execution_stop'

    def test_unknown_opcode_does_not_stop(self, emu):
        emu.load_bytes(assemble(0xFFFF, 0x1200))
        assert emu.run(max_steps=10) == 10
        assert emu.fault is None
        assert emu.cpu.state.unknown_opcodes == 5

    def test_waiting_for_key_keeps_running(self, emu):
        emu.load_bytes(assemble(0xF10A, 0x1202))
        emu.run(max_steps=30)
        assert emu.cpu.waiting_for_key
        emu.press_key(4)
        emu.run(max_steps=1)
        assert emu.cpu.state.v.get(1) == 4


class TestRendering:
    def test_text_rows(self, emu):
        emu.load_bytes(assemble(0xA050, 0xD015))
        emu.step()
        emu.step()
        rows = emu.text_rows()
        assert len(rows) == 16
        assert all(len(row) == 64 for row in rows)
        assert rows[0][:4] == '█▀▀█'
        assert rows[0][4:] == ' ' * 60
        assert not emu.cpu.framebuffer.dirty

    def test_plain_render(self, emu):
        emu.load_bytes(assemble(0x00E0))
        emu.step()
        assert emu.render_text_screen(no_colors=True) == '\n'.join([' ' * 64] * 16)

    def test_render_follows_no_colors_setting(self, emu):
        emu.load_bytes(assemble(0xA050, 0xD015))
        emu.step()
        emu.step()
        emu.no_colors = True
        assert emu.render_text_screen() == emu.render_text_screen(no_colors=True)
        assert '\x1b[' not in emu.render_text_screen()

    def test_rich_render(self, emu):
        emu.load_bytes(assemble(0xA050, 0xD015))
        emu.step()
        emu.step()
        assert '█' in emu.render_text_screen()
        assert emu.screen_text().plain.count('\n') == 15


class TestVerboseLogging:
    def test_quiet_without_debug(self, emu):
        emu.load_bytes(assemble(0x1200))
        emu.interface.messages.clear()
        emu.verbose_log("detail")
        emu.run(max_steps=3)
        assert emu.interface.messages == []

    def test_debug_enables_verbose_lines(self, emu):
        emu.debug = True
        emu.load_bytes(assemble(0x1200))
        emu.verbose_log("detail")
        emu.run(max_steps=3)
        assert "detail" in emu.interface.messages
        assert any(m.startswith("▶️ Run:") for m in emu.interface.messages)


class TestState:
    def test_set_and_get_cpu_state(self, emu):
        emu.load_bytes(assemble(0x1200))
        emu.set_cpu_state({'pc': 0x234, 'i': 0x345, 'v': list(range(16)), 'delay': 9, 'sound': 3})
        state = emu.get_cpu_state()
        assert state['pc'] == 0x234
        assert state['i'] == 0x345
        assert state['v'] == list(range(16))
        assert (state['delay'], state['sound']) == (9, 3)
        assert emu.sound_active

    def test_dump_memory(self, emu):
        emu.load_bytes(assemble(0x1234))
        assert emu.dump_memory(0x200, 0x202) == b"\x12\x34"

    def test_state_reports_program_size(self, emu):
        emu.load_bytes(assemble(0x6001, 0x1202))
        assert emu.get_cpu_state()['program_size'] == 4
