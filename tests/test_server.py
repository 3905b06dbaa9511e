"""
Control server command tests (no sockets are opened)
"""

import pytest

from chip8py.emulator import Chip8Emulator
from chip8py.server import EmulatorServer, parse_hex

from .conftest import RecordingInterface, assemble


@pytest.fixture
def server():
    emu = Chip8Emulator()
    emu.throttle = False
    emu.attach_interface(RecordingInterface())
    emu.load_bytes(assemble(0x6A05, 0x2300, 0x1204))
    return EmulatorServer(emu)


class TestParseHex:
    @pytest.mark.parametrize("text, value", [("200", 0x200), ("$200", 0x200), ("0x200", 0x200), ("ff", 0xFF)])
    def test_prefixes(self, text, value):
        assert parse_hex(text) == value


class TestCommands:
    def test_status(self, server):
        assert server.handle_command("STATUS").startswith("PC=$200 I=$000 SP=0")
        assert server.handle_command("STATUS").endswith("SIZE=6")

    def test_empty_command(self, server):
        assert server.handle_command("   ") == "OK"

    def test_help_and_alias(self, server):
        assert "STATUS" in server.handle_command("HELP")
        assert server.handle_command("?") == server.handle_command("help")

    def test_step_and_regs(self, server):
        assert server.handle_command("STEP 2") == "OK PC=$300"
        assert "VA=$05" in server.handle_command("REGS")
        assert "SP=1" in server.handle_command("STATUS")

    def test_step_fault_reports_error(self, server):
        server.handle_command("WRITE 200 00")
        server.handle_command("WRITE 201 EE")
        response = server.handle_command("STEP")
        assert response.startswith("ERROR: StackUnderflow")

    def test_tick(self, server):
        server.emu.set_cpu_state({'delay': 5})
        assert server.handle_command("TICK 2") == "OK DT=3 ST=0"

    def test_memory_and_write(self, server):
        assert server.handle_command("MEMORY $200") == "$200=6A"
        assert server.handle_command("WRITE 300 AB") == "OK"
        assert server.handle_command("MEMORY 300") == "$300=AB"

    def test_memory_out_of_bounds(self, server):
        assert server.handle_command("MEMORY 1000").startswith("ERROR: OutOfBounds")

    def test_bad_number(self, server):
        assert server.handle_command("MEMORY zz").startswith("ERROR: Invalid argument")

    def test_dump(self, server):
        assert server.handle_command("DUMP 200 204") == "6a052300"

    def test_screen(self, server):
        assert server.handle_command("SCREEN") == '\n'.join([' ' * 64] * 16)

    def test_key(self, server):
        assert server.handle_command("KEY a DOWN") == "OK"
        assert server.emu.cpu.keypad.is_pressed(0xA)
        assert server.handle_command("KEY a UP") == "OK"
        assert not server.emu.cpu.keypad.is_pressed(0xA)
        assert server.handle_command("KEY a SIDEWAYS").startswith("ERROR")

    def test_load_missing(self, server, tmp_path):
        response = server.handle_command(f"LOAD {tmp_path / 'nope.ch8'}")
        assert response.startswith("ERROR: RomLoadError")

    def test_load(self, server, tmp_path):
        rom = tmp_path / "rom.ch8"
        rom.write_bytes(assemble(0x00E0))
        assert server.handle_command(f"LOAD {rom}") == "OK"
        assert server.handle_command("MEMORY 200") == "$200=00"

    def test_reset(self, server):
        server.handle_command("STEP 2")
        assert server.handle_command("RESET") == "OK"
        assert server.handle_command("STATUS").startswith("PC=$200")

    def test_unknown(self, server):
        assert server.handle_command("FOO") == "ERROR: Unknown command 'FOO'"

    def test_stop_and_quit(self, server):
        server.running = True
        server.emu.running = True
        assert server.handle_command("STOP") == "OK"
        assert not server.emu.running
        assert server.running
        assert server.handle_command("EXIT") == "OK"
        assert not server.running
