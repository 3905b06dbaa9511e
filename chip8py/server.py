"""
TCP/UDP server for controlling the emulator
"""

from __future__ import annotations

import socket
import threading
from typing import Optional, Tuple

from .emulator import Chip8Emulator
from .errors import Chip8Error


HELP_TEXT = """CHIP-8 Emulator Server Commands:
STATUS              - Get current CPU state (PC, I, SP, DT, ST, MODE, STEPS)
REGS                - Get V0-VF
STEP [n]            - Execute n instructions (default 1)
TICK [n]            - Advance the 60Hz timers n times (default 1)
MEMORY <address>    - Read memory at address (hex, e.g. $0200 or 0200)
WRITE <addr> <val>  - Write value to memory address (hex)
DUMP [start] [end]  - Dump memory range as hex (default: $000-$1000)
SCREEN              - Get current screen contents (plain text)
KEY <k> DOWN|UP     - Press or release hex key k
LOAD <file>         - Load ROM file and restart
RESET               - Restart the current ROM
STOP                - Stop emulator execution
QUIT/EXIT           - Quit server and emulator
HELP/?              - Show this help message"""


COMMAND_ALIASES = {"?": "HELP", "EXIT": "QUIT"}


def parse_hex(text: str) -> int:
    return int(text.replace('$', '').replace('0x', '').replace('0X', ''), 16)


class EmulatorServer:
    """TCP/UDP server for controlling the emulator"""

    def __init__(self, emu: Chip8Emulator, tcp_port: Optional[int] = None, udp_port: Optional[int] = None,
                 host: str = 'localhost'):
        self.emu = emu
        self.tcp_port = tcp_port
        self.udp_port = udp_port
        self.host = host
        self.running = False

    def start(self) -> None:
        """Start the server"""
        self.running = True

        if self.tcp_port:
            tcp_thread = threading.Thread(target=self._tcp_server, daemon=True)
            tcp_thread.start()
            self.emu.add_debug_log(f"📡 TCP server listening on port {self.tcp_port}")

        if self.udp_port:
            udp_thread = threading.Thread(target=self._udp_server, daemon=True)
            udp_thread.start()
            self.emu.add_debug_log(f"📡 UDP server listening on port {self.udp_port}")

    def _tcp_server(self) -> None:
        """TCP server thread"""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((self.host, self.tcp_port))
        sock.listen(5)
        sock.settimeout(0.5)

        with sock:
            while self.running:
                try:
                    conn, addr = sock.accept()
                except socket.timeout:
                    continue
                except OSError as e:
                    if self.running:
                        self.emu.add_debug_log(f"❌ TCP server error: {e}")
                    continue
                threading.Thread(target=self._handle_tcp_client, args=(conn, addr), daemon=True).start()

    def _udp_server(self) -> None:
        """UDP server thread"""
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        sock.bind((self.host, self.udp_port))
        sock.settimeout(0.5)

        with sock:
            while self.running:
                try:
                    data, addr = sock.recvfrom(1024)
                except socket.timeout:
                    continue
                except OSError as e:
                    if self.running:
                        self.emu.add_debug_log(f"❌ UDP server error: {e}")
                    continue
                response = self.handle_command(data.decode('utf-8', errors='ignore'))
                if response:
                    sock.sendto(response.encode('utf-8'), addr)

    def _handle_tcp_client(self, conn: socket.socket, addr: Tuple) -> None:
        """Handle TCP client connection"""
        try:
            buffer = b""
            while self.running:
                data = conn.recv(1024)
                if not data:
                    break
                buffer += data
                while b"\n" in buffer:
                    line, buffer = buffer.split(b"\n", 1)
                    command = line.decode('utf-8', errors='ignore').strip()
                    response = self.handle_command(command)
                    if response:
                        conn.sendall(response.encode('utf-8') + b'\n')
        except OSError as e:
            self.emu.add_debug_log(f"❌ TCP client {addr[0]}:{addr[1]} error: {e}")
        finally:
            conn.close()

    def handle_command(self, command: str) -> str:
        """Handle a command and return response"""
        parts = command.split()
        if not parts:
            return "OK"

        cmd = parts[0].upper()
        cmd = COMMAND_ALIASES.get(cmd, cmd)
        handler = getattr(self, f"_cmd_{cmd.lower()}", None)
        if handler is None:
            return f"ERROR: Unknown command '{cmd}'"

        try:
            return handler(parts[1:])
        except ValueError as e:
            return f"ERROR: Invalid argument: {e}"
        except Chip8Error as e:
            return f"ERROR: {type(e).__name__}: {e}"

    def _cmd_help(self, args) -> str:
        return HELP_TEXT

    def _cmd_status(self, args) -> str:
        state = self.emu.get_cpu_state()
        return (f"PC=${state['pc']:03X} I=${state['i']:03X} SP={state['sp']} "
                f"DT={state['delay']} ST={state['sound']} MODE={state['mode']} "
                f"STEPS={state['steps']} UNKNOWN={state['unknown_opcodes']} SIZE={state['program_size']}")

    def _cmd_regs(self, args) -> str:
        values = self.emu.get_cpu_state()['v']
        return " ".join(f"V{reg:X}=${value:02X}" for reg, value in enumerate(values))

    def _cmd_step(self, args) -> str:
        count = int(args[0]) if args else 1
        for _ in range(count):
            self.emu.step()
        return f"OK PC=${self.emu.cpu.state.pc:03X}"

    def _cmd_tick(self, args) -> str:
        count = int(args[0]) if args else 1
        for _ in range(count):
            self.emu.tick()
        return f"OK DT={self.emu.cpu.timers.delay} ST={self.emu.cpu.timers.sound}"

    def _cmd_memory(self, args) -> str:
        if not args:
            return "ERROR: Missing address"
        addr = parse_hex(args[0])
        with self.emu.lock:
            value = self.emu.memory.read_byte(addr)
        return f"${addr:03X}={value:02X}"

    def _cmd_write(self, args) -> str:
        if len(args) < 2:
            return "ERROR: Missing address or value"
        addr = parse_hex(args[0])
        value = parse_hex(args[1])
        with self.emu.lock:
            self.emu.memory.write_byte(addr, value)
        return "OK"

    def _cmd_dump(self, args) -> str:
        start = parse_hex(args[0]) if len(args) > 0 else 0x000
        end = parse_hex(args[1]) if len(args) > 1 else 0x1000
        return self.emu.dump_memory(start, end).hex()

    def _cmd_screen(self, args) -> str:
        return self.emu.render_text_screen(no_colors=True)

    def _cmd_key(self, args) -> str:
        if len(args) < 2:
            return "ERROR: Usage KEY <k> DOWN|UP"
        key = parse_hex(args[0])
        action = args[1].upper()
        if action == "DOWN":
            self.emu.press_key(key)
        elif action == "UP":
            self.emu.release_key(key)
        else:
            return f"ERROR: Unknown key action '{args[1]}'"
        return "OK"

    def _cmd_load(self, args) -> str:
        if not args:
            return "ERROR: Missing ROM file path"
        self.emu.load_rom(args[0])
        return "OK"

    def _cmd_reset(self, args) -> str:
        self.emu.reset()
        return "OK"

    def _cmd_stop(self, args) -> str:
        self.emu.running = False
        return "OK"

    def _cmd_quit(self, args) -> str:
        self.running = False
        self.emu.running = False
        return "OK"
