"""
CHIP-8 Emulator - terminal Python implementation

Runs a CHIP-8 ROM in a Textual terminal UI, optionally controlled over
TCP/UDP.

Usage:
    python -m chip8py game.ch8
    python -m chip8py game.ch8 --ips 1000 --shift-vy
    python -m chip8py game.ch8 --tcp-port 1234 --no-colors
"""

from __future__ import annotations

import argparse
import random
import sys
import time

from .debug import DEFAULT_DEBUG_HOST, DEFAULT_DEBUG_PORT, UdpDebugLogger
from .emulator import DEFAULT_INSTRUCTIONS_PER_SECOND, Chip8Emulator
from .errors import Chip8Error
from .interpreter import Quirks
from .server import EmulatorServer
from .timers import TIMER_HZ
from .ui import TextualInterface


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="CHIP-8 Emulator (terminal)")
    ap.add_argument("rom", help="ROM file to load and run")
    ap.add_argument("--ips", type=int, default=DEFAULT_INSTRUCTIONS_PER_SECOND,
                    help=f"Instructions per second (default: {DEFAULT_INSTRUCTIONS_PER_SECOND})")
    ap.add_argument("--max-steps", type=int, default=None, help="Maximum steps to run (default: unlimited)")
    ap.add_argument("--tcp-port", type=int, help="TCP port for control interface")
    ap.add_argument("--udp-port", type=int, help="UDP port for control interface")
    ap.add_argument("--dump-memory", help="Dump memory to file after execution")
    ap.add_argument("--debug", action="store_true", help="Enable debug output")
    ap.add_argument("--udp-debug", action="store_true", help="Send debug events via UDP")
    ap.add_argument("--udp-debug-port", type=int, default=DEFAULT_DEBUG_PORT,
                    help=f"UDP port for debug events (default: {DEFAULT_DEBUG_PORT})")
    ap.add_argument("--udp-debug-host", type=str, default=DEFAULT_DEBUG_HOST,
                    help=f"UDP host for debug events (default: {DEFAULT_DEBUG_HOST})")
    ap.add_argument("--screen-update-interval", type=float, default=1.0 / 30,
                    help="Screen update interval in seconds (default: 1/30)")
    ap.add_argument("--no-colors", action="store_true", help="Run without the Textual interface and print the final screen")
    ap.add_argument("--fullscreen", action="store_true", help="Show only the CHIP-8 screen (no debug panel or status bar)")
    ap.add_argument("--autoquit", action="store_true", help="Quit when the emulator stops")
    ap.add_argument("--shift-vy", action="store_true", help="8xy6/8xyE shift Vy into Vx (COSMAC VIP)")
    ap.add_argument("--load-store-increment", action="store_true", help="Fx55/Fx65 advance I (COSMAC VIP)")
    ap.add_argument("--seed", type=int, default=None, help="Seed for the Cxkk random number generator")
    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    quirks = Quirks(shift_uses_vy=args.shift_vy, load_store_increments_i=args.load_store_increment)
    rng = random.Random(args.seed) if args.seed is not None else None
    emu = Chip8Emulator(quirks=quirks, rng=rng)
    emu.debug = args.debug
    emu.autoquit = args.autoquit
    emu.no_colors = args.no_colors
    emu.screen_update_interval = args.screen_update_interval
    emu.instructions_per_tick = max(1, args.ips // TIMER_HZ)

    interface = None
    if not emu.no_colors:
        interface = TextualInterface(emu, max_steps=args.max_steps, fullscreen=args.fullscreen)
        emu.attach_interface(interface)
        emu.verbose_log("🐛 Debug mode enabled")

    # Setup UDP debug logging if requested
    if args.udp_debug:
        udp_debug = UdpDebugLogger(port=args.udp_debug_port, host=args.udp_debug_host)
        udp_debug.enable()
        emu.attach_udp_debug(udp_debug)
        emu.add_debug_log(f"📡 UDP debug logging enabled: {args.udp_debug_host}:{args.udp_debug_port}")

    # ROM problems are reported before the run loop starts
    try:
        emu.load_rom(args.rom)
    except Chip8Error as e:
        print(f"Error: {e}", file=sys.stderr)
        if emu.udp_debug:
            emu.udp_debug.close()
        return 1

    emu.verbose_log(f"🎛️ Quirks: {quirks}")
    emu.verbose_log(f"⏱️ {emu.instructions_per_tick} instructions per {TIMER_HZ}Hz tick")

    # Start server if requested (runs in parallel with UI)
    server = None
    if args.tcp_port or args.udp_port:
        server = EmulatorServer(emu, tcp_port=args.tcp_port, udp_port=args.udp_port)
        server.start()
        emu.add_debug_log("📡 Server commands: STATUS, STEP, KEY, MEMORY, DUMP, SCREEN, LOAD, RESET")

    status = 0
    try:
        if interface is not None:
            emu.add_debug_log("🚀 CHIP-8 Emulator started")
            interface.run()  # Blocks until the Textual app exits
            emu.running = False
            last_lines = interface.get_last_log_lines(20)
            if last_lines:
                print("\n=== Last log messages ===")
                for line in last_lines:
                    print(line)
        else:
            print("Running emulator...")
            emu.run(args.max_steps)
            if server and server.running:
                print("Emulator stopped. Server still accepting commands, press Ctrl+C to quit")
                while server.running:
                    time.sleep(0.1)
    except KeyboardInterrupt:
        print("\nStopping emulator...")
        emu.running = False
    except Chip8Error as e:
        print(f"Fatal: {type(e).__name__}: {e}", file=sys.stderr)
    finally:
        if server:
            server.running = False

    if emu.fault is not None:
        status = 1

    if args.dump_memory:
        with open(args.dump_memory, 'wb') as f:
            f.write(emu.dump_memory())
        print(f"Memory dumped to {args.dump_memory}")

    if emu.no_colors:
        print("\nFinal Screen output:")
        print(emu.render_text_screen())

    if emu.udp_debug:
        emu.udp_debug.close()

    return status
