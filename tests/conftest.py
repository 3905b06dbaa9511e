"""
Shared fixtures for the CHIP-8 test suite.

Programs are hand-assembled 16-bit words loaded at $200.
"""

import random

import pytest

from chip8py.interpreter import Interpreter


RNG_SEED = 1234


class RecordingInterface:
    """Stands in for the Textual interface; keeps debug log lines"""

    def __init__(self):
        self.messages = []

    def add_debug_log(self, message):
        self.messages.append(message)


class RecordingUdpDebug:
    """Stands in for UdpDebugLogger; keeps sent events"""

    enabled = True

    def __init__(self):
        self.events = []

    def send(self, event_type, data):
        self.events.append((event_type, data))


def assemble(*words):
    return b"".join(word.to_bytes(2, "big") for word in words)


@pytest.fixture
def debug_log():
    return RecordingInterface()


@pytest.fixture
def make_cpu(debug_log):
    """Build an interpreter with the given words loaded at $200"""

    def _make(*words, quirks=None):
        cpu = Interpreter(quirks=quirks, rng=random.Random(RNG_SEED), interface=debug_log)
        cpu.load_program(assemble(*words))
        return cpu

    return _make
