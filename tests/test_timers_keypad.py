"""
Timer unit and keypad latch tests
"""

import pytest

from chip8py.keypad import Keypad
from chip8py.timers import TimerUnit


class TestTimerUnit:
    def test_floor_at_zero(self):
        timers = TimerUnit(delay=3)
        for _ in range(5):
            timers.tick()
        assert timers.delay == 0

    def test_timers_are_independent(self):
        timers = TimerUnit(delay=1, sound=3)
        timers.tick()
        assert (timers.delay, timers.sound) == (0, 2)
        assert timers.sound_active
        timers.tick()
        timers.tick()
        assert not timers.sound_active


class TestKeypad:
    def test_press_and_release(self):
        keypad = Keypad()
        keypad.press(0xA)
        assert keypad.is_pressed(0xA)
        keypad.release(0xA)
        assert not keypad.is_pressed(0xA)

    def test_press_edges_queue_in_order(self):
        keypad = Keypad()
        keypad.press(3)
        keypad.press(3)  # already down, no new edge
        keypad.press(1)
        assert keypad.take_press() == 3
        assert keypad.take_press() == 1
        assert keypad.take_press() is None

    def test_edge_survives_quick_release(self):
        keypad = Keypad()
        keypad.press(9)
        keypad.release(9)
        assert keypad.take_press() == 9

    def test_clear_presses(self):
        keypad = Keypad()
        keypad.press(2)
        keypad.clear_presses()
        assert keypad.take_press() is None
        assert keypad.is_pressed(2)

    def test_set_keys(self):
        keypad = Keypad()
        keypad.set_keys([k in (0, 15) for k in range(16)])
        assert keypad.keys[0] and keypad.keys[15]
        assert sum(keypad.keys) == 2
        keypad.set_keys([False] * 16)
        assert not any(keypad.keys)

    def test_set_keys_requires_sixteen(self):
        with pytest.raises(ValueError):
            Keypad().set_keys([True] * 15)

    @pytest.mark.parametrize("key", [-1, 16])
    def test_invalid_key(self, key):
        with pytest.raises(ValueError):
            Keypad().press(key)

    def test_edge_queue_keeps_latest_sixteen(self):
        keypad = Keypad()
        for n in range(40):
            keypad.press(n % 16)
            keypad.release(n % 16)
        pending = [keypad.take_press() for _ in range(17)]
        assert pending == [n % 16 for n in range(24, 40)] + [None]
