"""
Hex keypad input latch

The host owns the key states; the interpreter only reads them. Press
edges (released -> pressed) are queued so Fx0A can pick up a key that
was pressed and released between two steps. Only the most recent
sixteen edges are kept.
"""

from __future__ import annotations

from collections import deque
from typing import Iterable, List, Optional


KEY_COUNT = 16


class Keypad:
    def __init__(self):
        self.keys: List[bool] = [False] * KEY_COUNT
        self._presses: deque = deque(maxlen=KEY_COUNT)  # Oldest edges fall off

    def _check(self, key: int) -> None:
        if not 0 <= key < KEY_COUNT:
            raise ValueError(f"no such key: {key!r}")

    def press(self, key: int) -> None:
        self._check(key)
        if not self.keys[key]:
            self.keys[key] = True
            self._presses.append(key)

    def release(self, key: int) -> None:
        self._check(key)
        self.keys[key] = False

    def set_keys(self, states: Iterable[bool]) -> None:
        """Replace all sixteen key states at once"""
        states = [bool(s) for s in states]
        if len(states) != KEY_COUNT:
            raise ValueError(f"expected {KEY_COUNT} key states, got {len(states)}")
        for key, down in enumerate(states):
            if down:
                self.press(key)
            else:
                self.release(key)

    def is_pressed(self, key: int) -> bool:
        self._check(key)
        return self.keys[key]

    def take_press(self) -> Optional[int]:
        """Oldest pending press edge, or None"""
        if self._presses:
            return self._presses.popleft()
        return None

    def clear_presses(self) -> None:
        self._presses.clear()

    def reset(self) -> None:
        self.keys = [False] * KEY_COUNT
        self._presses.clear()
