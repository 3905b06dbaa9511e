"""
Delay and sound timers
"""

from __future__ import annotations

from dataclasses import dataclass


TIMER_HZ = 60


@dataclass
class TimerUnit:
    """Two 8-bit countdown timers, decremented once per 60Hz tick"""
    delay: int = 0
    sound: int = 0

    def tick(self) -> None:
        """Decrement both timers, stopping at zero"""
        if self.delay > 0:
            self.delay -= 1
        if self.sound > 0:
            self.sound -= 1

    @property
    def sound_active(self) -> bool:
        """True while the host should be playing a tone"""
        return self.sound > 0

    def reset(self) -> None:
        self.delay = 0
        self.sound = 0
