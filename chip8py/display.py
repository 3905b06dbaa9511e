"""
64x32 monochrome framebuffer
"""

from __future__ import annotations

from typing import Iterable, List


DISPLAY_WIDTH = 64
DISPLAY_HEIGHT = 32


class Framebuffer:
    """One-bit pixel grid. Only clear() and draw_sprite() mutate it."""

    def __init__(self, width: int = DISPLAY_WIDTH, height: int = DISPLAY_HEIGHT):
        self.width = width
        self.height = height
        self.grid = [bytearray(width) for _ in range(height)]
        self.dirty = True  # Set on every mutation, cleared by the renderer

    def clear(self) -> None:
        for row in self.grid:
            row[:] = bytes(self.width)
        self.dirty = True

    def draw_sprite(self, x: int, y: int, sprite: Iterable[int]) -> bool:
        """XOR sprite rows onto the grid, return True if any lit pixel was erased.

        Drawing starts at (x mod width, y mod height). Each row wraps
        horizontally on its own; rows past the bottom edge continue from
        the top.
        """
        x0 = x % self.width
        y0 = y % self.height
        collision = False
        for r, bits in enumerate(sprite):
            row = self.grid[(y0 + r) % self.height]
            for c in range(8):
                if bits & (0x80 >> c):
                    col = (x0 + c) % self.width
                    if row[col]:
                        collision = True
                    row[col] ^= 1
        self.dirty = True
        return collision

    def pixel(self, x: int, y: int) -> int:
        return self.grid[y][x]

    def rows(self) -> List[List[int]]:
        """Copy of the grid, top row first"""
        return [list(row) for row in self.grid]

    def lit_count(self) -> int:
        return sum(sum(row) for row in self.grid)
