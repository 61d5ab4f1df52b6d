from __future__ import annotations

import curses
from typing import Sequence

import numpy as np

from lifesaver import BoundaryPolicy, LifeGrid


def make_grid(
    height: int,
    width: int,
    live: Sequence[tuple[int, int]] = (),
    boundary: BoundaryPolicy = BoundaryPolicy.TOROIDAL,
) -> LifeGrid:
    """Dead board of the given size with ``live`` (row, col) cells switched on."""
    cells = np.zeros((height, width), dtype=bool)
    for r, c in live:
        cells[r, c] = True
    return LifeGrid.from_cells(cells, boundary, np.random.default_rng(0))


def live_cells(life: LifeGrid) -> set[tuple[int, int]]:
    return {(int(r), int(c)) for r, c in zip(*np.nonzero(life.cells))}


class FakeWindow:
    """Scripted stand-in for a curses window driving the loop."""

    def __init__(
        self,
        keys: list[int],
        size: tuple[int, int],
        resize_to: tuple[int, int] | None = None,
    ) -> None:
        self._keys = list(keys)
        self.size = size
        self._resize_to = resize_to
        self.refreshes = 0

    def getmaxyx(self) -> tuple[int, int]:
        return self.size

    def refresh(self) -> None:
        self.refreshes += 1

    def getch(self) -> int:
        key = self._keys.pop(0)
        if key == curses.KEY_RESIZE and self._resize_to is not None:
            self.size = self._resize_to
        return key
