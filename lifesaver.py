#!/usr/bin/env python3
"""
  L I F E S A V E R
  Conway's Game of Life as a full-screen terminal screensaver.

  Every terminal cell is one simulation cell. Live cells are painted with a
  white background, dead cells are left blank. The board is seeded at random
  and advances one generation every half second. Resizing the terminal
  reseeds the board at the new size.

  Edges are toroidal by default (the board wraps around). A clamped policy,
  where everything beyond the edge counts as dead, can be selected through
  LifeConfig.

  Controls:
    q         quit
"""

from __future__ import annotations

import curses
import enum
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, ClassVar, Protocol, TextIO

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.ndimage import convolve

# ── Rendering constants ─────────────────────────────────────────────────
LIVE_COLOR: int = curses.COLOR_WHITE
BLANK: int = -1

# ── Debug dump characters ───────────────────────────────────────────────
LIVE_CHAR = "0"
DEAD_CHAR = " "

# ── Convolution kernel (reused every step) ────────────────────────────
NEIGHBOR_KERNEL: NDArray = np.array([[1, 1, 1], [1, 0, 1], [1, 1, 1]], dtype=np.int16)
NEIGHBOR_OFFSETS: list[tuple[int, int]] = [
    (dr, dc) for dr in (-1, 0, 1) for dc in (-1, 0, 1) if (dr, dc) != (0, 0)
]

# ── Loop timing ─────────────────────────────────────────────────────────
FRAME_TIMEOUT_MS: int = 500
QUIT_KEYS: tuple[int, ...] = (ord("q"), ord("Q"))
LOG_EVERY: int = 10


class BoundaryPolicy(enum.Enum):
    """How neighbour lookups behave at the edge of the board."""

    TOROIDAL = "toroidal"  # opposite edges are adjacent
    CLAMPED = "clamped"    # cells beyond the edge are dead

    @property
    def convolve_mode(self) -> str:
        return "wrap" if self is BoundaryPolicy.TOROIDAL else "constant"


# ═══════════════════════════════════════════════════════════════════════
#  Configuration
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class LifeConfig:
    """Runtime settings for the screensaver loop."""

    boundary: BoundaryPolicy = BoundaryPolicy.TOROIDAL
    frame_timeout_ms: int = FRAME_TIMEOUT_MS
    quit_keys: tuple[int, ...] = QUIT_KEYS
    live_color: int = LIVE_COLOR
    seed: int | None = None
    stats_path: Path | None = None

    def __post_init__(self) -> None:
        if self.frame_timeout_ms <= 0:
            raise ValueError(
                f"frame_timeout_ms must be positive, got {self.frame_timeout_ms}"
            )
        if not self.quit_keys:
            raise ValueError("quit_keys must name at least one key")


DEFAULT_CONFIG = LifeConfig()


# ═══════════════════════════════════════════════════════════════════════
#  Stats logger
# ═══════════════════════════════════════════════════════════════════════

class StatsLogger:
    """Writes simulation telemetry to CSV for offline inspection."""

    HEADER: ClassVar[str] = "gen,time_s,population,height,width,event\n"

    def __init__(self, path: Path) -> None:
        self._path = path
        self._fh: IO[str] | None = None
        self._t0: float = time.monotonic()

    @property
    def is_open(self) -> bool:
        return self._fh is not None

    def open(self) -> None:
        """Start a fresh CSV. If the file can't be written, log() does nothing."""
        try:
            self._fh = self._path.open("w")
            self._fh.write(self.HEADER)
            self._fh.flush()
        except OSError:
            self.close()

    def log(self, life: LifeGrid, event: str = "") -> None:
        if self._fh is None:
            return
        t = time.monotonic() - self._t0
        self._fh.write(
            f"{life.generation},{t:.1f},{life.population()},"
            f"{life.height},{life.width},{event}\n"
        )
        # Flush on events or periodically
        if event or life.generation % 50 == 0:
            try:
                self._fh.flush()
            except OSError:
                pass

    def close(self) -> None:
        fh, self._fh = self._fh, None
        if fh is None:
            return
        try:
            fh.close()
        except OSError:
            pass


# ═══════════════════════════════════════════════════════════════════════
#  The board
# ═══════════════════════════════════════════════════════════════════════

class LifeGrid:
    """
    A fixed-size Game of Life board.

    Cells live in a boolean ``(height, width)`` array. Each update builds
    the whole next generation from the current one before swapping it in,
    so no cell ever sees a neighbour's new value mid-step.

    Neighbour counts exclude the cell itself: a cell is alive next
    generation if it has exactly 3 live neighbours, or exactly 2 and is
    already alive.
    """

    def __init__(
        self,
        height: int,
        width: int,
        boundary: BoundaryPolicy = BoundaryPolicy.TOROIDAL,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.boundary: BoundaryPolicy = boundary
        self.rng: np.random.Generator = rng if rng is not None else np.random.default_rng()
        self.generation: int = 0
        self.cells: NDArray[np.bool_] = self._random_cells(height, width)

    @classmethod
    def from_cells(
        cls,
        cells: ArrayLike,
        boundary: BoundaryPolicy = BoundaryPolicy.TOROIDAL,
        rng: np.random.Generator | None = None,
    ) -> LifeGrid:
        """Build a board from an explicit table of live/dead values."""
        try:
            table = np.array(cells, dtype=np.bool_)
        except ValueError as exc:
            raise ValueError("cell table must be rectangular") from exc
        if table.ndim != 2:
            raise ValueError(f"cell table must be 2-dimensional, got {table.ndim} dims")
        life = cls(0, 0, boundary, rng)
        life.cells = table
        return life

    # ── Seeding ─────────────────────────────────────────────────────

    def _random_cells(self, height: int, width: int) -> NDArray[np.bool_]:
        if height < 0 or width < 0:
            raise ValueError(f"grid dimensions must be >= 0, got {height}x{width}")
        return self.rng.random((height, width)) < 0.5

    def resize(self, new_height: int, new_width: int) -> None:
        """Discard the board and reseed it at the new dimensions."""
        self.cells = self._random_cells(new_height, new_width)
        self.generation = 0

    # ── Queries ─────────────────────────────────────────────────────

    @property
    def height(self) -> int:
        return self.cells.shape[0]

    @property
    def width(self) -> int:
        return self.cells.shape[1]

    @property
    def shape(self) -> tuple[int, int]:
        return self.height, self.width

    def cell(self, row: int, col: int) -> bool:
        return bool(self.cells[row, col])

    def population(self) -> int:
        return int(self.cells.sum())

    def neighbors(self, row: int, col: int) -> list[tuple[int, int]]:
        """Coordinates of the cells counted as neighbours of (row, col)."""
        h, w = self.shape
        if self.boundary is BoundaryPolicy.TOROIDAL:
            return [((row + dr) % h, (col + dc) % w) for dr, dc in NEIGHBOR_OFFSETS]
        return [
            (row + dr, col + dc)
            for dr, dc in NEIGHBOR_OFFSETS
            if 0 <= row + dr < h and 0 <= col + dc < w
        ]

    def neighbor_counts(self) -> NDArray[np.int16]:
        """Live-neighbour count for every cell under the boundary policy."""
        if self.cells.size == 0:
            return np.zeros(self.shape, dtype=np.int16)
        return convolve(
            self.cells.astype(np.int16),
            NEIGHBOR_KERNEL,
            mode=self.boundary.convolve_mode,
            cval=0,
        )

    # ── Simulation ──────────────────────────────────────────────────

    def update(self) -> None:
        """Advance one generation."""
        if self.cells.size == 0:
            return

        alive = self.cells
        n = self.neighbor_counts()
        self.cells = (n == 3) | (alive & (n == 2))
        self.generation += 1

    # ── Debug output ────────────────────────────────────────────────

    def __str__(self) -> str:
        return "".join(
            "".join(LIVE_CHAR if c else DEAD_CHAR for c in row) + "\n"
            for row in self.cells.tolist()
        )

    def __repr__(self) -> str:
        return (
            f"LifeGrid({self.height}x{self.width}, {self.boundary.value}, "
            f"gen={self.generation}, pop={self.population()})"
        )

    def dump(self, stream: TextIO | None = None) -> None:
        """Write a crude text picture of the board. For debugging only."""
        out = stream if stream is not None else sys.stderr
        out.write(str(self))
        out.flush()


# ═══════════════════════════════════════════════════════════════════════
#  Rendering
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Rect:
    """A rectangular region of a surface, in cell units."""

    x: int
    y: int
    width: int
    height: int

    @property
    def left(self) -> int:
        return self.x

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def top(self) -> int:
        return self.y

    @property
    def bottom(self) -> int:
        return self.y + self.height


class Surface(Protocol):
    """Anything with per-cell background state addressed by (x, y)."""

    def reset_cell(self, x: int, y: int) -> None: ...

    def set_cell_fill(self, x: int, y: int, color: int) -> None: ...


def render(
    life: LifeGrid, area: Rect, surface: Surface, color: int = LIVE_COLOR
) -> None:
    """Paint ``life`` onto ``surface`` over ``area``.

    Every position in the area is reset; positions backed by a live cell
    get a ``color`` background. Positions past the board's edge (the
    surface can briefly be bigger than the board after a resize) stay blank.
    """
    for y in range(area.top, area.bottom):
        for x in range(area.left, area.right):
            surface.reset_cell(x, y)

    # Only the overlap of area and board is ever read
    y1 = min(area.bottom, life.height)
    x1 = min(area.right, life.width)
    if area.top >= y1 or area.left >= x1:
        return
    live = life.cells[area.top : y1, area.left : x1]
    for dy, dx in zip(*np.nonzero(live)):
        surface.set_cell_fill(area.left + int(dx), area.top + int(dy), color)


class BufferSurface:
    """In-memory surface: a (height, width) array of fill colors."""

    def __init__(self, width: int, height: int) -> None:
        self.fill: NDArray[np.int16] = np.full((height, width), BLANK, dtype=np.int16)

    @property
    def area(self) -> Rect:
        h, w = self.fill.shape
        return Rect(0, 0, w, h)

    def _check(self, x: int, y: int) -> None:
        h, w = self.fill.shape
        if not (0 <= x < w and 0 <= y < h):
            raise IndexError(f"cell ({x}, {y}) outside {w}x{h} surface")

    def reset_cell(self, x: int, y: int) -> None:
        self._check(x, y)
        self.fill[y, x] = BLANK

    def set_cell_fill(self, x: int, y: int, color: int) -> None:
        self._check(x, y)
        self.fill[y, x] = color


@dataclass
class ColorMap:
    """Allocates curses color pairs for background fills on demand."""

    _fill_pairs: dict[int, int] = field(default_factory=dict)
    _has_colors: bool = False

    def setup(self) -> None:
        self._has_colors = curses.has_colors()
        if self._has_colors:
            curses.start_color()
            curses.use_default_colors()

    def fill(self, color: int) -> int:
        """Attribute that paints ``color`` behind the terminal default fg."""
        if not self._has_colors:
            return curses.A_REVERSE
        pair_id = self._fill_pairs.get(color)
        if pair_id is None:
            pair_id = len(self._fill_pairs) + 1
            curses.init_pair(pair_id, -1, color)
            self._fill_pairs[color] = pair_id
        return curses.color_pair(pair_id)


class CursesSurface:
    """Surface backed by a curses window."""

    def __init__(self, window: curses.window, cmap: ColorMap) -> None:
        self._win = window
        self._cmap = cmap

    @property
    def area(self) -> Rect:
        max_y, max_x = self._win.getmaxyx()
        return Rect(0, 0, max_x, max_y)

    def reset_cell(self, x: int, y: int) -> None:
        try:
            self._win.addstr(y, x, DEAD_CHAR, curses.A_NORMAL)
        except curses.error:
            # The bottom-right cell is written, but the cursor can't advance
            max_y, max_x = self._win.getmaxyx()
            if (y, x) != (max_y - 1, max_x - 1):
                raise

    def set_cell_fill(self, x: int, y: int, color: int) -> None:
        self._win.chgat(y, x, 1, self._cmap.fill(color))


# ═══════════════════════════════════════════════════════════════════════
#  Main loop
# ═══════════════════════════════════════════════════════════════════════

def run_loop(
    window: curses.window,
    life: LifeGrid,
    surface: Surface,
    config: LifeConfig = DEFAULT_CONFIG,
    logger: StatsLogger | None = None,
) -> None:
    """Render, wait for input, step. Returns when a quit key is pressed.

    ``window`` only needs ``getch``, ``getmaxyx`` and ``refresh``; its
    input timeout must already be set. The wait for input doubles as the
    frame delay.
    """
    while True:
        max_y, max_x = window.getmaxyx()
        render(life, Rect(0, 0, max_x, max_y), surface, config.live_color)
        window.refresh()

        key = window.getch()
        if key in config.quit_keys:
            if logger is not None:
                logger.log(life, "quit")
            break
        if key == curses.KEY_RESIZE:
            max_y, max_x = window.getmaxyx()
            life.resize(max_y, max_x)
            if logger is not None:
                logger.log(life, "resize")

        life.update()

        # An empty board never advances, so generation 0 is not a log point
        if logger is not None and life.generation > 0 and life.generation % LOG_EVERY == 0:
            logger.log(life)


def main(stdscr: curses.window, config: LifeConfig = DEFAULT_CONFIG) -> None:
    curses.curs_set(0)
    stdscr.timeout(config.frame_timeout_ms)

    cmap = ColorMap()
    cmap.setup()
    surface = CursesSurface(stdscr, cmap)

    max_y, max_x = stdscr.getmaxyx()
    life = LifeGrid(max_y, max_x, config.boundary, np.random.default_rng(config.seed))

    logger: StatsLogger | None = None
    if config.stats_path is not None:
        logger = StatsLogger(config.stats_path)
        logger.open()

    try:
        run_loop(stdscr, life, surface, config, logger)
    finally:
        if logger is not None:
            logger.close()


def run() -> None:
    """Console entry point. curses.wrapper restores the terminal on any exit."""
    try:
        curses.wrapper(main)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
