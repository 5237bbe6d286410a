"""Slot grid: outcome generation and line-win evaluation.

A spin's win/lose verdict is decided first (fixed probability), then a 5x5 grid is
filled to agree with it. The evaluator re-reads a grid and reports every matching
row, column and diagonal; it is used for highlighting only and never decides payout.
"""

import random
from dataclasses import dataclass, field
from typing import Sequence

from app.core.config import get_settings

GRID_SIZE = 5
SYMBOLS = ("⭐️", "🔔", "🍇", "🍋", "7️⃣")
WILD = "🕉"

ROW = "row"
COLUMN = "column"
MAIN_DIAGONAL = "main_diagonal"
ANTI_DIAGONAL = "anti_diagonal"
SHAPES = (ROW, COLUMN, MAIN_DIAGONAL, ANTI_DIAGONAL)

Grid = list[list[str]]
Cell = tuple[int, int]

_system_rng = random.SystemRandom()


@dataclass(frozen=True)
class Line:
    kind: str
    index: int  # row or column index; 0 for diagonals
    cells: tuple[Cell, ...]

    @property
    def description(self) -> str:
        if self.kind == ROW:
            return f"Row {self.index + 1} matches!"
        if self.kind == COLUMN:
            return f"Column {self.index + 1} matches!"
        if self.kind == MAIN_DIAGONAL:
            return "Diagonal from top-left matches!"
        return "Diagonal from top-right matches!"


def make_line(kind: str, index: int = 0) -> Line:
    n = GRID_SIZE
    if kind == ROW:
        cells = tuple((index, c) for c in range(n))
    elif kind == COLUMN:
        cells = tuple((r, index) for r in range(n))
    elif kind == MAIN_DIAGONAL:
        cells = tuple((i, i) for i in range(n))
    elif kind == ANTI_DIAGONAL:
        cells = tuple((i, n - 1 - i) for i in range(n))
    else:
        raise ValueError(f"Unknown line kind: {kind}")
    return Line(kind, index, cells)


# Evaluation order: rows, columns, then both diagonals.
ALL_LINES: tuple[Line, ...] = (
    tuple(make_line(ROW, i) for i in range(GRID_SIZE))
    + tuple(make_line(COLUMN, i) for i in range(GRID_SIZE))
    + (make_line(MAIN_DIAGONAL), make_line(ANTI_DIAGONAL))
)


# --- evaluation -------------------------------------------------------------


@dataclass
class WinResult:
    lines: list[Line] = field(default_factory=list)
    cells: list[Cell] = field(default_factory=list)

    @property
    def has_win(self) -> bool:
        return bool(self.lines)

    @property
    def description(self) -> str:
        return " ".join(line.description for line in self.lines)


def line_wins(symbols: Sequence[str]) -> bool:
    """A line wins when its first symbol is not wild and every other symbol equals it or is wild."""
    first = symbols[0]
    if first == WILD:
        return False
    return all(s == first or s == WILD for s in symbols)


def line_symbols(grid: Grid, line: Line) -> list[str]:
    return [grid[r][c] for r, c in line.cells]


def _check_shape(grid: Grid) -> None:
    if len(grid) != GRID_SIZE or any(len(row) != GRID_SIZE for row in grid):
        raise ValueError(f"Grid must be {GRID_SIZE}x{GRID_SIZE}")


def has_winning_line(grid: Grid) -> bool:
    _check_shape(grid)
    return any(line_wins(line_symbols(grid, line)) for line in ALL_LINES)


def find_winning_lines(grid: Grid) -> WinResult:
    """Collect every winning line with its cells (deduplicated, discovery order)."""
    _check_shape(grid)
    result = WinResult()
    seen: set[Cell] = set()
    for line in ALL_LINES:
        if not line_wins(line_symbols(grid, line)):
            continue
        result.lines.append(line)
        for cell in line.cells:
            if cell not in seen:
                seen.add(cell)
                result.cells.append(cell)
    return result


# --- generation -------------------------------------------------------------


@dataclass(frozen=True)
class SpinOutcome:
    grid: Grid
    won: bool  # authoritative for payout
    line: Line | None = None  # the forced line on a winning outcome


def random_symbol(rng: random.Random, wild_probability: float) -> str:
    if rng.random() < wild_probability:
        return WILD
    return rng.choice(SYMBOLS)


def random_grid(rng: random.Random, wild_probability: float) -> Grid:
    return [[random_symbol(rng, wild_probability) for _ in range(GRID_SIZE)] for _ in range(GRID_SIZE)]


def _pick_line(rng: random.Random) -> Line:
    kind = rng.choice(SHAPES)
    if kind in (ROW, COLUMN):
        return make_line(kind, rng.randrange(GRID_SIZE))
    return make_line(kind)


def winning_grid(rng: random.Random, wild_probability: float) -> tuple[Grid, Line]:
    line = _pick_line(rng)
    win_symbol = rng.choice(SYMBOLS)
    grid = random_grid(rng, wild_probability)
    for r, c in line.cells:
        grid[r][c] = win_symbol
    on_line = set(line.cells)
    off_line = [(r, c) for r in range(GRID_SIZE) for c in range(GRID_SIZE) if (r, c) not in on_line]
    for r, c in rng.sample(off_line, rng.randint(1, 3)):
        grid[r][c] = WILD
    return grid, line


def _break_line(grid: Grid, line: Line, rng: random.Random) -> None:
    # Re-roll a non-anchor cell to a non-wild symbol other than the anchor.
    ar, ac = line.cells[0]
    anchor = grid[ar][ac]
    r, c = rng.choice(line.cells[1:])
    grid[r][c] = rng.choice([s for s in SYMBOLS if s != anchor])


def losing_grid(rng: random.Random, wild_probability: float) -> Grid:
    """Random grid with every accidental line (rows, columns, diagonals) broken."""
    grid = random_grid(rng, wild_probability)
    while True:
        winners = [line for line in ALL_LINES if line_wins(line_symbols(grid, line))]
        if not winners:
            return grid
        for line in winners:
            # an earlier fix in this pass may already have broken it
            if line_wins(line_symbols(grid, line)):
                _break_line(grid, line, rng)


def generate_spin(
    rng: random.Random | None = None,
    win_probability: float | None = None,
    wild_probability: float | None = None,
) -> SpinOutcome:
    settings = get_settings()
    rng = rng or _system_rng
    if win_probability is None:
        win_probability = settings.spin_win_probability
    if wild_probability is None:
        wild_probability = settings.wild_probability

    if rng.random() < win_probability:
        grid, line = winning_grid(rng, wild_probability)
        return SpinOutcome(grid=grid, won=True, line=line)
    return SpinOutcome(grid=losing_grid(rng, wild_probability), won=False)
