"""Grid generation and line-win evaluation (pure, no DB)."""

import random

import pytest

from app.services import grid as grid_service
from app.services.grid import WILD, find_winning_lines, generate_spin, has_winning_line, line_wins

STAR, BELL, GRAPE, LEMON, SEVEN = grid_service.SYMBOLS


def _losing_base() -> list[list[str]]:
    # No row, column or diagonal matches.
    return [
        [STAR, BELL, GRAPE, LEMON, SEVEN],
        [GRAPE, LEMON, SEVEN, STAR, BELL],
        [SEVEN, STAR, BELL, GRAPE, LEMON],
        [BELL, GRAPE, LEMON, SEVEN, STAR],
        [LEMON, SEVEN, STAR, BELL, GRAPE],
    ]


def test_all_wild_line_never_wins():
    assert line_wins([WILD] * 5) is False


def test_single_symbol_with_wilds_wins():
    assert line_wins([BELL, WILD, BELL, WILD, WILD]) is True
    assert line_wins([SEVEN] * 5) is True


def test_wild_anchor_does_not_win_even_if_rest_match():
    assert line_wins([WILD, BELL, BELL, BELL, BELL]) is False


def test_two_distinct_symbols_never_win():
    assert line_wins([BELL, WILD, BELL, GRAPE, BELL]) is False
    assert line_wins([BELL, BELL, BELL, BELL, LEMON]) is False


def test_base_grid_has_no_win():
    grid = _losing_base()
    assert has_winning_line(grid) is False
    result = find_winning_lines(grid)
    assert not result.has_win
    assert result.cells == []
    assert result.description == ""


def test_row_win_reports_cells_and_description():
    grid = _losing_base()
    grid[2] = [LEMON, WILD, LEMON, LEMON, WILD]
    result = find_winning_lines(grid)
    assert [line.description for line in result.lines] == ["Row 3 matches!"]
    assert result.cells == [(2, c) for c in range(5)]


def test_collects_every_matching_line_in_order():
    grid = _losing_base()
    for i in range(5):
        grid[i][0] = STAR  # column 1
        grid[i][i] = STAR  # main diagonal
    result = find_winning_lines(grid)
    assert result.description == "Column 1 matches! Diagonal from top-left matches!"
    # (0, 0) is shared and listed once
    assert len(result.cells) == 9
    assert result.cells[0] == (0, 0)


def test_anti_diagonal_win():
    grid = _losing_base()
    for i in range(5):
        grid[i][4 - i] = GRAPE
    grid[2][2] = WILD
    result = find_winning_lines(grid)
    assert result.description == "Diagonal from top-right matches!"
    assert set(result.cells) == {(0, 4), (1, 3), (2, 2), (3, 1), (4, 0)}


def test_evaluation_is_deterministic():
    grid = _losing_base()
    grid[0] = [BELL] * 5
    assert find_winning_lines(grid) == find_winning_lines(grid)


def test_rejects_wrong_shape():
    with pytest.raises(ValueError):
        has_winning_line([[STAR] * 5] * 4)


@pytest.mark.parametrize("seed", range(200))
def test_generated_win_contains_winning_line(seed):
    rng = random.Random(seed)
    outcome = generate_spin(rng=rng, win_probability=1.0, wild_probability=0.2)
    assert outcome.won is True
    assert has_winning_line(outcome.grid)
    symbols = grid_service.line_symbols(outcome.grid, outcome.line)
    assert len(set(symbols)) == 1 and symbols[0] != WILD
    assert outcome.line in find_winning_lines(outcome.grid).lines


@pytest.mark.parametrize("seed", range(200))
def test_generated_loss_has_no_winning_line(seed):
    # Corrective pass covers rows, columns and both diagonals.
    rng = random.Random(seed)
    outcome = generate_spin(rng=rng, win_probability=0.0, wild_probability=0.2)
    assert outcome.won is False
    assert outcome.line is None
    assert find_winning_lines(outcome.grid).lines == []


def test_winning_grid_places_off_line_wilds():
    rng = random.Random(7)
    for _ in range(50):
        # wild_probability=0 so every wild comes from the scatter step
        grid, line = grid_service.winning_grid(rng, wild_probability=0.0)
        wild_cells = [(r, c) for r in range(5) for c in range(5) if grid[r][c] == WILD]
        assert 1 <= len(wild_cells) <= 3
        assert not set(wild_cells) & set(line.cells)


def test_losing_grid_with_heavy_wilds_still_clean():
    rng = random.Random(3)
    for _ in range(50):
        grid = grid_service.losing_grid(rng, wild_probability=0.6)
        assert not has_winning_line(grid)


def test_grid_symbols_come_from_alphabet():
    outcome = generate_spin(rng=random.Random(11), win_probability=0.5)
    allowed = set(grid_service.SYMBOLS) | {WILD}
    assert len(outcome.grid) == 5
    assert all(len(row) == 5 and set(row) <= allowed for row in outcome.grid)


def test_win_probability_defaults_to_settings(monkeypatch):
    from app.core.config import get_settings
    monkeypatch.setattr(get_settings(), "spin_win_probability", 1.0)
    assert generate_spin(rng=random.Random(1)).won is True
    monkeypatch.setattr(get_settings(), "spin_win_probability", 0.0)
    assert generate_spin(rng=random.Random(1)).won is False
