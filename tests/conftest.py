"""
Pytest configuration and shared fixtures.
"""
import random
import sys
from pathlib import Path
from typing import List, Tuple

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from multisweeper import Board, BoardConfig, Cell, CellKind, GameEngine


class ObserverSpy:
    """Records every (row, col) change notification."""

    def __init__(self) -> None:
        self.calls: List[Tuple[int, int]] = []

    def __call__(self, row: int, col: int) -> None:
        self.calls.append((row, col))

    @property
    def count(self) -> int:
        return len(self.calls)


# ============================================================================
# Observer Fixtures
# ============================================================================

@pytest.fixture
def spy() -> ObserverSpy:
    """Observer that records notifications."""
    return ObserverSpy()


# ============================================================================
# Board Fixtures
# ============================================================================

@pytest.fixture
def center_mine_board(spy: ObserverSpy) -> Board:
    """3x3 board with a single mine in the middle."""
    return Board.from_mines(3, 3, [(1, 1)], observer=spy)


@pytest.fixture
def walled_board(spy: ObserverSpy) -> Board:
    """
    5x5 board split in two by a column of mines.

        . . M . .
        . . M . .
        . . M . .
        . . M . .
        . . M . .
    """
    return Board.from_mines(5, 5, [(row, 2) for row in range(5)], observer=spy)


@pytest.fixture
def empty_board() -> Board:
    """Board with no mines for cascade testing."""
    return Board.from_mines(5, 5, [])


@pytest.fixture
def seeded_rng() -> random.Random:
    """Deterministic random source."""
    return random.Random(1234)


# ============================================================================
# Engine Fixtures
# ============================================================================

@pytest.fixture
def center_mine_engine(center_mine_board: Board) -> GameEngine:
    """Engine over the 3x3 center-mine board."""
    return GameEngine(center_mine_board)


@pytest.fixture
def walled_engine(walled_board: Board) -> GameEngine:
    """Engine over the 5x5 walled board."""
    return GameEngine(walled_board)


# ============================================================================
# Cell Fixtures
# ============================================================================

@pytest.fixture
def covered_cell(spy: ObserverSpy) -> Cell:
    """Covered empty cell with two adjacent mines."""
    return Cell(2, 3, adjacent_mines=2, observer=spy)


@pytest.fixture
def mine_cell(spy: ObserverSpy) -> Cell:
    """Covered cell containing a mine."""
    return Cell(0, 0, kind=CellKind.MINE, observer=spy)


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def valid_config() -> BoardConfig:
    """Create a valid board configuration."""
    return BoardConfig(9, 9, 10)
