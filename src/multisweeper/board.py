"""
Board module for Multisweeper.

Implements the grid of cells with mine placement, adjacency counts
and neighbor lookups. Mines are placed once, when the board is built.
"""
import logging
import random
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Set, Tuple

import numpy as np

from .cell import Cell, CellKind, CellObserver

logger = logging.getLogger(__name__)

Position = Tuple[int, int]

# Observation value -> display symbol; numbers 1-8 print as themselves.
_SYMBOLS = {-1: ".", -2: "F", -3: "?", 0: " ", 9: "*"}


# ============================================================================
# Constants
# ============================================================================

class InvalidPositionError(IndexError):
    """Raised for coordinates outside the board."""


@dataclass
class BoardConfig:
    """
    Configuration for a Multisweeper board.

    Attributes:
        rows: Number of rows.
        cols: Number of columns.
        num_mines: Total mines to place.
    """

    rows: int = 9
    cols: int = 9
    num_mines: int = 10

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self) -> None:
        """Ensure configuration values are valid."""
        if self.rows < 1 or self.cols < 1:
            raise ValueError("Board dimensions must be positive")
        if self.num_mines < 0:
            raise ValueError("Number of mines cannot be negative")
        max_mines = self.rows * self.cols - 1
        if self.num_mines > max_mines:
            raise ValueError(f"Too many mines (max {max_mines})")


# Preset difficulty levels
BEGINNER = BoardConfig(9, 9, 10)
INTERMEDIATE = BoardConfig(16, 16, 40)
EXPERT = BoardConfig(16, 30, 99)


# ============================================================================
# Board Class
# ============================================================================

@dataclass
class Board:
    """
    Multisweeper game board.

    Owns the grid of cells and forwards every cell change to ``observer``.
    Build boards with ``generate`` (random layout) or ``from_mines``
    (fixed layout); a bare ``Board(config)`` holds no mines.
    """

    config: BoardConfig = field(default_factory=BoardConfig)
    observer: Optional[CellObserver] = field(
        default=None, repr=False, compare=False
    )
    _grid: List[List[Cell]] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        """Initialize the grid after dataclass creation."""
        self._init_grid()

    # ========================================================================
    # Construction
    # ========================================================================

    @classmethod
    def generate(
        cls,
        rows: int,
        cols: int,
        num_mines: int,
        exclude: Optional[Position] = None,
        *,
        safe_neighbors: bool = True,
        rng: Optional[random.Random] = None,
        observer: Optional[CellObserver] = None,
    ) -> "Board":
        """
        Create a board with mines placed uniformly at random.

        Args:
            rows: Number of rows.
            cols: Number of columns.
            num_mines: Number of mines to place.
            exclude: Position kept mine-free, typically the first click.
            safe_neighbors: Also keep the neighbors of ``exclude`` free
                when enough cells remain for the mines.
            rng: Random source, for reproducible layouts.
            observer: Called with (row, col) on every cell change.

        Returns:
            The new board.
        """
        board = cls(BoardConfig(rows, cols, num_mines), observer=observer)
        candidates = board._get_valid_mine_positions(exclude, safe_neighbors)
        rng = rng or random.Random()
        board._place_mines(rng.sample(candidates, num_mines))
        board._calculate_adjacent_mines()
        logger.debug(
            "Generated %dx%d board with %d mines", rows, cols, num_mines
        )
        return board

    @classmethod
    def from_config(
        cls, config: BoardConfig, exclude: Optional[Position] = None, **kwargs
    ) -> "Board":
        """Generate a random board from a configuration."""
        return cls.generate(
            config.rows, config.cols, config.num_mines, exclude, **kwargs
        )

    @classmethod
    def from_mines(
        cls,
        rows: int,
        cols: int,
        mines: Iterable[Position],
        observer: Optional[CellObserver] = None,
    ) -> "Board":
        """
        Create a board with a fixed mine layout.

        Raises:
            InvalidPositionError: If a mine lies outside the grid.
            ValueError: If the layout repeats a position or has too many mines.
        """
        mines = list(mines)
        if len(set(mines)) != len(mines):
            raise ValueError("Mine positions must be distinct")
        board = cls(BoardConfig(rows, cols, len(mines)), observer=observer)
        for row, col in mines:
            board._check_position(row, col)
        board._place_mines(mines)
        board._calculate_adjacent_mines()
        return board

    # ========================================================================
    # Grid Initialization (Low-level)
    # ========================================================================

    def _init_grid(self) -> None:
        """Create empty grid of cells."""
        self._grid = [
            [
                Cell(row, col, observer=self._cell_changed)
                for col in range(self.config.cols)
            ]
            for row in range(self.config.rows)
        ]

    def _get_valid_mine_positions(
        self, exclude: Optional[Position], safe_neighbors: bool
    ) -> List[Position]:
        """Get all positions a mine may go to."""
        positions = [
            (row, col)
            for row in range(self.config.rows)
            for col in range(self.config.cols)
        ]
        if exclude is None:
            return positions
        self._check_position(*exclude)

        excluded: Set[Position] = {exclude}
        if safe_neighbors:
            excluded.update(self.neighbors_of(*exclude))
        if len(positions) - len(excluded) < self.config.num_mines:
            excluded = {exclude}
        return [position for position in positions if position not in excluded]

    def _place_mines(self, mines: Iterable[Position]) -> None:
        for row, col in mines:
            self._grid[row][col].kind = CellKind.MINE

    def _calculate_adjacent_mines(self) -> None:
        """Calculate adjacent mine counts for all empty cells."""
        for cell in self:
            if not cell.is_mine:
                cell.adjacent_mines = self._count_adjacent_mines(
                    cell.row, cell.col
                )

    def _count_adjacent_mines(self, row: int, col: int) -> int:
        """Count mines adjacent to a specific cell."""
        count = 0
        for neighbor_row, neighbor_col in self.neighbors_of(row, col):
            if self._grid[neighbor_row][neighbor_col].is_mine:
                count += 1
        return count

    def _cell_changed(self, row: int, col: int) -> None:
        if self.observer is not None:
            self.observer(row, col)

    # ========================================================================
    # Neighbor Utilities
    # ========================================================================

    def is_valid_position(self, row: int, col: int) -> bool:
        """Check if position is within board bounds."""
        return 0 <= row < self.config.rows and 0 <= col < self.config.cols

    def _check_position(self, row: int, col: int) -> None:
        if not self.is_valid_position(row, col):
            raise InvalidPositionError(
                f"Position ({row}, {col}) is outside the "
                f"{self.config.rows}x{self.config.cols} board"
            )

    def neighbors_of(self, row: int, col: int) -> List[Position]:
        """
        Get valid neighboring cell positions.

        Args:
            row: Row index of center cell.
            col: Column index of center cell.

        Returns:
            List of (row, col) tuples, up to 8 and fewer at edges.

        Raises:
            InvalidPositionError: If the center lies outside the board.
        """
        self._check_position(row, col)
        neighbors = []
        for delta_row in (-1, 0, 1):
            for delta_col in (-1, 0, 1):
                if delta_row == 0 and delta_col == 0:
                    continue
                new_row = row + delta_row
                new_col = col + delta_col
                if self.is_valid_position(new_row, new_col):
                    neighbors.append((new_row, new_col))
        return neighbors

    def increment_adjacent_flags(self, row: int, col: int, delta: int) -> None:
        """Add ``delta`` to the flag hint of every neighbor of (row, col)."""
        for neighbor_row, neighbor_col in self.neighbors_of(row, col):
            self._grid[neighbor_row][neighbor_col].adjacent_flags += delta

    def recount_adjacent_flags(self) -> None:
        """Rebuild every flag hint from the flags currently shown."""
        for cell in self:
            cell.adjacent_flags = 0
        for cell in self:
            if cell.is_flagged:
                self.increment_adjacent_flags(cell.row, cell.col, 1)

    # ========================================================================
    # State Accessors
    # ========================================================================

    @property
    def rows(self) -> int:
        return self.config.rows

    @property
    def cols(self) -> int:
        return self.config.cols

    @property
    def mine_count(self) -> int:
        return self.config.num_mines

    def __iter__(self) -> Iterator[Cell]:
        """Iterate over cells in row-major order."""
        for grid_row in self._grid:
            yield from grid_row

    def __len__(self) -> int:
        return self.config.rows * self.config.cols

    def cell(self, row: int, col: int) -> Cell:
        """
        Get cell at position.

        Raises:
            InvalidPositionError: If the position lies outside the board.
        """
        self._check_position(row, col)
        return self._grid[row][col]

    def mine_positions(self) -> List[Position]:
        """Positions of all mines, row-major."""
        return [cell.position for cell in self if cell.is_mine]

    def flag_count(self) -> int:
        """Number of cells currently flagged."""
        return sum(1 for cell in self if cell.is_flagged)

    def get_observation(self) -> np.ndarray:
        """
        Get board state as numpy array.

        Returns:
            2D int8 array of ``Cell.to_observation`` values.
        """
        obs = np.zeros((self.config.rows, self.config.cols), dtype=np.int8)
        for cell in self:
            obs[cell.row, cell.col] = cell.to_observation()
        return obs

    def render_ascii(self) -> str:
        """Render the shown board as one line of symbols per row."""
        return "\n".join(
            " ".join(_SYMBOLS.get(int(value), str(value)) for value in row)
            for row in self.get_observation()
        )
