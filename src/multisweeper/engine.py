"""
Game engine module for Multisweeper.

Applies open and mark moves to one board, runs the flood-fill reveal
and tracks win/lose status. Moves arrive one at a time; the engine holds
no locks and expects callers to serialize access.
"""
import logging
import random
from collections import deque
from enum import Enum, auto
from typing import Callable, Deque, List, Optional, Set

from .board import Board, BoardConfig, Position
from .cell import CellObserver

logger = logging.getLogger(__name__)


# ============================================================================
# Constants
# ============================================================================

class GameStatus(Enum):
    """Possible states of a game session."""

    IN_PROGRESS = auto()
    WON = auto()
    LOST = auto()


class Mark(Enum):
    """Shown states a player may put on a covered cell."""

    FLAG = auto()
    QUESTION = auto()
    COVERED = auto()


StatusListener = Callable[[GameStatus], None]


# ============================================================================
# Game Engine
# ============================================================================

class GameEngine:
    """
    One game session over one board.

    Status moves from IN_PROGRESS to WON or LOST exactly once. Moves
    against a finished game or an ineligible cell are ignored and return
    False; coordinates outside the board raise ``InvalidPositionError``.
    """

    def __init__(
        self,
        board: Board,
        on_status: Optional[StatusListener] = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            board: Board owned by this session. Nothing else may mutate it.
            on_status: Called once with the final status when the game ends.
        """
        self._board = board
        self._status = GameStatus.IN_PROGRESS
        self._on_status = on_status

    @classmethod
    def new_game(
        cls,
        config: BoardConfig,
        first_click: Optional[Position] = None,
        *,
        rng: Optional[random.Random] = None,
        observer: Optional[CellObserver] = None,
        on_status: Optional[StatusListener] = None,
    ) -> "GameEngine":
        """
        Build a fresh board and wrap it in a new engine.

        When ``first_click`` is given the board keeps that cell (and, room
        permitting, its neighbors) free of mines, and the cell is opened.
        """
        board = Board.from_config(
            config, first_click, rng=rng, observer=observer
        )
        engine = cls(board, on_status=on_status)
        logger.info(
            "New game: %dx%d, %d mines",
            config.rows, config.cols, config.num_mines,
        )
        if first_click is not None:
            engine.apply_open(*first_click)
        return engine

    # ========================================================================
    # Moves
    # ========================================================================

    def apply_open(self, row: int, col: int) -> bool:
        """
        Open the cell at (row, col).

        Opening a mine loses the game and reveals the whole board. Opening
        a cell without adjacent mines cascades to its connected region.

        Returns:
            True if the move changed the board, False if it was ignored.

        Raises:
            InvalidPositionError: If (row, col) lies outside the board.
        """
        cell = self._board.cell(row, col)
        if not self.is_playing or not cell.is_uncoverable:
            logger.debug("Ignoring open at (%d, %d)", row, col)
            return False

        cell.open()
        if cell.is_mine:
            self._lose()
            return True

        if cell.adjacent_mines == 0:
            self._cascade(row, col)

        self._check_win_condition()
        return True

    def _cascade(self, row: int, col: int) -> None:
        """Open the region connected to an empty cell, breadth first."""
        frontier: Deque[Position] = deque([(row, col)])
        visited: Set[Position] = {(row, col)}
        opened = 0

        while frontier:
            current = frontier.popleft()
            for neighbor_pos in self._board.neighbors_of(*current):
                if neighbor_pos in visited:
                    continue
                visited.add(neighbor_pos)

                neighbor = self._board.cell(*neighbor_pos)
                if neighbor.is_mine or not neighbor.is_uncoverable:
                    continue
                neighbor.open()
                opened += 1
                if neighbor.adjacent_mines == 0:
                    frontier.append(neighbor_pos)

        logger.debug("Cascade from (%d, %d) opened %d cells", row, col, opened)

    def apply_mark(self, row: int, col: int, mark: Mark) -> bool:
        """
        Put ``mark`` on the cell at (row, col).

        Neighbor flag hints follow the cell into and out of FLAGGED.

        Returns:
            True if the shown state changed, False if the move was ignored.

        Raises:
            InvalidPositionError: If (row, col) lies outside the board.
        """
        cell = self._board.cell(row, col)
        if not self.is_playing or not cell.is_changeable:
            logger.debug("Ignoring %s at (%d, %d)", mark.name, row, col)
            return False

        was_flagged = cell.is_flagged
        if mark is Mark.FLAG:
            changed = cell.set_flag()
        elif mark is Mark.QUESTION:
            changed = cell.set_questioned()
        else:
            changed = cell.set_covered()

        if changed and cell.is_flagged != was_flagged:
            delta = 1 if cell.is_flagged else -1
            self._board.increment_adjacent_flags(row, col, delta)
        return changed

    # ========================================================================
    # Terminal Conditions
    # ========================================================================

    def _lose(self) -> None:
        self._status = GameStatus.LOST
        for cell in self._board:
            cell.game_over()
        self._finish(GameStatus.LOST)

    def _check_win_condition(self) -> None:
        """Won once every empty cell shows its number."""
        if all(cell.is_revealed for cell in self._board if not cell.is_mine):
            self._finish(GameStatus.WON)

    def _finish(self, status: GameStatus) -> None:
        self._status = status
        logger.info("Game over: %s", status.name)
        if self._on_status is not None:
            self._on_status(status)

    # ========================================================================
    # State Accessors
    # ========================================================================

    @property
    def board(self) -> Board:
        return self._board

    @property
    def status(self) -> GameStatus:
        return self._status

    @property
    def is_playing(self) -> bool:
        """Check if game is still in progress."""
        return self._status is GameStatus.IN_PROGRESS

    @property
    def is_won(self) -> bool:
        """Check if game was won."""
        return self._status is GameStatus.WON

    @property
    def is_lost(self) -> bool:
        """Check if game was lost."""
        return self._status is GameStatus.LOST

    @property
    def mines_remaining(self) -> int:
        """Mine count minus flags placed; negative when over-flagged."""
        return self._board.mine_count - self._board.flag_count()

    def valid_opens(self) -> List[Position]:
        """
        Get positions that can still be opened.

        Returns:
            Row-major list of uncoverable positions, empty once the game
            has ended.
        """
        if not self.is_playing:
            return []
        return [cell.position for cell in self._board if cell.is_uncoverable]
