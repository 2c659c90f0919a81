"""
Cell module for Multisweeper.

A cell pairs its ground truth (mine or empty) with the state shown to the
players. Shown-state changes go through a single transition table and
notify the board observer exactly once per change.
"""
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Dict, FrozenSet, Optional, Tuple

CellObserver = Callable[[int, int], None]


# ============================================================================
# Constants
# ============================================================================

class CellKind(Enum):
    """What a cell really is."""

    EMPTY = auto()
    MINE = auto()


class CellState(Enum):
    """What a cell currently shows."""

    COVERED = auto()
    REVEALED_NUMBER = auto()
    FLAGGED = auto()
    QUESTIONED = auto()
    EXPLODED_MINE = auto()
    MISFLAGGED_MINE = auto()
    REVEALED_MINE = auto()


# Set only at game over, never left again.
TERMINAL_STATES: FrozenSet[CellState] = frozenset({
    CellState.EXPLODED_MINE,
    CellState.MISFLAGGED_MINE,
    CellState.REVEALED_MINE,
})

CHANGEABLE_STATES: FrozenSet[CellState] = frozenset({
    CellState.COVERED,
    CellState.QUESTIONED,
    CellState.FLAGGED,
})

_TRANSITIONS: Dict[CellState, FrozenSet[CellState]] = {
    CellState.COVERED: frozenset({
        CellState.REVEALED_NUMBER,
        CellState.EXPLODED_MINE,
        CellState.FLAGGED,
        CellState.QUESTIONED,
        CellState.REVEALED_MINE,
    }),
    CellState.QUESTIONED: frozenset({
        CellState.REVEALED_NUMBER,
        CellState.EXPLODED_MINE,
        CellState.FLAGGED,
        CellState.COVERED,
        CellState.REVEALED_MINE,
    }),
    CellState.FLAGGED: frozenset({
        CellState.COVERED,
        CellState.QUESTIONED,
        CellState.MISFLAGGED_MINE,
    }),
    CellState.REVEALED_NUMBER: frozenset(),
    CellState.EXPLODED_MINE: frozenset(),
    CellState.MISFLAGGED_MINE: frozenset(),
    CellState.REVEALED_MINE: frozenset(),
}


class IllegalTransitionError(ValueError):
    """Raised when a shown-state change is not in the transition table."""


def check_transition(current: CellState, target: CellState) -> None:
    """
    Validate a shown-state change.

    Args:
        current: State the cell shows now.
        target: State it is about to show.

    Raises:
        IllegalTransitionError: If the change is not allowed.
    """
    if target not in _TRANSITIONS[current]:
        raise IllegalTransitionError(
            f"Cannot change cell from {current.name} to {target.name}"
        )


# ============================================================================
# Cell Data Class
# ============================================================================

@dataclass
class Cell:
    """
    Represents a single cell in the Multisweeper grid.

    Attributes:
        row: Row index, fixed for the cell's lifetime.
        col: Column index, fixed for the cell's lifetime.
        kind: Ground truth, mine or empty.
        state: Current shown state.
        adjacent_mines: Count of mines in neighboring cells (0-8), only
            meaningful for empty cells.
        adjacent_flags: Count of flagged neighbors, for display hints.
        number_uncovered: Whether the revealed number has been processed
            by an open or a cascade.
        observer: Called with (row, col) after every shown-state change.
    """

    row: int
    col: int
    kind: CellKind = CellKind.EMPTY
    state: CellState = CellState.COVERED
    adjacent_mines: int = 0
    adjacent_flags: int = 0
    number_uncovered: bool = False
    observer: Optional[CellObserver] = field(
        default=None, repr=False, compare=False
    )

    @property
    def position(self) -> Tuple[int, int]:
        """(row, col) of this cell."""
        return self.row, self.col

    # ========================================================================
    # Predicates
    # ========================================================================

    @property
    def is_mine(self) -> bool:
        """Check if cell holds a mine."""
        return self.kind is CellKind.MINE

    @property
    def is_covered(self) -> bool:
        """Check if cell is covered."""
        return self.state is CellState.COVERED

    @property
    def is_flagged(self) -> bool:
        """Check if cell is flagged."""
        return self.state is CellState.FLAGGED

    @property
    def is_questioned(self) -> bool:
        """Check if cell carries a question mark."""
        return self.state is CellState.QUESTIONED

    @property
    def is_revealed(self) -> bool:
        """Check if cell shows its number."""
        return self.state is CellState.REVEALED_NUMBER

    @property
    def is_terminal(self) -> bool:
        """Check if cell reached a game-over state."""
        return self.state in TERMINAL_STATES

    @property
    def is_changeable(self) -> bool:
        """Check if the cell accepts a mark."""
        return self.state in CHANGEABLE_STATES

    @property
    def is_uncoverable(self) -> bool:
        """Check if the cell may be opened, directly or by a cascade."""
        if self.state in (CellState.COVERED, CellState.QUESTIONED):
            return True
        return self.state is CellState.REVEALED_NUMBER and not self.number_uncovered

    # ========================================================================
    # Transitions
    # ========================================================================

    def _transition(self, target: CellState) -> None:
        check_transition(self.state, target)
        self.state = target
        if self.observer is not None:
            self.observer(self.row, self.col)

    def open(self) -> CellState:
        """
        Open this cell.

        Opening a cell that is not uncoverable changes nothing. A restored
        number is only marked as processed, without a notification.

        Returns:
            The state shown after the call.
        """
        if not self.is_uncoverable:
            return self.state
        if self.is_revealed:
            self.number_uncovered = True
        elif self.is_mine:
            self._transition(CellState.EXPLODED_MINE)
        else:
            self.number_uncovered = True
            self._transition(CellState.REVEALED_NUMBER)
        return self.state

    def _mark(self, target: CellState) -> bool:
        if not self.is_changeable or self.state is target:
            return False
        self._transition(target)
        return True

    def set_covered(self) -> bool:
        """Remove any mark. Returns True if the shown state changed."""
        return self._mark(CellState.COVERED)

    def set_flag(self) -> bool:
        """Flag this cell. Returns True if the shown state changed."""
        return self._mark(CellState.FLAGGED)

    def set_questioned(self) -> bool:
        """Question-mark this cell. Returns True if the shown state changed."""
        return self._mark(CellState.QUESTIONED)

    def game_over(self) -> None:
        """
        Show this cell's ground truth for the end screen.

        Wrong flags become MISFLAGGED_MINE, correct flags stay, remaining
        mines become REVEALED_MINE and remaining empty cells show their
        number. Cells already showing their final state are left alone.
        """
        if self.is_terminal or self.is_revealed:
            return
        if self.is_flagged:
            if not self.is_mine:
                self._transition(CellState.MISFLAGGED_MINE)
            return
        if self.is_mine:
            self._transition(CellState.REVEALED_MINE)
        else:
            self.number_uncovered = True
            self._transition(CellState.REVEALED_NUMBER)

    def to_observation(self) -> int:
        """
        Convert cell to observation value for rendering.

        Returns:
            -1: Covered cell
            -2: Flagged cell
            -3: Question-marked cell
            0-8: Revealed cell with adjacent mine count
            9: Shown mine (exploded, revealed or misflagged)
        """
        if self.state is CellState.COVERED:
            return -1
        if self.state is CellState.FLAGGED:
            return -2
        if self.state is CellState.QUESTIONED:
            return -3
        if self.state is CellState.REVEALED_NUMBER:
            return self.adjacent_mines
        return 9
