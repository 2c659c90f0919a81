"""
Move messages exchanged between players.

A move is three bytes: an action byte (``C`` open, ``L`` alternate mark,
``S`` start game) followed by row and col. Framing and delivery belong to
the transport; this module only converts bytes to moves and feeds them
into a ``GameEngine``.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .cell import CellState
from .codec import MAX_COORDINATE, CodecError
from .engine import GameEngine, Mark

logger = logging.getLogger(__name__)

MOVE_SIZE = 3

# Chooses the mark an alternate-mark move applies, given the cell's
# current shown state. None ignores the move.
MarkPolicy = Callable[[CellState], Optional[Mark]]


class MoveAction(Enum):
    """Action byte of a move message."""

    OPEN = b"C"
    ALTERNATE_MARK = b"L"
    START = b"S"


@dataclass(frozen=True)
class Move:
    """A decoded move. Row and col are unused for START."""

    action: MoveAction
    row: int = 0
    col: int = 0


def encode_move(move: Move) -> bytes:
    """
    Encode a move as 3 bytes.

    Raises:
        ValueError: If row or col does not fit in one byte.
    """
    if not (0 <= move.row <= MAX_COORDINATE and 0 <= move.col <= MAX_COORDINATE):
        raise ValueError(f"Position ({move.row}, {move.col}) does not fit a move")
    return move.action.value + bytes((move.row, move.col))


def decode_move(data: bytes) -> Move:
    """
    Decode a move message.

    A start message may be sent as the single action byte.

    Raises:
        CodecError: On an unknown action or a wrong message length.
    """
    if not data:
        raise CodecError("Empty move message")
    try:
        action = MoveAction(bytes(data[:1]))
    except ValueError as exc:
        raise CodecError(f"Unknown move action {data[:1]!r}") from exc

    if action is MoveAction.START:
        return Move(action)
    if len(data) != MOVE_SIZE:
        raise CodecError(f"Move message must be {MOVE_SIZE} bytes, got {len(data)}")
    return Move(action, data[1], data[2])


class MoveDispatcher:
    """
    Feeds decoded moves into the current engine.

    The alternate-mark cycle is owned by the caller through ``mark_policy``;
    ``on_start`` is called for start-game messages.
    """

    def __init__(
        self,
        engine: GameEngine,
        mark_policy: MarkPolicy,
        on_start: Optional[Callable[[], None]] = None,
    ) -> None:
        self.engine = engine
        self.mark_policy = mark_policy
        self.on_start = on_start

    def dispatch(self, move: Move) -> bool:
        """
        Apply one move.

        Returns:
            True if the move changed the board or started a game.
        """
        logger.debug("Dispatching %s at (%d, %d)", move.action.name, move.row, move.col)
        if move.action is MoveAction.START:
            if self.on_start is not None:
                self.on_start()
            return True
        if move.action is MoveAction.OPEN:
            return self.engine.apply_open(move.row, move.col)

        cell = self.engine.board.cell(move.row, move.col)
        mark = self.mark_policy(cell.state)
        if mark is None:
            return False
        return self.engine.apply_mark(move.row, move.col, mark)

    def receive(self, data: bytes) -> bool:
        """Decode a raw message and apply it."""
        return self.dispatch(decode_move(data))
