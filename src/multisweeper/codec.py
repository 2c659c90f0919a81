"""
Codec module for Multisweeper.

Two encodings of a board snapshot:

- Binary: 4 bytes per cell (row, col, adjacent mine count, is-mine),
  the compact ground-truth form used to sync boards between players.
- Text: one JSON record per line with the fields ``row``, ``col``,
  ``isMine``, ``isFlag``, ``isQuestionMark`` and ``isCovered``, the
  durable save form.

Empty input decodes to ``None`` ("no data"). Anything else that cannot
be decoded raises ``CodecError`` and never yields a partial board.
"""
import json
import logging
from typing import Any, Dict, List, Optional

import numpy as np

from .board import Board, Position
from .cell import Cell, CellKind, CellObserver, CellState

logger = logging.getLogger(__name__)

RECORD_SIZE = 4
MAX_COORDINATE = 255

_TEXT_FIELDS = ("row", "col", "isMine", "isFlag", "isQuestionMark", "isCovered")


class CodecError(ValueError):
    """Raised when a payload cannot be decoded."""


# ============================================================================
# Binary Form
# ============================================================================

def encode_cell_bytes(cell: Cell) -> bytes:
    """
    Encode one cell's ground truth as 4 bytes.

    Raises:
        ValueError: If row or col does not fit in one byte.
    """
    if not (0 <= cell.row <= MAX_COORDINATE and 0 <= cell.col <= MAX_COORDINATE):
        raise ValueError(
            f"Position ({cell.row}, {cell.col}) does not fit the binary form"
        )
    return bytes((cell.row, cell.col, cell.adjacent_mines, int(cell.is_mine)))


def _cell_from_record(record: np.ndarray, observer: Optional[CellObserver]) -> Cell:
    row, col, adjacent, is_mine = (int(value) for value in record)
    if is_mine not in (0, 1):
        raise CodecError(f"Invalid mine flag {is_mine} at ({row}, {col})")
    if adjacent > 8:
        raise CodecError(f"Invalid mine count {adjacent} at ({row}, {col})")
    kind = CellKind.MINE if is_mine else CellKind.EMPTY
    return Cell(row, col, kind=kind, adjacent_mines=adjacent, observer=observer)


def decode_cell_bytes(
    data: bytes, observer: Optional[CellObserver] = None
) -> Cell:
    """
    Decode a 4-byte cell record into a covered cell.

    Raises:
        CodecError: If the record is malformed.
    """
    if len(data) != RECORD_SIZE:
        raise CodecError(
            f"Cell record must be {RECORD_SIZE} bytes, got {len(data)}"
        )
    return _cell_from_record(np.frombuffer(data, dtype=np.uint8), observer)


def encode_board_bytes(board: Board) -> bytes:
    """Encode every cell of ``board`` in row-major order."""
    return b"".join(encode_cell_bytes(cell) for cell in board)


def decode_board_bytes(
    data: Optional[bytes], observer: Optional[CellObserver] = None
) -> Optional[Board]:
    """
    Rebuild a covered board from its binary form.

    The grid size is taken from the largest row and col present; the
    records must cover it exactly once, and each empty cell's mine count
    must agree with the mine layout.

    Returns:
        The board, or None if ``data`` is empty.

    Raises:
        CodecError: If the payload is malformed or inconsistent.
    """
    if not data:
        return None
    if len(data) % RECORD_SIZE:
        raise CodecError(
            f"Board payload length {len(data)} is not a multiple of {RECORD_SIZE}"
        )

    records = np.frombuffer(data, dtype=np.uint8).reshape(-1, RECORD_SIZE)
    cells = [_cell_from_record(record, observer=None) for record in records]
    board = _assemble_board(cells, observer)

    for cell in cells:
        if cell.is_mine:
            continue
        expected = board.cell(cell.row, cell.col).adjacent_mines
        if cell.adjacent_mines != expected:
            logger.warning(
                "Rejecting board payload: (%d, %d) claims %d mines, layout has %d",
                cell.row, cell.col, cell.adjacent_mines, expected,
            )
            raise CodecError(
                f"Mine count at ({cell.row}, {cell.col}) does not match layout"
            )
    return board


# ============================================================================
# Text Form
# ============================================================================

def encode_cell_text(cell: Cell) -> str:
    """Encode one cell as a JSON record."""
    return json.dumps({
        "row": cell.row,
        "col": cell.col,
        "isMine": cell.is_mine,
        "isFlag": cell.is_flagged,
        "isQuestionMark": cell.is_questioned,
        "isCovered": not cell.is_revealed,
    })


def _require(record: Dict[str, Any], name: str, kind: type) -> Any:
    if name not in record:
        raise CodecError(f"Record is missing field {name!r}")
    value = record[name]
    # bool is an int subclass; keep the two apart.
    if type(value) is not kind:
        raise CodecError(
            f"Field {name!r} must be {kind.__name__}, got {value!r}"
        )
    return value


def _shown_state(is_flag: bool, is_question: bool, is_covered: bool) -> CellState:
    if is_flag:
        return CellState.FLAGGED
    if is_question:
        return CellState.QUESTIONED
    return CellState.COVERED if is_covered else CellState.REVEALED_NUMBER


def decode_cell_text(
    text: Optional[str], observer: Optional[CellObserver] = None
) -> Optional[Cell]:
    """
    Decode one JSON record.

    The mine count is not part of the record and is left at 0; board
    decoding recomputes it.

    Returns:
        The cell, or None if ``text`` is empty or blank.

    Raises:
        CodecError: If the record is not valid JSON or lacks a field.
    """
    if text is None or not text.strip():
        return None
    try:
        record = json.loads(text)
    except (json.JSONDecodeError, RecursionError) as exc:
        logger.warning("Save data has a syntax error: %.80s", text)
        raise CodecError(f"Invalid JSON record: {exc}") from exc
    if not isinstance(record, dict):
        raise CodecError(f"Record must be a JSON object, got {text!r}")

    row, col, is_mine, is_flag, is_question, is_covered = (
        _require(record, name, int if name in ("row", "col") else bool)
        for name in _TEXT_FIELDS
    )
    return Cell(
        row,
        col,
        kind=CellKind.MINE if is_mine else CellKind.EMPTY,
        state=_shown_state(is_flag, is_question, is_covered),
        observer=observer,
    )


def encode_board_text(board: Board) -> str:
    """Encode every cell of ``board`` as newline-separated JSON records."""
    return "\n".join(encode_cell_text(cell) for cell in board)


def decode_board_text(
    text: Optional[str], observer: Optional[CellObserver] = None
) -> Optional[Board]:
    """
    Rebuild a board from its text form.

    Mine counts and flag hints are recomputed from the decoded layout.
    Revealed cells come back unprocessed, so opening a restored empty
    cell still cascades.

    Returns:
        The board, or None if ``text`` is empty or blank.

    Raises:
        CodecError: If any record is malformed or the grid is incomplete.
    """
    if text is None or not text.strip():
        return None
    cells = [
        decode_cell_text(line)
        for line in text.splitlines()
        if line.strip()
    ]
    board = _assemble_board(cells, observer)
    for cell in cells:
        target = board.cell(cell.row, cell.col)
        if target.is_mine and cell.state is CellState.REVEALED_NUMBER:
            raise CodecError(
                f"Mine at ({cell.row}, {cell.col}) cannot show a number"
            )
        target.state = cell.state
    board.recount_adjacent_flags()
    return board


# ============================================================================
# Shared Helpers
# ============================================================================

def _assemble_board(
    cells: List[Cell], observer: Optional[CellObserver]
) -> Board:
    """Check that ``cells`` tile a full grid and build it from their mines."""
    if any(cell.row < 0 or cell.col < 0 for cell in cells):
        raise CodecError("Negative cell position")
    rows = max(cell.row for cell in cells) + 1
    cols = max(cell.col for cell in cells) + 1

    seen = set()
    for cell in cells:
        if cell.position in seen:
            raise CodecError(f"Duplicate cell at {cell.position}")
        seen.add(cell.position)
    if len(seen) != rows * cols:
        raise CodecError(
            f"Expected {rows * cols} cells for a {rows}x{cols} grid, "
            f"got {len(seen)}"
        )

    mines: List[Position] = [cell.position for cell in cells if cell.is_mine]
    try:
        return Board.from_mines(rows, cols, mines, observer=observer)
    except ValueError as exc:
        raise CodecError(f"Invalid mine layout: {exc}") from exc
