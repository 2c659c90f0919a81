"""
Multisweeper game engine.

Provides the board, per-cell state machine, move orchestration,
snapshot codecs and move messages for shared games.
"""
from .cell import Cell, CellKind, CellState, IllegalTransitionError
from .board import (
    Board,
    BoardConfig,
    InvalidPositionError,
    BEGINNER,
    INTERMEDIATE,
    EXPERT,
)
from .engine import GameEngine, GameStatus, Mark
from .codec import (
    CodecError,
    decode_board_bytes,
    decode_board_text,
    decode_cell_bytes,
    decode_cell_text,
    encode_board_bytes,
    encode_board_text,
    encode_cell_bytes,
    encode_cell_text,
)
from .moves import Move, MoveAction, MoveDispatcher, decode_move, encode_move

__all__ = [
    "Cell",
    "CellKind",
    "CellState",
    "IllegalTransitionError",
    "Board",
    "BoardConfig",
    "InvalidPositionError",
    "BEGINNER",
    "INTERMEDIATE",
    "EXPERT",
    "GameEngine",
    "GameStatus",
    "Mark",
    "CodecError",
    "decode_board_bytes",
    "decode_board_text",
    "decode_cell_bytes",
    "decode_cell_text",
    "encode_board_bytes",
    "encode_board_text",
    "encode_cell_bytes",
    "encode_cell_text",
    "Move",
    "MoveAction",
    "MoveDispatcher",
    "decode_move",
    "encode_move",
]
