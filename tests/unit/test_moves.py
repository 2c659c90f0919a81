"""
Unit tests for move messages and dispatch.
"""
from typing import Optional

import pytest
from multisweeper import (
    Board,
    CellState,
    CodecError,
    GameEngine,
    Mark,
    Move,
    MoveAction,
    MoveDispatcher,
    decode_board_bytes,
    decode_move,
    encode_board_bytes,
    encode_board_text,
    encode_move,
)


def cycle_marks(state: CellState) -> Optional[Mark]:
    """Flag -> question -> covered, as a player UI would cycle them."""
    return {
        CellState.COVERED: Mark.FLAG,
        CellState.FLAGGED: Mark.QUESTION,
        CellState.QUESTIONED: Mark.COVERED,
    }.get(state)


@pytest.fixture
def dispatcher(walled_engine: GameEngine) -> MoveDispatcher:
    return MoveDispatcher(walled_engine, cycle_marks)


# ============================================================================
# Encoding Tests
# ============================================================================

class TestMoveEncoding:
    """Test the 3-byte move format."""

    def test_open_bytes(self) -> None:
        assert encode_move(Move(MoveAction.OPEN, 3, 1)) == b"C\x03\x01"

    def test_alternate_mark_bytes(self) -> None:
        assert encode_move(Move(MoveAction.ALTERNATE_MARK, 0, 7)) == b"L\x00\x07"

    def test_start_bytes(self) -> None:
        assert encode_move(Move(MoveAction.START)) == b"S\x00\x00"

    def test_decode_open(self) -> None:
        assert decode_move(b"C\x03\x01") == Move(MoveAction.OPEN, 3, 1)

    def test_decode_short_start(self) -> None:
        assert decode_move(b"S") == Move(MoveAction.START)

    def test_decode_bytearray(self) -> None:
        assert decode_move(bytearray(b"L\x02\x04")) == Move(
            MoveAction.ALTERNATE_MARK, 2, 4
        )

    @pytest.mark.parametrize("data", [b"", b"X\x00\x00", b"C\x01", b"L\x01\x02\x03"])
    def test_malformed_rejected(self, data: bytes) -> None:
        with pytest.raises(CodecError):
            decode_move(data)

    def test_large_position_not_encodable(self) -> None:
        with pytest.raises(ValueError):
            encode_move(Move(MoveAction.OPEN, 300, 0))


# ============================================================================
# Dispatch Tests
# ============================================================================

class TestDispatch:
    """Test feeding moves into an engine."""

    def test_open_move(self, dispatcher: MoveDispatcher) -> None:
        assert dispatcher.receive(b"C\x00\x00") is True
        assert dispatcher.engine.board.cell(4, 1).is_revealed is True

    def test_duplicate_open_ignored(self, dispatcher: MoveDispatcher) -> None:
        dispatcher.receive(b"C\x00\x00")
        assert dispatcher.receive(b"C\x00\x00") is False

    def test_alternate_mark_follows_policy(
        self, dispatcher: MoveDispatcher
    ) -> None:
        cell = dispatcher.engine.board.cell(0, 4)
        seen = []
        for _ in range(4):
            dispatcher.receive(b"L\x00\x04")
            seen.append(cell.state)
        assert seen == [
            CellState.FLAGGED,
            CellState.QUESTIONED,
            CellState.COVERED,
            CellState.FLAGGED,
        ]

    def test_alternate_mark_on_revealed_ignored(
        self, dispatcher: MoveDispatcher
    ) -> None:
        dispatcher.receive(b"C\x00\x00")
        assert dispatcher.receive(b"L\x00\x00") is False

    def test_start_calls_hook(self, walled_engine: GameEngine) -> None:
        started = []
        dispatcher = MoveDispatcher(
            walled_engine, cycle_marks, on_start=lambda: started.append(True)
        )
        assert dispatcher.receive(b"S") is True
        assert started == [True]

    def test_out_of_bounds_move_raises(self, dispatcher: MoveDispatcher) -> None:
        with pytest.raises(IndexError):
            dispatcher.receive(b"C\x09\x00")

    def test_peers_stay_in_sync(self) -> None:
        """Two engines fed the same messages end up identical."""
        mines = [(0, 3), (2, 1), (3, 3)]
        local = GameEngine(Board.from_mines(4, 4, mines))
        remote = GameEngine(Board.from_mines(4, 4, mines))
        messages = [
            encode_move(Move(MoveAction.OPEN, 0, 0)),
            encode_move(Move(MoveAction.ALTERNATE_MARK, 0, 3)),
            encode_move(Move(MoveAction.OPEN, 3, 0)),
        ]
        for engine in (local, remote):
            dispatcher = MoveDispatcher(engine, cycle_marks)
            for message in messages:
                dispatcher.receive(message)
        assert [c.state for c in local.board] == [c.state for c in remote.board]
        assert local.board.cell(0, 3).is_flagged is True

    def test_peer_joins_from_binary_board(self) -> None:
        """A peer built from the host's binary board follows its moves."""
        host = GameEngine(Board.from_mines(4, 4, [(0, 3), (2, 1), (3, 3)]))
        peer = GameEngine(decode_board_bytes(encode_board_bytes(host.board)))
        messages = [
            encode_move(Move(MoveAction.ALTERNATE_MARK, 0, 3)),
            encode_move(Move(MoveAction.ALTERNATE_MARK, 2, 1)),
            encode_move(Move(MoveAction.ALTERNATE_MARK, 2, 1)),
            encode_move(Move(MoveAction.OPEN, 0, 0)),
            encode_move(Move(MoveAction.OPEN, 3, 3)),
        ]
        for engine in (host, peer):
            dispatcher = MoveDispatcher(engine, cycle_marks)
            for message in messages:
                dispatcher.receive(message)
        assert host.is_lost is True
        assert peer.is_lost is True
        assert encode_board_text(peer.board) == encode_board_text(host.board)
        assert peer.board.cell(0, 3).is_flagged is True
        assert peer.board.cell(2, 1).state is CellState.REVEALED_MINE
