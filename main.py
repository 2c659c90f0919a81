#!/usr/bin/env python3
"""
Multisweeper - Main entry point.

Usage:
    python main.py play [--rows R] [--cols C] [--mines N] [--load PATH]
    python main.py demo [--games N] [--seed S]
"""
import argparse
import logging
import random
from pathlib import Path
from typing import Optional

from src.multisweeper import (
    Board,
    BoardConfig,
    CellState,
    CodecError,
    GameEngine,
    Mark,
    Move,
    MoveAction,
    MoveDispatcher,
    decode_board_bytes,
    decode_board_text,
    encode_board_bytes,
    encode_board_text,
    encode_move,
)


def next_mark(state: CellState) -> Optional[Mark]:
    """Alternate-mark cycle: covered -> flag -> question -> covered."""
    if state is CellState.COVERED:
        return Mark.FLAG
    if state is CellState.FLAGGED:
        return Mark.QUESTION
    if state is CellState.QUESTIONED:
        return Mark.COVERED
    return None


def load_engine(path: Path) -> Optional[GameEngine]:
    """Load a saved board, or None when there is nothing usable."""
    if not path.exists():
        return None
    try:
        board = decode_board_text(path.read_text())
    except CodecError as exc:
        print(f"Ignoring invalid save file {path}: {exc}")
        return None
    return GameEngine(board) if board is not None else None


def play(args: argparse.Namespace) -> None:
    """Play an interactive game in the terminal."""
    config = BoardConfig(rows=args.rows, cols=args.cols, num_mines=args.mines)
    rng = random.Random(args.seed)
    engine = load_engine(Path(args.load)) if args.load else None
    if engine is not None:
        config = engine.board.config
    dispatcher = MoveDispatcher(engine, next_mark) if engine is not None else None

    print("Commands: o ROW COL (open), m ROW COL (mark), s PATH (save), q (quit)")
    while engine is None or engine.is_playing:
        if engine is not None:
            print(engine.board.render_ascii())
            print(f"Mines remaining: {engine.mines_remaining}")
        parts = input("> ").split()
        if not parts:
            continue
        command = parts[0].lower()
        if command == "q":
            return
        if command == "s" and len(parts) == 2:
            if engine is None:
                print("Nothing to save yet")
            else:
                Path(parts[1]).write_text(encode_board_text(engine.board))
                print(f"Saved to {parts[1]}")
            continue
        if command not in ("o", "m") or len(parts) != 3:
            print("Unknown command")
            continue

        try:
            row, col = int(parts[1]), int(parts[2])
        except ValueError:
            print("Row and column must be numbers")
            continue
        if not (0 <= row < config.rows and 0 <= col < config.cols):
            print("Position is off the board")
            continue
        if engine is None:
            if command == "m":
                print("Open a cell first")
                continue
            engine = GameEngine.new_game(config, (row, col), rng=rng)
            dispatcher = MoveDispatcher(engine, next_mark)
            continue

        action = MoveAction.OPEN if command == "o" else MoveAction.ALTERNATE_MARK
        dispatcher.dispatch(Move(action, row, col))

    print(engine.board.render_ascii())
    print("*** WIN! ***" if engine.is_won else "*** LOST (hit mine) ***")


def demo(args: argparse.Namespace) -> None:
    """
    Simulate shared games between a host and a joining peer.

    The host deals the board and sends it in binary form; both sides then
    apply the same stream of encoded random moves and must end up showing
    the same board.
    """
    config = BoardConfig(rows=args.rows, cols=args.cols, num_mines=args.mines)
    rng = random.Random(args.seed)
    max_steps = 4 * config.rows * config.cols

    wins = 0
    for game in range(args.games):
        first = (rng.randrange(config.rows), rng.randrange(config.cols))
        host_board = Board.from_config(config, first, rng=rng)
        peer_board = decode_board_bytes(encode_board_bytes(host_board))
        host = GameEngine(host_board)
        peer = GameEngine(peer_board)
        dispatchers = [
            MoveDispatcher(host, next_mark),
            MoveDispatcher(peer, next_mark),
        ]

        message = encode_move(Move(MoveAction.OPEN, *first))
        steps = 0
        while True:
            for dispatcher in dispatchers:
                dispatcher.receive(message)
            steps += 1
            if not host.is_playing or steps >= max_steps:
                break
            opens = host.valid_opens()
            if not opens or rng.random() < 0.2:
                changeable = [c.position for c in host.board if c.is_changeable]
                move = Move(MoveAction.ALTERNATE_MARK, *rng.choice(changeable))
            else:
                move = Move(MoveAction.OPEN, *rng.choice(opens))
            message = encode_move(move)

        in_sync = encode_board_text(host.board) == encode_board_text(peer.board)
        print(f"=== Game {game + 1}/{args.games} | Moves {steps} ===")
        print(host.board.render_ascii())
        print(f"Result: {host.status.name} | Peer in sync: {in_sync}")
        if host.is_won:
            wins += 1

    print(f"\n=== Final: {wins}/{args.games} wins ({100 * wins / args.games:.0f}%) ===")


def main() -> None:
    """Parse arguments and run the appropriate command."""
    parser = argparse.ArgumentParser(description="Multisweeper")
    parser.add_argument(
        "--verbose", action="store_true", help="Log engine activity"
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    for name, help_text in (
        ("play", "Play in the terminal"),
        ("demo", "Simulate shared games between two peers"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--rows", type=int, default=9, help="Board rows")
        sub.add_argument("--cols", type=int, default=9, help="Board columns")
        sub.add_argument("--mines", type=int, default=10, help="Number of mines")
        sub.add_argument("--seed", type=int, default=None, help="Random seed")

    subparsers.choices["play"].add_argument(
        "--load", default=None, help="Resume from a saved board"
    )
    subparsers.choices["demo"].add_argument(
        "--games", type=int, default=5, help="Number of games"
    )

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if args.command == "play":
        play(args)
    elif args.command == "demo":
        demo(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
