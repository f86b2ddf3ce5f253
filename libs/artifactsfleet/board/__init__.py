from artifactsfleet.board.board import (
    BankBoardState,
    Board,
    BoardSnapshot,
    CharacterBoardState,
)

__all__ = [
    "BankBoardState",
    "Board",
    "BoardSnapshot",
    "CharacterBoardState",
]
