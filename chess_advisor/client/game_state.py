import re
from dataclasses import dataclass

_MOVE_NUMBER_RE = re.compile(r"\d+\.")

NO_MOVES_TOKEN = "start"


@dataclass(frozen=True)
class GameStateSnapshot:
    full_game: str
    move_count: int
    last_move: str
    is_white_turn: bool


def format_game_state(move_text: str) -> GameStateSnapshot:
    """Derive a snapshot from the move list's text, e.g. '1. e4 e5 2. Nf3'."""
    text = move_text.strip()
    moves = [segment for segment in _MOVE_NUMBER_RE.split(text) if segment.strip()]
    last_move = moves[-1].strip() if moves else NO_MOVES_TOKEN
    return GameStateSnapshot(
        full_game=text,
        move_count=len(moves),
        last_move=last_move,
        is_white_turn=len(move_text.split(".")) % 2 == 0,
    )
