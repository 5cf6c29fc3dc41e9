"""
Syntactic checks for FEN strings scraped from the game page.

Nothing here knows chess rules: a string can pass and still describe an
impossible position (no kings, pawns on the back rank, ...).
"""

import re

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

PIECE_LETTERS = "pnbrqkPNBRQK"
EMPTY_RUN_DIGITS = "12345678"
BOARD_WIDTH = 8
BOARD_HEIGHT = 8

_CASTLING_RE = re.compile(r"-|[KQkq]+")
_EN_PASSANT_RE = re.compile(r"-|[a-h][36]")
_COUNTER_RE = re.compile(r"[0-9]+", re.ASCII)

# Single-expression check used by the suggestion service
POSITION_PATTERN = re.compile(
    r"^([pnbrqkPNBRQK1-8]+/){7}[pnbrqkPNBRQK1-8]+\s[bw]\s[kqKQ-]+\s[a-h1-8-]+\s\d+\s\d+$",
    re.ASCII,
)


def is_valid_rank(rank: str) -> bool:
    """Digits count as runs of empty squares, piece letters as one square each."""
    width = 0
    for char in rank:
        if char in EMPTY_RUN_DIGITS:
            width += int(char)
        elif char in PIECE_LETTERS:
            width += 1
        else:
            return False
    return width == BOARD_WIDTH


def is_valid_placement(placement: str) -> bool:
    ranks = placement.split("/")
    if len(ranks) != BOARD_HEIGHT:
        return False
    return all(is_valid_rank(rank) for rank in ranks)


def is_valid_fen(fen) -> bool:
    """
    Check if given string has the shape of a FEN record.
    """
    if not fen or not isinstance(fen, str):
        return False

    # there should be 6 parts to the string
    parts = fen.split(" ")
    if len(parts) != 6:
        return False

    placement, turn, castling, en_passant, half_move, full_move = parts

    if not is_valid_placement(placement):
        return False
    if turn not in ("w", "b"):
        return False
    if not _CASTLING_RE.fullmatch(castling):
        return False
    if not _EN_PASSANT_RE.fullmatch(en_passant):
        return False
    if not _COUNTER_RE.fullmatch(half_move) or not _COUNTER_RE.fullmatch(full_move):
        return False

    return True


def matches_position_pattern(fen) -> bool:
    if not isinstance(fen, str):
        return False
    return POSITION_PATTERN.fullmatch(fen) is not None
