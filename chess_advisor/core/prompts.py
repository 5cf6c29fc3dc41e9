from dataclasses import dataclass


@dataclass(frozen=True)
class PromptVariant:
    name: str
    max_tokens: int
    temperature: float
    trim_response: bool


STRICT = PromptVariant(name="strict", max_tokens=20, temperature=0.2, trim_response=True)
EXPLAIN = PromptVariant(name="explain", max_tokens=500, temperature=0.7, trim_response=False)

VARIANTS = {v.name: v for v in (STRICT, EXPLAIN)}


def get_variant(name: str) -> PromptVariant:
    try:
        return VARIANTS[name]
    except KeyError:
        raise ValueError(
            f"Unknown suggestion variant '{name}', expected one of {sorted(VARIANTS)}"
        )


def strict_system_prompt(player_color: str | None) -> str:
    return f"""You are an expert chess advisor. Your role is to:
1. Analyze the current position thoroughly
2. Suggest ONLY the best move for the {player_color or 'side to move'} in the following format:
   - If White: 'White [Piece] --> [destination square]'
   - If Black: 'Black [Piece] --> [destination square]'
   For example: 'White Knight --> f3' or 'Black Pawn --> d5'.
   Do NOT provide any explanation or analysis. Just output the move in this format only."""


def explain_system_prompt(player_color: str | None) -> str:
    return f"""You are an expert chess coach. Analyze the current position for the {player_color or 'side to move'} and:
1. Suggest the best move in algebraic notation
2. Explain the strategic idea behind it (piece activity, king safety, pawn structure)
3. Mention the main threat the opponent has, if any
Keep the answer short enough to read during a game."""


def build_messages(
    variant: PromptVariant,
    game_state: str,
    current_move: str,
    player_color: str | None = None,
) -> list[tuple[str, str]]:
    side = player_color or "the side to move"
    if variant is STRICT:
        system = strict_system_prompt(player_color)
        user = (
            f"Current position (FEN): {game_state}\n"
            f"Last move played: {current_move}\n\n"
            f"Suggest only the best move for {side} in algebraic notation. No explanation."
        )
    else:
        system = explain_system_prompt(player_color)
        user = (
            f"Current position (FEN): {game_state}\n"
            f"Last move played: {current_move}\n\n"
            f"What is the best move for {side}, and why?"
        )
    return [("system", system), ("user", user)]
