"""Ask a running suggestion service for a move from the starting position."""

import argparse
import asyncio
import os

from dotenv import load_dotenv

from chess_advisor.client.backend_client import BackendError, SuggestionClient
from chess_advisor.core.fen import STARTING_FEN


async def check_suggestion(base_url: str, fen: str, last_move: str):
    client = SuggestionClient(base_url=base_url, user_id="check-suggestion")
    try:
        health = await client.health()
        print(f"Health: {health}")
        print(f"Testing move suggestion for FEN: {fen}")
        result = await client.suggest_move(fen, last_move)
    except BackendError as e:
        print("\n❌ Failed!")
        print(f"Detail: {e}")
        return
    finally:
        await client.aclose()

    print("\n✅ Success!")
    print(f"Suggestion: {result.suggestion}")
    print(f"Remaining requests: {result.remaining_requests}")
    print(f"Processing time: {result.processing_time}ms")


if __name__ == "__main__":
    load_dotenv()
    parser = argparse.ArgumentParser()
    parser.add_argument("--url", default=os.getenv("ADVISOR_BACKEND_URL", "http://localhost:3000"))
    parser.add_argument("--fen", default=STARTING_FEN)
    parser.add_argument("--last-move", default="start")
    args = parser.parse_args()
    asyncio.run(check_suggestion(args.url, args.fen, args.last_move))
