"""
Runs the move advisor against a live game page.

    chess-advisor --page-url https://www.chess.com/play/online

opens Chrome through Selenium, waits for the move list and asks the
suggestion service for a move every time it changes. `--diagnose` only
reports which board elements and which position the advisor can see.
"""

import argparse
import asyncio
import logging
import os

from dotenv import load_dotenv

from chess_advisor.client.backend_client import DEFAULT_BACKEND_URL, SuggestionClient
from chess_advisor.client.connectivity import ConnectivityProbe
from chess_advisor.client.extractor import (
    ActiveGameDetector,
    PositionExtractor,
    probe_elements,
)
from chess_advisor.client.game_state import GameStateSnapshot
from chess_advisor.client.orchestrator import SuggestionOrchestrator
from chess_advisor.client.page import Page, SeleniumPage, url_host
from chess_advisor.client.panel import SuggestionPanel
from chess_advisor.client.watcher import MoveListWatcher
from chess_advisor.core.fen import is_valid_fen
from chess_advisor.core.logging_config import setup_logging

logger = logging.getLogger(__name__)


class Advisor:
    def __init__(
        self,
        page: Page,
        client: SuggestionClient,
        panel: SuggestionPanel | None = None,
        poll_interval: float = 0.5,
    ):
        self.page = page
        self.client = client
        self.panel = panel or SuggestionPanel()
        self.detector = ActiveGameDetector(page)
        self.extractor = PositionExtractor(page, self.detector)
        self.connectivity = ConnectivityProbe(client, self.panel.handle)
        self.orchestrator = SuggestionOrchestrator(
            client,
            self.extractor,
            self.detector,
            self.connectivity,
            self.panel.handle,
        )
        self.watcher = MoveListWatcher(page, self.on_move_list_change, poll_interval=poll_interval)
        self._pending: set[asyncio.Task] = set()

    def on_move_list_change(self, snapshot: GameStateSnapshot):
        # Fire and forget; the orchestrator drops it if a request is in flight
        task = asyncio.create_task(self.orchestrator.request_suggestion(snapshot))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def run(self):
        logger.info("Initializing Chess GPT Advisor...")
        self.connectivity.start()
        try:
            await self.watcher.run()
        finally:
            await self.connectivity.stop()

    async def diagnose(self) -> dict:
        report = {
            "host": url_host(self.page),
            "in_game": await self.detector.is_active(),
            "elements": probe_elements(self.page),
        }
        fen = await self.extractor.get_current_fen()
        report["fen"] = fen
        report["fen_valid"] = is_valid_fen(fen)
        return report


def build_driver(page_url: str, headless: bool = False):
    from selenium import webdriver

    options = webdriver.ChromeOptions()
    if headless:
        options.add_argument("--headless=new")
    driver = webdriver.Chrome(options=options)
    driver.get(page_url)
    return driver


async def _main(args):
    driver = build_driver(args.page_url, headless=args.headless)
    client = SuggestionClient(base_url=args.backend_url, user_id=args.user_id)
    advisor = Advisor(SeleniumPage(driver), client, poll_interval=args.poll_interval)
    try:
        if args.diagnose:
            report = await advisor.diagnose()
            if "chess.com" not in report["host"]:
                logger.error("Not on chess.com")
            for selector, found in report["elements"].items():
                logger.info(f"- {selector}: {'Found' if found else 'Not found'}")
            logger.info(f"Game detection result: {report['in_game']}")
            logger.info(f"Board position: {report['fen']} (valid: {report['fen_valid']})")
        else:
            await advisor.run()
    finally:
        await client.aclose()
        driver.quit()


def main():
    load_dotenv()
    setup_logging()
    parser = argparse.ArgumentParser(description="Chess move advisor for a live game page")
    parser.add_argument(
        "--backend-url",
        default=os.getenv("ADVISOR_BACKEND_URL", DEFAULT_BACKEND_URL),
        help="Base URL of the suggestion service",
    )
    parser.add_argument("--page-url", default="https://www.chess.com/play/online")
    parser.add_argument("--user-id", default=os.getenv("ADVISOR_USER_ID"))
    parser.add_argument("--poll-interval", type=float, default=0.5)
    parser.add_argument("--headless", action="store_true")
    parser.add_argument(
        "--diagnose",
        action="store_true",
        help="Report detected board elements and position, then exit",
    )
    args = parser.parse_args()

    try:
        asyncio.run(_main(args))
    except KeyboardInterrupt:
        logger.info("Stopped")


if __name__ == "__main__":
    main()
