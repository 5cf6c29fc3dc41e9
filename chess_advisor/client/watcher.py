"""
Watches the on-page move list and reports each change of its text.

Selenium cannot hand us DOM mutation events, so the text is re-read every
`poll_interval` seconds; a change is an exact string inequality with the
text recorded at the previous change.
"""

import asyncio
import logging
from typing import Callable, Optional

from selenium.common.exceptions import WebDriverException

from chess_advisor.client.game_state import GameStateSnapshot, format_game_state
from chess_advisor.client.page import Page, PageElement
from chess_advisor.client.retry import RetryPolicy, poll_until

logger = logging.getLogger(__name__)

MOVE_LIST_SELECTOR = ".move-list"
ATTACH_POLICY = RetryPolicy(delay=2.0, max_retries=None)


class MoveListWatcher:
    def __init__(
        self,
        page: Page,
        on_change: Callable[[GameStateSnapshot], None],
        attach_policy: RetryPolicy = ATTACH_POLICY,
        poll_interval: float = 0.5,
        sleep=asyncio.sleep,
    ):
        self.page = page
        self.on_change = on_change
        self.attach_policy = attach_policy
        self.poll_interval = poll_interval
        self.last_moves: Optional[str] = None
        self.move_count = 0
        self.is_white_turn = True
        self._sleep = sleep
        self._move_list: Optional[PageElement] = None

    @property
    def attached(self) -> bool:
        return self._move_list is not None

    def _find_move_list(self) -> Optional[PageElement]:
        move_list = self.page.query_selector(MOVE_LIST_SELECTOR)
        if move_list is None:
            logger.debug("Move list not found")
        return move_list

    async def attach(self) -> bool:
        self._move_list = await poll_until(
            self._find_move_list, self.attach_policy, sleep=self._sleep, label="Move list"
        )
        if self._move_list is not None:
            logger.info("Move observer active - Ready to analyze positions")
        return self.attached

    def check_for_changes(self) -> Optional[GameStateSnapshot]:
        """Compare the move list's text with the last seen; trigger on change."""
        move_list = self._find_move_list()
        if move_list is None:
            return None

        moves = move_list.text_content.strip()
        if moves == self.last_moves:
            return None

        self.move_count += 1
        snapshot = format_game_state(moves)
        logger.info(f"=== Move #{self.move_count} === last move: {snapshot.last_move}")

        self.last_moves = moves
        self.is_white_turn = snapshot.is_white_turn
        self.on_change(snapshot)
        return snapshot

    async def run(self):
        if not await self.attach():
            return
        self._safe_check()
        while True:
            await self._sleep(self.poll_interval)
            self._safe_check()

    def _safe_check(self):
        # The page re-renders under us; a stale read is retried on the next tick
        try:
            self.check_for_changes()
        except WebDriverException as e:
            logger.warning(f"Move list read failed, will retry: {e}")
