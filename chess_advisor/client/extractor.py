"""
Best-effort position extraction from the game page.

The page structure is not ours and changes often, so several strategies are
tried in priority order and the first one that produces a well-formed FEN
wins. When none does but the page still looks like a game, the starting
position is used instead of failing.
"""

import asyncio
import logging
from typing import Optional, Sequence

from chess_advisor.client.page import Page, url_path
from chess_advisor.client.retry import RetryPolicy, poll_until
from chess_advisor.core.fen import STARTING_FEN, is_valid_fen

logger = logging.getLogger(__name__)

ACTIVE_GAME_POLICY = RetryPolicy(delay=1.0, max_retries=3)

# Elements whose presence means a game (or analysis board) is on screen
GAME_SELECTORS = (
    "wc-chess-board",
    "chess-board",
    ".board",
    ".move-list",
    ".game-controls",
    ".player-row",
    ".clock-component",
)


class ExtractionStrategy:
    name = "strategy"

    def extract(self, page: Page) -> Optional[str]:
        raise NotImplementedError


class ElementAttributeStrategy(ExtractionStrategy):
    """First valid FEN found in any of `attributes` on the element at `selectors`."""

    def __init__(self, name: str, selectors: Sequence[str], attributes: Sequence[str]):
        self.name = name
        self.selectors = tuple(selectors)
        self.attributes = tuple(attributes)

    def _find(self, page: Page):
        element = page.query_selector(self.selectors[0])
        for selector in self.selectors[1:]:
            if element is None:
                return None
            element = element.query_selector(selector)
        return element

    def extract(self, page: Page) -> Optional[str]:
        element = self._find(page)
        if element is None:
            return None
        for attribute in self.attributes:
            value = element.get_attribute(attribute)
            if value and is_valid_fen(value):
                logger.debug(f"Found valid position from {self.name} [{attribute}]: {value}")
                return value
        return None


class GameObjectStrategy(ExtractionStrategy):
    name = "game object"

    def extract(self, page: Page) -> Optional[str]:
        try:
            fen = page.read_game_fen()
        except Exception as e:
            logger.warning(f"Error accessing game object: {e}")
            return None
        if fen and is_valid_fen(fen):
            logger.debug(f"Found valid position from game object: {fen}")
            return fen
        return None


DEFAULT_STRATEGIES: tuple[ExtractionStrategy, ...] = (
    ElementAttributeStrategy("game interface", ["wc-chess-board"], ["position"]),
    ElementAttributeStrategy(
        "chess-board element",
        ["chess-board"],
        ["fen", "position", "data-fen", "data-position"],
    ),
    GameObjectStrategy(),
    ElementAttributeStrategy(
        "board container",
        [".board-layout-main", ".board-container"],
        ["data-board-position"],
    ),
    ElementAttributeStrategy("analysis board", [".analysis-board", ".board"], ["data-fen"]),
)


def page_shows_game(page: Page) -> bool:
    if "/game/" in url_path(page):
        return True
    return any(page.query_selector(selector) is not None for selector in GAME_SELECTORS)


def probe_elements(page: Page) -> dict[str, bool]:
    """Which of the elements the advisor relies on are currently on the page."""
    return {selector: page.query_selector(selector) is not None for selector in GAME_SELECTORS}


class ActiveGameDetector:
    def __init__(self, page: Page, policy: RetryPolicy = ACTIVE_GAME_POLICY, sleep=asyncio.sleep):
        self.page = page
        self.policy = policy
        self._sleep = sleep

    async def is_active(self) -> bool:
        return bool(
            await poll_until(
                lambda: page_shows_game(self.page),
                self.policy,
                sleep=self._sleep,
                label="Game elements",
            )
        )


class PositionExtractor:
    def __init__(
        self,
        page: Page,
        detector: ActiveGameDetector | None = None,
        strategies: Sequence[ExtractionStrategy] = DEFAULT_STRATEGIES,
    ):
        self.page = page
        self.detector = detector or ActiveGameDetector(page)
        self.strategies = tuple(strategies)

    def extract(self) -> Optional[str]:
        """Run the strategy chain only, without the starting-position fallback."""
        for strategy in self.strategies:
            fen = strategy.extract(self.page)
            if fen:
                return fen
        return None

    async def get_current_fen(self) -> Optional[str]:
        fen = self.extract()
        if fen:
            return fen

        # In a game but the position is unreadable: assume the initial position
        if await self.detector.is_active():
            logger.warning("Could not detect current position, using starting position")
            return STARTING_FEN

        logger.error("Could not find board position")
        return None
