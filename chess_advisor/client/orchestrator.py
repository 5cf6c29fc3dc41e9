import logging
from typing import Callable

from chess_advisor.client.backend_client import (
    BackendError,
    BackendUnreachableError,
    SuggestionClient,
)
from chess_advisor.client.connectivity import ConnectivityProbe
from chess_advisor.client.extractor import ActiveGameDetector, PositionExtractor
from chess_advisor.client.game_state import GameStateSnapshot
from chess_advisor.client.messages import (
    CANNOT_CONNECT,
    NO_POSITION,
    NOT_IN_GAME,
    REFRESH_HINT,
    ErrorMessage,
    PanelMessage,
    Suggestion,
    SuggestionMessage,
)

logger = logging.getLogger(__name__)

MAX_CONSECUTIVE_ERRORS = 3


class NoPositionError(Exception):
    pass


class InFlightGuard:
    """At most one holder; a second acquire fails instead of waiting."""

    def __init__(self):
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def try_acquire(self) -> bool:
        if self._held:
            return False
        self._held = True
        return True

    def release(self):
        self._held = False


class SuggestionOrchestrator:
    def __init__(
        self,
        client: SuggestionClient,
        extractor: PositionExtractor,
        detector: ActiveGameDetector,
        connectivity: ConnectivityProbe,
        emit: Callable[[PanelMessage], None],
        max_consecutive_errors: int = MAX_CONSECUTIVE_ERRORS,
    ):
        self.client = client
        self.extractor = extractor
        self.detector = detector
        self.connectivity = connectivity
        self.emit = emit
        self.max_consecutive_errors = max_consecutive_errors
        self.consecutive_errors = 0
        self.guard = InFlightGuard()

    async def request_suggestion(self, snapshot: GameStateSnapshot) -> bool:
        """Ask the backend for a move. Returns False if dropped because one is in flight."""
        if not self.guard.try_acquire():
            logger.debug("Already analyzing, skipping...")
            return False

        try:
            await self._analyze(snapshot)
        finally:
            self.guard.release()
        return True

    async def _analyze(self, snapshot: GameStateSnapshot):
        if not await self.detector.is_active():
            logger.error("Not in an active game")
            self.emit(ErrorMessage(error=NOT_IN_GAME))
            return

        if not self.connectivity.connected:
            logger.error("Backend not connected")
            self.emit(ErrorMessage(error=CANNOT_CONNECT))
            return

        logger.info("Starting analysis...")
        try:
            fen = await self.extractor.get_current_fen()
            if not fen:
                raise NoPositionError(NO_POSITION)
            result = await self.client.suggest_move(fen, snapshot.last_move)
        except BackendUnreachableError as e:
            logger.error(f"Error getting analysis: {e}")
            self.connectivity.mark_disconnected()
            self._report_error(CANNOT_CONNECT)
            return
        except (BackendError, NoPositionError) as e:
            logger.error(f"Error getting analysis: {e}")
            self._report_error(str(e))
            return
        except Exception as e:
            logger.exception(f"Unexpected error getting analysis: {e}")
            self._report_error(str(e))
            return

        logger.info(f"Received analysis: {result.suggestion}")
        self.consecutive_errors = 0
        self.connectivity.mark_connected()
        self.emit(
            SuggestionMessage(
                suggestion=Suggestion(
                    move=result.suggestion,
                    remaining_requests=result.remaining_requests,
                )
            )
        )

    def _report_error(self, message: str):
        self.consecutive_errors += 1
        if self.consecutive_errors >= self.max_consecutive_errors:
            message = f"{message} {REFRESH_HINT}"
        self.emit(ErrorMessage(error=message))
