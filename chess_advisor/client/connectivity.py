"""
Backend connectivity tracking.

The probe polls the service's health endpoint until it answers once, then
stops. The orchestrator reads `connected` before every request so that an
unreachable backend short-circuits without a network round trip. When a
request later finds the backend unreachable, `mark_disconnected()` starts
polling again (unless `resume_on_disconnect` is off).
"""

import asyncio
import logging
from typing import Callable

from chess_advisor.client.backend_client import BackendError, SuggestionClient
from chess_advisor.client.messages import CANNOT_CONNECT, ErrorMessage, PanelMessage
from chess_advisor.client.retry import RetryPolicy, poll_until

logger = logging.getLogger(__name__)

HEALTH_PROBE_POLICY = RetryPolicy(delay=30.0, max_retries=None)


class ConnectivityProbe:
    def __init__(
        self,
        client: SuggestionClient,
        emit: Callable[[PanelMessage], None],
        policy: RetryPolicy = HEALTH_PROBE_POLICY,
        resume_on_disconnect: bool = True,
        sleep=asyncio.sleep,
    ):
        self.client = client
        self.emit = emit
        self.policy = policy
        self.resume_on_disconnect = resume_on_disconnect
        self.connected = False
        self._sleep = sleep
        self._task: asyncio.Task | None = None

    @property
    def polling(self) -> bool:
        return self._task is not None and not self._task.done()

    async def check_once(self) -> bool:
        try:
            await self.client.health()
        except BackendError as e:
            logger.error(f"Backend connection failed: {e}")
            self.connected = False
            self.emit(ErrorMessage(error=CANNOT_CONNECT))
            return False
        logger.info("Backend connection established")
        self.connected = True
        return True

    async def run(self) -> bool:
        """Poll until the backend answers (or the policy gives up)."""
        return await poll_until(
            self.check_once, self.policy, sleep=self._sleep, label="Backend health"
        )

    def start(self) -> asyncio.Task:
        if not self.polling:
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self):
        if self.polling:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None

    def mark_connected(self):
        self.connected = True

    def mark_disconnected(self):
        self.connected = False
        if self.resume_on_disconnect and not self.polling:
            logger.info("Backend unreachable, resuming health checks")
            self.start()
