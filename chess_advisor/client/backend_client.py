import logging

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from chess_advisor.client.messages import RATE_LIMITED, SERVICE_UNAVAILABLE

logger = logging.getLogger(__name__)

CLIENT_VERSION = "1.0.0"
DEFAULT_BACKEND_URL = "https://chess-gpt-advisor.onrender.com"


class BackendError(Exception):
    pass


class BackendUnreachableError(BackendError):
    """The service could not be reached at all (DNS, refused, timeout)."""


class SuggestionRequestError(BackendError):
    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class RateLimitedError(SuggestionRequestError):
    def __init__(self, retry_after: int | None = None):
        self.retry_after = retry_after
        super().__init__(RATE_LIMITED, status_code=429)


class SuggestionResult(BaseModel):
    suggestion: str
    remaining_requests: int = Field(alias="remainingRequests")
    processing_time: int | None = Field(default=None, alias="processingTime")

    model_config = ConfigDict(populate_by_name=True)


class SuggestionClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BACKEND_URL,
        client_version: str = CLIENT_VERSION,
        user_id: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        headers = {"X-Client-Version": client_version}
        if user_id:
            headers["X-User-Id"] = user_id
        self._http = http_client or httpx.AsyncClient(base_url=base_url, timeout=30.0)
        self._headers = headers

    async def aclose(self):
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            return await self._http.request(method, path, headers=self._headers, **kwargs)
        except httpx.TransportError as e:
            raise BackendUnreachableError(str(e)) from e

    async def health(self) -> dict:
        response = await self._request("GET", "/health")
        if response.status_code != 200:
            raise BackendError(f"Backend health check failed ({response.status_code})")
        try:
            return response.json()
        except ValueError as e:
            raise BackendError("Backend health check returned invalid JSON") from e

    async def suggest_move(self, fen: str, last_move: str) -> SuggestionResult:
        logger.debug(f"Sending request to backend: fen={fen} lastMove={last_move}")
        response = await self._request(
            "POST",
            "/suggest-move",
            json={"gameState": fen, "currentMove": last_move},
        )
        logger.debug(f"Response status: {response.status_code}")

        if response.is_success:
            try:
                return SuggestionResult.model_validate(response.json())
            except (ValueError, ValidationError) as e:
                logger.error(f"Unreadable suggestion response: {e}")
                raise SuggestionRequestError(
                    SERVICE_UNAVAILABLE, status_code=response.status_code
                ) from e

        error_data = _error_body(response)
        logger.error(f"Backend error: {error_data}")
        if response.status_code == 429:
            raise RateLimitedError(retry_after=error_data.get("retryAfter"))
        raise SuggestionRequestError(
            error_data.get("error") or SERVICE_UNAVAILABLE,
            status_code=response.status_code,
        )

    async def remaining_requests(self) -> int:
        response = await self._request("GET", "/remaining-requests")
        if not response.is_success:
            raise SuggestionRequestError(SERVICE_UNAVAILABLE, status_code=response.status_code)
        return int(response.json()["remainingRequests"])


def _error_body(response: httpx.Response) -> dict:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}
