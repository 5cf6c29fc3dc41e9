import logging
import math
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from openai import APIConnectionError, AuthenticationError, RateLimitError

from chess_advisor.core.config import (
    get_langchain_client,
    get_quota_limiter,
    get_settings,
)
from chess_advisor.core.exceptions import (
    InvalidRequestError,
    QuotaExhaustedError,
    SuggestionFailedError,
)
from chess_advisor.core.fen import matches_position_pattern
from chess_advisor.core.prompts import build_messages, get_variant
from chess_advisor.core.quota import QuotaExceededError
from chess_advisor.models.schemas import (
    ErrorResponse,
    HealthResponse,
    RemainingRequestsResponse,
    SuggestMoveRequest,
    SuggestMoveResponse,
)

router = APIRouter()
logger = logging.getLogger(__name__)

USER_ID_HEADER = "x-user-id"


def caller_identity(request: Request) -> str:
    """Explicit user id header if the client sent one, else its address."""
    user_id = request.headers.get(USER_ID_HEADER)
    if user_id:
        return user_id
    return request.client.host if request.client else "unknown"


@router.get("/health", response_model=HealthResponse)
def health_check():
    return HealthResponse(
        status="ok",
        environment=get_settings().environment,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.get("/remaining-requests", response_model=RemainingRequestsResponse)
def remaining_requests(request: Request):
    limiter = get_quota_limiter()
    return RemainingRequestsResponse(
        remaining_requests=limiter.remaining(caller_identity(request)),
        limit=limiter.points,
        window_seconds=int(limiter.duration_seconds),
    )


@router.post(
    "/suggest-move",
    response_model=SuggestMoveResponse,
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def suggest_move(payload: SuggestMoveRequest, request: Request):
    start_time = time.perf_counter()
    settings = get_settings()
    client_version = request.headers.get("x-client-version", "unknown")
    logger.info(f"Move suggestion requested (client version {client_version})")

    if not payload.game_state or not payload.current_move:
        raise InvalidRequestError("Missing required game information")

    if not matches_position_pattern(payload.game_state):
        raise InvalidRequestError("Invalid chess position format")

    user_id = caller_identity(request)
    limiter = get_quota_limiter()
    try:
        limiter.consume(user_id)
    except QuotaExceededError as e:
        logger.warning(f"Rate limit exceeded for user: {user_id}")
        raise QuotaExhaustedError(retry_after=math.ceil(e.ms_before_next / 1000))

    variant = get_variant(settings.suggestion_variant)
    messages = build_messages(
        variant, payload.game_state, payload.current_move, payload.player_color
    )
    try:
        llm = get_langchain_client(variant.name)
        completion = await llm.ainvoke(messages)
    except (RateLimitError, AuthenticationError, APIConnectionError) as e:
        logger.error(f"OpenAI {type(e).__name__}: {e}")
        raise SuggestionFailedError(_error_details(e))
    except Exception as e:
        logger.exception(f"Error generating move suggestion: {e}")
        raise SuggestionFailedError(_error_details(e))

    suggestion = completion.content
    if not isinstance(suggestion, str):
        suggestion = str(suggestion)
    if variant.trim_response:
        suggestion = suggestion.strip()

    processing_time = int((time.perf_counter() - start_time) * 1000)
    logger.info(f"Request processed in {processing_time}ms")

    return SuggestMoveResponse(
        suggestion=suggestion,
        remaining_requests=limiter.remaining(user_id),
        processing_time=processing_time,
    )


def _error_details(error: Exception) -> str:
    if get_settings().is_production:
        return "Internal server error"
    return str(error)
