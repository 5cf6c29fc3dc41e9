from pydantic import BaseModel, ConfigDict, Field


class SuggestMoveRequest(BaseModel):
    # Presence is checked by the endpoint so a missing field maps to a 400
    game_state: str | None = Field(default=None, alias="gameState")
    current_move: str | None = Field(default=None, alias="currentMove")
    player_color: str | None = Field(default=None, alias="playerColor")

    model_config = ConfigDict(populate_by_name=True)


class SuggestMoveResponse(BaseModel):
    suggestion: str
    remaining_requests: int = Field(alias="remainingRequests", ge=0)
    processing_time: int = Field(alias="processingTime", ge=0)

    model_config = ConfigDict(populate_by_name=True)


class HealthResponse(BaseModel):
    status: str
    environment: str
    timestamp: str


class RemainingRequestsResponse(BaseModel):
    remaining_requests: int = Field(alias="remainingRequests", ge=0)
    limit: int
    window_seconds: int = Field(alias="windowSeconds")

    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(BaseModel):
    error: str
    retry_after: int | None = Field(default=None, alias="retryAfter")
    details: str | None = None

    model_config = ConfigDict(populate_by_name=True)
