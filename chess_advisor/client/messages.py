"""Messages passed from the advisor to the suggestion panel."""

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field

NOT_IN_GAME = "Please start or join a game first."
CANNOT_CONNECT = "Cannot connect to analysis server. Please check your internet connection."
NO_POSITION = "Could not detect the board position. Please make sure you are in an active game."
RATE_LIMITED = "Rate limit reached. Please wait before requesting more moves."
SERVICE_UNAVAILABLE = "Analysis service unavailable"
REFRESH_HINT = "Try refreshing the page if this persists."


class Suggestion(BaseModel):
    move: str
    remaining_requests: int = Field(alias="remainingRequests")

    model_config = ConfigDict(populate_by_name=True)


class SuggestionMessage(BaseModel):
    type: Literal["SUGGESTION"] = "SUGGESTION"
    suggestion: Suggestion


class ErrorMessage(BaseModel):
    type: Literal["ERROR"] = "ERROR"
    error: str


PanelMessage = Union[SuggestionMessage, ErrorMessage]
