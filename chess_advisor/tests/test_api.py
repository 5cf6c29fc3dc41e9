from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from langchain_core.messages import AIMessage
from openai import RateLimitError

from chess_advisor.core.config import (
    MissingConfigurationError,
    Settings,
    require_settings,
    set_settings,
)
from chess_advisor.core.prompts import EXPLAIN, STRICT

START_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

# --- Health Check Tests ---


def test_health_check(client, settings):
    """Test the health check endpoint returns 200 and correct status."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["environment"] == "development"
    assert "T" in data["timestamp"]


def test_security_headers(client):
    response = client.get("/health")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-XSS-Protection"] == "1; mode=block"


# --- Validation Tests ---


def test_suggest_move_missing_game_state(client, mock_llm, quota_limiter):
    """Missing gameState is rejected before the quota or the LLM is touched."""
    response = client.post(
        "/suggest-move", json={"currentMove": "e4"}, headers={"X-User-Id": "alice"}
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Missing required game information"}
    mock_llm.ainvoke.assert_not_called()
    assert quota_limiter.get("alice") is None


def test_suggest_move_missing_current_move(client, mock_llm):
    response = client.post("/suggest-move", json={"gameState": START_FEN})
    assert response.status_code == 400
    assert response.json()["error"] == "Missing required game information"
    mock_llm.ainvoke.assert_not_called()


@pytest.mark.parametrize(
    "fen",
    [
        "invalid-fen-string",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP w KQkq - 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR x KQkq - 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0",
    ],
)
def test_suggest_move_invalid_fen(client, mock_llm, quota_limiter, fen):
    response = client.post(
        "/suggest-move",
        json={"gameState": fen, "currentMove": "e4"},
        headers={"X-User-Id": "bob"},
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid chess position format"}
    mock_llm.ainvoke.assert_not_called()
    assert quota_limiter.get("bob") is None


def test_suggest_move_non_string_game_state(client, mock_llm, quota_limiter):
    response = client.post(
        "/suggest-move",
        json={"gameState": 123, "currentMove": "e4"},
        headers={"X-User-Id": "dave"},
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid chess position format"}
    mock_llm.ainvoke.assert_not_called()
    assert quota_limiter.get("dave") is None


def test_suggest_move_non_string_current_move(client, mock_llm):
    response = client.post("/suggest-move", json={"gameState": START_FEN, "currentMove": 5})
    assert response.status_code == 400
    assert response.json() == {"error": "Missing required game information"}
    mock_llm.ainvoke.assert_not_called()


def test_suggest_move_body_is_not_json(client, mock_llm):
    response = client.post(
        "/suggest-move",
        content="not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Missing required game information"}
    mock_llm.ainvoke.assert_not_called()


def test_suggest_move_non_ascii_counters(client, mock_llm):
    fen = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - \u0660 \u0661"
    response = client.post("/suggest-move", json={"gameState": fen, "currentMove": "e4"})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid chess position format"}
    mock_llm.ainvoke.assert_not_called()


# --- Suggestion Tests ---


def test_suggest_move_start_position(client, settings, mock_llm, quota_limiter):
    """A valid request returns the trimmed suggestion and one fewer remaining request."""
    before = client.get("/remaining-requests", headers={"X-User-Id": "carol"}).json()
    assert before["remainingRequests"] == 10

    response = client.post(
        "/suggest-move",
        json={"gameState": START_FEN, "currentMove": "start"},
        headers={"X-User-Id": "carol", "X-Client-Version": "1.0.0"},
    )

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["suggestion"] == "White Knight --> f3"
    assert data["remainingRequests"] == before["remainingRequests"] - 1
    assert data["processingTime"] >= 0
    mock_llm.ainvoke.assert_awaited_once()


def test_suggest_move_prompt_embeds_position(client, settings, mock_llm):
    client.post(
        "/suggest-move",
        json={"gameState": START_FEN, "currentMove": "start", "playerColor": "White"},
    )

    mock_llm.factory.assert_called_once_with("strict")
    messages = mock_llm.ainvoke.await_args.args[0]
    system_role, system_prompt = messages[0]
    user_role, user_prompt = messages[1]
    assert system_role == "system"
    assert "White [Piece] --> [destination square]" in system_prompt
    assert "best move for the White" in system_prompt
    assert user_role == "user"
    assert START_FEN in user_prompt
    assert "Last move played: start" in user_prompt


def test_suggest_move_explain_variant_keeps_text(client, settings, mock_llm):
    settings.suggestion_variant = EXPLAIN.name
    mock_llm.ainvoke.return_value = AIMessage(content="  Play e4 to claim the centre.\n")

    response = client.post(
        "/suggest-move", json={"gameState": START_FEN, "currentMove": "start"}
    )

    assert response.status_code == 200
    assert response.json()["suggestion"] == "  Play e4 to claim the centre.\n"
    mock_llm.factory.assert_called_once_with(EXPLAIN.name)


def test_quota_is_per_caller(client, settings, mock_llm):
    for _ in range(3):
        client.post(
            "/suggest-move",
            json={"gameState": START_FEN, "currentMove": "start"},
            headers={"X-User-Id": "dave"},
        )

    dave = client.get("/remaining-requests", headers={"X-User-Id": "dave"}).json()
    erin = client.get("/remaining-requests", headers={"X-User-Id": "erin"}).json()
    assert dave["remainingRequests"] == 7
    assert erin["remainingRequests"] == 10
    assert dave["limit"] == 10
    assert dave["windowSeconds"] == 86400


def test_remaining_requests_does_not_consume(client, quota_limiter):
    for _ in range(5):
        response = client.get("/remaining-requests", headers={"X-User-Id": "frank"})
        assert response.json()["remainingRequests"] == 10
    assert quota_limiter.get("frank") is None


def test_caller_falls_back_to_address(client, settings, mock_llm, quota_limiter):
    client.post("/suggest-move", json={"gameState": START_FEN, "currentMove": "start"})
    # TestClient connects from "testclient"
    assert quota_limiter.remaining("testclient") == 9


# --- Quota Tests ---


def test_eleventh_request_is_rejected(client, settings, mock_llm):
    payload = {"gameState": START_FEN, "currentMove": "start"}
    headers = {"X-User-Id": "grace"}
    for i in range(10):
        response = client.post("/suggest-move", json=payload, headers=headers)
        assert response.status_code == 200
        assert response.json()["remainingRequests"] == 9 - i

    mock_llm.ainvoke.reset_mock()
    response = client.post("/suggest-move", json=payload, headers=headers)

    assert response.status_code == 429
    data = response.json()
    assert data["error"].startswith("Too many requests")
    assert data["retryAfter"] >= 0
    mock_llm.ainvoke.assert_not_called()


# --- Oracle Failure Tests ---


def test_llm_failure_returns_details_in_development(client, settings, mock_llm):
    mock_llm.ainvoke.side_effect = RuntimeError("model overloaded")

    response = client.post(
        "/suggest-move", json={"gameState": START_FEN, "currentMove": "start"}
    )

    assert response.status_code == 500
    assert response.json() == {
        "error": "Failed to generate move suggestion",
        "details": "model overloaded",
    }


def test_llm_failure_is_redacted_in_production(client, settings, mock_llm):
    settings.environment = "production"
    err = RateLimitError(message="Rate limit exceeded", response=MagicMock(), body=None)
    mock_llm.ainvoke.side_effect = err

    response = client.post(
        "/suggest-move", json={"gameState": START_FEN, "currentMove": "start"}
    )

    assert response.status_code == 500
    assert response.json()["details"] == "Internal server error"


@patch("chess_advisor.api.endpoints.get_langchain_client")
def test_llm_client_construction_failure(mock_get_langchain, client, settings):
    mock_get_langchain.side_effect = RuntimeError("bad config")

    response = client.post(
        "/suggest-move", json={"gameState": START_FEN, "currentMove": "start"}
    )

    assert response.status_code == 500
    assert response.json() == {
        "error": "Failed to generate move suggestion",
        "details": "bad config",
    }


@patch("chess_advisor.api.endpoints.get_langchain_client")
def test_non_string_content_is_stringified(mock_get_langchain, client, settings):
    llm = MagicMock()
    llm.ainvoke = AsyncMock(return_value=MagicMock(content=["Black Pawn --> d5"]))
    mock_get_langchain.return_value = llm

    response = client.post(
        "/suggest-move", json={"gameState": START_FEN, "currentMove": "e4"}
    )

    assert response.status_code == 200
    assert response.json()["suggestion"] == "['Black Pawn --> d5']"


# --- Configuration Tests ---


def test_require_settings_without_api_key(settings):
    set_settings(Settings(openai_api_key=None))
    with pytest.raises(MissingConfigurationError) as exc_info:
        require_settings()
    assert exc_info.value.missing == ["OPENAI_API_KEY"]


def test_require_settings_with_unknown_variant(settings):
    set_settings(Settings(openai_api_key="sk-test", suggestion_variant="verbose"))
    with pytest.raises(ValueError):
        require_settings()


def test_run_exits_without_api_key(settings):
    from chess_advisor.main import run

    set_settings(Settings(openai_api_key=None))
    with patch("uvicorn.run") as mock_run:
        with pytest.raises(SystemExit) as exc_info:
            run()
    assert exc_info.value.code == 1
    mock_run.assert_not_called()


def test_production_settings_from_env(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.delenv("QUOTA_POINTS", raising=False)
    monkeypatch.delenv("ALLOWED_ORIGINS", raising=False)
    settings = Settings.from_env()
    assert settings.is_production
    assert settings.quota_points == 10
    assert "https://www.chess.com" in settings.allowed_origins


def test_development_settings_from_env(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.delenv("QUOTA_POINTS", raising=False)
    monkeypatch.delenv("ALLOWED_ORIGINS", raising=False)
    monkeypatch.delenv("SUGGESTION_VARIANT", raising=False)
    settings = Settings.from_env()
    assert settings.quota_points == 100
    assert settings.allowed_origins == ["*"]
    assert settings.suggestion_variant == STRICT.name
