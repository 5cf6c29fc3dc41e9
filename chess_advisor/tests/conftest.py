import os

# Settings are read at import time, so the key has to exist before the app loads
os.environ.setdefault("OPENAI_API_KEY", "sk-test-key")

from unittest.mock import AsyncMock, MagicMock, patch  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from langchain_core.messages import AIMessage  # noqa: E402

from chess_advisor.core.config import (  # noqa: E402
    Settings,
    get_settings,
    set_quota_limiter,
    set_settings,
)
from chess_advisor.core.quota import QuotaLimiter  # noqa: E402
from chess_advisor.main import app  # noqa: E402


@pytest.fixture(scope="module")
def client():
    # Use TestClient for synchronous testing of async endpoints (FastAPI handles this magic)
    with TestClient(app) as c:
        yield c


@pytest.fixture(autouse=True)
def quota_limiter():
    """Fresh 10-per-day quota for every test."""
    limiter = QuotaLimiter(points=10, duration_seconds=86400)
    set_quota_limiter(limiter)
    yield limiter
    set_quota_limiter(None)


@pytest.fixture
def settings():
    """Swap in test settings; anything a test changes is undone afterwards."""
    original = get_settings()
    test_settings = Settings(openai_api_key="sk-test-key", environment="development")
    set_settings(test_settings)
    yield test_settings
    set_settings(original)


@pytest.fixture
def mock_llm():
    llm = MagicMock()
    llm.ainvoke = AsyncMock(return_value=AIMessage(content="  White Knight --> f3\n"))
    with patch("chess_advisor.api.endpoints.get_langchain_client", return_value=llm) as factory:
        llm.factory = factory
        yield llm


# --- Fake page for the advisor side ---


class FakeElement:
    def __init__(self, attributes=None, text="", children=None):
        self.attributes = dict(attributes or {})
        self.text = text
        self.children = dict(children or {})

    def query_selector(self, selector):
        return self.children.get(selector)

    def get_attribute(self, name):
        return self.attributes.get(name)

    @property
    def text_content(self):
        return self.text


class FakePage:
    def __init__(self, url="https://www.chess.com/play/online", elements=None, game_fen=None):
        self.url = url
        self.elements = dict(elements or {})
        self.game_fen = game_fen

    def query_selector(self, selector):
        return self.elements.get(selector)

    def read_game_fen(self):
        if isinstance(self.game_fen, Exception):
            raise self.game_fen
        return self.game_fen


@pytest.fixture
def page_factory():
    return FakePage


@pytest.fixture
def element_factory():
    return FakeElement


@pytest.fixture
def no_sleep():
    return AsyncMock()
