import os
from dataclasses import dataclass, field

from dotenv import load_dotenv
from langchain_openai import ChatOpenAI
from pydantic import SecretStr

from chess_advisor.core.logging_config import setup_logging
from chess_advisor.core.prompts import get_variant
from chess_advisor.core.quota import QuotaLimiter

load_dotenv()
_ = setup_logging()

REQUIRED_ENV_VARS = ["OPENAI_API_KEY"]

PRODUCTION_ORIGINS = [
    "https://www.chess.com",
    "https://chess.com",
    "https://chess-gpt-advisor.onrender.com",
]


class MissingConfigurationError(RuntimeError):
    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing required environment variables: {missing}")


@dataclass
class Settings:
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    environment: str = "development"
    suggestion_variant: str = "strict"
    quota_points: int = 100
    quota_window_seconds: int = 86400
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])
    host: str = "0.0.0.0"
    port: int = 3000

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        environment = os.getenv("ENVIRONMENT", "development")
        is_production = environment == "production"

        origins = os.getenv("ALLOWED_ORIGINS")
        if origins:
            allowed_origins = [o.strip() for o in origins.split(",") if o.strip()]
        else:
            allowed_origins = PRODUCTION_ORIGINS if is_production else ["*"]

        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
            environment=environment,
            suggestion_variant=os.getenv("SUGGESTION_VARIANT", "strict"),
            # 10 requests per day in production
            quota_points=int(os.getenv("QUOTA_POINTS", "10" if is_production else "100")),
            quota_window_seconds=int(os.getenv("QUOTA_WINDOW_SECONDS", "86400")),
            allowed_origins=allowed_origins,
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
        )

    def missing_required(self) -> list[str]:
        values = {"OPENAI_API_KEY": self.openai_api_key}
        return [name for name in REQUIRED_ENV_VARS if not values.get(name)]


_settings = Settings.from_env()
_quota_limiter: QuotaLimiter | None = None


def get_settings() -> Settings:
    return _settings


def set_settings(settings: Settings):
    global _settings
    _settings = settings


def require_settings() -> Settings:
    missing = _settings.missing_required()
    if missing:
        raise MissingConfigurationError(missing)
    # Fail at startup rather than on the first request
    get_variant(_settings.suggestion_variant)
    return _settings


def get_quota_limiter() -> QuotaLimiter:
    global _quota_limiter
    if _quota_limiter is None:
        _quota_limiter = QuotaLimiter(
            points=_settings.quota_points,
            duration_seconds=_settings.quota_window_seconds,
        )
    return _quota_limiter


def set_quota_limiter(limiter: QuotaLimiter | None):
    global _quota_limiter
    _quota_limiter = limiter


def get_langchain_client(variant_name: str | None = None):
    variant = get_variant(variant_name or _settings.suggestion_variant)
    api_key = _settings.openai_api_key
    return ChatOpenAI(
        api_key=SecretStr(api_key) if api_key else None,
        model=_settings.openai_model,
        temperature=variant.temperature,
        max_tokens=variant.max_tokens,
    )
