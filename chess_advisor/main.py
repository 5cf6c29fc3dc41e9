import logging
import sys

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chess_advisor.api.endpoints import router
from chess_advisor.core.config import (
    MissingConfigurationError,
    get_settings,
    require_settings,
)
from chess_advisor.core.exceptions import InvalidRequestError, SuggestionServiceError

logger = logging.getLogger(__name__)

app = FastAPI(title="Chess Move Advisor")

# CORS: chess.com origins in production, anything otherwise
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().allowed_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "X-Client-Version", "X-User-Id"],
)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-XSS-Protection"] = "1; mode=block"
    return response


@app.exception_handler(SuggestionServiceError)
async def suggestion_service_error_handler(request: Request, exc: SuggestionServiceError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # Suggestion callers get the same two 400 bodies as the in-handler checks
    if request.url.path != "/suggest-move":
        return await request_validation_exception_handler(request, exc)

    bad_position = any(
        "gameState" in error.get("loc", ()) and error.get("type") != "missing"
        for error in exc.errors()
    )
    if bad_position:
        error = InvalidRequestError("Invalid chess position format")
    else:
        error = InvalidRequestError("Missing required game information")
    logger.warning(f"Rejected suggestion request: {exc.errors()}")
    return await suggestion_service_error_handler(request, error)


@app.on_event("startup")
async def startup_event():
    settings = require_settings()
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Production mode: {settings.is_production}")
    logger.info(
        f"Quota: {settings.quota_points} requests per {settings.quota_window_seconds}s, "
        f"variant: {settings.suggestion_variant}"
    )


app.include_router(router)


def run():
    try:
        settings = require_settings()
    except (MissingConfigurationError, ValueError) as e:
        logger.critical(str(e))
        sys.exit(1)

    import uvicorn

    logger.info(f"Server running on port {settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
