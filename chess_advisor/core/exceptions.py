"""
Errors raised by the suggestion service. Each one knows its HTTP status and the
JSON body the client receives.
"""


class SuggestionServiceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_payload(self) -> dict:
        return {"error": self.message}


class InvalidRequestError(SuggestionServiceError):
    status_code = 400


class QuotaExhaustedError(SuggestionServiceError):
    status_code = 429

    def __init__(self, retry_after: int):
        self.retry_after = max(0, retry_after)
        super().__init__("Too many requests. Please try again later.")

    def to_payload(self) -> dict:
        return {"error": self.message, "retryAfter": self.retry_after}


class SuggestionFailedError(SuggestionServiceError):
    status_code = 500

    def __init__(self, details: str):
        self.details = details
        super().__init__("Failed to generate move suggestion")

    def to_payload(self) -> dict:
        return {"error": self.message, "details": self.details}
