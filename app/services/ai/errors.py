"""
Error taxonomy for calls to the upstream model.

ConfigError and QuotaError are the two conditions callers route on;
everything else is an unexpected upstream failure.
"""


class AIServiceError(Exception):
    """Base exception for AI service errors."""

    def __init__(self, message: str, recoverable: bool = True):
        super().__init__(message)
        self.recoverable = recoverable


class AIConfigError(AIServiceError):
    """Credentials missing/invalid or the configured model is unavailable."""

    def __init__(self, message: str):
        super().__init__(message, recoverable=False)


class AIQuotaError(AIServiceError):
    """Admission rejected locally, or the provider signalled a rate limit."""

    def __init__(self, message: str, retry_after_seconds: int | None = None):
        super().__init__(message, recoverable=True)
        self.retry_after_seconds = retry_after_seconds


class AIParseError(AIServiceError):
    """Structured output could not be extracted from the model response."""

    def __init__(self, message: str, excerpt: str = ""):
        super().__init__(message, recoverable=True)
        self.excerpt = excerpt


class AIUpstreamError(AIServiceError):
    """Transport failure, timeout or empty response from the model."""

    def __init__(self, message: str, api_error: str | None = None):
        super().__init__(message, recoverable=True)
        self.api_error = api_error
