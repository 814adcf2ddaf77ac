"""Exception taxonomy for the extraction pipeline.

Every error carries an HTTP status code and a stable machine-readable code so
the relay server can turn it into a JSON error body without special cases.
"""

from typing import Any


class ExtractionError(Exception):
    """Base class for errors raised to callers of the extraction core."""

    status_code: int = 500
    code: str = "APP_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON error body returned by the server."""
        return {"error": self.message, "code": self.code}


class IdentityRequiredError(ExtractionError):
    """Raised when a request arrives without an identity key."""

    status_code = 401
    code = "NO_USER"

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class QuotaExceededError(ExtractionError):
    """Raised when an identity has no quota tokens left.

    Raised before any call to the generative-text service, so a rejection
    costs nothing downstream.
    """

    status_code = 429
    code = "RATE_LIMITED"

    def __init__(self, retry_after_ms: int, limit: int, decision: Any = None):
        self.retry_after_ms = retry_after_ms
        self.limit = limit
        # QuotaDecision that rejected the call, when raised by a QuotaGuard
        self.decision = decision
        super().__init__("Rate limit exceeded. Please wait before making more analysis requests.")

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["retryAfter"] = self.retry_after_ms / 1000
        return body


class InputTooLargeError(ExtractionError):
    """Raised when text still exceeds the budget after aggressive compaction."""

    status_code = 400
    code = "INPUT_TOO_LARGE"

    def __init__(self, original_chars: int, cleaned_chars: int, target_chars: int):
        self.original_chars = original_chars
        self.cleaned_chars = cleaned_chars
        self.target_chars = target_chars
        super().__init__(
            f"Input is too large to analyze: {original_chars:,} characters, "
            f"{cleaned_chars:,} after cleanup, limit is {target_chars:,}. "
            f"Please trim the input manually."
        )

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["originalChars"] = self.original_chars
        body["cleanedChars"] = self.cleaned_chars
        body["targetChars"] = self.target_chars
        return body


class InvalidInputError(ExtractionError):
    """Raised when a request body fails validation."""

    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[dict[str, Any]] | None = None):
        self.details = details or []
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        if self.details:
            body["details"] = self.details
        return body


class ProtocolViolationError(ExtractionError):
    """Raised when a decoder session is used after it finished."""

    code = "PROTOCOL_VIOLATION"


class UpstreamTransportError(ExtractionError):
    """The generative-text service failed; the message is kept verbatim."""

    status_code = 502
    code = "UPSTREAM_ERROR"
