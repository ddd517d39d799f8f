"""Error taxonomy for the audit pipeline.

Each failure kind is its own exception class with a stable machine-readable
``code`` and a category. Structured fields are plain attributes listed in
``__match_args__``, so callers can dispatch with ``match``:

    match err:
        case CodeTooLarge(size, limit): ...
        case RateLimitExceeded(limit, window_seconds): ...
"""

from enum import Enum
from typing import Any, ClassVar


class ErrorCategory(str, Enum):
    """Broad groups of failures, each with a different remediation."""

    input = "input"
    rate_limit = "rate_limit"
    configuration = "configuration"
    transient = "transient"
    engine = "engine"
    fix = "fix"


class AuditError(Exception):
    """Base class for every failure surfaced by the auditor."""

    code: ClassVar[str] = "UNKNOWN_ERROR"
    category: ClassVar[ErrorCategory] = ErrorCategory.engine
    default_message: ClassVar[str] = "Audit engine failure"
    __match_args__: ClassVar[tuple[str, ...]] = ()

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def retryable(self) -> bool:
        return self.category is ErrorCategory.transient

    @property
    def details(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.__match_args__}

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
        return f"{type(self).__name__}({fields})"


# Input validation


class InputError(AuditError):
    category = ErrorCategory.input


class EmptyCode(InputError):
    code = "EMPTY_CODE"
    default_message = "Code content cannot be empty"


class EmptyFileName(InputError):
    code = "EMPTY_FILENAME"
    default_message = "File name cannot be empty"


class CodeTooLarge(InputError):
    code = "CODE_TOO_LARGE"
    __match_args__ = ("size", "limit")

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"Code size {size} exceeds limit of {limit} characters")


class NoFindings(InputError):
    code = "NO_VULNERABILITIES"
    default_message = "No vulnerabilities provided for fixing"


# Rate limiting


class RateLimitExceeded(AuditError):
    code = "RATE_LIMIT_EXCEEDED"
    category = ErrorCategory.rate_limit
    __match_args__ = ("limit", "window_seconds")

    def __init__(self, limit: int, window_seconds: float):
        self.limit = limit
        self.window_seconds = window_seconds
        super().__init__(
            f"Rate limit exceeded: {limit} requests per {window_seconds:g} seconds. "
            "Please wait before making another request."
        )


# Configuration


class ConfigurationError(AuditError):
    category = ErrorCategory.configuration


class MissingCredential(ConfigurationError):
    code = "MISSING_API_KEY"
    default_message = "Gemini API key not configured. Please set GEMINI_API_KEY."


class InvalidCredential(ConfigurationError):
    code = "INVALID_API_KEY"
    default_message = "Invalid API key. Please check your GEMINI_API_KEY configuration."


# Transient upstream failures


class TransientError(AuditError):
    category = ErrorCategory.transient


class Timeout(TransientError):
    code = "TIMEOUT"
    __match_args__ = ("timeout_seconds", "operation")

    def __init__(self, timeout_seconds: float, operation: str = "scan"):
        self.timeout_seconds = timeout_seconds
        self.operation = operation
        super().__init__(f"Analysis timeout exceeded ({operation}, {timeout_seconds:g}s)")


class UpstreamUnavailable(TransientError):
    code = "UPSTREAM_UNAVAILABLE"
    __match_args__ = ("cause",)

    def __init__(self, cause: str):
        self.cause = cause
        super().__init__(f"Audit engine unavailable: {cause}")


class UpstreamRateLimited(TransientError):
    code = "API_RATE_LIMIT"
    default_message = "API rate limit exceeded. Please try again later."


# Oracle contract violations


class EngineError(AuditError):
    category = ErrorCategory.engine


class MalformedResponse(EngineError):
    code = "PARSE_ERROR"
    __match_args__ = ("reason",)

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Failed to parse AI response: {reason}")


class InvalidScore(EngineError):
    code = "INVALID_SCORE"
    __match_args__ = ("score",)

    def __init__(self, score: Any):
        self.score = score
        super().__init__(f"Invalid score in AI response: {score!r}")


class InvalidSeverity(EngineError):
    code = "INVALID_SEVERITY"
    __match_args__ = ("severity",)

    def __init__(self, severity: Any):
        self.severity = severity
        super().__init__(f"Invalid severity in AI response: {severity!r}")


# Fix pipeline


class FixError(AuditError):
    category = ErrorCategory.fix


class EmptyFix(FixError):
    code = "EMPTY_RESPONSE"
    default_message = "Empty response from AI"


class IncompleteFix(FixError):
    code = "INCOMPLETE_FIX"
    __match_args__ = ("length", "original_length")

    def __init__(self, length: int, original_length: int):
        self.length = length
        self.original_length = original_length
        super().__init__(
            f"Generated fix appears to be incomplete ({length} chars for {original_length} chars of input)"
        )
