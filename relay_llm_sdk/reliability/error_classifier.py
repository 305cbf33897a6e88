"""
Error classification across all providers.

OpenAI, Anthropic, Groq, Mistral and most OpenAI-compatible SDKs share the
same exception class names, so classification keys on the type name first,
then on the HTTP status code, then on message patterns. Context-length and
vision rejections are checked before anything else because vendors report
both as generic 400 ``BadRequestError``s.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional, Set, Tuple


class ErrorCategory(Enum):
    """Standard error categories across all providers."""
    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    VALIDATION = "validation"
    CONTEXT_LENGTH = "context_length"
    VISION_UNSUPPORTED = "vision_unsupported"
    SERVER_ERROR = "server_error"
    NETWORK = "network"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ErrorClassification:
    category: ErrorCategory
    is_retryable: bool
    suggested_delay: Optional[float] = None


@dataclass(frozen=True)
class PatternRule:
    """Lower-cased substrings that put an error message in ``category``."""
    category: ErrorCategory
    retryable: bool
    patterns: Tuple[str, ...]

    def matches(self, text: str) -> bool:
        return any(pattern in text for pattern in self.patterns)


# Request-shape failures that shrinking or dropping the image can fix
REQUEST_SHAPE_RULES = (
    PatternRule(ErrorCategory.CONTEXT_LENGTH, False, (
        'context length', 'context_length_exceeded', 'maximum context length', 'context window',
        'prompt is too long', 'too many tokens', 'reduce the length',
    )),
    PatternRule(ErrorCategory.VISION_UNSUPPORTED, False, (
        'image_url', 'does not support image input', 'content must be a string',
        'image input modality is not enabled', "does not have the 'vision' capability",
    )),
)

# Everything else, in priority order
GENERAL_RULES = (
    PatternRule(ErrorCategory.TIMEOUT, True, ('timeout', 'timed out')),
    PatternRule(ErrorCategory.RATE_LIMIT, True, (
        'rate limit', 'rate_limit_exceeded', 'too many requests', 'too_many_requests',
        'quota exceeded', 'throttled',
    )),
    PatternRule(ErrorCategory.AUTHENTICATION, False, (
        'invalid api key', 'invalid_api_key', 'authentication failed', 'unauthorized',
    )),
    PatternRule(ErrorCategory.SERVER_ERROR, True, (
        'server error', 'internal error', 'service unavailable', 'overloaded',
    )),
    PatternRule(ErrorCategory.NETWORK, True, (
        'connection error', 'network error', 'connection refused', 'connection reset',
    )),
)


class ErrorClassifier:
    """Provider-agnostic error classification."""

    # SDK and httpx exception class names
    TYPE_MAPPINGS: Dict[str, Tuple[ErrorCategory, bool]] = {
        'AuthenticationError': (ErrorCategory.AUTHENTICATION, False),
        'PermissionDeniedError': (ErrorCategory.AUTHENTICATION, False),
        'RateLimitError': (ErrorCategory.RATE_LIMIT, True),
        'BadRequestError': (ErrorCategory.VALIDATION, False),
        'NotFoundError': (ErrorCategory.VALIDATION, False),
        'UnprocessableEntityError': (ErrorCategory.VALIDATION, False),
        'InternalServerError': (ErrorCategory.SERVER_ERROR, True),
        'APIConnectionError': (ErrorCategory.NETWORK, True),
        'ConnectError': (ErrorCategory.NETWORK, True),
        'APITimeoutError': (ErrorCategory.TIMEOUT, True),
        'TimeoutException': (ErrorCategory.TIMEOUT, True),
        'ReadTimeout': (ErrorCategory.TIMEOUT, True),
    }

    CONTEXT_LENGTH_CODES: Set[str] = {'context_length_exceeded', 'string_above_max_length'}

    STATUS_CATEGORIES: Dict[int, ErrorCategory] = {
        401: ErrorCategory.AUTHENTICATION,
        403: ErrorCategory.AUTHENTICATION,
        413: ErrorCategory.CONTEXT_LENGTH,
        429: ErrorCategory.RATE_LIMIT,
    }
    RETRYABLE_STATUS_CODES: Set[int] = {429, 500, 502, 503, 504, 520, 521, 522, 523, 524}
    NON_RETRYABLE_STATUS_CODES: Set[int] = {400, 401, 403, 404, 405, 409, 410, 413, 422}

    @classmethod
    def classify_error(cls, error: Exception) -> ErrorClassification:
        """
        Classify an error by code, exception type, HTTP status and message.

        Args:
            error: The exception to classify

        Returns:
            ErrorClassification with category, retryability and any
            server-suggested delay
        """
        code = getattr(error, 'code', None)
        if isinstance(code, str) and code in cls.CONTEXT_LENGTH_CODES:
            return ErrorClassification(ErrorCategory.CONTEXT_LENGTH, is_retryable=False)

        text = cls._error_text(error)
        shape = cls._match(error, text, REQUEST_SHAPE_RULES)
        if shape is not None:
            return shape

        mapped = cls.TYPE_MAPPINGS.get(type(error).__name__)
        if mapped is not None:
            return cls._classification(error, *mapped)

        status_code = cls._get_status_code(error)
        if status_code in cls.RETRYABLE_STATUS_CODES or status_code in cls.NON_RETRYABLE_STATUS_CODES:
            return cls._classification(error, cls._categorize_by_status_code(status_code),
                                       status_code in cls.RETRYABLE_STATUS_CODES)

        general = cls._match(error, text, GENERAL_RULES)
        if general is not None:
            return general

        return ErrorClassification(ErrorCategory.UNKNOWN, is_retryable=False)

    @classmethod
    def _classification(cls, error: Exception, category: ErrorCategory, retryable: bool) -> ErrorClassification:
        delay = cls._get_retry_delay(error) if retryable else None
        return ErrorClassification(category, is_retryable=retryable, suggested_delay=delay)

    @classmethod
    def _match(cls, error: Exception, text: str, rules: Iterable[PatternRule]) -> Optional[ErrorClassification]:
        for rule in rules:
            if rule.matches(text):
                return cls._classification(error, rule.category, rule.retryable)
        return None

    @staticmethod
    def _error_text(error: Exception) -> str:
        parts = [str(error)]
        message = getattr(error, 'message', None)
        if isinstance(message, str):
            parts.append(message)
        # Raw HTTP clients keep the vendor's explanation in the response body;
        # an unread streamed httpx response raises on .text
        try:
            body = getattr(getattr(error, 'response', None), 'text', None)
        except Exception:
            body = None
        if isinstance(body, str):
            parts.append(body)
        return " ".join(parts).lower()

    @staticmethod
    def _get_status_code(error: Exception) -> Optional[int]:
        for candidate in (getattr(error, 'status_code', None),
                          getattr(error, 'status', None),
                          getattr(getattr(error, 'response', None), 'status_code', None)):
            if isinstance(candidate, int):
                return candidate
        return None

    @classmethod
    def _categorize_by_status_code(cls, status_code: int) -> ErrorCategory:
        if status_code in cls.STATUS_CATEGORIES:
            return cls.STATUS_CATEGORIES[status_code]
        if status_code >= 500:
            return ErrorCategory.SERVER_ERROR
        if status_code >= 400:
            return ErrorCategory.VALIDATION
        return ErrorCategory.UNKNOWN

    @staticmethod
    def _get_retry_delay(error: Exception) -> Optional[float]:
        """Seconds the server asked us to wait, from ``retry_after`` or a Retry-After header."""
        candidates = [getattr(error, 'retry_after', None)]
        headers = getattr(getattr(error, 'response', None), 'headers', None)
        if headers:
            candidates.append(headers.get('Retry-After') or headers.get('retry-after'))
        for value in candidates:
            if value is None:
                continue
            try:
                return float(value)
            except (TypeError, ValueError):
                continue
        return None
