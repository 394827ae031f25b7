"""
IEX Cloud Retry Handler

Distinguishes retryable errors (rate limits, server errors) from
non-retryable ones (bad requests, unknown symbols).
"""

from quote_sync.ingestion.config.value_objects import RetryConfig


class RetryHandler:
    """Determines retry behavior for different error types."""

    # Status codes that should be retried (temporary failures)
    RETRYABLE_STATUS_CODES = (429, 500, 502, 503, 504)

    # Status codes that should NOT be retried (permanent failures)
    NON_RETRYABLE_STATUS_CODES = (400, 401, 402, 403, 404)

    def __init__(self, config: RetryConfig | None = None):
        self.config = config or RetryConfig()

    @classmethod
    def should_retry(cls, status_code: int) -> bool:
        """
        Determine if an error should be retried.

        Args:
            status_code: HTTP status code

        Returns:
            True if error is retryable, False otherwise
        """
        if status_code in cls.NON_RETRYABLE_STATUS_CODES:
            return False

        if status_code in cls.RETRYABLE_STATUS_CODES:
            return True

        # Unknown 5xx errors are treated as server issues
        return status_code >= 500

    def get_retry_delay(
        self, attempt: int, status_code: int, retry_after: str | None = None
    ) -> float:
        """
        Calculate retry delay with exponential backoff.

        Args:
            attempt: Current retry attempt (0-indexed)
            status_code: HTTP status code
            retry_after: Retry-After header value if present

        Returns:
            Number of seconds to wait before retrying
        """
        if status_code == 429 and retry_after:
            try:
                return float(int(retry_after))
            except ValueError:
                pass

        delay = self.config.base_delay * 2**attempt

        if status_code == 429:
            return min(delay, self.config.rate_limit_max_delay)
        return min(delay, self.config.max_delay)
