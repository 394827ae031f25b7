"""
IEX Cloud Error Mapper

Maps HTTP status codes and response bodies to provider exception types.
"""

from typing import Any

from quote_sync.shared.exceptions import (
    AuthenticationError,
    BadRequestError,
    ProviderError,
    RateLimitError,
    ServerError,
    SymbolNotFoundError,
)


class IEXErrorMapper:
    """Maps HTTP status codes to appropriate exception types."""

    @staticmethod
    def extract_error_message(response_body: Any) -> str:
        """Extract error message from response body."""
        if isinstance(response_body, dict):
            return str(
                response_body.get("error")
                or response_body.get("message")
                or response_body
            )
        return str(response_body)

    @staticmethod
    def map_error(
        status_code: int,
        response_body: Any,
        endpoint: str,
        retry_after: str | None = None,
    ) -> ProviderError:
        """
        Map HTTP status code to specific exception with context.

        Args:
            status_code: HTTP status code
            response_body: Response body (dict, str, or other)
            endpoint: API endpoint that was called
            retry_after: Retry-After header value if present

        Returns:
            Appropriate ProviderError subclass instance
        """
        error_msg = IEXErrorMapper.extract_error_message(response_body)

        if status_code == 400:
            return BadRequestError(
                f"Bad parameters for {endpoint}: {error_msg}",
                status_code=status_code,
                endpoint=endpoint,
            )
        if status_code in (401, 402, 403):
            return AuthenticationError(
                f"Token rejected for {endpoint}: {error_msg}",
                status_code=status_code,
                endpoint=endpoint,
            )
        if status_code == 404:
            return SymbolNotFoundError(
                f"Resource not found for {endpoint}: {error_msg}",
                status_code=status_code,
                endpoint=endpoint,
            )
        if status_code == 429:
            retry_seconds = None
            if retry_after and retry_after.isdigit():
                retry_seconds = int(retry_after)
            return RateLimitError(
                f"Rate limit exceeded for {endpoint}: {error_msg}",
                retry_after=retry_seconds,
                status_code=status_code,
                endpoint=endpoint,
            )
        if status_code >= 500:
            return ServerError(
                f"Server error for {endpoint}: {error_msg}",
                status_code=status_code,
                endpoint=endpoint,
            )
        return ProviderError(
            f"Unexpected status {status_code} for {endpoint}: {error_msg}",
            status_code=status_code,
            endpoint=endpoint,
        )
