"""Custom exception classes for the application."""

from typing import Optional


class SellerScraperException(Exception):
    """Base exception for all seller scraper errors."""

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class TransientFetchError(SellerScraperException):
    """Raised for non-success responses and transport failures worth retrying."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def from_status(cls, status_code: int) -> "TransientFetchError":
        return cls(f"HTTP {status_code}", status_code=status_code)


class FetchTimeoutError(TransientFetchError):
    """Raised when the transport deadline expires.

    Retried like any other transient failure but reported as a timeout.
    """

    def __init__(self, message: str = "Timeout"):
        super().__init__(message)


class MalformedEmbeddedDataError(SellerScraperException):
    """Raised internally when the embedded seller JSON cannot be bounded or parsed.

    Never leaves the embedded-data extractor.
    """
