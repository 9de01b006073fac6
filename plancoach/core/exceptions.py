"""Custom exception hierarchy."""

from typing import Optional


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.original_error = original_error


class ValidationError(AppError):
    """Raised when input validation fails."""
    pass


class ConfigurationError(AppError):
    """Raised when configuration is invalid or missing."""
    pass


class NotFoundError(AppError):
    """Raised when a requested record does not exist."""
    pass


class DocumentNotFoundError(NotFoundError):
    """Raised when a business plan document is not found."""

    def __init__(self, document_id):
        super().__init__(f"Business plan {document_id} not found")
        self.document_id = document_id


class SectionNotFoundError(NotFoundError):
    """Raised when a section key is not registered."""

    def __init__(self, section_key: str):
        super().__init__(f"Unknown business plan section '{section_key}'")
        self.section_key = section_key


class APIClientError(AppError):
    """Raised when an external API call fails."""
    pass


class UpstreamUnavailableError(APIClientError):
    """Assistant Service unreachable, 5xx or rate limited after all retries."""
    pass


class AssistantRequestError(APIClientError):
    """Assistant Service rejected the request (non-retryable 4xx)."""

    def __init__(self, message: str, status_code: Optional[int] = None, original_error: Exception = None):
        super().__init__(message, original_error=original_error)
        self.status_code = status_code


class RunError(AppError):
    """Base exception for assistant run problems."""

    def __init__(self, message: str, run_id: Optional[str] = None, status: Optional[str] = None):
        super().__init__(message)
        self.run_id = run_id
        self.status = status


class RunFailedError(RunError):
    """A run reached a failed, cancelled or expired terminal state."""

    def __init__(self, reason: str, run_id: Optional[str] = None, status: Optional[str] = None):
        super().__init__(f"Assistant run failed: {reason}", run_id=run_id, status=status)
        self.reason = reason


class RunTimeoutError(RunError):
    """A run did not reach a terminal state within the polling bound."""
    pass


class PersistenceError(AppError):
    """Raised when writing a business plan document fails."""
    pass


class StaleRevisionError(PersistenceError):
    """The document changed between read and write."""

    def __init__(self, document_id, expected_revision: int):
        super().__init__(
            f"Business plan {document_id} changed since revision {expected_revision}"
        )
        self.document_id = document_id
        self.expected_revision = expected_revision
