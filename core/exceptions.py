"""
Custom exceptions for the log sync pipeline with structured error context.

Each exception carries context information so a failed partition can be
diagnosed from the log line alone.

Exception Hierarchy:
    ETLException (base)
    ├── ExtractionError
    │   └── SearchStoreError
    │       ├── NetworkError
    │       ├── ScrollExpiredError
    │       ├── AuthenticationError
    │       └── ResourceNotFoundError
    ├── TransformationError
    │   └── MalformedDocumentError
    ├── LoadError
    │   └── DatabaseError
    ├── CheckpointError
    ├── ConfigurationError
    └── RetryableError / NonRetryableError (mixins)

Nothing is retried inside a run. "Retryable" means the partition stays
eligible and the next scheduled run picks it up again unchanged.
"""

from typing import Optional, Dict, Any, Mapping
from datetime import datetime

# Response bodies are truncated to this many characters in error context
MAX_BODY_CHARS = 2000


class ETLException(Exception):
    """
    Base exception for all pipeline errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (index, status code, etc.)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.utcnow()

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/storage."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


class RetryableError(ETLException):
    """
    Marker for transient failures (timeouts, 5xx, expired scroll contexts).

    The partition is left un-checkpointed and is scanned again on the next run.
    """
    pass


class NonRetryableError(ETLException):
    """
    Marker for failures that will repeat until someone intervenes
    (bad credentials, malformed documents, bad configuration).
    """
    pass


# ============================================================================
# Extraction Errors
# ============================================================================

class ExtractionError(ETLException):
    """Base exception for failures while reading from the search store."""
    pass


class SearchStoreError(ExtractionError):
    """
    The search store answered with a non-2xx status or an ``error`` body.

    Context includes:
        - url: The request URL
        - status_code: HTTP status code (if a response was received)
        - headers: Response headers
        - body: Response body (truncated)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
        status_code: Optional[int] = None,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[str] = None
    ):
        super().__init__(message, context, original_exception)
        self.status_code = status_code
        self.headers = dict(headers) if headers is not None else {}
        self.body = body[:MAX_BODY_CHARS] if body else body

        if status_code is not None:
            self.context["status_code"] = status_code
        if headers is not None:
            self.context["headers"] = "; ".join(f"{k}={v}" for k, v in self.headers.items())
        if body is not None:
            self.context["body"] = self.body


class NetworkError(RetryableError, SearchStoreError):
    """Timeouts, connection failures, HTTP 429 and 5xx."""
    pass


class ScrollExpiredError(RetryableError, SearchStoreError):
    """The scroll context timed out server-side before the next page was requested."""
    pass


class AuthenticationError(NonRetryableError, SearchStoreError):
    """Authentication failures (HTTP 401, 403)."""
    pass


class ResourceNotFoundError(NonRetryableError, SearchStoreError):
    """Index or endpoint not found (HTTP 404)."""
    pass


# ============================================================================
# Transformation Errors
# ============================================================================

class TransformationError(ETLException):
    """Base exception for failures mapping documents to rows."""
    pass


class MalformedDocumentError(NonRetryableError, TransformationError):
    """
    A fetched document is missing a required field or has an unparseable value.

    Context includes:
        - index_name: Partition the document came from
        - document_id: The document ``_id`` (if present)
        - field_errors: Field name -> validation message
    """
    pass


# ============================================================================
# Load Errors
# ============================================================================

class LoadError(ETLException):
    """Base exception for data loading failures."""
    pass


class DatabaseError(LoadError):
    """
    Exception raised when database operations fail.

    Context includes:
        - operation: Type of database operation (INSERT, SELECT)
        - table_name: Name of the table
        - index_name: Partition being written
    """
    pass


# ============================================================================
# Checkpoint / Configuration Errors
# ============================================================================

class CheckpointError(ETLException):
    """
    Exception raised when reading or writing partition checkpoints fails.

    Context includes:
        - operation: read or write
        - index_name / candidates: Partition(s) involved
    """
    pass


class ConfigurationError(NonRetryableError):
    """Invalid settings or an environment the requested mode refuses to run against."""
    pass
