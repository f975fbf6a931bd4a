"""
Core utilities and configuration for the Junos log sync.

Modules:
    config: Application configuration and environment variable management
    database: Async engine and session management
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration

Usage:
    from core.config import settings
    from core.database import async_session_maker
    from core.exceptions import SearchStoreError, MalformedDocumentError
    from core.logging import setup_logging
"""

__all__ = [
    "settings",
    "async_session_maker",
    "setup_logging",
    # Exceptions
    "ETLException",
    "ExtractionError",
    "SearchStoreError",
    "NetworkError",
    "ScrollExpiredError",
    "AuthenticationError",
    "ResourceNotFoundError",
    "TransformationError",
    "MalformedDocumentError",
    "LoadError",
    "DatabaseError",
    "CheckpointError",
    "ConfigurationError",
    "RetryableError",
    "NonRetryableError",
]
