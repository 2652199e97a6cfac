"""Application-wide exception classes."""

from __future__ import annotations


class ApplicationError(Exception):
    """Base exception for all application errors."""
    pass


class ConfigurationError(ApplicationError):
    """Raised when configuration is invalid."""
    pass


class DatabaseError(ApplicationError):
    """Base exception for database-related errors."""
    pass


class ConnectionPoolError(DatabaseError):
    """Raised when database connection pool has issues."""
    pass


class ValidationError(ApplicationError):
    """Raised when request data fails validation."""
    pass


class NotFoundError(ApplicationError):
    """Raised when a referenced record does not exist."""
    pass


class ParticipantNotFoundError(NotFoundError):
    """Raised when a participant id or Slack id is unknown."""
    pass


class PrizeNotFoundError(NotFoundError):
    """Raised when a prize (weekly or grand) is not defined."""
    pass


class ActivityLogNotFoundError(NotFoundError):
    """Raised when an activity log entry is unknown."""
    pass


class ServiceError(ApplicationError):
    """Base exception for service-level errors."""
    pass


class NotificationError(ServiceError):
    """Raised by a notifier when the chat service rejects a message."""
    pass

