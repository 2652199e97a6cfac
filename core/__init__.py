"""Core application components."""

# Import in correct order to avoid circular dependencies
from core.logger import setup_logger, get_logger
from core.constants import (
    ActivityKind,
    parse_activity,
    BONUS_STEP_VALUES,
    PrizeType,
    MilestoneType,
    StepLimits,
    DatabaseDefaults,
    NotificationDefaults,
    ConversionRates,
    JOURNEY_MILESTONES,
)
from core.exceptions import (
    ApplicationError,
    ConfigurationError,
    DatabaseError,
    ValidationError,
    NotFoundError,
    ParticipantNotFoundError,
    PrizeNotFoundError,
    ActivityLogNotFoundError,
    ServiceError,
    NotificationError,
)

__all__ = [
    # Initializer
    'ApplicationInitializer',
    # Logging
    'setup_logger',
    'get_logger',
    # Constants
    'ActivityKind',
    'parse_activity',
    'BONUS_STEP_VALUES',
    'PrizeType',
    'MilestoneType',
    'StepLimits',
    'DatabaseDefaults',
    'NotificationDefaults',
    'ConversionRates',
    'JOURNEY_MILESTONES',
    # Exceptions
    'ApplicationError',
    'ConfigurationError',
    'DatabaseError',
    'ValidationError',
    'NotFoundError',
    'ParticipantNotFoundError',
    'PrizeNotFoundError',
    'ActivityLogNotFoundError',
    'ServiceError',
    'NotificationError',
]

# Import ApplicationInitializer last to avoid circular imports
from core.app_initializer import ApplicationInitializer
