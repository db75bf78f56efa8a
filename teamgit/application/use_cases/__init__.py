"""Aggregate application use cases."""

from .activity import (
    ACTIVE_WINDOW,
    ActivityStore,
    create_activity_store,
    describe_recency,
    is_user_active,
    normalize_event,
)
from .retention import RETENTION_THRESHOLD, RetentionSweeper, is_expired

__all__ = [
    "ACTIVE_WINDOW",
    "ActivityStore",
    "RETENTION_THRESHOLD",
    "RetentionSweeper",
    "create_activity_store",
    "describe_recency",
    "is_expired",
    "is_user_active",
    "normalize_event",
]
