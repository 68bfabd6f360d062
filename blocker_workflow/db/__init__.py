"""
Database package for the blocker workflow.
"""

from .base import Base, get_db, get_engine, init_database
from .models import (
    BlockerModel,
    ContractorModel,
    NotificationModel,
    StatusHistoryModel,
    UserProfileModel,
)

__all__ = [
    "Base",
    "get_db",
    "get_engine",
    "init_database",
    "BlockerModel",
    "ContractorModel",
    "NotificationModel",
    "StatusHistoryModel",
    "UserProfileModel",
]
