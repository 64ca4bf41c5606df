# src/flexstore/repositories/__init__.py
from .activity_log_repository import ActivityLogRepository
from .database_repository import DatabaseRepository
from .record_repository import RecordRepository
from .user_repository import UserRepository

__all__ = [
    "ActivityLogRepository",
    "DatabaseRepository",
    "RecordRepository",
    "UserRepository",
]
