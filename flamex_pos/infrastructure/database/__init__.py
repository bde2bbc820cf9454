"""
Database Infrastructure

Contains SQLAlchemy models and engine/session management.
"""

from .models import Base
from .operations import get_db_manager, get_session, init_db

__all__ = [
    "Base",
    "init_db",
    "get_db_manager",
    "get_session",
]
