"""
Database module for SQLAlchemy models and session management.
"""

from tenderalert.db.base import Base
from tenderalert.db.session import get_db, get_db_context, get_session_factory

__all__ = ["Base", "get_db", "get_db_context", "get_session_factory"]
