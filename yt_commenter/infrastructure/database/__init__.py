# yt_commenter/infrastructure/database/__init__.py
"""
Database Infrastructure Package
"""

from .connection import Base, DatabaseManager, db_manager

__all__ = [
    "Base",
    "DatabaseManager",
    "db_manager",
]
