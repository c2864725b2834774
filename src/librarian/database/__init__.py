"""
Database module for the Librarian backend
"""

from .connection import create_tables, get_async_session, init_database

__all__ = ["create_tables", "get_async_session", "init_database"]
