"""
HubSpoke Server - Managers Package

This package contains manager classes for database and other operations.
"""

from managers.database_manager import DatabaseManager

__all__ = ['DatabaseManager']
