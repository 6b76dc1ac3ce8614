"""
HubSpoke Server - Database Models Package

This package contains all SQLAlchemy database model definitions.
All models share a common declarative base for proper table relationships.
"""

# Import Base first
from models.database.base import Base

# Import all models
from models.database.site import Site
from models.database.changeset import Changeset
from models.database.site_change import SiteChange
from models.database.setting import Setting

# Export all models and Base
__all__ = [
    'Base',
    'Site',
    'Changeset',
    'SiteChange',
    'Setting',
]
