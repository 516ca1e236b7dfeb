"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.lead_entry import LeadEntry
from db.models.lead_list import LeadList

__all__ = [
    "LeadList",
    "LeadEntry",
]
