"""
Repository-layer exceptions for lead list and upload storage flows.
"""

from __future__ import annotations


class LeadRepositoryError(Exception):
    """Base exception for repository failures."""


class FileStorageError(LeadRepositoryError):
    """Raised when storing or deleting uploaded files fails."""


class LeadListNotFoundError(LeadRepositoryError):
    """Raised when a lead list does not exist for the requesting organization."""
