"""
app/validators package marker.
"""

from app.validators.content_verifier import ContentVerifier, is_valid_linkedin_url, normalize_url
from app.validators.mapping_validator import MappingValidator

__all__ = [
    "ContentVerifier",
    "MappingValidator",
    "is_valid_linkedin_url",
    "normalize_url",
]
