"""
app/mappers package marker.
"""

from app.mappers.header_classifier import (
    DEFAULT_CLASSIFIER_RULES,
    ClassifierRules,
    HeaderClassifier,
    KeywordRule,
    similarity,
)
from app.mappers.row_normalizer import RowNormalizer

__all__ = [
    "DEFAULT_CLASSIFIER_RULES",
    "ClassifierRules",
    "HeaderClassifier",
    "KeywordRule",
    "RowNormalizer",
    "similarity",
]
