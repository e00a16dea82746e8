"""
Annotation recognizers.

Public API:
    - Recognizer: Capability every recognizer satisfies
    - DateTimeRecognizer: Dates and times (priority 10)
    - PriorityRecognizer: Priority levels (priority 8)
    - EntityRecognizer: People, places, organizations, categories (priority 6)
    - DateparserBackend: Default natural-language date search
"""

from .base import (
    DATE_RECOGNIZER_PRIORITY,
    ENTITY_RECOGNIZER_PRIORITY,
    PRIORITY_RECOGNIZER_PRIORITY,
    Recognizer,
)
from .date_backend import DateBackend, DateMatch, DateparserBackend
from .datetime_recognizer import DateTimeRecognizer
from .entity_recognizer import EntityRecognizer
from .ner_extractor import get_ner_model
from .priority_recognizer import PRIORITY_PATTERNS, PriorityPattern, PriorityRecognizer

__all__ = [
    "Recognizer",
    "DATE_RECOGNIZER_PRIORITY",
    "PRIORITY_RECOGNIZER_PRIORITY",
    "ENTITY_RECOGNIZER_PRIORITY",
    "DateBackend",
    "DateMatch",
    "DateparserBackend",
    "DateTimeRecognizer",
    "EntityRecognizer",
    "PriorityRecognizer",
    "PriorityPattern",
    "PRIORITY_PATTERNS",
    "get_ner_model",
]
