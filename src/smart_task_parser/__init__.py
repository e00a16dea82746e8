"""
Smart task parser: extracts dates, priorities and entities from task text.

Example usage:
    >>> from smart_task_parser import create_default_parser
    >>> parser = create_default_parser()
    >>> result = parser.parse("urgent call Anna tomorrow at 3pm")
    >>> result.priority, result.due_date
"""

from .models import Annotation, AnnotationType, Conflict, ParseResult, PriorityLevel
from .pipeline import SmartParser, create_default_parser
from .version import __version__

__all__ = [
    "Annotation",
    "AnnotationType",
    "Conflict",
    "ParseResult",
    "PriorityLevel",
    "SmartParser",
    "create_default_parser",
    "__version__",
]
