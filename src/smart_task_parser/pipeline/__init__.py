"""
Parsing pipeline: recognizers → conflict detection → resolution → clean text.

Example usage:
    >>> from smart_task_parser.pipeline import create_default_parser
    >>>
    >>> parser = create_default_parser()
    >>> result = parser.parse("p1 meeting tomorrow")
    >>> [(t.type.value, t.original_text) for t in result.tags]
    [('priority', 'p1'), ('label', 'meeting'), ('date', 'tomorrow')]
    >>> result.clean_text
    ''
"""

from .conflicts import detect_conflicts, resolve_conflicts
from .smart_parser import SmartParser, create_default_parser, generate_clean_text

__all__ = [
    # Main API
    "SmartParser",
    "create_default_parser",
    # Stage functions (for advanced usage)
    "detect_conflicts",
    "resolve_conflicts",
    "generate_clean_text",
]
