"""
Recognizer capability shared by all annotation recognizers.

Recognizers satisfy the protocol structurally; there is no base class.
"""

from typing import List, Protocol, runtime_checkable

from smart_task_parser.models import Annotation


# Fixed ranks used for tie-breaking during conflict resolution
DATE_RECOGNIZER_PRIORITY = 10
PRIORITY_RECOGNIZER_PRIORITY = 8
ENTITY_RECOGNIZER_PRIORITY = 6


@runtime_checkable
class Recognizer(Protocol):
    """
    Scans raw text for one category of annotation.

    Attributes:
        id: Stable identifier, stored as `source` on produced annotations
        name: Display name for diagnostics
        priority: Static rank, higher wins conflicts across recognizers
    """

    id: str
    name: str
    priority: int

    def test(self, text: str) -> bool:
        """Cheap pre-check: True iff parse(text) would return annotations. Never raises."""
        ...

    def parse(self, text: str) -> List[Annotation]:
        """Full extraction. Returns an empty list when nothing matches."""
        ...


def clamp_confidence(confidence: float, lower: float = 0.1, upper: float = 1.0) -> float:
    """Clamp a heuristic confidence into [lower, upper]."""
    return max(lower, min(upper, confidence))
