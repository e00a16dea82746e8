"""
Priority recognizer for task priority levels.

Handles Todoist-style shorthand (p1, p2, p3) and natural phrases such as
"urgent", "asap", "low priority" or "when possible".

Patterns are evaluated in table order; a match overlapping one accepted
earlier in the same pass is discarded, so earlier patterns win.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import structlog

from smart_task_parser.models import Annotation, AnnotationType, PriorityLevel, spans_overlap

from .base import PRIORITY_RECOGNIZER_PRIORITY, clamp_confidence


logger = structlog.get_logger(__name__)


# ============================================================================
# PATTERN TABLE
# ============================================================================

@dataclass(frozen=True)
class PriorityPattern:
    """A regex mapped to a priority level with its base confidence."""
    pattern: re.Pattern
    level: PriorityLevel
    confidence: float

    @classmethod
    def compile(cls, regex: str, level: PriorityLevel, confidence: float) -> "PriorityPattern":
        """Compile a case-insensitive pattern (raises re.error on invalid regex)."""
        return cls(re.compile(regex, re.IGNORECASE), level, confidence)


PRIORITY_PATTERNS: Tuple[PriorityPattern, ...] = (
    # Explicit shorthand
    PriorityPattern.compile(r"\bp1\b", PriorityLevel.HIGH, 0.95),
    PriorityPattern.compile(r"\bp2\b", PriorityLevel.MEDIUM, 0.95),
    PriorityPattern.compile(r"\bp3\b", PriorityLevel.LOW, 0.95),

    # High priority keywords
    PriorityPattern.compile(
        r"\b(urgent|critical|asap|emergency|high priority|important)\b", PriorityLevel.HIGH, 0.85
    ),
    PriorityPattern.compile(r"\bhigh\b", PriorityLevel.HIGH, 0.75),

    # Medium priority keywords
    PriorityPattern.compile(
        r"\b(medium priority|normal priority|moderate)\b", PriorityLevel.MEDIUM, 0.8
    ),
    PriorityPattern.compile(r"\bmedium\b", PriorityLevel.MEDIUM, 0.7),

    # Low priority keywords
    PriorityPattern.compile(
        r"\b(low priority|when possible|someday|maybe|optional)\b", PriorityLevel.LOW, 0.8
    ),
    PriorityPattern.compile(r"\blow\b", PriorityLevel.LOW, 0.65),

    # Alternative expressions
    PriorityPattern.compile(
        r"\b(top priority|highest priority|must do)\b", PriorityLevel.HIGH, 0.9
    ),
    PriorityPattern.compile(
        r"\b(least priority|lowest priority|nice to have)\b", PriorityLevel.LOW, 0.85
    ),

    # Urgency indicators
    PriorityPattern.compile(r"\b(due soon|overdue|time sensitive)\b", PriorityLevel.HIGH, 0.8),
    PriorityPattern.compile(r"\b(no rush|no hurry|later|eventually)\b", PriorityLevel.LOW, 0.75),
)

SHORTHAND_RE = re.compile(r"^p[123]$", re.IGNORECASE)

DISPLAY_TEXT = {
    PriorityLevel.HIGH: "High Priority",
    PriorityLevel.MEDIUM: "Medium Priority",
    PriorityLevel.LOW: "Low Priority",
}


# ============================================================================
# CONFIDENCE & DISPLAY
# ============================================================================

def adjust_confidence(base_confidence: float, text: str, start: int, end: int) -> float:
    """
    Adjust a pattern's base confidence using the match context.

    Args:
        base_confidence: Confidence declared by the pattern
        text: Full input text
        start: Match start offset
        end: Match end offset

    Returns:
        Adjusted confidence in [0.1, 1.0]
    """
    match_text = text[start:end]
    confidence = base_confidence

    # Very short match in long text
    if len(match_text) <= 2 and len(text) > 50:
        confidence *= 0.8

    if SHORTHAND_RE.match(match_text.strip()):
        confidence = min(0.98, confidence + 0.1)

    # Likely part of a longer word
    if start > 0 and text[start - 1].isalnum():
        confidence *= 0.7
    if end < len(text) and text[end].isalnum():
        confidence *= 0.7

    if " " in match_text:
        confidence = min(0.95, confidence + 0.05)

    return clamp_confidence(confidence)


def format_display_text(level: PriorityLevel, original_text: str) -> str:
    """Shorthand codes are shown as written (upper-cased), phrases by level."""
    if SHORTHAND_RE.match(original_text.strip()):
        return original_text.strip().upper()
    return DISPLAY_TEXT[level]


# ============================================================================
# RECOGNIZER
# ============================================================================

class PriorityRecognizer:
    """
    Regex-table recognizer for priority levels.

    Returned annotations are sorted by confidence (descending), then by
    start offset.
    """

    id = "priority-recognizer"
    name = "Priority Recognizer"
    priority = PRIORITY_RECOGNIZER_PRIORITY

    def __init__(self, patterns: Optional[Sequence[PriorityPattern]] = None):
        self.patterns: Tuple[PriorityPattern, ...] = tuple(
            patterns if patterns is not None else PRIORITY_PATTERNS
        )
        self.logger = logger.bind(component="priority_recognizer")

    def test(self, text: str) -> bool:
        """True if any priority pattern matches."""
        if not text:
            return False
        return any(p.pattern.search(text) for p in self.patterns)

    def parse(self, text: str) -> List[Annotation]:
        """
        Extract priority annotations.

        Args:
            text: Raw task text

        Returns:
            Non-overlapping priority annotations
        """
        tags: List[Annotation] = []
        accepted: List[Tuple[int, int]] = []

        for entry in self.patterns:
            for match in entry.pattern.finditer(text):
                start, end = match.start(), match.end()
                if start == end:
                    continue

                if any(spans_overlap(start, end, s, e) for s, e in accepted):
                    self.logger.debug(
                        "priority_match_suppressed",
                        match=match.group(0),
                        start=start,
                        end=end,
                    )
                    continue

                tags.append(
                    Annotation(
                        type=AnnotationType.PRIORITY,
                        value=entry.level,
                        display_text=format_display_text(entry.level, match.group(0)),
                        start_index=start,
                        end_index=end,
                        original_text=match.group(0),
                        confidence=adjust_confidence(entry.confidence, text, start, end),
                        source=self.id,
                    )
                )
                accepted.append((start, end))

        tags.sort(key=lambda t: (-t.confidence, t.start_index))

        self.logger.debug("priority_recognition_complete", tags_count=len(tags))

        return tags
