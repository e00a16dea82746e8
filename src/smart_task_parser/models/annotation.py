"""
Annotation models for the parsing pipeline.

Defines Pydantic models for:
- Annotations (typed, span-anchored facts extracted from task text)
- Conflicts (groups of overlapping annotations)
- Parse results and diagnostic reports
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, Field, model_validator


# ============================================================================
# ENUMS
# ============================================================================

class AnnotationType(str, Enum):
    """Closed set of annotation types."""
    DATE = "date"
    TIME = "time"
    PRIORITY = "priority"
    PERSON = "person"
    LOCATION = "location"
    PROJECT = "project"
    LABEL = "label"


class PriorityLevel(str, Enum):
    """Task priority levels (ordinal)."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


AnnotationValue = Union[datetime, PriorityLevel, str]


def new_annotation_id() -> str:
    """Fresh opaque identifier for an annotation."""
    return str(uuid.uuid4())


# ============================================================================
# ANNOTATION
# ============================================================================

class Annotation(BaseModel):
    """
    A typed fact extracted from text, anchored at a half-open character span.

    Created by a recognizer during a single parse call and immutable afterwards.
    """

    id: str = Field(default_factory=new_annotation_id, description="Opaque unique identifier")
    type: AnnotationType
    value: AnnotationValue = Field(
        description="datetime for date/time, PriorityLevel for priority, str otherwise"
    )
    display_text: str = Field(description="Short human-readable rendering of the value")
    start_index: int = Field(ge=0, description="Span start (inclusive)")
    end_index: int = Field(description="Span end (exclusive)")
    original_text: str = Field(description="Exact text[start_index:end_index]")
    confidence: float = Field(ge=0.0, le=1.0)
    source: str = Field(description="Id of the recognizer that produced the annotation")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_span(self):
        """Span must be non-empty and match the original text length."""
        if self.end_index <= self.start_index:
            raise ValueError(
                f"Invalid span [{self.start_index}, {self.end_index}): start >= end"
            )
        if len(self.original_text) != self.end_index - self.start_index:
            raise ValueError(
                f"original_text length {len(self.original_text)} does not match "
                f"span [{self.start_index}, {self.end_index})"
            )
        return self

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"Annotation('{self.original_text}', {self.type.value}, "
            f"[{self.start_index},{self.end_index}], {self.source}, {self.confidence:.2f})"
        )

    def overlaps(self, other: "Annotation") -> bool:
        """
        Check if two annotations overlap.

        Args:
            other: Another annotation to check overlap with

        Returns:
            True if the half-open spans intersect, False otherwise
        """
        return spans_overlap(self.start_index, self.end_index, other.start_index, other.end_index)

    def length(self) -> int:
        """Number of characters in the annotation span."""
        return self.end_index - self.start_index


def spans_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open interval overlap test: adjacent spans do not overlap."""
    return start_a < end_b and start_b < end_a


# ============================================================================
# CONFLICTS & RESULTS
# ============================================================================

class Conflict(BaseModel):
    """
    Two or more annotations whose spans overlap.

    Bounds are the union of all member spans; `resolved` holds the
    winner once conflict resolution has run.
    """

    start_index: int
    end_index: int
    tags: List[Annotation] = Field(default_factory=list)
    resolved: Optional[Annotation] = None

    def contains(self, tag: Annotation) -> bool:
        """True if the annotation is already a member (by id)."""
        return any(t.id == tag.id for t in self.tags)

    def add(self, tag: Annotation) -> None:
        """Add a member and widen the bounds to cover it."""
        if not self.contains(tag):
            self.tags.append(tag)
        self.start_index = min(self.start_index, tag.start_index)
        self.end_index = max(self.end_index, tag.end_index)

    def intersects(self, start: int, end: int) -> bool:
        """True if [start, end) intersects the conflict bounds."""
        return spans_overlap(self.start_index, self.end_index, start, end)


class ParseResult(BaseModel):
    """
    Pipeline output for one input string.

    `tags` is the authoritative, non-overlapping annotation set ordered by
    start offset; `conflicts` is kept for diagnostics.
    """

    clean_text: str
    tags: List[Annotation] = Field(default_factory=list)
    confidence: float = Field(ge=0.0, le=1.0)
    conflicts: List[Conflict] = Field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return len(self.conflicts) > 0

    def tags_of_type(self, *types: AnnotationType) -> List[Annotation]:
        """Retained tags of the given types, in text order."""
        return [t for t in self.tags if t.type in types]

    @property
    def due_date(self) -> Optional[datetime]:
        """Value of the first date/time tag, used as a task's due timestamp."""
        tags = self.tags_of_type(AnnotationType.DATE, AnnotationType.TIME)
        return tags[0].value if tags else None

    @property
    def priority(self) -> Optional[PriorityLevel]:
        """Value of the first priority tag."""
        tags = self.tags_of_type(AnnotationType.PRIORITY)
        return tags[0].value if tags else None


class RecognizerReport(BaseModel):
    """Raw output of one recognizer, before conflict resolution."""

    parser: str = Field(description="Recognizer display name")
    recognizer_id: str
    tags: List[Annotation] = Field(default_factory=list)
    error: Optional[str] = None


class ParseDiagnostics(BaseModel):
    """Diagnostic report produced by SmartParser.test_parse."""

    parser_results: List[RecognizerReport] = Field(default_factory=list)
