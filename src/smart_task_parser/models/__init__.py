# Data models for the task text parsing pipeline

from .pipeline_version import PipelineVersion
from .annotation import (
    Annotation,
    AnnotationType,
    AnnotationValue,
    Conflict,
    ParseDiagnostics,
    ParseResult,
    PriorityLevel,
    RecognizerReport,
    spans_overlap,
)

__all__ = [
    "PipelineVersion",
    "Annotation",
    "AnnotationType",
    "AnnotationValue",
    "Conflict",
    "ParseDiagnostics",
    "ParseResult",
    "PriorityLevel",
    "RecognizerReport",
    "spans_overlap",
]
