"""
Multi-stage parsing pipeline with conflict resolution.

Orchestrates all recognizers and resolves overlapping detections.

Pipeline stages:
1. Run every applicable recognizer (failures are isolated)
2. Detect conflicts between overlapping annotations
3. Resolve conflicts (recognizer priority, then confidence)
4. Generate clean text with retained annotations removed
5. Aggregate a priority-weighted confidence
"""

import re
from typing import Iterable, List, Optional, Sequence

import structlog

from smart_task_parser.config import Settings, settings as default_settings
from smart_task_parser.models import (
    Annotation,
    ParseDiagnostics,
    ParseResult,
    RecognizerReport,
)
from smart_task_parser.recognizers import (
    DateparserBackend,
    DateTimeRecognizer,
    EntityRecognizer,
    PriorityRecognizer,
    Recognizer,
)

from .conflicts import detect_conflicts, resolve_conflicts


logger = structlog.get_logger(__name__)


WHITESPACE_RUN_RE = re.compile(r"\s{2,}")


def generate_clean_text(original_text: str, tags: Sequence[Annotation]) -> str:
    """
    Remove every annotation span from the text.

    Spans are cut from the highest offset down so earlier offsets stay
    valid; runs of whitespace left behind collapse to one space and the
    result is trimmed.

    Args:
        original_text: Input text
        tags: Non-overlapping retained annotations

    Returns:
        Clean text (the original text unchanged when there are no tags)
    """
    if not tags:
        return original_text

    clean_text = original_text
    for tag in sorted(tags, key=lambda t: t.start_index, reverse=True):
        clean_text = clean_text[:tag.start_index] + clean_text[tag.end_index:]

    return WHITESPACE_RUN_RE.sub(" ", clean_text).strip()


class SmartParser:
    """
    Runs recognizers over task text and reconciles their annotations.

    The parser holds no state besides its recognizer set, which is kept
    sorted by descending priority. parse() takes a snapshot of the set, so
    concurrent parse() calls are safe; adding or removing recognizers must
    happen between calls, not while another thread is parsing.

    Args:
        recognizers: Initial recognizers (any order)
    """

    def __init__(self, recognizers: Iterable[Recognizer] = ()):
        self._recognizers: List[Recognizer] = []
        for recognizer in recognizers:
            self._recognizers.append(recognizer)
        self._sort_recognizers()
        self.logger = logger.bind(component="smart_parser")

    # ------------------------------------------------------------------
    # Recognizer set administration
    # ------------------------------------------------------------------

    def _sort_recognizers(self) -> None:
        self._recognizers.sort(key=lambda r: r.priority, reverse=True)

    def add_recognizer(self, recognizer: Recognizer) -> None:
        """Add a recognizer to the pipeline."""
        self._recognizers.append(recognizer)
        self._sort_recognizers()
        self.logger.info("recognizer_added", recognizer_id=recognizer.id, priority=recognizer.priority)

    def remove_recognizer(self, recognizer_id: str) -> None:
        """Remove every recognizer with the given id."""
        self._recognizers = [r for r in self._recognizers if r.id != recognizer_id]
        self.logger.info("recognizer_removed", recognizer_id=recognizer_id)

    @property
    def recognizers(self) -> List[Recognizer]:
        """Active recognizers, highest priority first (copy)."""
        return list(self._recognizers)

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def parse(self, text: str) -> ParseResult:
        """
        Parse text through all recognizers and resolve conflicts.

        Args:
            text: Raw task text

        Returns:
            ParseResult with non-overlapping tags ordered by position.
            If the pipeline itself fails, a result with the original text,
            no tags and confidence 0.
        """
        if not text or not text.strip():
            return ParseResult(clean_text=text or "", tags=[], confidence=1.0, conflicts=[])

        recognizers = list(self._recognizers)

        try:
            # Stage 1: Run all applicable recognizers
            all_tags = self._run_recognizers(text, recognizers)

            # Stage 2: Detect conflicts
            conflicts = detect_conflicts(all_tags)

            # Stage 3: Resolve conflicts
            priorities = {r.id: r.priority for r in recognizers}
            resolved_tags = resolve_conflicts(
                all_tags, conflicts, lambda source: priorities.get(source, 0)
            )
            resolved_tags.sort(key=lambda t: t.start_index)

            # Stage 4: Generate clean text
            clean_text = generate_clean_text(text, resolved_tags)

            # Stage 5: Overall confidence
            confidence = self._calculate_overall_confidence(resolved_tags, priorities)

            result = ParseResult(
                clean_text=clean_text,
                tags=resolved_tags,
                confidence=confidence,
                conflicts=conflicts,
            )
        except Exception as e:
            self.logger.error(
                "smart_parser_failed",
                error=str(e),
                error_type=type(e).__name__,
                text_length=len(text),
            )
            return ParseResult(clean_text=text, tags=[], confidence=0.0, conflicts=[])

        self.logger.debug(
            "parse_complete",
            text_length=len(text),
            collected_count=len(all_tags),
            conflicts_count=len(conflicts),
            tags_count=len(resolved_tags),
            confidence=round(confidence, 3),
        )

        return result

    def _run_recognizers(self, text: str, recognizers: Sequence[Recognizer]) -> List[Annotation]:
        """Collect annotations from every recognizer whose test() passes."""
        all_tags: List[Annotation] = []

        for recognizer in recognizers:
            try:
                if not recognizer.test(text):
                    continue
                tags = recognizer.parse(text)
            except Exception as e:
                self.logger.warning(
                    "recognizer_failed",
                    recognizer_id=recognizer.id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue

            for tag in tags:
                if tag.end_index > len(text):
                    self.logger.warning(
                        "annotation_out_of_bounds",
                        recognizer_id=recognizer.id,
                        start=tag.start_index,
                        end=tag.end_index,
                        text_length=len(text),
                    )
                    continue
                all_tags.append(tag)

        return all_tags

    @staticmethod
    def _calculate_overall_confidence(tags: Sequence[Annotation], priorities: dict) -> float:
        """
        Priority-weighted average of tag confidences.

        Each tag weighs its recognizer's priority (1 for unknown sources).
        """
        if not tags:
            return 1.0

        total_weight = 0.0
        weighted_sum = 0.0

        for tag in tags:
            priority = priorities.get(tag.source) or 1
            weighted_sum += priority * tag.confidence
            total_weight += priority

        if total_weight <= 0:
            return 0.5
        return max(0.0, min(1.0, weighted_sum / total_weight))

    def test_parse(self, text: str) -> ParseDiagnostics:
        """
        Run every applicable recognizer and report its raw annotations.

        No conflict resolution is applied; meant for debugging and tuning.
        """
        results: List[RecognizerReport] = []

        for recognizer in list(self._recognizers):
            try:
                if recognizer.test(text):
                    results.append(
                        RecognizerReport(
                            parser=recognizer.name,
                            recognizer_id=recognizer.id,
                            tags=recognizer.parse(text),
                        )
                    )
            except Exception as e:
                results.append(
                    RecognizerReport(
                        parser=recognizer.name,
                        recognizer_id=recognizer.id,
                        tags=[],
                        error=str(e),
                    )
                )

        return ParseDiagnostics(parser_results=results)


def create_default_parser(config: Optional[Settings] = None, **overrides) -> SmartParser:
    """
    Build a parser with the standard recognizers enabled in settings.

    Args:
        config: Settings (defaults to global settings)
        **overrides: Constructor arguments for recognizers, e.g. `clock`,
            `date_backend` or `nlp`

    Returns:
        SmartParser instance owned by the caller
    """
    config = config or default_settings
    recognizers: List[Recognizer] = []

    if config.enable_date_recognizer:
        backend = overrides.get("date_backend") or DateparserBackend(
            languages=config.date_language_list(),
            prefer_future=config.date_prefer_future,
        )
        recognizers.append(DateTimeRecognizer(backend=backend, clock=overrides.get("clock")))

    if config.enable_priority_recognizer:
        recognizers.append(PriorityRecognizer())

    if config.enable_entity_recognizer:
        recognizers.append(
            EntityRecognizer(
                nlp=overrides.get("nlp"),
                model_name=config.spacy_model_name,
                enable_ner=config.entity_enable_ner,
                enable_location_patterns=config.entity_enable_location_patterns,
                enable_categories=config.entity_enable_categories,
            )
        )

    logger.info(
        "default_parser_created",
        recognizers=[r.id for r in recognizers],
    )

    return SmartParser(recognizers)
