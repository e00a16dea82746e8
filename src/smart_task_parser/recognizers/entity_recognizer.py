"""
Entity and category recognizer.

Combines three strategies:
1. spaCy NER for people, places and organizations
2. Location patterns ("at X", venue nouns, street addresses)
3. A single topical category label from a fixed keyword table
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import structlog

from smart_task_parser.models import Annotation, AnnotationType

from .base import ENTITY_RECOGNIZER_PRIORITY
from .ner_extractor import NamedEntity, extract_named_entities, get_ner_model


logger = structlog.get_logger(__name__)


# ============================================================================
# TABLES
# ============================================================================

@dataclass(frozen=True)
class EntityMapping:
    """Annotation type and fixed confidence for a NER label."""
    type: AnnotationType
    confidence: float


# spaCy labels (English OntoNotes scheme plus the PER/LOC scheme of other models)
NER_LABEL_MAPPING: Dict[str, EntityMapping] = {
    "PERSON": EntityMapping(AnnotationType.PERSON, 0.75),
    "PER": EntityMapping(AnnotationType.PERSON, 0.75),
    "GPE": EntityMapping(AnnotationType.LOCATION, 0.80),
    "LOC": EntityMapping(AnnotationType.LOCATION, 0.80),
    "FAC": EntityMapping(AnnotationType.LOCATION, 0.80),
    "ORG": EntityMapping(AnnotationType.PROJECT, 0.70),
}

LOCATION_PATTERN_CONFIDENCE = 0.65

# (pattern, capture group holding the location name; 0 = whole match)
LOCATION_PATTERNS: Tuple[Tuple[re.Pattern, int], ...] = (
    (re.compile(r"\b(at|in|near|by|to)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)"), 2),
    (
        re.compile(
            r"\b(downtown|uptown|mall|center|office|store|restaurant|bank|hospital|school|gym|park)\b",
            re.IGNORECASE,
        ),
        0,
    ),
    (
        re.compile(
            r"\b([A-Z][a-z]+\s+(St|Street|Ave|Avenue|Rd|Road|Blvd|Boulevard|Dr|Drive|Way|Pl|Place))\b"
        ),
        0,
    ),
)

# Declaration order breaks score ties
TASK_CATEGORIES: Tuple[Tuple[str, re.Pattern], ...] = tuple(
    (name, re.compile(pattern, re.IGNORECASE))
    for name, pattern in (
        ("work", r"\b(work|office|meeting|project|presentation|deadline|client|boss|colleague|email|report|proposal)\b"),
        ("personal", r"\b(personal|family|home|house|chores|cleaning|cooking|grocery|shopping|doctor|dentist|appointment)\b"),
        ("health", r"\b(doctor|dentist|hospital|clinic|pharmacy|medicine|workout|gym|exercise|yoga|therapy|checkup)\b"),
        ("shopping", r"\b(buy|purchase|shop|store|mall|grocery|groceries|food|clothes|gift|amazon|online)\b"),
        ("finance", r"\b(bank|atm|money|payment|bill|invoice|taxes|budget|insurance|loan|mortgage)\b"),
        ("social", r"\b(friend|friends|dinner|lunch|coffee|party|birthday|wedding|event|meet|hangout)\b"),
        ("travel", r"\b(flight|plane|airport|hotel|vacation|trip|travel|book|ticket|passport|visa)\b"),
        ("education", r"\b(school|university|college|class|study|homework|exam|test|assignment|library)\b"),
    )
)


# ============================================================================
# STRATEGIES
# ============================================================================

def entities_to_annotations(entities: Sequence[NamedEntity], text: str, source: str) -> List[Annotation]:
    """Map NER entities with a known label to annotations."""
    tags = []
    for entity in entities:
        mapping = NER_LABEL_MAPPING.get(entity.label)
        if mapping is None or entity.end <= entity.start or entity.end > len(text):
            continue
        original = text[entity.start:entity.end]
        tags.append(
            Annotation(
                type=mapping.type,
                value=entity.text,
                display_text=entity.text,
                start_index=entity.start,
                end_index=entity.end,
                original_text=original,
                confidence=mapping.confidence,
                source=source,
            )
        )
    return tags


def match_location_patterns(text: str, existing: Sequence[Annotation], source: str) -> List[Annotation]:
    """
    Location pattern matches that do not overlap an already accepted entity.

    Args:
        text: Raw task text
        existing: Entities found so far (NER results)
        source: Recognizer id for the produced annotations

    Returns:
        New location annotations (existing ones are not included)
    """
    accepted = list(existing)
    found: List[Annotation] = []

    for pattern, group in LOCATION_PATTERNS:
        for match in pattern.finditer(text):
            start, end = match.start(), match.end()
            if any(start < tag.end_index and tag.start_index < end for tag in accepted):
                continue

            location = match.group(group) or match.group(0)
            tag = Annotation(
                type=AnnotationType.LOCATION,
                value=location,
                display_text=location,
                start_index=start,
                end_index=end,
                original_text=match.group(0),
                confidence=LOCATION_PATTERN_CONFIDENCE,
                source=source,
            )
            accepted.append(tag)
            found.append(tag)

    return found


def best_category(text: str) -> Optional[Tuple[str, re.Match, int]]:
    """
    Pick the highest-scoring task category.

    Score is the match count, plus 0.2 if any match is longer than
    5 characters. Only a strictly higher score replaces the current best,
    so earlier categories win ties.

    Returns:
        (category, first match, match count) or None when nothing matches
    """
    best: Optional[Tuple[str, re.Match, int]] = None
    best_score = 0.0

    for category, pattern in TASK_CATEGORIES:
        matches = list(pattern.finditer(text))
        if not matches:
            continue

        score = len(matches) + (0.2 if any(len(m.group(0)) > 5 for m in matches) else 0.0)
        if score > best_score:
            best_score = score
            best = (category, matches[0], len(matches))

    return best


def category_to_annotation(text: str, source: str) -> Optional[Annotation]:
    """Label annotation for the best category, anchored at its first match."""
    result = best_category(text)
    if result is None:
        return None

    category, first_match, count = result
    return Annotation(
        type=AnnotationType.LABEL,
        value=category,
        display_text=category.capitalize(),
        start_index=first_match.start(),
        end_index=first_match.end(),
        original_text=first_match.group(0),
        confidence=min(0.85, 0.5 + count * 0.1),
        source=source,
    )


# ============================================================================
# RECOGNIZER
# ============================================================================

class EntityRecognizer:
    """
    Recognizer for people, places, organizations and task categories.

    Args:
        nlp: Callable returning a spaCy-like Doc; loaded lazily from
            model_name when omitted
        model_name: spaCy model to load when nlp is omitted
        enable_ner: Run named-entity recognition
        enable_location_patterns: Run regex location patterns
        enable_categories: Emit a category label
    """

    id = "entity-recognizer"
    name = "NLP Entity Recognizer"
    priority = ENTITY_RECOGNIZER_PRIORITY

    def __init__(
        self,
        nlp: Optional[Callable[[str], Any]] = None,
        model_name: Optional[str] = None,
        enable_ner: bool = True,
        enable_location_patterns: bool = True,
        enable_categories: bool = True,
    ):
        self._nlp = nlp
        self.model_name = model_name
        self.enable_ner = enable_ner
        self.enable_location_patterns = enable_location_patterns
        self.enable_categories = enable_categories
        self._ner_unavailable = False
        self.logger = logger.bind(component="entity_recognizer")

    def _get_nlp(self) -> Optional[Callable[[str], Any]]:
        if not self.enable_ner or self._ner_unavailable:
            return None
        if self._nlp is None:
            try:
                self._nlp = get_ner_model(self.model_name)
            except OSError as e:
                # Pattern and category strategies still run without a model
                self._ner_unavailable = True
                self.logger.warning("ner_disabled_model_unavailable", model=self.model_name, error=str(e))
                return None
        return self._nlp

    def _ner_tags(self, text: str) -> List[Annotation]:
        nlp = self._get_nlp()
        if nlp is None:
            return []
        return entities_to_annotations(extract_named_entities(text, nlp), text, self.id)

    def test(self, text: str) -> bool:
        """True if any strategy would produce an annotation."""
        if not text or not text.strip():
            return False
        try:
            if self.enable_location_patterns and any(p.search(text) for p, _ in LOCATION_PATTERNS):
                return True
            if self.enable_categories and best_category(text) is not None:
                return True
            return len(self._ner_tags(text)) > 0
        except Exception as e:
            self.logger.warning("entity_test_failed", error=str(e), text_length=len(text))
            return False

    def parse(self, text: str) -> List[Annotation]:
        """
        Extract entity, location and category annotations.

        Args:
            text: Raw task text

        Returns:
            NER entities, then non-overlapping location pattern matches,
            then at most one category label
        """
        if not text or not text.strip():
            return []

        tags = self._ner_tags(text)
        ner_count = len(tags)

        if self.enable_location_patterns:
            tags.extend(match_location_patterns(text, tags, self.id))

        if self.enable_categories:
            label = category_to_annotation(text, self.id)
            if label is not None:
                tags.append(label)

        self.logger.debug(
            "entity_recognition_complete",
            ner_count=ner_count,
            total_count=len(tags),
        )

        return tags
