"""
NER model loading using spaCy.

Loads the configured English pipeline once per model name and exposes the
named entities of a text as plain spans.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import spacy
import structlog


logger = structlog.get_logger(__name__)


# Loaded NER models by name (loaded once)
_nlp_models: Dict[str, Any] = {}


@dataclass(frozen=True)
class NamedEntity:
    """A named entity span reported by the NER model."""
    text: str
    label: str
    start: int
    end: int


def get_ner_model(model_name: Optional[str] = None):
    """
    Load spaCy NER model (cached per name).

    Args:
        model_name: spaCy package name (defaults to settings.spacy_model_name)

    Returns:
        Loaded spaCy model

    Raises:
        OSError: If model is not installed
    """
    if model_name is None:
        from smart_task_parser.config import settings

        model_name = settings.spacy_model_name

    if model_name not in _nlp_models:
        try:
            _nlp_models[model_name] = spacy.load(model_name)
            logger.info("ner_model_loaded", model=model_name)
        except OSError as e:
            logger.error(
                "ner_model_load_failed",
                model=model_name,
                error=str(e),
                hint=f"Run: python -m spacy download {model_name}",
            )
            raise

    return _nlp_models[model_name]


def extract_named_entities(text: str, nlp: Optional[Callable[[str], Any]] = None) -> List[NamedEntity]:
    """
    Run NER over text.

    Args:
        text: Raw task text
        nlp: Callable returning a spaCy-like Doc (defaults to the configured model)

    Returns:
        Entities with character offsets into text

    Examples:
        >>> entities = extract_named_entities("Call John Smith in Paris")
        >>> [(e.text, e.label) for e in entities]
        [('John Smith', 'PERSON'), ('Paris', 'GPE')]
    """
    if not text:
        return []

    nlp = nlp or get_ner_model()
    doc = nlp(text)

    entities = [
        NamedEntity(text=ent.text, label=ent.label_, start=ent.start_char, end=ent.end_char)
        for ent in doc.ents
    ]

    logger.debug("ner_extraction_complete", entities_count=len(entities), text_length=len(text))

    return entities
