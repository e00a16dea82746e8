"""
Version constants for the task text parsing pipeline.

Update the component versions whenever a pattern table or a confidence
heuristic changes.
"""

from typing import Optional

from .config import Settings, settings as default_settings
from .models.pipeline_version import PipelineVersion

__version__ = "1.0.0"

PARSER_VERSION = "smart-parser-1.0.0"
DATE_RECOGNIZER_VERSION = "date-recognizer-1.0.0"
PRIORITY_RECOGNIZER_VERSION = "priority-recognizer-1.0.0"
ENTITY_RECOGNIZER_VERSION = "entity-recognizer-1.0.0"
DATE_BACKEND = "dateparser"


def get_current_pipeline_version(config: Optional[Settings] = None) -> PipelineVersion:
    """
    Get current pipeline version configuration.

    Args:
        config: Settings providing the NER model name (defaults to global settings)

    Returns:
        PipelineVersion instance with current versions
    """
    config = config or default_settings
    return PipelineVersion(
        parser_version=PARSER_VERSION,
        date_recognizer_version=DATE_RECOGNIZER_VERSION,
        priority_recognizer_version=PRIORITY_RECOGNIZER_VERSION,
        entity_recognizer_version=ENTITY_RECOGNIZER_VERSION,
        ner_model_name=config.spacy_model_name,
        date_backend=DATE_BACKEND,
    )
