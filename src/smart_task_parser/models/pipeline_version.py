"""
Pipeline version model for deterministic processing.

Tracks the version of every recognizer and of the orchestration logic:
same version parameters + same input + same reference time = same output.
"""

from pydantic import BaseModel, Field


class PipelineVersion(BaseModel):
    """
    Immutable version contract for the parsing pipeline.

    Confidence heuristics and pattern tables are versioned per recognizer so
    that changes in scoring show up in audit output.
    """

    parser_version: str = Field(
        description="Orchestrator (conflict resolution) version", examples=["smart-parser-1.0.0"]
    )
    date_recognizer_version: str = Field(
        description="Date/time recognizer version", examples=["date-recognizer-1.0.0"]
    )
    priority_recognizer_version: str = Field(
        description="Priority pattern table version", examples=["priority-recognizer-1.0.0"]
    )
    entity_recognizer_version: str = Field(
        description="Entity/category recognizer version", examples=["entity-recognizer-1.0.0"]
    )
    ner_model_name: str = Field(
        description="spaCy NER model name", examples=["en_core_web_sm"]
    )
    date_backend: str = Field(
        description="Natural-language date search backend", examples=["dateparser"]
    )

    model_config = {"frozen": True}

    def to_repr(self) -> str:
        """
        Short representation for logging.

        Returns:
            Compact string representation with key version components.
        """
        return f"Pipeline-{self.parser_version}-{self.ner_model_name}-{self.date_backend}"
