"""
Global pytest fixtures and configuration for test suite.

This module provides reusable fixtures for:
- Silent structured logging per test
- A fixed reference clock
- A scripted date backend
- A fake spaCy NER callable
- Stub recognizers and annotation factories
"""

import logging
from datetime import datetime
from types import SimpleNamespace
from typing import Callable, Dict, List, Optional, Sequence

import pytest
import structlog

from smart_task_parser.config import Settings
from smart_task_parser.models import Annotation, AnnotationType
from smart_task_parser.recognizers import DateMatch


@pytest.fixture(autouse=True)
def quiet_logging():
    """
    Route structlog output nowhere for each test.

    Loggers bound before the CLI configures logging would otherwise print
    to stdout, and cached loggers would keep streams that pytest closes.
    """
    structlog.reset_defaults()
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.KeyValueRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        logger_factory=structlog.ReturnLoggerFactory(),
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()


# Monday
REFERENCE_NOW = datetime(2026, 1, 5, 9, 30)


@pytest.fixture
def reference_now() -> datetime:
    """Fixed 'now' used by date tests (Monday 2026-01-05 09:30)."""
    return REFERENCE_NOW


@pytest.fixture
def fixed_clock(reference_now) -> Callable[[], datetime]:
    """Clock returning the fixed reference time."""
    return lambda: reference_now


@pytest.fixture
def mock_settings() -> Settings:
    """
    Create settings for testing with safe defaults.

    NER is disabled so no spaCy model is needed.
    """
    return Settings(
        log_level="INFO",
        log_json=False,  # Easier to read in tests
        entity_enable_ner=False,
    )


class ScriptedDateBackend:
    """Date backend returning preset matches, located by substring."""

    def __init__(self, expressions: Dict[str, dict]):
        self.expressions = expressions
        self.calls: List[tuple] = []

    def search(self, text: str, reference: datetime) -> List[DateMatch]:
        self.calls.append((text, reference))
        matches = []
        for expression, fields in self.expressions.items():
            index = text.find(expression)
            if index == -1:
                continue
            matches.append(
                DateMatch(
                    text=expression,
                    index=index,
                    start=fields["start"],
                    end=fields.get("end"),
                    certain=frozenset(fields.get("certain", ())),
                )
            )
        return sorted(matches, key=lambda m: m.index)


@pytest.fixture
def scripted_backend() -> Callable[[Dict[str, dict]], ScriptedDateBackend]:
    """
    Factory for date backends with preset expressions.

    Usage:
        backend = scripted_backend({"tomorrow": {"start": dt, "certain": ["day"]}})
    """
    return ScriptedDateBackend


class FakeNlp:
    """spaCy-like callable tagging fixed surface forms."""

    def __init__(self, entities: Dict[str, str]):
        self.entities = entities
        self.calls = 0

    def __call__(self, text: str):
        self.calls += 1
        ents = []
        for surface, label in self.entities.items():
            index = text.find(surface)
            if index != -1:
                ents.append(
                    SimpleNamespace(
                        text=surface,
                        label_=label,
                        start_char=index,
                        end_char=index + len(surface),
                    )
                )
        ents.sort(key=lambda e: e.start_char)
        return SimpleNamespace(ents=ents)


@pytest.fixture
def fake_nlp() -> Callable[[Dict[str, str]], FakeNlp]:
    """
    Factory for fake NER callables.

    Usage:
        nlp = fake_nlp({"John": "PERSON", "Paris": "GPE"})
    """
    return FakeNlp


class StubRecognizer:
    """Recognizer returning preset annotations, optionally raising."""

    def __init__(
        self,
        id: str,
        priority: int,
        tags: Sequence[Annotation] = (),
        fail_on: Optional[str] = None,
    ):
        self.id = id
        self.name = f"Stub {id}"
        self.priority = priority
        self.tags = list(tags)
        self.fail_on = fail_on

    def test(self, text: str) -> bool:
        if self.fail_on == "test":
            raise RuntimeError(f"{self.id} test exploded")
        return bool(self.tags)

    def parse(self, text: str) -> List[Annotation]:
        if self.fail_on == "parse":
            raise RuntimeError(f"{self.id} parse exploded")
        return list(self.tags)


@pytest.fixture
def stub_recognizer() -> Callable[..., StubRecognizer]:
    """Factory for stub recognizers: stub_recognizer(id, priority, tags, fail_on=None)."""
    return StubRecognizer


@pytest.fixture
def make_tag() -> Callable[..., Annotation]:
    """
    Factory for annotations over a given text.

    Usage:
        tag = make_tag(text, start, end, source="a", confidence=0.8)
    """

    def _make(
        text: str,
        start: int,
        end: int,
        source: str = "stub",
        confidence: float = 0.8,
        type: AnnotationType = AnnotationType.LABEL,
        value=None,
    ) -> Annotation:
        original = text[start:end]
        return Annotation(
            type=type,
            value=value if value is not None else original,
            display_text=original,
            start_index=start,
            end_index=end,
            original_text=original,
            confidence=confidence,
            source=source,
        )

    return _make
