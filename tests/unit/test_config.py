"""
Unit tests for settings, logging setup and version metadata.
"""

import structlog

from smart_task_parser.config import Settings
from smart_task_parser.logging_config import setup_logging
from smart_task_parser.version import (
    DATE_BACKEND,
    PARSER_VERSION,
    __version__,
    get_current_pipeline_version,
)


class TestSettings:
    """Test configuration defaults and overrides."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SPACY_MODEL_NAME", raising=False)
        monkeypatch.delenv("ENTITY_ENABLE_NER", raising=False)

        config = Settings(_env_file=None)

        assert config.spacy_model_name == "en_core_web_sm"
        assert config.entity_enable_ner is True
        assert config.enable_date_recognizer is True
        assert config.date_prefer_future is True

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("ENTITY_ENABLE_NER", "false")

        config = Settings(_env_file=None)

        assert config.log_level == "DEBUG"
        assert config.entity_enable_ner is False

    def test_date_language_list(self):
        config = Settings(_env_file=None, date_languages="en, de ,")

        assert config.date_language_list() == ["en", "de"]


class TestLogging:
    """Test structlog configuration."""

    def test_setup_logging_console(self, mock_settings, capsys):
        setup_logging(mock_settings)

        structlog.get_logger("test").info("test_event", key="value")

        captured = capsys.readouterr()
        assert "test_event" in captured.err
        assert captured.out == ""

    def test_level_filter(self, mock_settings, capsys):
        setup_logging(mock_settings.model_copy(update={"log_level": "WARNING"}))

        structlog.get_logger("test").info("hidden_event")

        assert "hidden_event" not in capsys.readouterr().err


class TestPipelineVersion:
    """Test version metadata."""

    def test_current_version(self, mock_settings):
        version = get_current_pipeline_version(mock_settings)

        assert version.parser_version == PARSER_VERSION
        assert version.date_backend == DATE_BACKEND
        assert version.ner_model_name == mock_settings.spacy_model_name
        assert version.to_repr() == f"Pipeline-{PARSER_VERSION}-{mock_settings.spacy_model_name}-dateparser"

    def test_package_version(self):
        assert __version__ == "1.0.0"
