"""
Application configuration management.

This module handles configuration from environment variables using Pydantic Settings.
"""

from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Parser configuration from environment variables.

    All settings can be overridden via environment variables with the same name.
    """

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Recognizers enabled in the default parser
    enable_date_recognizer: bool = True
    enable_priority_recognizer: bool = True
    enable_entity_recognizer: bool = True

    # Date/time recognition
    date_languages: str = "en"  # Comma-separated
    date_prefer_future: bool = True

    # Entity recognition
    spacy_model_name: str = "en_core_web_sm"
    entity_enable_ner: bool = True
    entity_enable_location_patterns: bool = True
    entity_enable_categories: bool = True

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    def date_language_list(self) -> List[str]:
        """Languages handed to the date backend, in order."""
        return [lang.strip() for lang in self.date_languages.split(",") if lang.strip()]


# Global settings instance
settings = Settings()
