"""
CLI module for task text parsing.

Provides a command-line tool for parsing and debugging task text.
"""

from smart_task_parser.cli.parse import main as parse_main

__all__ = ["parse_main"]
