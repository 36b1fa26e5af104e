"""
Notionflow Utilities

Common utilities used across the application.
"""

from .background import BackgroundWork
from .json_parser import AIResponseError, parse_json_as, strip_code_fences

__all__ = [
    "AIResponseError",
    "BackgroundWork",
    "parse_json_as",
    "strip_code_fences",
]
