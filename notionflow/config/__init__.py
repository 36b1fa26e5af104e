"""
Notionflow Configuration

Environment-driven application settings.
"""

from .schemas import AppSettings, load_settings

__all__ = [
    "AppSettings",
    "load_settings",
]
