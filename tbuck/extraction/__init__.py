"""
extraction/__init__.py

Public API for the extraction sub-package.
"""

from .datetime_format import SPECIFIER_HELP, DateTimeFormat
from .extractor import TimestampExtractor, extract

__all__ = ["DateTimeFormat", "TimestampExtractor", "extract", "SPECIFIER_HELP"]
