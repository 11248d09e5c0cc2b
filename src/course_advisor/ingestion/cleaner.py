"""
Cleaner Module - Text cleaning and normalization.
=================================================

Normalizes plain text produced by the external text/OCR extractor before
it is chunked:
- Unicode normalization and control-character removal
- Removal of page furniture (page numbers, repeated footers)
- Whitespace collapsing that keeps blank-line paragraph breaks
"""

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Optional

from course_advisor.shared.logging import get_logger

logger = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Cleaning Configuration
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class CleanerConfig:
    """Configuration for text cleaning operations."""

    # Whitespace handling
    normalize_whitespace: bool = True
    collapse_newlines: bool = True
    strip_lines: bool = True

    # Unicode handling
    normalize_unicode: bool = True
    unicode_form: str = "NFKC"
    remove_control_chars: bool = True

    # Patterns to remove (regex, applied per line)
    remove_patterns: list[str] = field(default_factory=lambda: [
        r"^\s*Page \d+ of \d+\s*$",
        r"^\s*-\s*\d+\s*-\s*$",
    ])


# ─────────────────────────────────────────────────────────────────────────────
# Text Cleaner Class
# ─────────────────────────────────────────────────────────────────────────────


class TextCleaner:
    """
    Text cleaner with configurable cleaning operations.

    The output keeps paragraph structure: runs of spaces and tabs become one
    space, lines are stripped, and any run of blank lines becomes exactly one
    blank line.

    Example:
        >>> cleaner = TextCleaner()
        >>> cleaner.clean("Algebra   I\\n\\n\\n\\nBiology")
        'Algebra I\\n\\nBiology'
    """

    def __init__(self, config: Optional[CleanerConfig] = None):
        self.config = config or CleanerConfig()

        self._compiled_patterns = [
            re.compile(pattern, re.IGNORECASE | re.MULTILINE)
            for pattern in self.config.remove_patterns
        ]

        self._multiple_spaces = re.compile(r"[ \t\f\v]+")
        self._multiple_newlines = re.compile(r"\n{3,}")
        self._trailing_whitespace = re.compile(r"[ \t]+$", re.MULTILINE)
        self._leading_whitespace = re.compile(r"^[ \t]+", re.MULTILINE)

    def clean(self, text: Optional[str]) -> str:
        """
        Clean a text string.

        Args:
            text: Text to clean (can be None)

        Returns:
            Cleaned text (empty string if input is None or blank)
        """
        if not text:
            return ""

        result = text.replace("\r\n", "\n").replace("\r", "\n")

        if self.config.normalize_unicode:
            result = unicodedata.normalize(self.config.unicode_form, result)

        if self.config.remove_control_chars:
            result = self._remove_control_chars(result)

        for pattern in self._compiled_patterns:
            result = pattern.sub("", result)

        if self.config.normalize_whitespace:
            result = self._multiple_spaces.sub(" ", result)

        if self.config.strip_lines:
            result = self._trailing_whitespace.sub("", result)
            result = self._leading_whitespace.sub("", result)

        if self.config.collapse_newlines:
            result = self._multiple_newlines.sub("\n\n", result)

        return result.strip()

    def _remove_control_chars(self, text: str) -> str:
        """Drop control characters other than newlines and tabs."""
        return "".join(
            ch for ch in text
            if ch in "\n\t" or unicodedata.category(ch)[0] != "C"
        )


def normalize_document_text(text: Optional[str]) -> str:
    """Clean text with the default configuration."""
    return TextCleaner().clean(text)
