"""
Utility functions for common patterns across the exchange rules viewer.
"""

from typing import Any


class StringUtils:
    """Utility methods for string validation and processing."""

    @staticmethod
    def safe_string_check(value: Any) -> bool:
        """
        Standardized string validation.

        Args:
            value: Value to check

        Returns:
            True if value is a non-empty string after stripping whitespace
        """
        return value is not None and str(value).strip() != ''

    @staticmethod
    def contains_ignore_case(needle: str, haystack: str) -> bool:
        """Case-insensitive substring containment; an empty haystack never matches."""
        if not haystack:
            return False
        return needle.lower() in haystack.lower()
