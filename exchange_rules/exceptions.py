"""
Custom exceptions for the exchange rules viewer.

This module defines specific exception types for the error conditions that
can occur while loading and parsing an exchange rules document.
"""


class ExchangeRulesError(Exception):
    """Base exception for all exchange rules related errors."""

    def __init__(self, message: str, source_record_id: str = None):
        """
        Initialize exchange rules error.

        Args:
            message: Error description
            source_record_id: Optional identifier of the document or parse run that caused the error
        """
        super().__init__(message)
        self.source_record_id = source_record_id


class RulesParsingError(ExchangeRulesError):
    """Exception raised when an exchange rules document cannot be parsed."""

    def __init__(self, message: str, xml_content: str = None, source_record_id: str = None):
        """
        Initialize rules parsing error.

        Args:
            message: Error description
            xml_content: Optional XML content that failed to parse (truncated for logging)
            source_record_id: Optional identifier of the parse run
        """
        super().__init__(message, source_record_id)
        # Store truncated XML content for debugging (first 500 chars)
        self.xml_content = xml_content[:500] + "..." if xml_content and len(xml_content) > 500 else xml_content


class ConfigurationError(ExchangeRulesError):
    """Exception raised when configuration is invalid or missing."""
    pass


class DocumentLoadError(ExchangeRulesError):
    """Exception raised when a document cannot be read or does not parse."""

    def __init__(self, message: str, failure=None, source_record_id: str = None):
        """
        Initialize document load error.

        Args:
            message: Error description
            failure: Optional ParseFailure returned by the parser
            source_record_id: Optional identifier (usually the file path)
        """
        super().__init__(message, source_record_id)
        self.failure = failure
