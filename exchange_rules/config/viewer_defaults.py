"""
Centralized configuration defaults for the exchange rules viewer.

These are operational settings shared by the parser, the catalog and the CLI.
Environment variables and CLI arguments can override them at runtime.
"""


class ViewerDefaults:
    """
    Centralized operational configuration.

    All values are defaults that can be overridden:
    - EXCHANGE_RULES_DEFAULT_MODE=source exchange-rules tree rules.xml
    - exchange-rules --log-level DEBUG summary rules.xml
    """

    # Views
    DEFAULT_MODE = "standard"  # standard, source, receiver or flat
    DOCUMENT_PATH = "default.xml"  # Document opened when no file is given
    VIEW_CACHE_SIZE = 32  # Conversion views kept per catalog, least recently used evicted first

    # Parsing
    HUGE_TREE = False  # Lift libxml2 depth and size limits for very large documents
    MAX_DOCUMENT_MB = 200  # Reject larger inputs before parsing (0 = unlimited)

    # Logging
    LOG_LEVEL = "WARNING"  # CRITICAL, ERROR, WARNING, INFO, DEBUG

    @classmethod
    def to_dict(cls) -> dict:
        """
        Export all defaults as a dictionary.

        Returns:
            Dictionary of all ViewerDefaults class attributes.
        """
        return {
            key: getattr(cls, key)
            for key in dir(cls)
            if not key.startswith('_') and key.isupper()
        }
