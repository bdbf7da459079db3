"""Exchange rules document parsing components."""

from .rules_parser import ExchangeRulesParser, parse, UNGROUPED_GROUP_NAME, UNKNOWN_ID

__all__ = ['ExchangeRulesParser', 'parse', 'UNGROUPED_GROUP_NAME', 'UNKNOWN_ID']
