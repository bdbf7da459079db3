"""
Exchange Rules Viewer

Parses exchange rules documents (data-conversion rule sets with nested groups,
rules and properties) into an immutable model, and derives filtered and
regrouped views of it for presentation.
"""

__version__ = "1.0.0"

# Import core models and operations for easy access
from .models import (
    Algorithm,
    ConversionRule,
    ExchangeRulesDocument,
    ExportRule,
    HierarchyMode,
    Parameter,
    ParseFailure,
    Property,
    Request,
    Rule,
    RuleGroup,
    RuleKind
)

from .parsing import ExchangeRulesParser, parse
from .views import HierarchyBuilder, build_view
from .search import filter_rules, match_global_handlers, matches, rule_ids
from .navigation import find_conversion_rule_by_id
from .catalog import RulesCatalog

from .exceptions import (
    ExchangeRulesError,
    RulesParsingError,
    ConfigurationError,
    DocumentLoadError
)

__all__ = [
    # Core models
    "Algorithm",
    "ConversionRule",
    "ExchangeRulesDocument",
    "ExportRule",
    "HierarchyMode",
    "Parameter",
    "ParseFailure",
    "Property",
    "Request",
    "Rule",
    "RuleGroup",
    "RuleKind",

    # Operations
    "ExchangeRulesParser",
    "parse",
    "HierarchyBuilder",
    "build_view",
    "filter_rules",
    "match_global_handlers",
    "matches",
    "rule_ids",
    "find_conversion_rule_by_id",
    "RulesCatalog",

    # Exceptions
    "ExchangeRulesError",
    "RulesParsingError",
    "ConfigurationError",
    "DocumentLoadError"
]
