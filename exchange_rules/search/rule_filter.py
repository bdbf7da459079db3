"""
Free-text search over rules and document-level handlers.

A rule matches when the query occurs, case-insensitively, anywhere in its
searchable text: every scalar text field of the rule plus the text of every
property in its property tree.
"""

from dataclasses import dataclass, fields
from typing import Iterable, List, Set

from ..models import ExchangeRulesDocument, Property, Rule
from ..utils import StringUtils

# Verbatim source is shown, never searched.
_UNSEARCHED_FIELDS = frozenset(['raw_xml', 'properties'])


@dataclass(frozen=True)
class GlobalHandler:
    """A document-level handler script."""
    key: str
    title: str
    code: str


def _property_text(properties: Iterable[Property]) -> List[str]:
    parts = []
    stack = list(reversed(tuple(properties)))
    while stack:
        prop = stack.pop()
        parts.extend(value for value in (prop.name, prop.source, prop.receiver,
                                         prop.conversion_rule_code, prop.code, prop.handler_code) if value)
        stack.extend(reversed(prop.children))
    return parts


def searchable_text(rule: Rule) -> str:
    """Concatenated text a query is matched against."""
    parts = [
        value for value in (getattr(rule, f.name) for f in fields(rule) if f.name not in _UNSEARCHED_FIELDS)
        if isinstance(value, str) and value
    ]
    parts.extend(_property_text(getattr(rule, 'properties', ())))
    return ' '.join(parts)


def is_blank_query(query: str) -> bool:
    return not StringUtils.safe_string_check(query)


def text_matches(query: str, text: str) -> bool:
    """Case-insensitive containment of query in text; a blank query matches anything."""
    if is_blank_query(query):
        return True
    return StringUtils.contains_ignore_case(query, text)


def matches(query: str, rule: Rule) -> bool:
    """Whether the rule qualifies for the query."""
    if is_blank_query(query):
        return True
    return StringUtils.contains_ignore_case(query, searchable_text(rule))


def filter_rules(query: str, rules: Iterable[Rule]) -> List[Rule]:
    """Rules matching the query, order preserved; a blank query returns them all."""
    rules = list(rules)
    if is_blank_query(query):
        return rules
    return [rule for rule in rules if matches(query, rule)]


def rule_ids(rules: Iterable[Rule]) -> Set[str]:
    """Id set handed to the hierarchy builder."""
    return {rule.id for rule in rules}


def match_global_handlers(query: str, document: ExchangeRulesDocument) -> List[GlobalHandler]:
    """Non-empty document-level handlers matching the query."""
    handlers = [
        GlobalHandler('before_export', 'Before data export', document.global_before_export_handler),
        GlobalHandler('after_load', 'After data load', document.global_after_load_handler),
    ]
    return [handler for handler in handlers if handler.code and text_matches(query, handler.code)]
