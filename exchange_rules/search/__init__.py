"""Rule search components."""

from .rule_filter import (
    GlobalHandler,
    filter_rules,
    match_global_handlers,
    matches,
    rule_ids,
    searchable_text,
    text_matches,
)

__all__ = [
    'GlobalHandler',
    'filter_rules',
    'match_global_handlers',
    'matches',
    'rule_ids',
    'searchable_text',
    'text_matches',
]
