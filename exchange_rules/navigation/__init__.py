"""Cross-reference resolution components."""

from .cross_reference import (
    find_conversion_rule_by_id,
    find_export_rules_for,
    flatten_conversion_rules,
    iter_conversion_rules,
    not_found_message,
)

__all__ = [
    'find_conversion_rule_by_id',
    'find_export_rules_for',
    'flatten_conversion_rules',
    'iter_conversion_rules',
    'not_found_message',
]
