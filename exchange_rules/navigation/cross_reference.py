"""
Cross-reference resolution between rules.

Properties and export rules reference conversion rules by code; these helpers
locate the referenced rule anywhere in the nested conversion rule tree.
"""

from typing import Iterable, Iterator, List, Optional

from ..models import ConversionRule, ExchangeRulesDocument, ExportRule, RuleGroup


def iter_conversion_rules(groups: Iterable[RuleGroup]) -> Iterator[ConversionRule]:
    """
    Yield rules depth-first in discovery order.

    Groups are visited in declared order and a group's own rules come before
    the rules of its sub-groups.
    """
    stack = [iter(groups)]
    while stack:
        group = next(stack[-1], None)
        if group is None:
            stack.pop()
            continue
        yield from group.rules
        stack.append(iter(group.sub_groups))


def flatten_conversion_rules(document: ExchangeRulesDocument) -> List[ConversionRule]:
    """All conversion rules of the document in discovery order."""
    return list(iter_conversion_rules(document.conversion_groups))


def find_conversion_rule_by_id(document: ExchangeRulesDocument, code: str) -> Optional[ConversionRule]:
    """
    Find the first conversion rule whose trimmed id equals the trimmed code.

    Only conversion rules are searched; export rules, algorithms, parameters and
    requests sharing the id are ignored.

    Args:
        document: Parsed document
        code: Referenced rule code, surrounding whitespace ignored

    Returns:
        The matching rule, or None when no conversion rule carries the code
    """
    wanted = (code or '').strip()
    for rule in iter_conversion_rules(document.conversion_groups):
        if rule.id.strip() == wanted:
            return rule
    return None


def find_export_rules_for(document: ExchangeRulesDocument, code: str) -> List[ExportRule]:
    """Export rules whose conversion rule code references the given rule id."""
    wanted = (code or '').strip()
    return [rule for rule in document.export_rules if rule.conversion_rule_code.strip() == wanted]


def not_found_message(code: str) -> str:
    """Operator notice for a cross-reference miss."""
    return f'Rule with code "{code}" not found.'
