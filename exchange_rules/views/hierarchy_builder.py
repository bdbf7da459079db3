"""
Hierarchy views over the conversion rules of a document.

The same rule set can be presented four ways: in the declared group structure,
regrouped by the type prefix of the rule source or receiver, or as one flat
list. Every view is a fresh set of RuleGroup objects with paths assigned;
groups without rules anywhere below them are never produced.
"""

import logging
from dataclasses import replace
from typing import AbstractSet, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ..interfaces import HierarchyBuilderInterface
from ..models import ConversionRule, ExchangeRulesDocument, HierarchyMode, RuleGroup
from ..navigation.cross_reference import iter_conversion_rules

UNSPECIFIED_KEY = 'unspecified'
GENERAL_SUB_KEY = '(general)'
FLAT_GROUP_NAME = 'All conversion rules'

# "Reference" and "Record" markers of type names, e.g. СправочникСсылка
TYPE_DECORATORS = ('Ссылка', 'Запись')

_REGROUP_FIELDS = {
    HierarchyMode.BY_SOURCE: 'source',
    HierarchyMode.BY_RECEIVER: 'receiver',
}


def strip_decorators(text: str) -> str:
    for decorator in TYPE_DECORATORS:
        text = text.replace(decorator, '')
    return text


def type_keys(type_string: str) -> Tuple[str, str]:
    """
    Split a dotted type name into main and sub group keys.

    Examples:
        'СправочникСсылка.Номенклатура'   -> ('Справочник', 'Номенклатура')
        'Справочник.Ссылка.Номенклатура'  -> ('Справочник', 'Номенклатура')
        'Строка'                          -> ('Строка', '(general)')
        ''                                -> ('unspecified', '(general)')

    Args:
        type_string: Value of the rule's source or receiver field

    Returns:
        (main key, sub key)
    """
    text = (type_string or '').strip()
    if not text:
        return UNSPECIFIED_KEY, GENERAL_SUB_KEY

    head, _, remainder = text.partition('.')
    main_key = strip_decorators(head).strip() or UNSPECIFIED_KEY

    segments = [segment for segment in remainder.split('.') if segment.strip() not in TYPE_DECORATORS]
    sub_key = '.'.join(segments).strip() or GENERAL_SUB_KEY
    return main_key, sub_key


GroupBuilder = Callable[[RuleGroup, str, Tuple[RuleGroup, ...]], Optional[RuleGroup]]


def _rebuild(groups: Iterable[RuleGroup], build: GroupBuilder, parent_path: str = '') -> List[RuleGroup]:
    """
    Rebuild a group tree bottom-up without recursion.

    ``build`` receives the original group, its path and its already rebuilt
    sub-groups, and returns the replacement or None to drop the group.
    """
    nodes = []  # (group, parent index, path) in pre-order
    stack = [(group, -1, f"{parent_path}/{group.name}") for group in reversed(list(groups))]
    while stack:
        group, parent, path = stack.pop()
        index = len(nodes)
        nodes.append((group, parent, path))
        stack.extend((sub, index, f"{path}/{sub.name}") for sub in reversed(group.sub_groups))

    pending_sub_groups: List[List[RuleGroup]] = [[] for _ in nodes]
    top_level: List[RuleGroup] = []
    for index in range(len(nodes) - 1, -1, -1):
        group, parent, path = nodes[index]
        rebuilt = build(group, path, tuple(reversed(pending_sub_groups[index])))
        if rebuilt is not None:
            (pending_sub_groups[parent] if parent >= 0 else top_level).append(rebuilt)

    return list(reversed(top_level))


def assign_paths(groups: Iterable[RuleGroup], parent_path: str = '') -> List[RuleGroup]:
    """Copy groups with path = parent path + '/' + name at every level."""
    return _rebuild(groups, lambda group, path, sub_groups: replace(group, path=path, sub_groups=sub_groups),
                    parent_path)


class HierarchyBuilder(HierarchyBuilderInterface):
    """Builds conversion rule views for each HierarchyMode."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def build_view(self, document: ExchangeRulesDocument, mode: Union[HierarchyMode, str],
                   filtered_rule_ids: AbstractSet[str]) -> List[RuleGroup]:
        """
        Build the conversion rule hierarchy for a mode.

        Args:
            document: Parsed document
            mode: Hierarchy mode or its value ('standard', 'source', 'receiver', 'flat')
            filtered_rule_ids: Ids of the conversion rules to keep

        Returns:
            Top-level groups with paths assigned
        """
        if not isinstance(mode, HierarchyMode):
            mode = HierarchyMode.from_value(mode)

        if mode is HierarchyMode.STANDARD:
            groups = self._filter_groups(document.conversion_groups, filtered_rule_ids)
        else:
            rules = [rule for rule in iter_conversion_rules(document.conversion_groups)
                     if rule.id in filtered_rule_ids]
            if mode is HierarchyMode.FLAT:
                groups = [RuleGroup(name=FLAT_GROUP_NAME, rules=tuple(rules))] if rules else []
            else:
                groups = self._regroup(rules, _REGROUP_FIELDS[mode])

        self.logger.debug(f"Built {mode.value} view: {len(groups)} top-level groups")
        return assign_paths(groups)

    def _filter_groups(self, groups: Sequence[RuleGroup], ids: AbstractSet[str]) -> List[RuleGroup]:
        """Declared structure restricted to ids, pruning groups left without rules."""
        def keep(group: RuleGroup, path: str, sub_groups: Tuple[RuleGroup, ...]) -> Optional[RuleGroup]:
            rules = tuple(rule for rule in group.rules if rule.id in ids)
            if rules or sub_groups:
                return RuleGroup(name=group.name, rules=rules, sub_groups=sub_groups)
            return None

        return _rebuild(groups, keep)

    def _regroup(self, rules: Iterable[ConversionRule], field_name: str) -> List[RuleGroup]:
        """Two-level grouping by main and sub type keys, both sorted by key."""
        by_main_key: Dict[str, Dict[str, List[ConversionRule]]] = {}
        for rule in rules:
            main_key, sub_key = type_keys(getattr(rule, field_name, ''))
            by_main_key.setdefault(main_key, {}).setdefault(sub_key, []).append(rule)

        return [
            RuleGroup(
                name=main_key,
                sub_groups=tuple(RuleGroup(name=sub_key, rules=tuple(sub_rules))
                                 for sub_key, sub_rules in sorted(by_sub_key.items())),
            )
            for main_key, by_sub_key in sorted(by_main_key.items())
        ]


_default_builder = HierarchyBuilder()


def build_view(document: ExchangeRulesDocument, mode: Union[HierarchyMode, str],
               filtered_rule_ids: AbstractSet[str]) -> List[RuleGroup]:
    """Build a view with the shared default builder."""
    return _default_builder.build_view(document, mode, filtered_rule_ids)
