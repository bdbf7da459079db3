"""
Property tree extraction for conversion rules.

Property nesting has no depth bound in the source format, so the tree is built
with an explicit work stack instead of recursion: a pre-order pass records
every node with its parent, then a reverse pass assembles the immutable
Property objects children-first.
"""

from typing import List, Tuple

from ..models import Property
from .xml_helpers import attribute, child_elements, child_text, clean_tag_name, first_child, text_content

PROPERTY = 'Свойство'
PROPERTY_GROUP = 'Группа'
PROPERTIES = 'Свойства'


def _property_elements(element) -> List:
    """Property and property group elements nested directly under element."""
    elements = child_elements(element, PROPERTY, PROPERTY_GROUP)
    if clean_tag_name(element.tag) == PROPERTY_GROUP:
        for container in child_elements(element, PROPERTIES):
            elements.extend(child_elements(container, PROPERTY, PROPERTY_GROUP))
    return elements


def _is_group(element) -> bool:
    return clean_tag_name(element.tag) == PROPERTY_GROUP


def _endpoint(element):
    """Value and kind of an Источник/Приемник child: text first, then the Имя attribute."""
    if element is None:
        return '', None
    value = text_content(element) or attribute(element, 'Имя').strip()
    return value, attribute(element, 'Вид') or None


def _build_property(element, children: Tuple[Property, ...]) -> Property:
    common = dict(
        name=child_text(element, 'Наименование'),
        conversion_rule_code=child_text(element, 'КодПравилаКонвертации') or None,
        code=child_text(element, 'Код'),
        is_search_field=attribute(element, 'Поиск') == 'true',
        obtained_from_incoming_data=child_text(element, 'ПолучитьИзВходящихДанных') == 'true',
        children=children,
    )
    if _is_group(element):
        return Property(**common)

    source, source_kind = _endpoint(first_child(element, 'Источник'))
    receiver, receiver_kind = _endpoint(first_child(element, 'Приемник'))
    handler = child_text(element, 'ПередВыгрузкой') or child_text(element, 'ПриВыгрузке')
    return Property(
        source=source,
        source_kind=source_kind,
        receiver=receiver,
        receiver_kind=receiver_kind,
        handler_code=handler or None,
        **common
    )


def read_properties(container) -> Tuple[Property, ...]:
    """
    Build the property tree found under a rule's properties container.

    Args:
        container: The Свойства element of a rule, or None

    Returns:
        Top-level properties in document order, each owning its subtree
    """
    if container is None:
        return ()

    nodes = []  # (element, parent index) in pre-order
    stack = [(element, -1) for element in reversed(_property_elements(container))]
    while stack:
        element, parent = stack.pop()
        index = len(nodes)
        nodes.append((element, parent))
        if _is_group(element):
            stack.extend((child, index) for child in reversed(_property_elements(element)))

    # Reverse pre-order visits every child before its parent; siblings arrive last-first.
    pending_children: List[List[Property]] = [[] for _ in nodes]
    top_level: List[Property] = []
    for index in range(len(nodes) - 1, -1, -1):
        element, parent = nodes[index]
        prop = _build_property(element, tuple(reversed(pending_children[index])))
        (pending_children[parent] if parent >= 0 else top_level).append(prop)

    return tuple(reversed(top_level))


def count_properties(properties: Tuple[Property, ...]) -> int:
    """Count properties including every nested descendant."""
    count = 0
    stack = list(properties)
    while stack:
        prop = stack.pop()
        count += 1
        stack.extend(prop.children)
    return count
