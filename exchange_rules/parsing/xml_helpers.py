"""
Element access helpers shared by the exchange rules parser.

Lookups match on local tag names so that namespace prefixes, comments and
processing instructions never break field extraction.
"""

from typing import Iterator, List, Optional

from lxml import etree


def clean_tag_name(tag) -> str:
    """
    Clean tag name by removing namespace prefixes.

    Args:
        tag: Raw tag; comments and processing instructions carry a factory
            function instead of a string

    Returns:
        Local tag name, or '' for non-element nodes
    """
    if not isinstance(tag, str) or not tag:
        return ''

    # Remove namespace URI if present (format: {namespace}tagname)
    if tag.startswith('{'):
        end_ns = tag.find('}')
        if end_ns > 0:
            return tag[end_ns + 1:]

    # Remove namespace prefix if present (format: prefix:tagname)
    if ':' in tag:
        return tag.split(':', 1)[1]

    return tag


def child_elements(element, *names: str) -> List:
    """Direct children of element whose local name is one of names."""
    if element is None:
        return []
    return [child for child in element if clean_tag_name(child.tag) in names]


def first_child(element, name: str) -> Optional[object]:
    """First direct child of element with the given local name, or None."""
    if element is None:
        return None
    for child in element:
        if clean_tag_name(child.tag) == name:
            return child
    return None


def iter_descendants(element, name: str) -> Iterator:
    """Descendants of element (document order) with the given local name."""
    if element is None:
        return
    for descendant in element.iterdescendants():
        if clean_tag_name(descendant.tag) == name:
            yield descendant


def text_content(element) -> str:
    """Trimmed text content of element and its descendants; '' for None."""
    if element is None:
        return ''
    return etree.tostring(element, method='text', encoding='unicode', with_tail=False).strip()


def child_text(element, name: str) -> str:
    """Trimmed text of the named direct child, or '' when it is absent."""
    return text_content(first_child(element, name))


def attribute(element, name: str, default: str = '') -> str:
    """Attribute value of element, or default when element or attribute is absent."""
    if element is None:
        return default
    value = element.get(name)
    return value if value is not None else default


def serialize(element) -> str:
    """Verbatim serialized form of element, attribute order preserved, without its tail."""
    return etree.tostring(element, encoding='unicode', with_tail=False)
