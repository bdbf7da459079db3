"""
Session-level access to one parsed exchange rules document.

RulesCatalog holds the last-built document and answers the questions a
presentation layer asks when the operator switches category, hierarchy mode
or filter text, or follows a reference to another rule.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, List, Optional, Sequence, Tuple, Union

from lxml import etree

from .config.viewer_defaults import ViewerDefaults
from .exceptions import DocumentLoadError
from .models import ConversionRule, ExchangeRulesDocument, HierarchyMode, ParseFailure, Rule, RuleGroup
from .navigation.cross_reference import find_conversion_rule_by_id, flatten_conversion_rules
from .parsing.rules_parser import ExchangeRulesParser
from .search.rule_filter import GlobalHandler, filter_rules, match_global_handlers, rule_ids
from .views.hierarchy_builder import HierarchyBuilder

CONVERSION_RULES = 'conversion_rules'
EXPORT_RULES = 'export_rules'
ALGORITHMS = 'algorithms'
PARAMETERS = 'parameters'
REQUESTS = 'requests'
GLOBAL_HANDLERS = 'global_handlers'

CATEGORY_TITLES = {
    CONVERSION_RULES: 'Conversion rules',
    EXPORT_RULES: 'Export rules',
    ALGORITHMS: 'Algorithms',
    PARAMETERS: 'Parameters',
    REQUESTS: 'Requests',
    GLOBAL_HANDLERS: 'Global handlers',
}

_FLAT_CATEGORIES = {
    EXPORT_RULES: 'export_rules',
    ALGORITHMS: 'algorithms',
    PARAMETERS: 'parameters',
    REQUESTS: 'requests',
}


@dataclass(frozen=True)
class CategorySummary:
    """A navigable category with the number of items matching the filter."""
    key: str
    title: str
    count: int


def format_raw_xml(raw_xml: str) -> str:
    """
    Pretty-print a rule's source for display.

    Args:
        raw_xml: Verbatim element markup

    Returns:
        Indented markup, or the verbatim text when it is not well-formed
    """
    if not raw_xml:
        return ''
    parser = etree.XMLParser(remove_blank_text=True, strip_cdata=False,
                             resolve_entities=False, no_network=True)
    try:
        element = etree.fromstring(raw_xml.encode('utf-8'), parser)
    except etree.XMLSyntaxError:
        return raw_xml
    return etree.tostring(element, encoding='unicode', pretty_print=True).rstrip('\n')


class RulesCatalog:
    """
    Read-only queries over one document.

    The conversion view is memoized by (mode, matching ids), keeping the most
    recently used views only; any other result is recomputed on demand from the
    immutable document.
    """

    def __init__(self, document: ExchangeRulesDocument, builder: Optional[HierarchyBuilder] = None,
                 source_name: str = '', cache_size: int = ViewerDefaults.VIEW_CACHE_SIZE):
        """
        Initialize the catalog.

        Args:
            document: Parsed document
            builder: Hierarchy builder; a default one is created when omitted
            source_name: Display name of the loaded file
            cache_size: Number of conversion views kept in the memo
        """
        self.document = document
        self.builder = builder or HierarchyBuilder()
        self.source_name = source_name
        self.cache_size = max(cache_size, 1)
        self.logger = logging.getLogger(__name__)

        self._conversion_rules: Tuple[ConversionRule, ...] = tuple(flatten_conversion_rules(document))
        self._view_cache: 'OrderedDict[Tuple[HierarchyMode, FrozenSet[str]], List[RuleGroup]]' = OrderedDict()

        self.logger.info(f"Catalog ready for '{document.name}' ({len(self._conversion_rules)} conversion rules)")

    @classmethod
    def from_text(cls, xml_content: str, parser: Optional[ExchangeRulesParser] = None,
                  source_name: str = '', cache_size: int = ViewerDefaults.VIEW_CACHE_SIZE) -> 'RulesCatalog':
        """
        Parse text and wrap the document.

        Raises:
            DocumentLoadError: If the text does not parse
        """
        parser = parser or ExchangeRulesParser()
        result = parser.parse(xml_content)
        if isinstance(result, ParseFailure):
            raise DocumentLoadError(result.message, failure=result, source_record_id=source_name or None)
        return cls(result, source_name=source_name, cache_size=cache_size)

    @classmethod
    def from_file(cls, path: Union[str, Path], parser: Optional[ExchangeRulesParser] = None) -> 'RulesCatalog':
        """
        Read a document from disk (UTF-8, BOM tolerated) and wrap it.

        Raises:
            DocumentLoadError: If the file cannot be read or does not parse
        """
        path = Path(path)
        try:
            xml_content = path.read_text(encoding='utf-8-sig')
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentLoadError(f"Failed to read {path}: {e}", source_record_id=str(path))
        return cls.from_text(xml_content, parser=parser, source_name=path.name)

    @property
    def conversion_rules(self) -> Tuple[ConversionRule, ...]:
        """Every conversion rule in discovery order."""
        return self._conversion_rules

    def categories(self, query: str = '') -> List[CategorySummary]:
        """
        Categories with the number of items matching the query.

        Categories without matches are omitted, except conversion rules while
        the document has any.
        """
        counts = [(CONVERSION_RULES, len(filter_rules(query, self._conversion_rules)))]
        for key, attr_name in _FLAT_CATEGORIES.items():
            counts.append((key, len(filter_rules(query, getattr(self.document, attr_name)))))
        counts.append((GLOBAL_HANDLERS, len(match_global_handlers(query, self.document))))

        return [
            CategorySummary(key=key, title=CATEGORY_TITLES[key], count=count)
            for key, count in counts
            if count > 0 or (key == CONVERSION_RULES and self._conversion_rules)
        ]

    def conversion_view(self, mode: Union[HierarchyMode, str], query: str = '') -> List[RuleGroup]:
        """Conversion rules matching the query, arranged for the mode."""
        if not isinstance(mode, HierarchyMode):
            mode = HierarchyMode.from_value(mode)

        ids = frozenset(rule_ids(filter_rules(query, self._conversion_rules)))
        cache_key = (mode, ids)
        if cache_key in self._view_cache:
            self._view_cache.move_to_end(cache_key)
            self.logger.debug(f"Returning cached {mode.value} view ({len(ids)} rules)")
        else:
            self._view_cache[cache_key] = self.builder.build_view(self.document, mode, ids)
            while len(self._view_cache) > self.cache_size:
                self._view_cache.popitem(last=False)
        return list(self._view_cache[cache_key])

    def list_groups(self, category: str, mode: Union[HierarchyMode, str] = HierarchyMode.STANDARD,
                    query: str = '') -> List[RuleGroup]:
        """
        Groups to list for a category.

        Conversion rules follow the hierarchy mode; other kinds form a single
        group titled by the category, or nothing when no item matches.

        Raises:
            ValueError: If the category has no rule list
        """
        if category == CONVERSION_RULES:
            return self.conversion_view(mode, query)
        if category not in _FLAT_CATEGORIES:
            raise ValueError(f"Category has no rule list: {category!r}")

        matched = filter_rules(query, getattr(self.document, _FLAT_CATEGORIES[category]))
        if not matched:
            return []
        return [RuleGroup(name=CATEGORY_TITLES[category], rules=tuple(matched), path=f"/{category}")]

    def rules(self, category: str, query: str = '') -> List[Rule]:
        """Flat list of a category's rules matching the query."""
        if category == CONVERSION_RULES:
            return filter_rules(query, self._conversion_rules)
        if category not in _FLAT_CATEGORIES:
            raise ValueError(f"Category has no rule list: {category!r}")
        return filter_rules(query, getattr(self.document, _FLAT_CATEGORIES[category]))

    def global_handlers(self, query: str = '') -> List[GlobalHandler]:
        return match_global_handlers(query, self.document)

    def navigate(self, code: str) -> Optional[ConversionRule]:
        """Resolve a referenced conversion rule code; None when it is not found."""
        rule = find_conversion_rule_by_id(self.document, code)
        if rule is None:
            self.logger.info(f"Conversion rule {code!r} not found")
        return rule

    def clear_cache(self) -> None:
        self._view_cache.clear()


def count_rules(groups: Sequence[RuleGroup]) -> int:
    """Total rules across groups and their descendants."""
    return sum(group.rule_count() for group in groups)
