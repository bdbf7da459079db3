"""
Parsing engine for exchange rules documents.

This module turns the text of an exchange rules document into the typed,
immutable domain tree defined in ``exchange_rules.models`` using lxml.
"""

import re
import logging

from typing import Any, Dict, List, Optional, Tuple, Union

from lxml import etree

from ..interfaces import DocumentParserInterface
from ..exceptions import RulesParsingError
from ..config.config_manager import ParserSettings
from ..models import (
    Algorithm,
    ConversionRule,
    ExchangeRulesDocument,
    ExportRule,
    Parameter,
    ParseFailure,
    Request,
    RuleGroup,
)
from .property_reader import count_properties, read_properties
from .xml_helpers import (
    attribute,
    child_elements,
    child_text,
    clean_tag_name,
    first_child,
    iter_descendants,
    serialize,
)

ROOT_ELEMENT = 'ПравилаОбмена'
CONVERSION_RULES = 'ПравилаКонвертацииОбъектов'
EXPORT_RULES = 'ПравилаВыгрузкиДанных'
GROUP = 'Группа'
RULE = 'Правило'

UNGROUPED_GROUP_NAME = '(ungrouped)'
UNKNOWN_ID = 'unknown'

_XML_DECLARATION = re.compile(r'^\s*<\?xml[^>]*\?>')


class ExchangeRulesParser(DocumentParserInterface):
    """
    Parser for the fixed exchange rules schema.

    The whole document is materialized at once: the parser either returns a
    complete ExchangeRulesDocument or reports a failure, never a partial tree.

    Extraction rules:
    - Field values come from direct children of the element being read, trimmed;
      a missing child yields '' and never raises
    - Conversion rules directly under the container form a leading "(ungrouped)"
      group; nested Группа elements are kept only when they hold a rule somewhere
    - Every rule keeps the verbatim XML of its element for raw display
    - Algorithms, requests and parameters are named by attributes and fall back
      to the "unknown" id when the naming attribute is missing

    Features:
    - Hardened lxml parser (no entity resolution, no network access)
    - Optional huge_tree mode for very deep or very large documents
    - Property trees built without recursion
    - Parse statistics for diagnostics
    """

    def __init__(self, settings: Optional[ParserSettings] = None):
        """
        Initialize the parser.

        Args:
            settings: Parser limits; defaults to ParserSettings() when omitted
        """
        self.settings = settings or ParserSettings()
        self.logger = logging.getLogger(__name__)

        # Performance tracking
        self.parse_count = 0
        self.failure_count = 0
        self.rules_extracted = 0
        self.properties_extracted = 0

        self.logger.info(f"ExchangeRulesParser initialized (huge_tree={self.settings.huge_tree})")

    def parse(self, xml_content: str) -> Union[ExchangeRulesDocument, ParseFailure]:
        """
        Parse a document, reporting every fault as a uniform ParseFailure.

        Malformed markup and a missing root element are reported identically;
        the cause is kept in ``detail`` and logged.

        Args:
            xml_content: Raw document text

        Returns:
            The complete document, or ParseFailure
        """
        try:
            return self.parse_document(xml_content)
        except RulesParsingError as e:
            self.failure_count += 1
            self.logger.error(f"Failed to parse exchange rules: {e} (Record ID: {e.source_record_id})")
            return ParseFailure(detail=str(e))

    def parse_document(self, xml_content: str) -> ExchangeRulesDocument:
        """
        Parse a document into the domain tree.

        Args:
            xml_content: Raw document text

        Returns:
            Complete ExchangeRulesDocument

        Raises:
            RulesParsingError: If the text is malformed or lacks the rules root element
        """
        document_root = self.parse_xml_stream(xml_content)
        source_record_id = f"parse_{self.parse_count}"

        root = self._locate_root(document_root)
        if root is None:
            raise RulesParsingError(f"Root element {ROOT_ELEMENT} not found", xml_content, source_record_id)

        try:
            document = self._build_document(root)
        except (etree.LxmlError, ValueError) as e:
            raise RulesParsingError(f"Document extraction failed: {e}", xml_content, source_record_id)

        self.logger.debug(
            f"Parsed '{document.name}': {len(document.conversion_groups)} conversion groups, "
            f"{len(document.export_rules)} export rules, {len(document.algorithms)} algorithms, "
            f"{len(document.parameters)} parameters, {len(document.requests)} requests"
        )
        return document

    def parse_xml_stream(self, xml_content: str):
        """
        Parse raw text into an lxml element tree root.

        Args:
            xml_content: Raw XML content as string

        Returns:
            Parsed XML element tree root

        Raises:
            RulesParsingError: If XML is empty, too large or malformed
        """
        if not xml_content or not xml_content.strip():
            raise RulesParsingError("XML content is empty or None")

        self.parse_count += 1
        source_record_id = f"parse_{self.parse_count}"

        limit = self.settings.max_document_chars
        if limit and len(xml_content) > limit:
            raise RulesParsingError(
                f"Document exceeds {self.settings.max_document_mb}MB limit", None, source_record_id
            )

        cleaned_xml = self._clean_xml_content(xml_content)
        try:
            return etree.fromstring(cleaned_xml.encode('utf-8'), self._create_parser())
        except etree.XMLSyntaxError as e:
            raise RulesParsingError(f"XML syntax error: {e}", xml_content, source_record_id)
        except ValueError as e:
            raise RulesParsingError(f"lxml parsing failed: {e}", xml_content, source_record_id)

    def validate_xml_structure(self, xml_content: str) -> bool:
        """
        Validate that content is well-formed and carries the rules root element.

        Args:
            xml_content: Raw XML content to validate

        Returns:
            True if XML is valid, False otherwise
        """
        if not xml_content or not xml_content.strip():
            self.logger.warning("XML content is empty")
            return False

        try:
            root = self._locate_root(self.parse_xml_stream(xml_content))
        except RulesParsingError as e:
            self.logger.warning(f"XML well-formedness validation failed: {e}")
            return False

        if root is None:
            self.logger.warning(f"XML doesn't contain <{ROOT_ELEMENT}> root element")
            return False
        return True

    def _create_parser(self) -> etree.XMLParser:
        return etree.XMLParser(
            recover=False,  # Malformed markup must fail, not yield a partial tree
            strip_cdata=False,  # Preserve CDATA sections
            resolve_entities=False,  # Security: don't resolve external entities
            no_network=True,  # Security: disable network access
            huge_tree=self.settings.huge_tree
        )

    def _clean_xml_content(self, xml_content: str) -> str:
        """
        Clean and normalize XML content for parsing.

        The text is already decoded, so any XML declaration is dropped: its
        encoding no longer applies once the text is re-encoded as UTF-8.

        Args:
            xml_content: Raw XML content

        Returns:
            Cleaned XML content
        """
        # Remove BOM if present
        if xml_content.startswith('\ufeff'):
            xml_content = xml_content[1:]
            self.logger.debug("Removed UTF-8 BOM from XML content")

        # Handle BOM that might appear as visible characters (like ï»¿)
        if xml_content.startswith('ï»¿'):
            xml_content = xml_content[3:]
            self.logger.debug("Removed visible UTF-8 BOM characters from XML content")

        # Remove other common hidden characters at the beginning
        while xml_content and ord(xml_content[0]) < 32 and xml_content[0] not in '\t\n\r':
            xml_content = xml_content[1:]
            self.logger.debug("Removed hidden leading character")

        xml_content = _XML_DECLARATION.sub('', xml_content, count=1)

        # Normalize line endings
        xml_content = xml_content.replace('\r\n', '\n').replace('\r', '\n')

        return xml_content.strip()

    def _locate_root(self, document_root):
        """The rules root: the document element itself or its first matching descendant."""
        if clean_tag_name(document_root.tag) == ROOT_ELEMENT:
            return document_root
        return next(iter_descendants(document_root, ROOT_ELEMENT), None)

    def _build_document(self, root) -> ExchangeRulesDocument:
        return ExchangeRulesDocument(
            name=child_text(root, 'Наименование'),
            source_system_label=attribute(first_child(root, 'Источник'), 'СинонимКонфигурации'),
            receiver_system_label=attribute(first_child(root, 'Приемник'), 'СинонимКонфигурации'),
            global_before_export_handler=child_text(root, 'ПередВыгрузкойДанных'),
            global_after_load_handler=child_text(root, 'ПослеЗагрузкиДанных'),
            conversion_groups=self._parse_conversion_rules(first_child(root, CONVERSION_RULES)),
            export_rules=self._parse_export_rules(first_child(root, EXPORT_RULES)),
            algorithms=tuple(self._parse_scripts(root, 'Алгоритмы', 'Алгоритм', Algorithm, 'Unknown Algorithm')),
            parameters=tuple(self._parse_parameters(first_child(root, 'Параметры'))),
            requests=tuple(self._parse_scripts(root, 'Запросы', 'Запрос', Request, 'Unknown Request')),
        )

    def _parse_conversion_rules(self, container) -> Tuple[RuleGroup, ...]:
        if container is None:
            return ()

        groups = self._parse_groups(container)
        ungrouped = tuple(self._parse_conversion_rule(el) for el in child_elements(container, RULE))
        if ungrouped:
            groups.insert(0, RuleGroup(name=UNGROUPED_GROUP_NAME, rules=ungrouped))
        return tuple(groups)

    def _parse_groups(self, element) -> List[RuleGroup]:
        """
        Nested Группа elements of element, dropping those without any rule.

        Group nesting is unbounded, so the walk uses a work stack: a pre-order
        pass records each group element with its parent, then a reverse pass
        builds the groups children-first.
        """
        nodes = []  # (group element, parent index) in pre-order
        stack = [(group_el, -1) for group_el in reversed(child_elements(element, GROUP))]
        while stack:
            group_el, parent = stack.pop()
            index = len(nodes)
            nodes.append((group_el, parent))
            stack.extend((child, index) for child in reversed(child_elements(group_el, GROUP)))

        pending_sub_groups: List[List[RuleGroup]] = [[] for _ in nodes]
        top_level: List[RuleGroup] = []
        for index in range(len(nodes) - 1, -1, -1):
            group_el, parent = nodes[index]
            group = RuleGroup(
                name=child_text(group_el, 'Наименование'),
                rules=tuple(self._parse_conversion_rule(el) for el in child_elements(group_el, RULE)),
                sub_groups=tuple(reversed(pending_sub_groups[index])),
            )
            if not group.is_empty:
                (pending_sub_groups[parent] if parent >= 0 else top_level).append(group)

        return list(reversed(top_level))

    def _parse_conversion_rule(self, element) -> ConversionRule:
        raw_xml = serialize(element)
        properties = read_properties(first_child(element, 'Свойства'))

        self.rules_extracted += 1
        self.properties_extracted += count_properties(properties)

        return ConversionRule(
            id=child_text(element, 'Код'),
            name=child_text(element, 'Наименование'),
            raw_xml=raw_xml,
            source=child_text(element, 'Источник'),
            receiver=child_text(element, 'Приемник'),
            on_load=child_text(element, 'ПриЗагрузке'),
            after_load=child_text(element, 'ПослеЗагрузки'),
            before_convert=child_text(element, 'ПередКонвертациейОбъекта'),
            after_load_params=child_text(element, 'ПослеЗагрузкиПараметров'),
            properties=properties,
        )

    def _parse_export_rules(self, container) -> Tuple[ExportRule, ...]:
        rules = []
        for element in iter_descendants(container, RULE):
            self.rules_extracted += 1
            rules.append(ExportRule(
                id=child_text(element, 'Код'),
                name=child_text(element, 'Наименование'),
                raw_xml=serialize(element),
                conversion_rule_code=child_text(element, 'КодПравилаКонвертации'),
                data_selection_method=child_text(element, 'СпособОтбораДанных'),
                before_rule_processing=(child_text(element, 'ПередОбработкойПравила')
                                        or child_text(element, 'ПередВыгрузкойОбъекта')),
            ))
        return tuple(rules)

    def _parse_scripts(self, root, container_name: str, item_name: str, rule_class, unknown_name: str):
        """Algorithms and requests: named by the Имя attribute, text in the Текст child."""
        for element in iter_descendants(first_child(root, container_name), item_name):
            self.rules_extracted += 1
            item_id = attribute(element, 'Имя')
            yield rule_class(
                id=item_id or UNKNOWN_ID,
                name=item_id or unknown_name,
                raw_xml=serialize(element),
                code=child_text(element, 'Текст'),
            )

    def _parse_parameters(self, container):
        for element in iter_descendants(container, 'Параметр'):
            self.rules_extracted += 1
            yield Parameter(
                id=attribute(element, 'Имя').strip() or UNKNOWN_ID,
                name=attribute(element, 'Наименование') or 'Unknown Parameter',
                raw_xml=serialize(element),
                source=attribute(element, 'ТипЗначения'),
            )

    def get_performance_stats(self) -> Dict[str, Any]:
        """
        Get parser performance statistics.

        Returns:
            Dictionary containing performance metrics
        """
        return {
            'parse_count': self.parse_count,
            'failure_count': self.failure_count,
            'rules_extracted': self.rules_extracted,
            'properties_extracted': self.properties_extracted,
            'huge_tree': self.settings.huge_tree
        }

    def reset_stats(self) -> None:
        """Reset performance statistics."""
        self.parse_count = 0
        self.failure_count = 0
        self.rules_extracted = 0
        self.properties_extracted = 0


_default_parser: Optional[ExchangeRulesParser] = None


def parse(xml_content: str) -> Union[ExchangeRulesDocument, ParseFailure]:
    """
    Parse a document with a shared default parser.

    Args:
        xml_content: Raw document text

    Returns:
        The complete document, or ParseFailure
    """
    global _default_parser

    if _default_parser is None:
        _default_parser = ExchangeRulesParser()
    return _default_parser.parse(xml_content)
