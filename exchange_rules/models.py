"""
Core data models for the exchange rules viewer.

This module defines the read-only domain tree produced by the document parser
(properties, rules of every kind, rule groups and the document itself) along
with the enumerations used to request derived views.

Everything here is immutable: the parser builds a document once, and every
filtered or regrouped view is a fresh projection built from these objects.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional, Tuple


class RuleKind(Enum):
    """Closed set of rule kinds found in an exchange rules document."""
    CONVERSION_RULE = "conversion_rule"
    EXPORT_RULE = "export_rule"
    ALGORITHM = "algorithm"
    REQUEST = "request"
    PARAMETER = "parameter"


class HierarchyMode(Enum):
    """Strategies for presenting conversion rules as a tree."""
    STANDARD = "standard"
    BY_SOURCE = "source"
    BY_RECEIVER = "receiver"
    FLAT = "flat"

    @classmethod
    def from_value(cls, value: str) -> 'HierarchyMode':
        """
        Resolve a mode from its value or member name (case-insensitive).

        Raises:
            ValueError: If the value names no mode
        """
        normalized = (value or '').strip().lower()
        for mode in cls:
            if normalized in (mode.value, mode.name.lower()):
                return mode
        raise ValueError(f"Unknown hierarchy mode: {value!r}")


@dataclass(frozen=True)
class Property:
    """
    A field-level mapping within a conversion rule.

    Attributes:
        name: Display name of the property
        source: Source field text or referenced identifier
        source_kind: Optional classifier of the source (attribute, tabular section, ...)
        receiver: Receiver field text or referenced identifier
        receiver_kind: Optional classifier of the receiver
        conversion_rule_code: Optional code of the conversion rule applied to the value
        code: Local identifier, unique only among its siblings
        is_search_field: Whether the property takes part in object lookup
        obtained_from_incoming_data: Whether the value is taken from incoming data
        handler_code: Optional embedded handler script
        children: Nested properties; a node with children and no source, receiver
            or handler is a pure grouping node
    """
    name: str = ""
    source: str = ""
    source_kind: Optional[str] = None
    receiver: str = ""
    receiver_kind: Optional[str] = None
    conversion_rule_code: Optional[str] = None
    code: str = ""
    is_search_field: bool = False
    obtained_from_incoming_data: bool = False
    handler_code: Optional[str] = None
    children: Tuple['Property', ...] = ()

    @property
    def is_grouping_node(self) -> bool:
        """True when the property only groups nested properties."""
        return bool(self.children) and not (self.source or self.receiver or self.handler_code)


@dataclass(frozen=True)
class Rule:
    """
    Base class of every rule kind.

    Attributes:
        id: Identifier, unique only within the collection of its own kind
        name: Display name
        raw_xml: Verbatim serialized form of the originating element
    """
    kind: ClassVar[RuleKind]

    id: str
    name: str = ""
    raw_xml: str = ""


@dataclass(frozen=True)
class ConversionRule(Rule):
    """Maps a source-system object type onto a receiver-system object type."""
    kind: ClassVar[RuleKind] = RuleKind.CONVERSION_RULE

    source: str = ""
    receiver: str = ""
    on_load: str = ""
    after_load: str = ""
    before_convert: str = ""
    after_load_params: str = ""
    properties: Tuple[Property, ...] = ()


@dataclass(frozen=True)
class ExportRule(Rule):
    """Data selection criteria referencing a conversion rule by code."""
    kind: ClassVar[RuleKind] = RuleKind.EXPORT_RULE

    conversion_rule_code: str = ""
    data_selection_method: str = ""
    before_rule_processing: str = ""


@dataclass(frozen=True)
class Algorithm(Rule):
    """Named script shared by the handlers of the document."""
    kind: ClassVar[RuleKind] = RuleKind.ALGORITHM

    code: str = ""


@dataclass(frozen=True)
class Request(Rule):
    """Named query text."""
    kind: ClassVar[RuleKind] = RuleKind.REQUEST

    code: str = ""


@dataclass(frozen=True)
class Parameter(Rule):
    """Exchange parameter; its value type occupies the generic source slot."""
    kind: ClassVar[RuleKind] = RuleKind.PARAMETER

    source: str = ""

    @property
    def value_type(self) -> str:
        return self.source


@dataclass(frozen=True)
class RuleGroup:
    """
    A named node of a rule hierarchy.

    Attributes:
        name: Group name
        rules: Rules placed directly in this group
        sub_groups: Nested groups
        path: Parent path + "/" + name; a best-effort handle for collapse state,
            not a primary key
    """
    name: str
    rules: Tuple[Rule, ...] = ()
    sub_groups: Tuple['RuleGroup', ...] = ()
    path: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.rules and not self.sub_groups

    def rule_count(self) -> int:
        """Count rules in this group and all nested groups."""
        count = 0
        stack = [self]
        while stack:
            group = stack.pop()
            count += len(group.rules)
            stack.extend(group.sub_groups)
        return count


@dataclass(frozen=True)
class ExchangeRulesDocument:
    """
    Complete parsed exchange rules document.

    Attributes:
        name: Document name
        source_system_label: Configuration synonym of the source system
        receiver_system_label: Configuration synonym of the receiver system
        global_before_export_handler: Document-level script run before export
        global_after_load_handler: Document-level script run after load
        conversion_groups: Conversion rules in their declared nesting; ungrouped
            rules come first in a synthetic group
        export_rules: Flat list of export rules
        algorithms: Flat list of algorithms
        parameters: Flat list of parameters
        requests: Flat list of requests
    """
    name: str = ""
    source_system_label: str = ""
    receiver_system_label: str = ""
    global_before_export_handler: str = ""
    global_after_load_handler: str = ""
    conversion_groups: Tuple[RuleGroup, ...] = ()
    export_rules: Tuple[ExportRule, ...] = ()
    algorithms: Tuple[Algorithm, ...] = ()
    parameters: Tuple[Parameter, ...] = ()
    requests: Tuple[Request, ...] = ()


@dataclass(frozen=True)
class ParseFailure:
    """
    Uniform outcome of a failed parse.

    Malformed markup and a missing root element are reported identically;
    ``detail`` keeps the underlying cause for logs only.
    """
    message: str = ("Failed to parse XML data. The structure might be invalid "
                    "or the file is not a valid rules exchange file.")
    detail: str = ""

    def __bool__(self) -> bool:
        return False
