"""
Abstract interfaces for the exchange rules viewer.

This module defines the contracts that the parser, the hierarchy builder and
the configuration manager implement, so that a presentation layer can depend
on the contracts rather than on concrete classes.
"""

from abc import ABC, abstractmethod
from typing import AbstractSet, List, Union

from .models import ExchangeRulesDocument, HierarchyMode, ParseFailure, RuleGroup


class DocumentParserInterface(ABC):
    """Abstract interface for exchange rules document parsers."""

    @abstractmethod
    def parse(self, xml_content: str) -> Union[ExchangeRulesDocument, ParseFailure]:
        """
        Parse raw document text into the domain tree.

        Args:
            xml_content: Raw XML content as string

        Returns:
            The parsed document, or a ParseFailure; never raises for bad input
        """
        pass

    @abstractmethod
    def validate_xml_structure(self, xml_content: str) -> bool:
        """
        Validate XML structure before processing.

        Args:
            xml_content: Raw XML content to validate

        Returns:
            True if the content is well-formed and carries the rules root element
        """
        pass


class HierarchyBuilderInterface(ABC):
    """Abstract interface for components deriving rule hierarchies."""

    @abstractmethod
    def build_view(self, document: ExchangeRulesDocument, mode: HierarchyMode,
                   filtered_rule_ids: AbstractSet[str]) -> List[RuleGroup]:
        """
        Build a conversion rule hierarchy.

        Args:
            document: Parsed document
            mode: Hierarchy mode
            filtered_rule_ids: Ids of the conversion rules to keep

        Returns:
            Freshly built groups with paths assigned; empty groups are pruned
        """
        pass


class ConfigurationManagerInterface(ABC):
    """Abstract interface for configuration management."""

    @abstractmethod
    def validate_configuration(self) -> bool:
        """
        Validate all configuration settings.

        Raises:
            ConfigurationError: If any configuration is invalid
        """
        pass

    @abstractmethod
    def get_configuration_summary(self) -> dict:
        """Return a nested dictionary describing the active configuration."""
        pass
