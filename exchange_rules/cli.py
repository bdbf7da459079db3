"""
Command-line interface for the exchange rules viewer.

This module provides the main entry point for inspecting an exchange rules
document from the command line: category counts, conversion rule hierarchies,
rule lookup by code and document-level handlers.
"""

import sys
import argparse
import logging

from typing import List, Optional

from .catalog import CONVERSION_RULES, RulesCatalog, count_rules, format_raw_xml
from .config.config_manager import get_config_manager
from .config.viewer_defaults import ViewerDefaults
from .exceptions import ConfigurationError, DocumentLoadError
from .models import ConversionRule, HierarchyMode, RuleGroup
from .navigation.cross_reference import find_export_rules_for, not_found_message
from .parsing.rules_parser import ExchangeRulesParser

EXIT_OK = 0
EXIT_LOAD_FAILED = 1
EXIT_NOT_FOUND = 2


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="exchange-rules", description="Exchange rules document viewer")
    parser.add_argument("--log-level", default=None, choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
                        help=f"Logging level (default: {ViewerDefaults.LOG_LEVEL})")
    subparsers = parser.add_subparsers(dest="command", required=True)

    summary = subparsers.add_parser("summary", help="Document header and category counts")
    summary.add_argument("file", nargs="?", help="Exchange rules document (default: configured document path)")
    summary.add_argument("--filter", default="", help="Free-text filter")

    tree = subparsers.add_parser("tree", help="Conversion rule hierarchy")
    tree.add_argument("file", nargs="?", help="Exchange rules document (default: configured document path)")
    tree.add_argument("--mode", choices=[mode.value for mode in HierarchyMode], default=None,
                      help=f"Hierarchy mode (default: {ViewerDefaults.DEFAULT_MODE})")
    tree.add_argument("--filter", default="", help="Free-text filter")

    find = subparsers.add_parser("find", help="Show the conversion rule with the given code")
    find.add_argument("file", nargs="?", help="Exchange rules document (default: configured document path)")
    find.add_argument("code", help="Conversion rule code")
    find.add_argument("--raw", action="store_true", help="Also print the rule's formatted XML source")

    handlers = subparsers.add_parser("handlers", help="Document-level handlers")
    handlers.add_argument("file", nargs="?", help="Exchange rules document (default: configured document path)")
    handlers.add_argument("--filter", default="", help="Free-text filter")

    return parser


def _configure_logging(level: int) -> None:
    # Set up logging without reconfiguring root if already configured
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        root_logger.addHandler(handler)
        root_logger.setLevel(level)


def _print_groups(groups: List[RuleGroup]) -> None:
    stack = [(group, 0) for group in reversed(groups)]
    while stack:
        group, level = stack.pop()
        indent = "  " * level
        print(f"{indent}[{group.name}] ({group.rule_count()})")
        for rule in group.rules:
            print(f"{indent}  - {rule.id}: {rule.name}")
        stack.extend((sub, level + 1) for sub in reversed(group.sub_groups))


def _print_properties(properties) -> None:
    stack = [(prop, 1) for prop in reversed(properties)]
    while stack:
        prop, level = stack.pop()
        indent = "  " * level
        flags = []
        if prop.is_search_field:
            flags.append("search")
        if prop.obtained_from_incoming_data:
            flags.append("incoming")
        if prop.handler_code:
            flags.append("handler")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        if prop.is_grouping_node:
            print(f"{indent}{prop.name or prop.code}{suffix}")
        else:
            rule_ref = f" via {prop.conversion_rule_code}" if prop.conversion_rule_code else ""
            print(f"{indent}{prop.source or '-'} -> {prop.receiver or '-'}{rule_ref}{suffix}")
        stack.extend((child, level + 1) for child in reversed(prop.children))


def _print_rule(catalog: RulesCatalog, rule: ConversionRule, show_raw: bool) -> None:
    print("=" * 80)
    print(f" {rule.name}  #{rule.id}")
    print("=" * 80)
    print(f" Source:   {rule.source or '-'}")
    print(f" Receiver: {rule.receiver or '-'}")
    for title, code in (("On load", rule.on_load), ("After load", rule.after_load),
                        ("Before convert", rule.before_convert), ("After load params", rule.after_load_params)):
        if code:
            print(f" {title} handler: {len(code.splitlines())} lines")
    if rule.properties:
        print(" Properties:")
        _print_properties(rule.properties)
    export_rules = find_export_rules_for(catalog.document, rule.id)
    if export_rules:
        print(" Referenced by export rules:")
        for export_rule in export_rules:
            print(f"  - {export_rule.id}: {export_rule.name}")
    if show_raw:
        print()
        print(format_raw_xml(rule.raw_xml))


def main(args: Optional[list] = None) -> int:
    """
    Main entry point for the CLI application.

    Args:
        args: Optional command line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, 1 for load or configuration failure, 2 when a rule is not found)
    """
    if args is None:
        args = sys.argv[1:]

    options = _build_argument_parser().parse_args(args)

    try:
        config_manager = get_config_manager()
    except ConfigurationError as e:
        print(f" Configuration error: {e}")
        return EXIT_LOAD_FAILED

    _configure_logging(getattr(logging, options.log_level) if options.log_level else config_manager.get_log_level())
    logger = logging.getLogger(__name__)
    logger.debug(f"Viewer defaults: {ViewerDefaults.to_dict()}")
    logger.debug(f"Configuration: {config_manager.get_configuration_summary()}")
    document_path = None

    try:
        if options.command == "tree":
            mode = HierarchyMode.from_value(options.mode) if options.mode else config_manager.get_default_mode()
        document_path = config_manager.resolve_document_path(options.file)
        parser = ExchangeRulesParser(config_manager.parser_settings)
        catalog = RulesCatalog.from_file(document_path, parser=parser)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        print(f" Configuration error: {e}")
        return EXIT_LOAD_FAILED
    except DocumentLoadError as e:
        if e.failure is not None:
            logger.error(f"Parse failure for {document_path}: {e.failure.detail}")
        print(f" {e}")
        return EXIT_LOAD_FAILED

    document = catalog.document

    if options.command == "summary":
        print("=" * 80)
        print(f" {document.name or catalog.source_name}")
        print("=" * 80)
        print(f" Source system:   {document.source_system_label or '-'}")
        print(f" Receiver system: {document.receiver_system_label or '-'}")
        for category in catalog.categories(options.filter):
            print(f"  {category.title:<20} {category.count}")
        return EXIT_OK

    if options.command == "tree":
        groups = catalog.list_groups(CONVERSION_RULES, mode, options.filter)
        print(f" {mode.value} view: {count_rules(groups)} conversion rules")
        _print_groups(groups)
        return EXIT_OK

    if options.command == "find":
        rule = catalog.navigate(options.code)
        if rule is None:
            print(f" {not_found_message(options.code)}")
            return EXIT_NOT_FOUND
        _print_rule(catalog, rule, options.raw)
        return EXIT_OK

    for handler in catalog.global_handlers(options.filter):
        print("=" * 80)
        print(f" {handler.title}")
        print("=" * 80)
        print(handler.code)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
