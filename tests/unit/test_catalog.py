"""
Unit tests for RulesCatalog session queries.
"""

import pytest

from exchange_rules.catalog import (
    ALGORITHMS,
    CONVERSION_RULES,
    EXPORT_RULES,
    GLOBAL_HANDLERS,
    PARAMETERS,
    REQUESTS,
    RulesCatalog,
    count_rules,
    format_raw_xml,
)
from exchange_rules.exceptions import DocumentLoadError
from exchange_rules.models import HierarchyMode, ParseFailure
from tests.helpers import SAMPLE_DOCUMENT_PATH, document_xml, load_sample_document, rule_xml


@pytest.fixture
def catalog():
    return RulesCatalog.from_text(load_sample_document(), source_name="sample_exchange_rules.xml")


class TestLoading:
    """Constructing a catalog from text or file."""

    def test_from_file(self):
        catalog = RulesCatalog.from_file(SAMPLE_DOCUMENT_PATH)

        assert catalog.source_name == "sample_exchange_rules.xml"
        assert catalog.document.name == "Торговля - Бухгалтерия"

    def test_from_file_with_bom(self, tmp_path):
        path = tmp_path / "bom.xml"
        path.write_bytes(b"\xef\xbb\xbf" + document_xml([rule_xml("R1")]).encode("utf-8"))

        catalog = RulesCatalog.from_file(path)

        assert [rule.id for rule in catalog.conversion_rules] == ["R1"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(DocumentLoadError) as error:
            RulesCatalog.from_file(tmp_path / "absent.xml")

        assert error.value.failure is None

    def test_malformed_text_carries_parse_failure(self):
        with pytest.raises(DocumentLoadError) as error:
            RulesCatalog.from_text("<ПравилаОбмена>", source_name="broken.xml")

        assert isinstance(error.value.failure, ParseFailure)
        assert error.value.failure.message in str(error.value)

    def test_foreign_root_is_a_load_error(self):
        with pytest.raises(DocumentLoadError):
            RulesCatalog.from_text("<Другое><Правило/></Другое>")


class TestCategories:
    """Category counts with and without a query."""

    def test_counts_without_query(self, catalog):
        counts = {category.key: category.count for category in catalog.categories()}

        assert counts == {
            CONVERSION_RULES: 4,
            EXPORT_RULES: 2,
            ALGORITHMS: 1,
            PARAMETERS: 3,
            REQUESTS: 1,
            GLOBAL_HANDLERS: 2,
        }

    def test_categories_without_matches_are_omitted(self, catalog):
        counts = {category.key: category.count for category in catalog.categories("товар")}

        assert counts == {CONVERSION_RULES: 2, EXPORT_RULES: 1, REQUESTS: 1}

    def test_conversion_category_kept_when_nothing_matches(self, catalog):
        categories = catalog.categories("нет такого текста")

        assert [(category.key, category.count) for category in categories] == [(CONVERSION_RULES, 0)]

    def test_empty_document_lists_nothing(self):
        catalog = RulesCatalog.from_text(document_xml())

        assert catalog.categories() == []


class TestGroups:
    """Group listings per category."""

    def test_conversion_groups_follow_mode(self, catalog):
        standard = catalog.list_groups(CONVERSION_RULES, HierarchyMode.STANDARD)
        flat = catalog.list_groups(CONVERSION_RULES, "flat")

        assert [group.name for group in standard] == ["(ungrouped)", "Справочники", "Документы"]
        assert count_rules(standard) == count_rules(flat) == 4

    def test_conversion_groups_follow_query(self, catalog):
        groups = catalog.list_groups(CONVERSION_RULES, HierarchyMode.STANDARD, "товар")

        assert [group.name for group in groups] == ["Справочники", "Документы"]
        assert count_rules(groups) == 2

    def test_flat_category_is_one_group(self, catalog):
        (group,) = catalog.list_groups(PARAMETERS)

        assert group.name == "Parameters"
        assert group.path == "/parameters"
        assert [rule.id for rule in group.rules] == ["ДатаНачала", "ВыгружатьЦены", "unknown"]

    def test_flat_category_without_matches(self, catalog):
        assert catalog.list_groups(ALGORITHMS, query="нет такого текста") == []

    def test_global_handlers_have_no_group_list(self, catalog):
        with pytest.raises(ValueError):
            catalog.list_groups(GLOBAL_HANDLERS)

    def test_view_is_memoized_per_mode_and_ids(self, catalog):
        first = catalog.conversion_view(HierarchyMode.BY_SOURCE, "товар")
        second = catalog.conversion_view("source", "ТОВАР")

        assert first == second
        assert len(catalog._view_cache) == 1

        first.clear()
        assert catalog.conversion_view(HierarchyMode.BY_SOURCE, "товар") == second

        catalog.clear_cache()
        assert catalog._view_cache == {}

    def test_view_cache_keeps_most_recent_views(self):
        catalog = RulesCatalog.from_text(load_sample_document(), cache_size=2)
        standard_key = (HierarchyMode.STANDARD, frozenset(rule.id for rule in catalog.conversion_rules))

        catalog.conversion_view(HierarchyMode.STANDARD)
        catalog.conversion_view(HierarchyMode.FLAT)
        catalog.conversion_view(HierarchyMode.STANDARD)
        catalog.conversion_view(HierarchyMode.BY_SOURCE)

        assert len(catalog._view_cache) == 2
        assert [mode for mode, _ in catalog._view_cache] == [HierarchyMode.STANDARD, HierarchyMode.BY_SOURCE]
        assert standard_key in catalog._view_cache

    def test_view_cache_stays_bounded_while_typing(self):
        catalog = RulesCatalog.from_text(load_sample_document(), cache_size=3)

        for query in ["т", "то", "тов", "това", "товар", "в", "ва", "вал"]:
            catalog.conversion_view(HierarchyMode.STANDARD, query)

        assert len(catalog._view_cache) <= 3

    def test_rules_by_category(self, catalog):
        assert [rule.id for rule in catalog.rules(EXPORT_RULES, "реализац")] == ["ВыгрузкаРеализаций"]
        assert len(catalog.rules(CONVERSION_RULES)) == 4


class TestNavigation:
    """Following references between rules."""

    def test_navigate_to_referenced_rule(self, catalog):
        rule = catalog.navigate(" ЕдиницыИзмерения ")

        assert rule is not None
        assert rule.name == "Единицы измерения"

    def test_navigate_miss_returns_none(self, catalog, caplog):
        with caplog.at_level("INFO", logger="exchange_rules.catalog"):
            assert catalog.navigate("ВыгрузкаНоменклатуры") is None

        assert "ВыгрузкаНоменклатуры" in caplog.text

    def test_global_handlers(self, catalog):
        assert [handler.key for handler in catalog.global_handlers("начало")] == ["before_export"]


class TestFormatRawXml:
    """Display formatting of verbatim rule source."""

    def test_indents_well_formed_markup(self):
        formatted = format_raw_xml("<Правило><Код>1</Код><Свойства><Свойство/></Свойства></Правило>")

        assert formatted.splitlines() == [
            "<Правило>",
            "  <Код>1</Код>",
            "  <Свойства>",
            "    <Свойство/>",
            "  </Свойства>",
            "</Правило>",
        ]

    def test_keeps_malformed_markup_verbatim(self):
        assert format_raw_xml("<Правило>") == "<Правило>"

    def test_empty(self):
        assert format_raw_xml("") == ""
