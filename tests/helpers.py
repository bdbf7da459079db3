"""Test helpers for building small exchange rules documents.

Tests describe only the fragments they care about; these builders wrap them
in the surrounding document structure.
"""
from pathlib import Path
from typing import Iterable


SAMPLE_DOCUMENT_PATH = Path(__file__).resolve().parent.parent / "config" / "samples" / "sample_exchange_rules.xml"


def rule_xml(code: str, name: str = "", source: str = "", receiver: str = "", properties: str = "",
             extra: str = "") -> str:
    """Markup of one conversion rule."""
    return (
        f"<Правило><Код>{code}</Код><Наименование>{name or code}</Наименование>"
        f"<Источник>{source}</Источник><Приемник>{receiver}</Приемник>{extra}"
        f"<Свойства>{properties}</Свойства></Правило>"
    )


def group_xml(name: str, *children: str) -> str:
    """Markup of a rule group holding rules and nested groups."""
    return f"<Группа><Наименование>{name}</Наименование>{''.join(children)}</Группа>"


def document_xml(conversion_rules: Iterable[str] = (), export_rules: str = "", tail: str = "",
                 name: str = "Тестовые правила") -> str:
    """Complete exchange rules document around the given fragments."""
    return (
        "<ПравилаОбмена>"
        f"<Наименование>{name}</Наименование>"
        '<Источник СинонимКонфигурации="Источник А">А</Источник>'
        '<Приемник СинонимКонфигурации="Приемник Б">Б</Приемник>'
        f"<ПравилаКонвертацииОбъектов>{''.join(conversion_rules)}</ПравилаКонвертацииОбъектов>"
        f"<ПравилаВыгрузкиДанных>{export_rules}</ПравилаВыгрузкиДанных>"
        f"{tail}"
        "</ПравилаОбмена>"
    )


def load_sample_document() -> str:
    return SAMPLE_DOCUMENT_PATH.read_text(encoding="utf-8")
