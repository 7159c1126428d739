"""
Tests for case- and diacritic-insensitive text helpers
"""
from types import SimpleNamespace

from estate_crm.core.text import (
    contains_normalized,
    equals_normalized,
    normalize_text,
    sort_by_normalized_text,
)


class TestNormalizeText:

    def test_folds_all_romanian_diacritics(self):
        assert normalize_text("ĂÂÎȘȚ ăâîșț") == "aaist aaist"

    def test_lowercases(self):
        assert normalize_text("Brașov CENTRU") == "brasov centru"

    def test_non_strings_become_empty(self):
        assert normalize_text(None) == ""
        assert normalize_text(42) == ""
        assert normalize_text("") == ""


class TestPredicates:

    def test_contains_ignores_accents_both_ways(self):
        assert contains_normalized("Vila Brașov", "brasov") is True
        assert contains_normalized("Vila Brasov", "BRAȘOV") is True
        assert contains_normalized("Vila Brașov", "cluj") is False

    def test_contains_with_missing_text(self):
        assert contains_normalized(None, "x") is False

    def test_equals(self):
        assert equals_normalized("Timișoara", "TIMISOARA") is True
        assert equals_normalized("Iași", "Iasi ") is False


class TestSortByNormalizedText:

    def test_sorts_dicts_ignoring_accents(self):
        items = [{"name": "Țara"}, {"name": "anca"}, {"name": "Ăla"}, {"name": "Bogdan"}]
        result = [item["name"] for item in sort_by_normalized_text(items, "name")]
        assert result == ["Ăla", "anca", "Bogdan", "Țara"]

    def test_sorts_objects_descending_and_missing_fields_first(self):
        items = [SimpleNamespace(name="b"), SimpleNamespace(name=None), SimpleNamespace(name="a")]
        ascending = [item.name for item in sort_by_normalized_text(items, "name")]
        descending = [item.name for item in sort_by_normalized_text(items, "name", ascending=False)]
        assert ascending == [None, "a", "b"]
        assert descending == ["b", "a", None]
