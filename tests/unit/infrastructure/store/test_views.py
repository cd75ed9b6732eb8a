"""Tests for index specs and key collation."""

import pytest

from highlighter.infrastructure.store.views import (
    DESIGN_VIEWS,
    MATCH_DATE_VIEW_SPEC,
    SUM_VIEW_SPEC,
    ViewSpec,
    collate,
    is_design_id,
    key_head,
    reduce_values,
)


class TestViewSpecEmit:
    def test_match_date_view_emits_match_and_date(self) -> None:
        doc = {"verb": "create", "match": "example.com/", "date": 5}

        assert MATCH_DATE_VIEW_SPEC.emit(doc) == (["example.com/", 5], None)

    def test_match_date_view_emits_for_both_verbs(self) -> None:
        doc = {"verb": "delete", "match": "example.com/", "date": 7}

        assert MATCH_DATE_VIEW_SPEC.emit(doc) == (["example.com/", 7], None)

    def test_documents_without_match_emit_nothing(self) -> None:
        assert MATCH_DATE_VIEW_SPEC.emit({"verb": "create", "date": 5}) is None
        assert SUM_VIEW_SPEC.emit({"verb": "create", "match": ""}) is None

    def test_sum_view_values_by_verb(self) -> None:
        assert SUM_VIEW_SPEC.emit({"verb": "create", "match": "m"}) == ("m", 1)
        assert SUM_VIEW_SPEC.emit({"verb": "delete", "match": "m"}) == ("m", -1)

    def test_sum_view_ignores_unknown_verbs(self) -> None:
        assert SUM_VIEW_SPEC.emit({"verb": "update", "match": "m"}) is None
        assert SUM_VIEW_SPEC.emit({"match": "m"}) is None


class TestDesignDocuments:
    def test_round_trip_through_design_document(self) -> None:
        for spec in DESIGN_VIEWS:
            doc = spec.to_design_document()

            assert doc["_id"] == f"_design/{spec.name}"
            assert ViewSpec.from_design_document(doc) == [spec]

    def test_design_document_is_plain_data(self) -> None:
        doc = SUM_VIEW_SPEC.to_design_document()

        assert doc["views"]["sum_view"] == {
            "key": ["match"],
            "require": ["match"],
            "value": {"field": "verb", "mapping": {"create": 1, "delete": -1}},
            "reduce": "_sum",
        }

    def test_is_design_id(self) -> None:
        assert is_design_id("_design/sum_view")
        assert not is_design_id("_designer")
        assert not is_design_id("3f1c")


class TestCollate:
    def test_type_order(self) -> None:
        keys = [{}, ["a"], "a", 1, True, False, None]

        assert sorted(keys, key=collate) == [None, False, True, 1, "a", ["a"], {}]

    def test_array_prefix_sorts_first(self) -> None:
        keys = [["m", {}], ["m", 3], ["m"], ["l", 99], ["n"]]

        assert sorted(keys, key=collate) == [["l", 99], ["m"], ["m", 3], ["m", {}], ["n"]]

    def test_numbers_compare_numerically(self) -> None:
        assert collate(2) < collate(10)
        assert collate(1.5) < collate(2)

    def test_rejects_unsupported_types(self) -> None:
        with pytest.raises(TypeError):
            collate(object())


def test_key_head() -> None:
    assert key_head("m") == "m"
    assert key_head(["m", 1]) == "m"
    assert key_head([1, "m"]) is None
    assert key_head(None) is None


def test_reduce_values() -> None:
    assert reduce_values("_sum", [1, 1, -1]) == 1
    assert reduce_values("_count", [None, None]) == 2
    with pytest.raises(ValueError):
        reduce_values("_stats", [1])
