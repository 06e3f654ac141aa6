"""Unit tests for sorting, pagination and relevance bucketing."""

import pytest

from selfhub.core.enums import Relevance, SortField, SortOrder
from selfhub.retrieval.query import paginate, relevance_for, sort_memories


class TestSortMemories:
    def test_default_is_created_desc(self, memory_factory):
        old, new = memory_factory("old", age_days=3), memory_factory("new", age_days=1)
        assert [m.id for m in sort_memories([old, new])] == ["new", "old"]

    def test_created_asc(self, memory_factory):
        old, new = memory_factory("old", age_days=3), memory_factory("new", age_days=1)
        out = sort_memories([new, old], SortField.CREATED_AT, SortOrder.ASC)
        assert [m.id for m in out] == ["old", "new"]

    def test_importance_numeric(self, memory_factory):
        ms = [
            memory_factory("a", metadata={"importance": 2}),
            memory_factory("b", metadata={"importance": 5}),
            memory_factory("c", metadata={"importance": 3}),
        ]
        out = sort_memories(ms, SortField.IMPORTANCE, SortOrder.DESC)
        assert [m.id for m in out] == ["b", "c", "a"]

    def test_access_count_accepts_string_keys(self, memory_factory):
        ms = [
            memory_factory("a", metadata={"access_count": 10}),
            memory_factory("b", metadata={"access_count": 2}),
        ]
        out = sort_memories(ms, "accessCount", "asc")
        assert [m.id for m in out] == ["b", "a"]

    def test_ties_keep_incoming_order(self, memory_factory):
        ms = [memory_factory(i, metadata={"importance": 3}) for i in ("x", "y", "z")]
        for order in (SortOrder.ASC, SortOrder.DESC):
            out = sort_memories(ms, SortField.IMPORTANCE, order)
            assert [m.id for m in out] == ["x", "y", "z"]

    def test_updated_at(self, memory_factory):
        a = memory_factory("a", age_days=5)
        b = memory_factory("b", age_days=1)
        out = sort_memories([a, b], SortField.UPDATED_AT, SortOrder.DESC)
        assert [m.id for m in out] == ["b", "a"]


class TestPaginate:
    def test_total_is_pre_pagination(self):
        page, total = paginate(list(range(10)), offset=2, limit=3)
        assert page == [2, 3, 4]
        assert total == 10

    def test_offset_past_end_is_empty(self):
        page, total = paginate([1, 2, 3], offset=5, limit=10)
        assert page == []
        assert total == 3

    def test_limit_larger_than_count(self):
        page, total = paginate([1, 2], offset=0, limit=50)
        assert page == [1, 2]
        assert total == 2

    def test_negative_values_rejected(self):
        with pytest.raises(ValueError):
            paginate([1], offset=-1, limit=1)


class TestRelevance:
    @pytest.mark.parametrize(
        "importance,expected",
        [
            (5, Relevance.HIGH),
            (4, Relevance.HIGH),
            (3, Relevance.MEDIUM),
            (2, Relevance.LOW),
            (1, Relevance.LOW),
        ],
    )
    def test_bucketed_by_importance(self, memory_factory, importance, expected):
        m = memory_factory("m", metadata={"importance": importance})
        assert relevance_for(m) == expected
