"""End-to-end use-cases through the SelfHub facade, on every backend."""

import asyncio

import pytest

from selfhub.core.config import Settings, StorageSettings
from selfhub.core.enums import AccessLevel, DataCategory, MemoryType, Relevance
from selfhub.core.exceptions import ContextNotFoundError, ValidationError
from selfhub.memory.hub import SelfHub


class TestStoreAndRetrieve:
    async def test_defaults_applied(self, hub):
        m = await hub.store_memory({"content": "Use dark mode", "category": "personal"})
        assert m.id.startswith("mem_")
        assert m.category == DataCategory.PERSONAL
        assert m.type == MemoryType.LONG_TERM
        assert m.metadata.importance == 3
        assert m.metadata.access_count == 0
        assert m.privacy.access_level == AccessLevel.PRIVATE
        assert m.relations is None

    async def test_retrieve_equals_stored_except_access(self, hub):
        m = await hub.store_memory(
            {
                "content": "Always use TypeScript",
                "type": "long-term",
                "category": "professional",
                "metadata": {"title": "Standard", "tags": ["typescript"], "importance": 5},
                "encrypt": True,
            }
        )
        got = await hub.retrieve_memory(m.id)
        assert got.content == m.content
        assert got.category == m.category
        assert got.metadata.title == "Standard"
        assert got.metadata.tags == ["typescript"]
        assert got.metadata.importance == 5
        assert got.metadata.created_at == m.metadata.created_at
        assert got.privacy.encrypted is True
        assert got.metadata.access_count == 1

    async def test_access_count_increments_by_one_per_read(self, hub):
        m = await hub.store_memory({"content": "x"})
        counts = [(await hub.retrieve_memory(m.id)).metadata.access_count for _ in range(3)]
        assert counts == [1, 2, 3]

    async def test_retrieve_missing(self, hub):
        assert await hub.retrieve_memory("mem_missing") is None

    async def test_invalid_input_rejected_before_persistence(self, hub):
        with pytest.raises(ValidationError):
            await hub.store_memory({"content": "x", "metadata": {"importance": 7}})
        with pytest.raises(ValidationError):
            await hub.store_memory({"content": "x" * 50_001})
        assert (await hub.list_memories()).total == 0


class TestUpdateDelete:
    async def test_update_refreshes_updated_at(self, hub):
        m = await hub.store_memory({"content": "v1", "metadata": {"tags": ["a"]}})
        await asyncio.sleep(0.001)
        out = await hub.update_memory(
            {"id": m.id, "content": "v2", "metadata": {"importance": 4}, "accessLevel": "shared"}
        )
        assert out.content == "v2"
        assert out.metadata.importance == 4
        assert out.metadata.tags == ["a"]
        assert out.privacy.access_level == AccessLevel.SHARED
        assert out.metadata.updated_at > m.metadata.updated_at

    async def test_update_with_null_tags_keeps_existing(self, hub):
        m = await hub.store_memory({"content": "x", "metadata": {"tags": ["a"], "importance": 4}})
        out = await hub.update_memory(
            {"id": m.id, "metadata": {"tags": None, "importance": None, "title": "t"}}
        )
        assert out.metadata.tags == ["a"]
        assert out.metadata.importance == 4
        assert out.metadata.title == "t"

    async def test_update_missing_returns_none(self, hub):
        assert await hub.update_memory({"id": "mem_missing", "content": "x"}) is None

    async def test_delete_missing_is_false(self, hub):
        assert await hub.delete_memory("mem_missing") is False

    async def test_delete_does_not_cascade_by_default(self, hub):
        ctx = await hub.create_context({"name": "Work", "type": "project"})
        m = await hub.store_memory({"content": "x", "contextId": ctx.id})
        assert await hub.delete_memory(m.id) is True
        assert (await hub.get_context(ctx.id)).memory_ids == [m.id]
        assert await hub.get_context_memories(ctx.id) == []


class TestListing:
    async def test_limit_and_total(self, hub):
        for i in range(7):
            await hub.store_memory({"content": f"memory {i}"})
        page = await hub.list_memories({"limit": 5})
        assert len(page.memories) == 5
        assert page.total == 7
        page = await hub.list_memories({"limit": 50})
        assert len(page.memories) == 7

    async def test_offset_past_end(self, hub):
        await hub.store_memory({"content": "x"})
        page = await hub.list_memories({"offset": 10})
        assert page.memories == []
        assert page.total == 1

    async def test_sort_by_importance(self, hub):
        for importance in (2, 5, 3):
            await hub.store_memory({"content": "x", "metadata": {"importance": importance}})
        page = await hub.list_memories({"sortBy": "importance", "sortOrder": "asc"})
        assert [m.metadata.importance for m in page.memories] == [2, 3, 5]

    async def test_filters(self, hub):
        await hub.store_memory({"content": "a", "category": "code", "metadata": {"tags": ["py"]}})
        await hub.store_memory({"content": "b", "category": "tasks", "type": "short-term"})
        page = await hub.list_memories({"category": "code"})
        assert [m.content for m in page.memories] == ["a"]
        page = await hub.list_memories({"type": "short-term"})
        assert [m.content for m in page.memories] == ["b"]
        page = await hub.list_memories({"tags": ["py", "zz"]})
        assert page.total == 1


class TestSearch:
    async def test_tag_and_content_hits_with_relevance(self, hub):
        tagged = await hub.store_memory(
            {"content": "Project setup", "metadata": {"tags": ["typescript"], "importance": 5}}
        )
        content = await hub.store_memory(
            {"content": "I like TypeScript generics", "metadata": {"importance": 2}}
        )
        await hub.store_memory({"content": "Rust lifetimes"})
        out = await hub.search_memories("typescript")
        assert out.total == 2
        labels = {hit.memory.id: hit.relevance for hit in out.results}
        assert labels == {tagged.id: Relevance.HIGH, content.id: Relevance.LOW}

    async def test_search_filters_and_limit(self, hub):
        for i in range(12):
            await hub.store_memory({"content": f"note {i}", "category": "learning"})
        await hub.store_memory({"content": "note other", "category": "code"})
        out = await hub.search_memories({"query": "note", "category": "learning"})
        assert len(out.results) == 10
        assert out.total == 12
        out = await hub.search_memories({"query": "note", "category": "learning", "offset": 10})
        assert len(out.results) == 2

    async def test_search_does_not_count_access(self, hub):
        m = await hub.store_memory({"content": "needle"})
        await hub.search_memories("needle")
        assert (await hub.retrieve_memory(m.id)).metadata.access_count == 1


class TestContexts:
    async def test_store_with_context_links_both_sides(self, hub):
        ctx = await hub.create_context({"name": "Work", "type": "project"})
        m = await hub.store_memory({"content": "standup at 10", "contextId": ctx.id})
        assert m.relations.context_id == ctx.id
        assert (await hub.get_context(ctx.id)).memory_ids == [m.id]

    async def test_store_with_unknown_context_writes_nothing(self, hub):
        with pytest.raises(ContextNotFoundError):
            await hub.store_memory({"content": "x", "contextId": "ctx_missing"})
        assert (await hub.list_memories()).total == 0

    async def test_create_with_initial_memories(self, hub):
        a = await hub.store_memory({"content": "a"})
        b = await hub.store_memory({"content": "b"})
        ctx = await hub.create_context(
            {"name": "Topic", "type": "topic", "memoryIds": [b.id, "mem_missing", a.id, b.id]}
        )
        assert ctx.memory_ids == [b.id, a.id]
        assert ctx.metadata.active is False
        assert (await hub.retrieve_memory(a.id)).relations.context_id == ctx.id
        members = await hub.get_context_memories(ctx.id)
        assert [m.id for m in members] == [b.id, a.id]

    async def test_add_memory_twice_no_duplicates(self, hub):
        ctx = await hub.create_context({"name": "Work", "type": "project"})
        m = await hub.store_memory({"content": "x"})
        assert await hub.add_memory_to_context(ctx.id, m.id) is True
        assert await hub.add_memory_to_context(ctx.id, m.id) is True
        assert (await hub.get_context(ctx.id)).memory_ids == [m.id]
        assert await hub.add_memory_to_context("ctx_missing", m.id) is False

    async def test_activation_is_exclusive(self, hub):
        first = await hub.create_context({"name": "One", "type": "project"})
        second = await hub.create_context({"name": "Two", "type": "topic"})
        await hub.activate_context(first.id)
        await hub.activate_context(second.id)
        active = await hub.list_contexts(active=True)
        assert [c.id for c in active] == [second.id]
        assert (await hub.get_context(first.id)).metadata.active is False
        assert (await hub.get_active_context()).id == second.id

    async def test_activate_unknown_deactivates_others(self, hub):
        ctx = await hub.create_context({"name": "One", "type": "project"})
        await hub.activate_context(ctx.id)
        assert await hub.activate_context("ctx_missing") is None
        assert await hub.get_active_context() is None

    async def test_update_active_goes_through_activation(self, hub):
        first = await hub.create_context({"name": "One", "type": "project"})
        second = await hub.create_context({"name": "Two", "type": "project"})
        await hub.activate_context(first.id)
        out = await hub.update_context({"id": second.id, "name": "Two!", "active": True})
        assert out.name == "Two!"
        assert out.metadata.active is True
        assert (await hub.get_context(first.id)).metadata.active is False
        out = await hub.update_context({"id": second.id, "active": False})
        assert out.metadata.active is False
        assert await hub.update_context({"id": "ctx_missing", "name": "x"}) is None

    async def test_list_contexts_filter(self, hub):
        await hub.create_context({"name": "P", "type": "project"})
        await hub.create_context({"name": "T", "type": "topic", "tags": ["ai"]})
        assert [c.name for c in await hub.list_contexts(type="topic")] == ["T"]
        assert len(await hub.list_contexts()) == 2

    async def test_delete_context(self, hub):
        ctx = await hub.create_context({"name": "P", "type": "project"})
        m = await hub.store_memory({"content": "x", "contextId": ctx.id})
        assert await hub.delete_context(ctx.id) is True
        assert await hub.delete_context(ctx.id) is False
        # no cascade by default
        assert (await hub.retrieve_memory(m.id)).relations.context_id == ctx.id


class TestCascade:
    async def test_cascading_cleanup_when_enabled(self, store):
        hub = SelfHub(store, Settings(storage=StorageSettings(cascade_deletes=True)))
        ctx = await hub.create_context({"name": "P", "type": "project"})
        a = await hub.store_memory({"content": "a", "contextId": ctx.id})
        b = await hub.store_memory({"content": "b", "contextId": ctx.id})
        await hub.delete_memory(a.id)
        assert (await hub.get_context(ctx.id)).memory_ids == [b.id]
        await hub.delete_context(ctx.id)
        assert (await hub.retrieve_memory(b.id)).relations.context_id is None


class TestStats:
    async def test_stats(self, hub):
        await hub.create_context({"name": "P", "type": "project"})
        await hub.store_memory({"content": "a", "category": "code", "metadata": {"tags": ["py", "x"]}})
        await hub.store_memory({"content": "b", "category": "code", "metadata": {"tags": ["py"]}})
        await hub.store_memory({"content": "c", "type": "short-term", "metadata": {"tags": ["a"]}})
        stats = await hub.get_stats()
        assert stats.total_memories == 3
        assert stats.total_contexts == 1
        assert stats.by_category == {"code": 2, "custom": 1}
        assert stats.by_type == {"long-term": 2, "short-term": 1}
        assert [(t.tag, t.count) for t in stats.top_tags] == [("py", 2), ("a", 1), ("x", 1)]
