"""
Tests for bulk migration and scoped deletes.
"""
import asyncio

import pytest

from chatgenius.errors import ScopeRequired
from chatgenius.pipeline.ingestion import ingest_message
from chatgenius.pipeline.migration import (
    MigrationJob,
    delete_scope,
    iter_agent_items,
    iter_workspace_items,
    migrate_all,
)
from chatgenius.schemas.message import UserProfile
from chatgenius.schemas.record import IndexTarget, MessageKind, ScopeFilter
from conftest import make_message


@pytest.fixture
def populated_store(store):
    """Two workspaces, one thread, two authors."""
    store.add_user(UserProfile(user_id="u2", display_name="Grace"), ["W1"])
    store.add_message("W1", "C1", make_message("m1", content="first", user_id="u1"))
    store.add_message("W1", "C1", make_message("m2", content="second", user_id="u2"))
    store.add_message("W1", "C1", make_message("r1", content="reply", user_id="u1", threadId="T1"), thread_id="T1")
    store.add_message("W1", "C2", make_message("f1", content="upload.png", user_id="u1", type="file"))
    store.add_message("W2", "C3", make_message("m3", content="elsewhere", user_id="u2"))
    return store


class TestTraversal:
    """Tests for the lazy traversal iterators."""

    @pytest.mark.asyncio
    async def test_workspace_items_include_threads(self, populated_store):
        ids = [item.record_id async for item in iter_workspace_items(populated_store)]

        assert ids == ["m1", "m2", "r1", "f1", "m3"]

    @pytest.mark.asyncio
    async def test_agent_items_only_own_messages(self, populated_store):
        items = [item async for item in iter_agent_items(populated_store, populated_store)]

        u1_items = [(item.kind, item.record_id) for item in items if item.user_id == "u1"]
        assert u1_items == [
            (MessageKind.BIO, "bio-u1"),
            (MessageKind.MESSAGE, "m1"),
            (MessageKind.MESSAGE, "r1"),
            (MessageKind.MESSAGE, "f1"),
        ]
        # u2 has no bio and is only a member of W1
        assert [item.record_id for item in items if item.user_id == "u2"] == ["m2"]

    @pytest.mark.asyncio
    async def test_traversal_failure_reported(self, populated_store):
        populated_store.failing_workspaces.add("W1")
        errors = []

        ids = [item.record_id async for item in iter_workspace_items(populated_store, on_error=errors.append)]

        assert ids == ["m3"]
        assert len(errors) == 1
        assert errors[0].startswith("workspace W1:")


class TestMigrationJob:
    """Tests for MigrationJob."""

    @pytest.mark.asyncio
    async def test_workspace_migration(self, ctx, populated_store, indexes):
        summary = await MigrationJob(ctx, IndexTarget.WORKSPACE).run()

        assert summary.total_processed == 4
        assert summary.total_messages == 4
        assert summary.skipped == 1
        assert summary.errors == []
        assert summary.cancelled is False
        assert set(indexes[IndexTarget.WORKSPACE].records) == {"m1", "m2", "r1", "m3"}
        assert indexes[IndexTarget.AGENT].records == {}

    @pytest.mark.asyncio
    async def test_agent_migration(self, ctx, populated_store, indexes):
        summary = await MigrationJob(ctx, IndexTarget.AGENT).run()

        assert summary.total_users == 2
        assert summary.total_bios == 1
        assert summary.total_messages == 3
        records = indexes[IndexTarget.AGENT].records
        assert set(records) == {"bio-u1", "m1", "r1", "m2"}
        assert all(metadata["source"] == "ai-agent" for _, metadata in records.values())
        assert indexes[IndexTarget.WORKSPACE].records == {}

    @pytest.mark.asyncio
    async def test_failure_isolation(self, ctx, store, provider, indexes):
        provider.fail_texts = ["boom"]
        for number in range(1, 6):
            content = "boom" if number == 3 else f"message {number}"
            store.add_message("W1", "C1", make_message(f"m{number}", content=content))

        summary = await MigrationJob(ctx, IndexTarget.WORKSPACE, concurrency=2).run()

        assert summary.total_processed == 4
        assert len(summary.errors) == 1
        assert summary.errors[0].startswith("message m3:")
        assert set(indexes[IndexTarget.WORKSPACE].records) == {"m1", "m2", "m4", "m5"}

    @pytest.mark.asyncio
    async def test_traversal_failure_does_not_abort(self, ctx, populated_store, indexes):
        populated_store.failing_workspaces.add("W1")

        summary = await MigrationJob(ctx, IndexTarget.WORKSPACE).run()

        assert set(indexes[IndexTarget.WORKSPACE].records) == {"m3"}
        assert len(summary.errors) == 1

    @pytest.mark.asyncio
    async def test_idempotent(self, ctx, populated_store, indexes):
        await migrate_all(ctx, IndexTarget.WORKSPACE)
        summary = await migrate_all(ctx, IndexTarget.WORKSPACE)

        assert summary.total_processed == 4
        assert len(indexes[IndexTarget.WORKSPACE].records) == 4

    @pytest.mark.asyncio
    async def test_existing_records_kept_by_default(self, ctx, populated_store, indexes):
        await ingest_message(ctx, make_message("stale"), "W9", "C9")

        summary = await MigrationJob(ctx, IndexTarget.WORKSPACE).run()

        assert summary.deleted_existing is False
        assert "stale" in indexes[IndexTarget.WORKSPACE].records

    @pytest.mark.asyncio
    async def test_delete_existing(self, ctx, populated_store, indexes):
        await ingest_message(ctx, make_message("stale"), "W9", "C9")

        summary = await MigrationJob(ctx, IndexTarget.WORKSPACE, delete_existing=True).run()

        assert summary.deleted_existing is True
        assert "stale" not in indexes[IndexTarget.WORKSPACE].records
        assert "m1" in indexes[IndexTarget.WORKSPACE].records
        # Only the target index is wiped
        assert "stale" in indexes[IndexTarget.AGENT].records

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self, ctx, populated_store, provider):
        cancel_event = asyncio.Event()
        cancel_event.set()

        summary = await MigrationJob(ctx, IndexTarget.WORKSPACE, cancel_event=cancel_event).run()

        assert summary.cancelled is True
        assert summary.total_processed == 0
        assert provider.embed_calls == []

    @pytest.mark.asyncio
    async def test_cancelled_between_items(self, ctx, populated_store, provider):
        job = MigrationJob(ctx, IndexTarget.WORKSPACE, concurrency=1)
        embed = provider.embed

        async def embed_then_cancel(text):
            vector = await embed(text)
            job.cancel()
            return vector

        provider.embed = embed_then_cancel

        summary = await job.run()

        assert summary.cancelled is True
        assert summary.total_processed == 1

    @pytest.mark.parametrize("concurrency", [0, -1])
    def test_invalid_concurrency(self, ctx, concurrency):
        with pytest.raises(ValueError):
            MigrationJob(ctx, IndexTarget.WORKSPACE, concurrency=concurrency)

    def test_default_concurrency_from_context(self, ctx):
        assert MigrationJob(ctx, IndexTarget.WORKSPACE).concurrency == ctx.migration_concurrency


class TestDeleteScope:
    """Tests for scoped deletes."""

    @pytest.mark.asyncio
    async def test_deletes_only_scope(self, ctx, indexes):
        await ingest_message(ctx, make_message("m1"), "W1", "C1")
        await ingest_message(ctx, make_message("m2"), "W2", "C1")

        await delete_scope(ctx, ScopeFilter(workspace_id="W1"))

        assert set(indexes[IndexTarget.WORKSPACE].records) == {"m2"}
        assert set(indexes[IndexTarget.AGENT].records) == {"m1", "m2"}

    @pytest.mark.asyncio
    async def test_user_scope(self, ctx, indexes):
        await ingest_message(ctx, make_message("m1", user_id="u1"), "W1", "C1")
        await ingest_message(ctx, make_message("m2", user_id="u2"), "W1", "C1")

        await delete_scope(ctx, ScopeFilter(user_id="u1"))

        assert set(indexes[IndexTarget.AGENT].records) == {"m2"}

    @pytest.mark.asyncio
    async def test_requires_scope(self, ctx):
        with pytest.raises(ScopeRequired):
            await delete_scope(ctx, ScopeFilter())
