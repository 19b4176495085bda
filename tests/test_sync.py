"""
Tests for ListSynchronizer and MutationDialog - keeping the displayed page in step with the store.
"""

import asyncio

import pytest
from unittest.mock import AsyncMock

from conftest import insurance_payload
from crm.errors import BackendError, ValidationError
from crm.filters import FilterState
from crm.repository import ListResult
from crm.sync import DialogState, ListSynchronizer, MutationDialog


async def seed(gateway, count):
    for i in range(count):
        await gateway.create(insurance_payload(name=f"Patient {i:02d}", member_id=f"M{i:03d}"))


class TestListSynchronizer:

    @pytest.mark.asyncio
    async def test_mount_fetches_first_page(self, insurance_repo, insurance_gateway):
        await seed(insurance_gateway, 12)
        sync = ListSynchronizer(insurance_repo)

        assert await sync.mount() is True

        assert len(sync.rows) == 10
        assert sync.total_count == 12
        assert sync.total_pages == 2
        assert sync.loading is False
        assert sync.error is None

    @pytest.mark.asyncio
    async def test_filter_changes_refetch(self, insurance_repo, insurance_gateway):
        await seed(insurance_gateway, 12)
        sync = ListSynchronizer(insurance_repo)
        await sync.mount()

        await sync.set_page(2)
        assert len(sync.rows) == 2

        await sync.set_search_term("patient 1")
        assert sync.filters.page == 1
        assert sync.total_count == 2
        assert {row["name"] for row in sync.rows} == {"Patient 10", "Patient 11"}

    @pytest.mark.asyncio
    async def test_refetches_after_mutation(self, insurance_repo, insurance_gateway):
        sync = ListSynchronizer(insurance_repo)
        await sync.mount()
        assert sync.total_count == 0

        await sync.after_mutation(insurance_gateway.create(insurance_payload()))
        assert sync.total_count == 1

        await sync.after_mutation(insurance_gateway.delete_all())
        assert sync.total_count == 0
        assert sync.rows == []

    @pytest.mark.asyncio
    async def test_failed_mutation_leaves_list_intact(self, insurance_repo, insurance_gateway):
        await seed(insurance_gateway, 3)
        sync = ListSynchronizer(insurance_repo)
        await sync.mount()
        before = list(sync.rows)

        with pytest.raises(ValidationError):
            await sync.after_mutation(insurance_gateway.create({"name": "No phone"}))

        assert sync.rows == before
        assert sync.total_count == 3

    @pytest.mark.asyncio
    async def test_fetch_failure_sets_error_and_keeps_rows(self, insurance_repo, insurance_gateway, store):
        await seed(insurance_gateway, 2)
        sync = ListSynchronizer(insurance_repo)
        await sync.mount()

        store.fail_with = "upstream timeout"
        assert await sync.refresh() is False

        assert sync.error == "upstream timeout"
        assert sync.loading is False
        assert len(sync.rows) == 2

        store.fail_with = None
        await sync.refresh()
        assert sync.error is None

    @pytest.mark.asyncio
    async def test_stale_response_is_discarded(self):
        slow_started = asyncio.Event()
        release_slow = asyncio.Event()

        async def fake_list(page, page_size, search_term):
            if search_term == "old":
                slow_started.set()
                await release_slow.wait()
                return ListResult(rows=[{"name": "stale"}], total_count=1)
            return ListResult(rows=[{"name": "fresh"}], total_count=1)

        repository = AsyncMock()
        repository.list.side_effect = fake_list
        sync = ListSynchronizer(repository, FilterState(search_term="old"))

        slow = asyncio.create_task(sync.refresh())
        await slow_started.wait()
        assert await sync.set_search_term("new") is True
        release_slow.set()

        assert await slow is False
        assert sync.rows == [{"name": "fresh"}]
        assert sync.loading is False

    @pytest.mark.asyncio
    async def test_response_after_close_is_dropped(self):
        release = asyncio.Event()

        async def fake_list(page, page_size, search_term):
            await release.wait()
            return ListResult(rows=[{"name": "late"}], total_count=1)

        repository = AsyncMock()
        repository.list.side_effect = fake_list
        sync = ListSynchronizer(repository)

        pending = asyncio.create_task(sync.refresh())
        await asyncio.sleep(0)
        sync.close()
        release.set()

        assert await pending is False
        assert sync.rows == []
        assert sync.error is None


class TestMutationDialog:

    @pytest.mark.asyncio
    async def test_success_closes_and_refetches(self, insurance_repo, insurance_gateway):
        sync = ListSynchronizer(insurance_repo)
        await sync.mount()
        dialog = MutationDialog(insurance_gateway.create, sync)
        dialog.open(insurance_payload())

        assert await dialog.submit() is True

        assert dialog.state == DialogState.SUCCESS
        assert dialog.is_open is False
        assert sync.total_count == 1

    @pytest.mark.asyncio
    async def test_failure_keeps_dialog_open_with_data(self, insurance_repo, insurance_gateway):
        sync = ListSynchronizer(insurance_repo)
        await sync.mount()
        dialog = MutationDialog(insurance_gateway.create, sync)
        entered = insurance_payload(member_id="")
        dialog.open(entered)

        assert await dialog.submit() is False

        assert dialog.state == DialogState.FAILURE
        assert dialog.is_open is True
        assert dialog.form_data == entered
        assert "member_id" in dialog.error
        assert sync.total_count == 0

    @pytest.mark.asyncio
    async def test_backend_failure_message_shown(self, insurance_repo):
        sync = ListSynchronizer(insurance_repo)
        action = AsyncMock(side_effect=BackendError("row-level security violation"))
        dialog = MutationDialog(action, sync)
        dialog.open({"name": "x"})

        await dialog.submit()

        assert dialog.error == "row-level security violation"

    @pytest.mark.asyncio
    async def test_explicit_arguments_for_delete(self, insurance_repo, insurance_gateway):
        created = (await insurance_gateway.create(insurance_payload()))[0]
        sync = ListSynchronizer(insurance_repo)
        await sync.mount()
        dialog = MutationDialog(insurance_gateway.delete, sync, failure_message="Failed to delete record")
        dialog.open()

        assert await dialog.submit(created["id"]) is True
        assert sync.total_count == 0

    @pytest.mark.asyncio
    async def test_blank_backend_message_uses_dialog_fallback(self, insurance_repo):
        sync = ListSynchronizer(insurance_repo)
        action = AsyncMock(side_effect=BackendError(""))
        dialog = MutationDialog(action, sync, failure_message="Failed to delete record")
        dialog.open()

        assert await dialog.submit("some-id") is False

        assert dialog.error == "Failed to delete record"

    @pytest.mark.asyncio
    async def test_generic_fallback(self, insurance_repo):
        sync = ListSynchronizer(insurance_repo)
        dialog = MutationDialog(AsyncMock(side_effect=BackendError()), sync)
        dialog.open({"name": "x"})

        await dialog.submit()

        assert dialog.error == "Operation failed"


@pytest.mark.asyncio
async def test_blank_fetch_error_shows_fetch_fallback():
    repository = AsyncMock()
    repository.list.side_effect = BackendError("   ")
    sync = ListSynchronizer(repository)

    assert await sync.refresh() is False

    assert sync.error == "Failed to fetch records"
