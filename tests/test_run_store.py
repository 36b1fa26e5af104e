"""
Tests for the flow run store.
"""

import asyncio
import json
import warnings

import pytest

from notionflow.storage import FlowStatus, RunNotFoundError, RunStateError


class TestCreate:
    """Tests for RunStore.create."""

    @pytest.mark.asyncio
    async def test_new_run_is_running(self, run_store):
        run_id = await run_store.create("searchAndTag", {"query": "Roadmap"})

        run = await run_store.get(run_id)
        assert run.status == FlowStatus.RUNNING.value
        assert run.flow_name == "searchAndTag"
        assert json.loads(run.input_data) == {"query": "Roadmap"}
        assert run.started_at is not None
        assert run.completed_at is None

    @pytest.mark.asyncio
    async def test_ids_are_unique(self, run_store):
        first = await run_store.create("a")
        second = await run_store.create("b")
        assert first != second

    @pytest.mark.asyncio
    async def test_input_is_optional(self, run_store):
        run_id = await run_store.create("cloneDatabaseSchema")
        run = await run_store.get(run_id)
        assert run.input_data is None


class TestTransitions:
    """Tests for complete/fail."""

    @pytest.mark.asyncio
    async def test_complete_sets_output_and_time(self, run_store):
        run_id = await run_store.create("createPageWithBlocks")

        await run_store.complete(run_id, {"page": {"id": "p1"}})

        run = await run_store.get(run_id)
        assert run.status == "completed"
        assert json.loads(run.output_data) == {"page": {"id": "p1"}}
        assert run.completed_at is not None
        assert run.error_message is None

    @pytest.mark.asyncio
    async def test_fail_sets_error_message(self, run_store):
        run_id = await run_store.create("createPageWithBlocks")

        await run_store.fail(run_id, "Could not find page")

        run = await run_store.get(run_id)
        assert run.status == "failed"
        assert run.error_message == "Could not find page"
        assert run.output_data is None

    @pytest.mark.asyncio
    async def test_transition_keeps_identity_fields(self, run_store):
        run_id = await run_store.create("searchAndTag")
        before = await run_store.get(run_id)

        await run_store.complete(run_id, {})

        after = await run_store.get(run_id)
        assert after.id == before.id
        assert after.flow_name == before.flow_name
        assert after.started_at == before.started_at

    @pytest.mark.asyncio
    async def test_terminal_run_rejects_second_transition(self, run_store):
        run_id = await run_store.create("searchAndTag")
        await run_store.complete(run_id, {})

        with pytest.raises(RunStateError) as exc_info:
            await run_store.fail(run_id, "late failure")

        assert exc_info.value.current == "completed"
        run = await run_store.get(run_id)
        assert run.status == "completed"
        assert run.error_message is None

    @pytest.mark.asyncio
    async def test_transitions_do_not_use_deprecated_session_execute(self, run_store):
        run_id = await run_store.create("searchAndTag")

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            await run_store.complete(run_id, {})

        assert not [w for w in caught if issubclass(w.category, DeprecationWarning) and "session.exec" in str(w.message)]

    @pytest.mark.asyncio
    async def test_unknown_run(self, run_store):
        with pytest.raises(RunNotFoundError):
            await run_store.complete(9999, {})

    @pytest.mark.asyncio
    async def test_concurrent_runs_do_not_interfere(self, run_store):
        ids = [await run_store.create(f"flow-{i}") for i in range(4)]

        await asyncio.gather(
            run_store.complete(ids[0], {"n": 0}),
            run_store.fail(ids[1], "boom"),
            run_store.complete(ids[2], {"n": 2}),
            run_store.fail(ids[3], "bang"),
        )

        statuses = [(await run_store.get(i)).status for i in ids]
        assert statuses == ["completed", "failed", "completed", "failed"]


class TestListRecent:
    """Tests for RunStore.list_recent."""

    @pytest.mark.asyncio
    async def test_newest_first_with_limit(self, run_store):
        ids = [await run_store.create(f"flow-{i}") for i in range(5)]

        runs = await run_store.list_recent(2)

        assert [run.id for run in runs] == [ids[4], ids[3]]

    @pytest.mark.asyncio
    async def test_to_dict_shape(self, run_store):
        await run_store.create("searchAndTag", {"query": "x"})

        (run,) = await run_store.list_recent(10)
        data = run.to_dict()

        assert data["flow_name"] == "searchAndTag"
        assert data["status"] == "running"
        assert isinstance(data["started_at"], str)
        assert data["completed_at"] is None
