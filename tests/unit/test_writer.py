"""
Unit tests for best-effort persistence and the in-memory store.
"""

import asyncio

import pytest

from conftest import OWNER_ID
from src.core.errors import PersistenceError
from src.core.identity import StaticIdentity
from src.core.models import AnalyticsReport
from src.persistence.records import QuestionResponseRecord, SessionTotals
from src.persistence.store import InMemoryRecordStore
from src.persistence.writer import PersistenceWriter


class FailingStore(InMemoryRecordStore):
    """Store whose writes always fail."""

    async def upsert_progress(self, owner_id, child_id, progress):
        raise ConnectionError("database is down")

    async def append_question_response(self, owner_id, response):
        raise ConnectionError("database is down")


@pytest.fixture
def writer(memory_store, identity):
    return PersistenceWriter(memory_store, identity)


class TestPersistenceWriter:
    """Tests for the attempt / log / continue wrapper."""

    @pytest.mark.asyncio
    async def test_successful_write(self, writer, memory_store):
        child = await memory_store.create_child(OWNER_ID, "Mia", 5)

        result = await writer.save_progress(child.id, {"total_points": 10})

        assert result.ok
        assert memory_store.progress[child.id]["total_points"] == 10

    @pytest.mark.asyncio
    async def test_store_error_becomes_result(self, identity):
        store = FailingStore()
        child = await store.create_child(OWNER_ID, "Mia", 5)
        writer = PersistenceWriter(store, identity)

        result = await writer.save_progress(child.id, {})

        assert not result.ok
        assert isinstance(result.error, PersistenceError)
        assert isinstance(result.error.cause, ConnectionError)
        assert writer.failures == [result.error]

    @pytest.mark.asyncio
    async def test_unknown_child_is_a_failure(self, writer):
        result = await writer.load_progress("nobody")

        assert not result.ok
        assert isinstance(result.error.cause, LookupError)

    @pytest.mark.asyncio
    async def test_other_owner_cannot_read(self, memory_store):
        child = await memory_store.create_child(OWNER_ID, "Mia", 5)
        stranger = PersistenceWriter(memory_store, StaticIdentity("someone-else"))

        result = await stranger.load_progress(child.id)

        assert not result.ok

    @pytest.mark.asyncio
    async def test_no_store_or_identity_skips(self, memory_store):
        no_store = await PersistenceWriter(None, StaticIdentity(OWNER_ID)).save_progress("c", {})
        no_user = await PersistenceWriter(memory_store, StaticIdentity(None)).save_progress("c", {})

        assert not no_store.ok
        assert not no_user.ok

    @pytest.mark.asyncio
    async def test_spawn_and_drain(self, writer, memory_store):
        child = await memory_store.create_child(OWNER_ID, "Mia", 5)

        writer.spawn(writer.save_progress(child.id, {"total_points": 20}))
        writer.spawn(writer.save_analytics(child.id, _report(), 80.0))
        assert writer.pending == 2

        results = await writer.drain()

        assert [r.ok for r in results] == [True, True]
        assert writer.pending == 0
        assert await memory_store.get_latest_analytics(OWNER_ID, child.id) == _report()

    @pytest.mark.asyncio
    async def test_spawned_failure_does_not_raise(self, identity):
        store = FailingStore()
        child = await store.create_child(OWNER_ID, "Mia", 5)
        writer = PersistenceWriter(store, identity)

        task = writer.spawn(writer.save_progress(child.id, {}))
        await asyncio.sleep(0)
        results = await writer.drain()

        assert task.done()
        assert results[0].ok is False


class TestInMemoryRecordStore:
    """Tests for the dict-backed store."""

    @pytest.mark.asyncio
    async def test_learning_session_flow(self, memory_store):
        child = await memory_store.create_child(OWNER_ID, "Leo", 7)
        session_id = await memory_store.create_learning_session(OWNER_ID, child.id, "numbers", True)

        await memory_store.append_question_response(
            OWNER_ID,
            QuestionResponseRecord(
                session_id=session_id,
                question_text="What is 1 + 1?",
                selected_answer="2",
                correct_answer="2",
                is_correct=True,
                topic="addition",
            ),
        )
        await memory_store.update_learning_session(OWNER_ID, session_id, SessionTotals(1, 1, 10, 30))

        assert memory_store.sessions[session_id]["points_earned"] == 10
        assert memory_store.sessions[session_id]["ai_generated"] is True
        assert len(memory_store.responses) == 1

    @pytest.mark.asyncio
    async def test_list_children_scoped_by_owner(self, memory_store):
        await memory_store.create_child(OWNER_ID, "Leo", 7)
        await memory_store.create_child("other", "Ava", 4)

        children = await memory_store.list_children(OWNER_ID)

        assert [c.name for c in children] == ["Leo"]

    @pytest.mark.asyncio
    async def test_response_for_unknown_session_rejected(self, memory_store):
        record = QuestionResponseRecord("missing", "Q", "A", "B", False)

        with pytest.raises(LookupError):
            await memory_store.append_question_response(OWNER_ID, record)


def _report():
    return AnalyticsReport(
        strengths=("Counting",),
        improvement_areas=("Colors",),
        recommended_topics=("Shapes",),
        tips=("Practice daily",),
        source="generated",
    )
