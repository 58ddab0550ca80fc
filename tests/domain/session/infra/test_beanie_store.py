"""Tests for BeanieSessionStore and Session optimistic locking (requires MongoDB)."""

import asyncio
from datetime import timedelta

import pytest

from app.domain.idea.idea_linkage import BeanieIdeaLinkage
from app.domain.session._beanie_store import BeanieSessionStore
from app.domain.session.admission import AdmissionController
from app.domain.session.session_models import SessionQuery
from app.schemas import Idea, Session, SessionState
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode
from tests.domain.session.session_factory import make_record
from tests.fixtures.session_fixtures import FIXED_NOW, HOST_ID, IDEA_ID


@pytest.mark.usefixtures("clear_collections")
class TestUpdateWithVersionCheck:
    async def test_update_success_bumps_version(self, beanie_db):
        session = Session(**make_record(session_id="se_version").model_dump())
        await session.insert()

        result = await session.update_with_version_check({"title": "Renamed"})

        assert result is True
        assert session.version == 2
        saved = await Session.find_one(Session.session_id == "se_version")
        assert saved is not None
        assert saved.title == "Renamed"
        assert saved.version == 2

    async def test_stale_version_is_rejected(self, beanie_db):
        session = Session(**make_record(session_id="se_conflict").model_dump())
        await session.insert()

        # Simulate concurrent update directly in the collection
        await Session.get_pymongo_collection().update_one(
            {"session_id": "se_conflict"},
            {"$set": {"version": 2, "title": "Other writer"}},
        )

        result = await session.update_with_version_check({"title": "Stale"})

        assert result is False
        saved = await Session.find_one(Session.session_id == "se_conflict")
        assert saved.title == "Other writer"


@pytest.mark.usefixtures("clear_collections")
class TestBeanieSessionStore:
    async def test_create_and_get(self, beanie_db):
        store = BeanieSessionStore()

        created = await store.create(make_record())
        fetched = await store.get_by_id(created.session_id)

        assert fetched is not None
        assert fetched.title == created.title
        assert fetched.scheduled_time == created.scheduled_time

    async def test_duplicate_create_conflicts(self, beanie_db):
        store = BeanieSessionStore()
        await store.create(make_record())

        with pytest.raises(AppError) as exc_info:
            await store.create(make_record())

        assert exc_info.value.status_code == HttpStatusCode.CONFLICT

    async def test_atomic_update_missing(self, beanie_db):
        with pytest.raises(AppError) as exc_info:
            await BeanieSessionStore().atomic_update("se_missing", lambda session: None)

        assert exc_info.value.errcode == AppErrorCode.NOT_FOUND

    async def test_concurrent_joins_respect_capacity(self, beanie_db):
        store = BeanieSessionStore(max_retries=10)
        await store.create(make_record(max_participants=3))
        admission = AdmissionController()

        async def join(user_id: str):
            return await store.atomic_update(
                "se_test", lambda session: admission.join(session, user_id, FIXED_NOW)
            )

        results = await asyncio.gather(*(join(f"u.{i}") for i in range(6)), return_exceptions=True)

        saved = await store.get_by_id("se_test")
        assert saved is not None
        assert len(saved.participants) == 3
        errcodes = {r.errcode for r in results if isinstance(r, AppError)}
        assert errcodes <= {AppErrorCode.SESSION_FULL, AppErrorCode.STORE_UNAVAILABLE}

    async def test_query_and_delete(self, beanie_db):
        store = BeanieSessionStore()
        await store.create(make_record(session_id="se_a", scheduled_time=FIXED_NOW + timedelta(hours=2)))
        await store.create(
            make_record(
                session_id="se_b",
                status=SessionState.CANCELLED,
                scheduled_time=FIXED_NOW + timedelta(hours=1),
            )
        )

        everything = await store.query(SessionQuery())
        assert [s.session_id for s in everything] == ["se_b", "se_a"]

        cancelled = await store.query(SessionQuery(status=SessionState.CANCELLED))
        assert [s.session_id for s in cancelled] == ["se_b"]

        assert await store.delete("se_a") is True
        assert await store.get_by_id("se_a") is None


@pytest.mark.usefixtures("clear_collections")
class TestBeanieIdeaLinkage:
    async def test_add_and_remove_session(self, beanie_db):
        await Idea(
            idea_id=IDEA_ID,
            author_id=HOST_ID,
            title="Idea",
            created_at=FIXED_NOW,
            updated_at=FIXED_NOW,
        ).insert()
        linkage = BeanieIdeaLinkage()

        await linkage.add_session(IDEA_ID, "se_1")
        await linkage.add_session(IDEA_ID, "se_1")
        await linkage.add_session(IDEA_ID, "se_2")
        idea = await linkage.get_idea(IDEA_ID)
        assert idea is not None
        assert idea.sessions == ["se_1", "se_2"]

        await linkage.remove_session(IDEA_ID, "se_1")
        idea = await linkage.get_idea(IDEA_ID)
        assert idea.sessions == ["se_2"]

    async def test_missing_idea(self, beanie_db):
        assert await BeanieIdeaLinkage().get_idea("id_missing") is None
