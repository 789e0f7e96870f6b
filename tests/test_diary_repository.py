"""
Diary API — Diary Repository Tests
====================================

What:  DiaryRepository against a real (temporary) SQLite database.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from diary_api.exceptions import DatabaseError
from diary_api.models.diary import Diary
from diary_api.repositories.diary_repository import DiaryRepository


async def _add(repository, title, content="body"):
    return await repository.save(Diary(title=title, content=content))


class TestSaveAndFind:

    @pytest.mark.asyncio
    async def test_save_assigns_id_and_timestamps(self, diary_repository):
        diary = await _add(diary_repository, "First day")

        assert diary.id is not None
        assert diary.created_at is not None
        assert diary.updated_at is not None
        assert diary.image_path is None

    @pytest.mark.asyncio
    async def test_find_by_id(self, diary_repository):
        diary = await _add(diary_repository, "Lookup")

        found = await diary_repository.find_by_id(diary.id)

        assert found is not None
        assert found.title == "Lookup"

    @pytest.mark.asyncio
    async def test_find_by_id_missing_returns_none(self, diary_repository):
        assert await diary_repository.find_by_id(999) is None

    @pytest.mark.asyncio
    async def test_find_all_in_id_order(self, diary_repository):
        for title in ("a", "b", "c"):
            await _add(diary_repository, title)

        diaries = await diary_repository.find_all()

        assert [d.title for d in diaries] == ["a", "b", "c"]
        assert [d.id for d in diaries] == sorted(d.id for d in diaries)

    @pytest.mark.asyncio
    async def test_find_all_returns_independent_lists(self, diary_repository):
        await _add(diary_repository, "x")
        first = await diary_repository.find_all()
        first.clear()
        assert len(await diary_repository.find_all()) == 1


class TestTitleSearch:

    @pytest.mark.asyncio
    async def test_substring_anywhere_in_title(self, diary_repository):
        await _add(diary_repository, "abc at start")
        await _add(diary_repository, "ends with abc")
        await _add(diary_repository, "xxabcxx")
        await _add(diary_repository, "a b c")

        titles = [d.title for d in await diary_repository.find_by_title_containing("abc")]

        assert titles == ["abc at start", "ends with abc", "xxabcxx"]

    @pytest.mark.asyncio
    async def test_search_ignores_case(self, diary_repository):
        await _add(diary_repository, "Morning RUN")

        assert len(await diary_repository.find_by_title_containing("run")) == 1
        assert len(await diary_repository.find_by_title_containing("MORNING")) == 1

    @pytest.mark.asyncio
    async def test_wildcards_are_literal(self, diary_repository):
        await _add(diary_repository, "100% done")
        await _add(diary_repository, "1000 done")

        titles = [d.title for d in await diary_repository.find_by_title_containing("0%")]

        assert titles == ["100% done"]


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete_existing(self, diary_repository):
        diary = await _add(diary_repository, "to go")

        removed = await diary_repository.delete_by_id(diary.id)

        assert removed == 1
        assert await diary_repository.find_by_id(diary.id) is None

    @pytest.mark.asyncio
    async def test_delete_missing_is_silent(self, diary_repository):
        assert await diary_repository.delete_by_id(4242) == 0


class TestErrorWrapping:

    @pytest.mark.asyncio
    async def test_query_failure_becomes_database_error(self):
        session = MagicMock()
        session.execute = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("db down")))
        repository = DiaryRepository(session)

        with pytest.raises(DatabaseError):
            await repository.find_all()
