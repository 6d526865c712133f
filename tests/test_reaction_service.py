# tests/test_reaction_service.py
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from quillpress.models.articles import Reaction
from quillpress.services.articles.reaction_service import (
    ReactionAction,
    ReactionService,
    _next_reaction_state,
)
from quillpress.utils.exc_handler import NotFound, StorageFault

SLUG = "fastapi-intro"


async def _reaction_rows(db, slug=SLUG):
    result = await db.execute(select(Reaction).where(Reaction.article_slug == slug))
    return list(result.scalars().all())


class TestNextReactionState:
    def test_no_row_creates_requested_polarity(self):
        assert _next_reaction_state(None, True) is True
        assert _next_reaction_state(None, False) is False

    @pytest.mark.parametrize("stored, desired", [(True, True), (True, False), (False, True), (False, False)])
    def test_existing_row_is_always_removed(self, stored, desired):
        existing = Reaction(user_id=1, article_slug=SLUG, likes=stored)
        assert _next_reaction_state(existing, desired) is None


class TestApplyReaction:
    @pytest.mark.asyncio
    async def test_first_like_creates_row(self, db_session, data):
        result = await ReactionService(db_session).apply_reaction(data["alice"].id, SLUG, True)

        assert result.action == ReactionAction.CREATED
        assert (result.like_count, result.dislike_count) == (1, 0)
        assert result.article.slug == SLUG
        rows = await _reaction_rows(db_session)
        assert [(row.user_id, row.likes) for row in rows] == [(data["alice"].id, True)]

    @pytest.mark.asyncio
    async def test_like_twice_leaves_no_row(self, db_session, data):
        service = ReactionService(db_session)
        await service.apply_reaction(data["alice"].id, SLUG, True)
        result = await service.apply_reaction(data["alice"].id, SLUG, True)

        assert result.action == ReactionAction.REMOVED
        assert (result.like_count, result.dislike_count) == (0, 0)
        assert await _reaction_rows(db_session) == []

    @pytest.mark.asyncio
    async def test_dislike_after_like_removes_like(self, db_session, data):
        service = ReactionService(db_session)
        await service.apply_reaction(data["alice"].id, SLUG, True)
        result = await service.apply_reaction(data["alice"].id, SLUG, False)

        # polarity 전환이 아니라 제거
        assert result.action == ReactionAction.REMOVED
        assert (result.like_count, result.dislike_count) == (0, 0)
        assert await _reaction_rows(db_session) == []

    @pytest.mark.asyncio
    async def test_third_press_creates_again(self, db_session, data):
        service = ReactionService(db_session)
        await service.apply_reaction(data["alice"].id, SLUG, False)
        await service.apply_reaction(data["alice"].id, SLUG, True)
        result = await service.apply_reaction(data["alice"].id, SLUG, True)

        assert result.action == ReactionAction.CREATED
        assert (result.like_count, result.dislike_count) == (1, 0)

    @pytest.mark.asyncio
    async def test_counts_cover_all_users(self, db_session, data):
        service = ReactionService(db_session)
        await service.apply_reaction(data["alice"].id, SLUG, True)
        result = await service.apply_reaction(data["bob"].id, SLUG, False)

        assert result.action == ReactionAction.CREATED
        assert (result.like_count, result.dislike_count) == (1, 1)

    @pytest.mark.asyncio
    async def test_reactions_are_per_article(self, db_session, data):
        service = ReactionService(db_session)
        await service.apply_reaction(data["alice"].id, SLUG, True)
        result = await service.apply_reaction(data["alice"].id, "foo-bar", True)

        assert result.action == ReactionAction.CREATED
        assert result.like_count == 1
        assert len(await _reaction_rows(db_session)) == 1

    @pytest.mark.asyncio
    async def test_unknown_article(self, db_session, data):
        with pytest.raises(NotFound):
            await ReactionService(db_session).apply_reaction(data["alice"].id, "missing", True)

    @pytest.mark.asyncio
    async def test_concurrent_create_keeps_one_row(self, db_session, data, monkeypatch):
        service = ReactionService(db_session)
        await service.apply_reaction(data["bob"].id, SLUG, True)

        # 다른 요청이 조회와 insert 사이에 먼저 commit 한 상황
        monkeypatch.setattr(service, "get_reaction", AsyncMock(return_value=None))
        result = await service.apply_reaction(data["bob"].id, SLUG, True)

        assert result.action == ReactionAction.CREATED
        assert result.like_count == 1
        rows = await _reaction_rows(db_session)
        assert len(rows) == 1

    @pytest.mark.asyncio
    async def test_storage_error_becomes_storage_fault(self, db_session, data, monkeypatch):
        monkeypatch.setattr(db_session, "execute",
                            AsyncMock(side_effect=OperationalError("SELECT 1", {}, Exception("db down"))))

        with pytest.raises(StorageFault):
            await ReactionService(db_session).apply_reaction(data["alice"].id, SLUG, True)

    @pytest.mark.asyncio
    async def test_count_reactions(self, db_session, data):
        service = ReactionService(db_session)
        await service.apply_reaction(data["alice"].id, SLUG, False)
        await service.apply_reaction(data["bob"].id, SLUG, False)

        assert await service.count_reactions(SLUG, False) == 2
        assert await service.count_reactions(SLUG, True) == 0
        total = await db_session.execute(select(func.count(Reaction.id)))
        assert total.scalar_one() == 2
