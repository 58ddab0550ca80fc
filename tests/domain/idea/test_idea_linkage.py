"""Tests for InMemoryIdeaLinkage back-references."""

import pytest
from pydantic import ValidationError

from app.domain.idea.idea_linkage import IdeaSummary, InMemoryIdeaLinkage


async def test_add_is_idempotent_and_remove_prunes():
    idea = IdeaSummary(idea_id="id_linked", author_id="u.author", title="Idea")
    linkage = InMemoryIdeaLinkage([idea])

    await linkage.add_session(idea.idea_id, "se_1")
    await linkage.add_session(idea.idea_id, "se_1")
    await linkage.add_session(idea.idea_id, "se_2")
    await linkage.remove_session(idea.idea_id, "se_1")

    stored = await linkage.get_idea(idea.idea_id)
    assert stored is not None
    assert stored.sessions == ["se_2"]


async def test_unknown_idea_is_ignored():
    linkage = InMemoryIdeaLinkage()

    await linkage.add_session("id_missing", "se_1")

    assert await linkage.get_idea("id_missing") is None


def test_summary_requires_the_owner_assigned_id():
    with pytest.raises(ValidationError):
        IdeaSummary(author_id="u.author", title="Idea")
