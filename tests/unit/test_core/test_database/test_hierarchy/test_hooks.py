"""Tests for before/after rearrange hooks."""

from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from tree_service.core.database.base import Base, StringIdPKMixin
from tree_service.core.database.hierarchy import RearrangeHooks, TreeMixin, TreeRepository
from tree_service.core.models import Node


class Page(Base, StringIdPKMixin, TreeMixin):
    """Page whose URL path is rebuilt from the slugs of its ancestors."""

    __tablename__ = "pages"

    slug: Mapped[str] = mapped_column(String(100))
    path: Mapped[str | None] = mapped_column(String(1000), nullable=True)


@pytest.fixture
def page_repo(tree_settings) -> TreeRepository[Page]:
    hooks = RearrangeHooks()
    repo = TreeRepository(Page, hooks=hooks, settings=tree_settings)

    @hooks.after_rearrange
    async def rebuild_path(session, page: Page) -> None:
        chain = await repo.ancestors_and_self(session, page)
        page.path = "/".join(p.slug for p in chain)

    return repo


# ============================================================================
# Ordering
# ============================================================================


@pytest.mark.asyncio
async def test_hooks_fire_in_registration_order_once_per_save(db_session, repo, hooks):
    calls: list[str] = []

    hooks.before_rearrange(lambda session, node: calls.append("before-1"))
    hooks.before_rearrange(lambda session, node: calls.append("before-2"))

    @hooks.after_rearrange
    async def after(session: Any, node: Any) -> None:
        calls.append(f"after depth={node.depth}")

    await repo.save(db_session, Node())

    assert calls == ["before-1", "before-2", "after depth=0"]


@pytest.mark.asyncio
async def test_before_hook_sees_old_path(db_session, repo, hooks, sample_tree):
    t = sample_tree
    seen: dict[str, list[str]] = {}

    @hooks.before_rearrange
    def capture(session, node):
        seen[node.id] = list(node.ancestor_ids)

    t["e"].parent_id = t["g"].id
    await repo.save(db_session, t["e"])

    assert seen[t["e"].id] == [t["a"].id, t["b"].id]
    assert t["e"].ancestor_ids == [t["g"].id]


def test_decorator_returns_handler():
    hooks = RearrangeHooks()

    def handler(session, node):
        return None

    assert hooks.before_rearrange(handler) is handler
    assert hooks.before == (handler,)
    assert hooks.after == ()
    assert len(hooks) == 1


# ============================================================================
# Derived fields
# ============================================================================


@pytest.mark.asyncio
async def test_after_hook_rebuilds_slug_path(db_session, page_repo):
    docs = await page_repo.save(db_session, Page(slug="docs"))
    guide = await page_repo.save(db_session, Page(slug="guide", parent_id=docs.id))
    install = await page_repo.save(db_session, Page(slug="install", parent_id=guide.id))

    assert docs.path == "docs"
    assert install.path == "docs/guide/install"


@pytest.mark.asyncio
async def test_after_hook_runs_for_cascaded_descendants(db_session, page_repo):
    docs = await page_repo.save(db_session, Page(slug="docs"))
    guide = await page_repo.save(db_session, Page(slug="guide", parent_id=docs.id))
    install = await page_repo.save(db_session, Page(slug="install", parent_id=guide.id))

    guide.parent_id = None
    await page_repo.save(db_session, guide)

    assert guide.path == "guide"
    assert install.path == "guide/install"
