"""Tests for BaseRepository store primitives."""

from __future__ import annotations

import logging

import pytest

from tree_service.core.database import (
    BaseRepository,
    CollectionFilter,
    EqualityFilter,
    FilterGroup,
    InvalidFilterError,
    NotFoundError,
    OrderBy,
)
from tree_service.core.models import Node


@pytest.fixture
def base_repo() -> BaseRepository[Node]:
    return BaseRepository(Node)


async def seed(session, count: int, parent_id: str | None = None) -> list[Node]:
    nodes = [Node(id=f"n{i:02d}", parent_id=parent_id, ancestor_ids=[], depth=0) for i in range(count)]
    session.add_all(nodes)
    await session.flush()
    return nodes


# ============================================================================
# Reads
# ============================================================================


@pytest.mark.asyncio
async def test_get_and_get_or_raise(db_session, base_repo):
    await seed(db_session, 1)

    assert (await base_repo.get(db_session, "n00")).id == "n00"
    assert await base_repo.get(db_session, "missing") is None

    with pytest.raises(NotFoundError) as exc_info:
        await base_repo.get_or_raise(db_session, "missing")
    assert exc_info.value.details == {"model": "Node", "id": "missing"}
    assert str(exc_info.value) == "Node not found with id='missing' (model='Node', id='missing')"


@pytest.mark.asyncio
async def test_find_applies_filters_and_order(db_session, base_repo):
    await seed(db_session, 5)

    found = await base_repo.find(
        db_session,
        CollectionFilter(Node.id, ["n01", "n03", "n04"]),
        OrderBy(Node.id, "desc"),
    )
    assert [n.id for n in found] == ["n04", "n03", "n01"]


@pytest.mark.asyncio
async def test_filter_group_or(db_session, base_repo):
    await seed(db_session, 4)

    group = FilterGroup(
        [EqualityFilter(Node.id, "n00"), EqualityFilter(Node.id, "n03")],
        operator="or",
    )
    assert await base_repo.count(db_session, group) == 2


@pytest.mark.asyncio
async def test_values_returns_distinct_column(db_session, base_repo):
    await seed(db_session, 3, parent_id="p")

    assert await base_repo.values(db_session, Node.parent_id) == ["p"]


def test_order_by_length_mismatch():
    with pytest.raises(ValueError, match="sort_order length"):
        OrderBy([Node.id, Node.depth], ["asc"])


# ============================================================================
# Writes
# ============================================================================


@pytest.mark.asyncio
async def test_create_and_delete(db_session, base_repo):
    node = await base_repo.create(db_session, Node(ancestor_ids=[], depth=0))
    assert node.id is not None

    await base_repo.delete(db_session, node)
    assert await base_repo.get(db_session, node.id) is None


@pytest.mark.asyncio
async def test_bulk_delete_requires_filter(db_session, base_repo):
    await seed(db_session, 2)

    with pytest.raises(InvalidFilterError):
        await base_repo.bulk_delete(db_session)
    with pytest.raises(InvalidFilterError):
        await base_repo.bulk_delete(db_session, OrderBy(Node.id))

    assert await base_repo.count(db_session) == 2


@pytest.mark.asyncio
async def test_bulk_delete_logs_large_deletes(db_session, base_repo, caplog):
    await seed(db_session, 12)

    with caplog.at_level(logging.WARNING):
        deleted = await base_repo.bulk_delete(db_session, EqualityFilter(Node.depth, 0))

    assert deleted == 12
    assert "Bulk delete executed" in caplog.text
    assert await base_repo.count(db_session) == 0
