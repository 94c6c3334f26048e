"""Tests for cascading a path change through descendants."""

from __future__ import annotations

import logging

import pytest
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, OperationalError

from tree_service.core.database.hierarchy import (
    CascadeDecision,
    CascadeIncompleteError,
    CascadePropagator,
    TreeRepository,
)
from tree_service.core.models import Node
from tree_service.core.settings import TreeSettings


async def stored_path(session, node_id: str) -> list[str]:
    result = await session.execute(select(Node.ancestor_ids).where(Node.id == node_id))
    return result.scalar_one()


# ============================================================================
# Propagation
# ============================================================================


@pytest.mark.asyncio
async def test_move_subtree_updates_every_level(db_session, repo, sample_tree):
    """Moving b under c refreshes b, d, e and f."""
    t = sample_tree
    t["b"].parent_id = t["c"].id
    await repo.save(db_session, t["b"])

    a, b, c = t["a"].id, t["b"].id, t["c"].id
    assert await stored_path(db_session, b) == [a, c]
    assert await stored_path(db_session, t["d"].id) == [a, c, b]
    assert await stored_path(db_session, t["e"].id) == [a, c, b]
    assert await stored_path(db_session, t["f"].id) == [a, c, b, t["d"].id]
    assert t["f"].depth == 4


@pytest.mark.asyncio
async def test_report_lists_updated_descendants(db_session, repo, sample_tree):
    t = sample_tree
    t["b"].parent_id = t["g"].id
    await repo.save(db_session, t["b"], cascade=CascadeDecision.SKIP)

    report = await repo.rearrange_children(db_session, t["b"])

    assert report.root_id == t["b"].id
    assert set(report.updated_ids) == {t["d"].id, t["e"].id, t["f"].id}
    assert report.max_depth == 3
    # Pre-order: f is visited right after its parent d
    assert report.updated_ids.index(t["f"].id) == report.updated_ids.index(t["d"].id) + 1


@pytest.mark.asyncio
async def test_leaf_move_touches_no_descendants(db_session, repo, sample_tree, hooks):
    """Moving a leaf saves only the leaf."""
    seen: list[str] = []
    hooks.after_rearrange(lambda session, node: seen.append(node.id))

    t = sample_tree
    t["f"].parent_id = t["g"].id
    await repo.save(db_session, t["f"])

    assert seen == [t["f"].id]


@pytest.mark.asyncio
async def test_unchanged_save_does_not_cascade(db_session, repo, sample_tree, hooks):
    seen: list[str] = []
    hooks.before_rearrange(lambda session, node: seen.append(node.id))

    t = sample_tree
    t["b"].payload = {"name": "renamed"}
    await repo.save(db_session, t["b"])

    assert seen == [t["b"].id]


@pytest.mark.asyncio
async def test_skip_leaves_descendants_stale(db_session, repo, sample_tree):
    t = sample_tree
    t["b"].parent_id = None
    await repo.save(db_session, t["b"], cascade=CascadeDecision.SKIP)

    assert await stored_path(db_session, t["b"].id) == []
    assert await stored_path(db_session, t["d"].id) == [t["a"].id, t["b"].id]


@pytest.mark.asyncio
async def test_force_heals_a_stale_subtree(db_session, repo, sample_tree):
    """A corrupted grandchild is repaired by a forced save of its ancestor."""
    t = sample_tree
    await db_session.execute(
        update(Node).where(Node.id == t["f"].id).values(ancestor_ids=["bogus"], depth=1)
    )
    await db_session.refresh(t["f"])
    assert t["f"].ancestor_ids == ["bogus"]

    await repo.save(db_session, t["a"], cascade=CascadeDecision.FORCE)

    assert await stored_path(db_session, t["f"].id) == [t["a"].id, t["b"].id, t["d"].id]
    assert t["f"].depth == 3


@pytest.mark.asyncio
async def test_batched_flushes_persist_everything(db_session, sample_tree, hooks):
    repo = TreeRepository(Node, hooks=hooks, settings=TreeSettings(cascade_batch_size=50))
    t = sample_tree

    t["a"].parent_id = t["g"].id
    await repo.save(db_session, t["a"])

    g = t["g"].id
    assert await stored_path(db_session, t["c"].id) == [g, t["a"].id]
    assert await stored_path(db_session, t["f"].id) == [g, t["a"].id, t["b"].id, t["d"].id]


@pytest.mark.asyncio
async def test_cascade_logs_completion_with_root_context(db_session, repo, sample_tree, caplog):
    t = sample_tree
    t["b"].parent_id = None

    with caplog.at_level(logging.INFO, logger="tree_service.core.database.hierarchy.cascade"):
        await repo.save(db_session, t["b"])

    records = [r for r in caplog.records if r.getMessage() == "Cascade complete"]
    assert len(records) == 1
    assert records[0].root_id == t["b"].id
    assert records[0].updated == 3


# ============================================================================
# Failures
# ============================================================================


@pytest.mark.asyncio
@pytest.mark.asyncio
async def test_store_error_raises_cascade_incomplete(db_session, repo, sample_tree, hooks, caplog):
    """A store failure on one descendant reports what was and wasn't updated."""
    # Nodes of a rolled-back batch are expired, so read ids up front
    ids = {name: node.id for name, node in sample_tree.items()}

    def fail_on_f(session, node):
        if node.id == ids["f"]:
            raise OperationalError("UPDATE nodes", {}, Exception("disk I/O error"))

    hooks.after_rearrange(fail_on_f)
    sample_tree["b"].parent_id = None

    with caplog.at_level(logging.ERROR), pytest.raises(CascadeIncompleteError) as exc_info:
        await repo.save(db_session, sample_tree["b"])

    err = exc_info.value
    assert err.root_id == ids["b"]
    assert err.failed_ids == [ids["f"]]
    assert ids["d"] in err.updated_ids
    assert ids["f"] not in err.updated_ids
    assert isinstance(err.__cause__, OperationalError)
    assert "Cascade failed" in caplog.text


@pytest.mark.asyncio
async def test_failed_flush_rolls_back_only_its_batch(db_session, repo, sample_tree, hooks):
    """A row the store rejects undoes its own batch; earlier batches stay written."""
    ids = {name: node.id for name, node in sample_tree.items()}
    breaking = {"on": True}

    def null_depth_on_f(session, node):
        if breaking["on"] and node.id == ids["f"]:
            node.depth = None  # NOT NULL column: the UPDATE fails at flush

    hooks.after_rearrange(null_depth_on_f)
    sample_tree["b"].parent_id = None

    with pytest.raises(CascadeIncompleteError) as exc_info:
        await repo.save(db_session, sample_tree["b"])

    err = exc_info.value
    assert err.failed_ids == [ids["f"]]
    assert err.updated_ids == [ids["d"]]
    assert isinstance(err.__cause__, IntegrityError)

    # The session is still usable and the completed work is in place
    assert await stored_path(db_session, ids["b"]) == []
    assert await stored_path(db_session, ids["d"]) == [ids["b"]]
    assert await stored_path(db_session, ids["f"]) == [ids["a"], ids["b"], ids["d"]]

    breaking["on"] = False
    await repo.save(db_session, sample_tree["b"], cascade=CascadeDecision.FORCE)

    assert await stored_path(db_session, ids["f"]) == [ids["b"], ids["d"]]
    assert await stored_path(db_session, ids["e"]) == [ids["b"]]


@pytest.mark.asyncio
async def test_retry_with_force_completes_interrupted_cascade(db_session, repo, sample_tree, hooks):
    ids = {name: node.id for name, node in sample_tree.items()}
    failing = {"on": True}

    def flaky(session, node):
        if failing["on"] and node.id == ids["f"]:
            raise OperationalError("UPDATE nodes", {}, Exception("timeout"))

    hooks.after_rearrange(flaky)
    sample_tree["b"].parent_id = None
    with pytest.raises(CascadeIncompleteError):
        await repo.save(db_session, sample_tree["b"])

    failing["on"] = False
    await repo.save(db_session, sample_tree["b"], cascade=CascadeDecision.FORCE)

    assert await stored_path(db_session, ids["e"]) == [ids["b"]]
    assert await stored_path(db_session, ids["f"]) == [ids["b"], ids["d"]]


@pytest.mark.asyncio
async def test_propagator_clamps_batch_size(repo):
    propagator = CascadePropagator(Node, repo.rearrange_node, batch_size=0)
    assert propagator.batch_size == 1
