"""Ordered handler lists around the rearrange step.

Handlers receive ``(session, node)`` and may be plain functions or
coroutine functions. They run in registration order, once per rearrange,
for the saved node and for every node a cascade touches.

Example:
    >>> hooks = RearrangeHooks()
    >>>
    >>> @hooks.after_rearrange
    ... async def rebuild_path(session, page):
    ...     chain = await repo.ancestors_and_self(session, page)
    ...     page.path = "/".join(p.slug for p in chain)
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from tree_service.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

type RearrangeHandler = Callable[[AsyncSession, Any], Awaitable[None] | None]

_lazy = get_lazy_logger(__name__)


class RearrangeHooks:
    """Registry of before/after rearrange handlers."""

    __slots__ = ("_before", "_after")

    def __init__(self) -> None:
        self._before: list[RearrangeHandler] = []
        self._after: list[RearrangeHandler] = []

    def before_rearrange(self, handler: RearrangeHandler) -> RearrangeHandler:
        """Register a handler to run before the path is recomputed.

        Returns the handler unchanged so it can be used as a decorator.
        """
        self._before.append(handler)
        return handler

    def after_rearrange(self, handler: RearrangeHandler) -> RearrangeHandler:
        """Register a handler to run after the path is recomputed."""
        self._after.append(handler)
        return handler

    @property
    def before(self) -> tuple[RearrangeHandler, ...]:
        return tuple(self._before)

    @property
    def after(self) -> tuple[RearrangeHandler, ...]:
        return tuple(self._after)

    async def run_before(self, session: AsyncSession, node: Any) -> None:
        await self._run(self._before, session, node, "before_rearrange")

    async def run_after(self, session: AsyncSession, node: Any) -> None:
        await self._run(self._after, session, node, "after_rearrange")

    @staticmethod
    async def _run(
        handlers: list[RearrangeHandler],
        session: AsyncSession,
        node: Any,
        point: str,
    ) -> None:
        for handler in list(handlers):
            _lazy.debug(
                lambda h=handler: f"{point}: {getattr(h, '__qualname__', h)!s} for {getattr(node, 'id', None)}"
            )
            result = handler(session, node)
            if inspect.isawaitable(result):
                await result

    def __len__(self) -> int:
        return len(self._before) + len(self._after)


__all__ = ["RearrangeHandler", "RearrangeHooks"]
