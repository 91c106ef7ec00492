"""
Fan-out/join hydration of creature references.

Every list-shaped query (page, search, type filter) ends with the same step:
turn N lightweight references into N summaries, one detail call each.
Calls run concurrently behind a semaphore and the caller waits for all of
them to settle. A reference whose detail call fails is dropped from the
result instead of failing the whole query.

Usage:
    token = CancellationToken()
    summaries = await hydrate_refs(
        provider.fetch_summary, refs,
        concurrency=16, operation="search", cancel=token,
    )

    # Elsewhere (e.g. client went away)
    token.cancel("client disconnected")
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence

from pokedex.etl.base import ItemSummary, MemberRef, UpstreamError
from pokedex.telemetry import record_hydration_dropped

logger = logging.getLogger(__name__)


class QueryCancelled(RuntimeError):
    """Raised when a query's CancellationToken was cancelled before it finished."""


class CancellationToken:
    """Cooperative cancellation flag threaded through a query's fan-out."""

    __slots__ = ("_cancelled", "reason")

    def __init__(self):
        self._cancelled = False
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._cancelled:
            self._cancelled = True
            self.reason = reason

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise QueryCancelled(self.reason or "cancelled")


async def hydrate_refs(
    fetch: Callable[[str], Awaitable[ItemSummary]],
    refs: Sequence[MemberRef],
    *,
    concurrency: int,
    operation: str,
    cancel: Optional[CancellationToken] = None,
) -> list[ItemSummary]:
    """
    Hydrate references to summaries with bounded concurrency.

    Args:
        fetch: Async callable taking a creature name, returning its summary.
        refs: References in upstream order.
        concurrency: Max simultaneous detail requests.
        operation: Low-cardinality label for logs/metrics ("page", "search", ...).
        cancel: Optional token; once cancelled no further requests are issued.

    Returns:
        Summaries in the same order as refs, minus the ones that failed.

    Raises:
        QueryCancelled: if the token was cancelled while hydrating.
    """
    if cancel is not None:
        cancel.raise_if_cancelled()
    if not refs:
        return []

    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def wrapped(ref: MemberRef) -> Optional[ItemSummary]:
        async with semaphore:
            if cancel is not None and cancel.cancelled:
                return None
            try:
                return await fetch(ref.name)
            except UpstreamError as e:
                logger.warning(f"[HYDRATE] Dropping '{ref.name}' from {operation}: {e}")
                return None

    results = await asyncio.gather(*(wrapped(ref) for ref in refs))

    if cancel is not None:
        cancel.raise_if_cancelled()

    hydrated = [r for r in results if r is not None]
    dropped = len(refs) - len(hydrated)
    if dropped:
        record_hydration_dropped(operation, dropped)
        logger.info(f"[HYDRATE] {operation}: hydrated={len(hydrated)} dropped={dropped}")
    return hydrated
